"""
Database models for the clinic administration backend.

The schema covers the front desk (patients, admissions, pathology orders,
infertility cases), the billing ledger (patient accounts, service charges,
payments and their allocations) and staff cash shifts.  Money columns are
stored as ``Decimal`` with two places; running totals on accounts and
shifts are only ever changed through ``F()`` increments in the services.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q

ZERO = Decimal('0.00')


def _money(**kwargs):
    kwargs.setdefault('default', ZERO)
    return models.DecimalField(max_digits=12, decimal_places=2, **kwargs)


class Department(models.Model):
    """Hospital department.  ``code`` feeds admission registration numbers."""
    name = models.CharField(max_length=100, unique=True)
    code = models.CharField(max_length=10, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Staff(models.Model):
    """A member of staff.  Doctors, nurses and desk clerks all live here;
    only some of them have a login (:class:`User`)."""
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    full_name = models.CharField(max_length=200, db_index=True)
    role = models.CharField(max_length=50, default='Staff', db_index=True)
    specialization = models.CharField(max_length=100, blank=True)
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff'
    )
    phone_number = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['full_name']

    def __str__(self) -> str:
        return self.full_name


class User(AbstractUser):
    """Login account bound to at most one staff member.

    ``role`` holds one of the system roles (see :mod:`hms.roles`).  An
    archived user is simply ``is_active=False``.
    """
    ROLE_CHOICES = [
        ('system-admin', 'System Administrator'),
        ('admin', 'Administrator'),
        ('receptionist', 'Receptionist'),
        ('receptionist-infertility', 'Receptionist (Infertility)'),
        ('medicine-pharmacist', 'Medicine Pharmacist'),
        ('staff', 'Staff'),
    ]
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default='staff', db_index=True)
    staff = models.OneToOneField(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='user'
    )

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class HospitalConfig(models.Model):
    """Runtime key/value settings editable by administrators."""
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=255)
    description = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


class Hospital(models.Model):
    """Referring hospital or clinic."""
    name = models.CharField(max_length=200, unique=True)
    address = models.CharField(max_length=255, blank=True)
    phone_number = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    website = models.CharField(max_length=200, blank=True)
    type = models.CharField(max_length=50, blank=True, db_index=True)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='hospitals_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Patient(models.Model):
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    full_name = models.CharField(max_length=200, db_index=True)
    gender = models.CharField(max_length=16, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.CharField(max_length=255, blank=True)
    # front desk looks patients up by phone
    phone_number = models.CharField(max_length=32, blank=True, db_index=True)
    email = models.EmailField(blank=True)
    blood_group = models.CharField(max_length=8, blank=True)
    guardian_name = models.CharField(max_length=200, blank=True)
    guardian_phone = models.CharField(max_length=32, blank=True)
    guardian_dob = models.DateField(null=True, blank=True)
    guardian_gender = models.CharField(max_length=16, blank=True)
    spouse_dob = models.DateField(null=True, blank=True)
    spouse_gender = models.CharField(max_length=16, blank=True)
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients'
    )
    created_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.registration_id})"

    @property
    def registration_id(self) -> str:
        return f"REG-{self.pk:06d}" if self.pk else ''

    @property
    def age(self) -> int | None:
        if not self.date_of_birth:
            return None
        today = date.today()
        dob = self.date_of_birth
        return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))


class PatientAccount(models.Model):
    """Running balance for one patient across every service."""
    patient = models.OneToOneField(Patient, on_delete=models.CASCADE, related_name='account')
    total_charges = _money()
    total_paid = _money()
    total_due = _money()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Account({self.patient_id}) due={self.total_due}"


class Admission(models.Model):
    STATUS_ADMITTED = 'Admitted'
    STATUS_UNDER_TREATMENT = 'Under Treatment'
    STATUS_AWAITING_DISCHARGE = 'Awaiting Discharge'
    STATUS_DISCHARGED = 'Discharged'
    STATUS_CANCELED = 'Canceled'
    STATUS_CHOICES = [
        (STATUS_ADMITTED, STATUS_ADMITTED),
        (STATUS_UNDER_TREATMENT, STATUS_UNDER_TREATMENT),
        (STATUS_AWAITING_DISCHARGE, STATUS_AWAITING_DISCHARGE),
        (STATUS_DISCHARGED, STATUS_DISCHARGED),
        (STATUS_CANCELED, STATUS_CANCELED),
    ]
    DISCOUNT_PERCENTAGE = 'percentage'
    DISCOUNT_FIXED = 'fixed'
    DISCOUNT_CHOICES = [(DISCOUNT_PERCENTAGE, 'Percentage'), (DISCOUNT_FIXED, 'Fixed')]

    # Charge columns summed into ``total_amount``.
    CHARGE_FIELDS = (
        'admission_fee', 'service_charge', 'seat_rent', 'ot_charge', 'doctor_charge',
        'surgeon_charge', 'anesthesia_fee', 'assistant_doctor_fee', 'medicine_charge',
        'other_charges',
    )

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='admissions')
    department = models.ForeignKey(Department, on_delete=models.PROTECT, related_name='admissions')
    doctor = models.ForeignKey(Staff, on_delete=models.PROTECT, related_name='admissions')
    admission_number = models.CharField(max_length=32, unique=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_ADMITTED, db_index=True)
    date_admitted = models.DateTimeField(db_index=True)
    date_discharged = models.DateTimeField(null=True, blank=True)
    is_discharged = models.BooleanField(default=False, db_index=True)
    seat_number = models.CharField(max_length=32, blank=True)
    ward = models.CharField(max_length=64, blank=True)
    diagnosis = models.TextField(blank=True)
    treatment = models.TextField(blank=True)
    ot_type = models.CharField(max_length=100, blank=True)
    chief_complaint = models.TextField(blank=True)
    remarks = models.TextField(blank=True)

    admission_fee = _money()
    service_charge = _money()
    seat_rent = _money()
    ot_charge = _money()
    doctor_charge = _money()
    surgeon_charge = _money()
    anesthesia_fee = _money()
    assistant_doctor_fee = _money()
    medicine_charge = _money()
    other_charges = _money()
    total_amount = _money()
    discount_type = models.CharField(max_length=16, choices=DISCOUNT_CHOICES, blank=True)
    discount_value = _money()
    discount_amount = _money()
    grand_total = _money()
    paid_amount = _money()
    due_amount = _money()

    created_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='admissions_created'
    )
    last_modified_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='admissions_modified'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.admission_number} ({self.status})"


class PathologyTest(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='pathology_tests')
    department = models.ForeignKey(Department, on_delete=models.PROTECT, related_name='pathology_tests')
    test_number = models.CharField(max_length=32, unique=True)
    test_date = models.DateTimeField(db_index=True)
    report_date = models.DateTimeField(null=True, blank=True, db_index=True)
    test_category = models.CharField(max_length=100, blank=True)
    test_type = models.JSONField(default=dict, blank=True)
    remarks = models.TextField(blank=True)
    is_completed = models.BooleanField(default=False, db_index=True)
    test_charge = _money()
    discount_amount = _money()
    grand_total = _money()
    paid_amount = _money()
    due_amount = _money()
    ordered_by = models.ForeignKey(Staff, on_delete=models.PROTECT, related_name='pathology_ordered')
    done_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='pathology_done'
    )
    created_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='pathology_created'
    )
    last_modified_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='pathology_modified'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.test_number

    @property
    def selected_codes(self) -> list[str]:
        return list((self.test_type or {}).get('tests') or [])


class InfertilityRecord(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='infertility_records')
    hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='infertility_records')
    registration_number = models.CharField(max_length=32, unique=True)
    years_married = models.PositiveIntegerField(null=True, blank=True)
    years_trying = models.PositiveIntegerField(null=True, blank=True)
    infertility_type = models.CharField(max_length=32, blank=True, db_index=True)
    para = models.CharField(max_length=16, blank=True)
    gravida = models.CharField(max_length=16, blank=True)
    weight = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    bmi = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    blood_pressure = models.CharField(max_length=16, blank=True)
    blood_group = models.CharField(max_length=8, blank=True)
    medical_history = models.TextField(blank=True)
    surgical_history = models.TextField(blank=True)
    menstrual_history = models.TextField(blank=True)
    contraceptive_history = models.TextField(blank=True)
    referral_source = models.CharField(max_length=200, blank=True)
    chief_complaint = models.TextField(blank=True)
    treatment_plan = models.TextField(blank=True)
    medications = models.TextField(blank=True)
    next_appointment = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=32, default='Active', db_index=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='infertility_created'
    )
    last_modified_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='infertility_modified'
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.registration_number


class ServiceCharge(models.Model):
    """A billable line on a patient account."""
    TYPE_ADMISSION = 'ADMISSION'
    TYPE_PATHOLOGY = 'PATHOLOGY_TEST'
    TYPE_OTHER = 'OTHER'
    TYPE_CHOICES = [(TYPE_ADMISSION, TYPE_ADMISSION), (TYPE_PATHOLOGY, TYPE_PATHOLOGY), (TYPE_OTHER, TYPE_OTHER)]

    account = models.ForeignKey(PatientAccount, on_delete=models.CASCADE, related_name='service_charges')
    service_type = models.CharField(max_length=32, choices=TYPE_CHOICES, db_index=True)
    service_name = models.CharField(max_length=255)
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='service_charges'
    )
    original_amount = _money()
    discount_amount = _money()
    final_amount = _money()
    service_date = models.DateTimeField()
    admission = models.ForeignKey(
        Admission, null=True, blank=True, on_delete=models.SET_NULL, related_name='service_charges'
    )
    pathology_test = models.ForeignKey(
        PathologyTest, null=True, blank=True, on_delete=models.SET_NULL, related_name='service_charges'
    )
    created_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='charges_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.service_type}: {self.service_name} ({self.final_amount})"


class Shift(models.Model):
    """A staff member's cash drawer session.

    ``system_cash`` always equals ``opening_cash + total_collected -
    total_refunded``; ``variance`` is ``closing_cash - system_cash`` and is
    only set on close.
    """
    staff = models.ForeignKey(Staff, on_delete=models.PROTECT, related_name='shifts')
    start_time = models.DateTimeField(db_index=True)
    end_time = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    opening_cash = _money()
    closing_cash = _money(null=True, blank=True, default=None)
    system_cash = _money()
    total_collected = _money()
    total_refunded = _money()
    variance = _money(null=True, blank=True, default=None)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['staff'], condition=Q(is_active=True), name='one_active_shift_per_staff'
            ),
        ]
        indexes = [models.Index(fields=['staff', 'start_time'], name='hms_shift_staff_start_idx')]

    def __str__(self) -> str:
        state = 'active' if self.is_active else 'closed'
        return f"Shift({self.staff_id}, {self.start_time:%F %T}, {state})"


class Payment(models.Model):
    account = models.ForeignKey(PatientAccount, on_delete=models.CASCADE, related_name='payments')
    amount = _money()
    payment_method = models.CharField(max_length=32, default='Cash')
    payment_date = models.DateTimeField(db_index=True)
    collected_by = models.ForeignKey(Staff, on_delete=models.PROTECT, related_name='payments_collected')
    shift = models.ForeignKey(Shift, null=True, blank=True, on_delete=models.SET_NULL, related_name='payments')
    receipt_number = models.CharField(max_length=64, unique=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.receipt_number} ({self.amount})"


class PaymentAllocation(models.Model):
    """Settles part of a payment against one service charge."""
    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name='allocations')
    service_charge = models.ForeignKey(ServiceCharge, on_delete=models.CASCADE, related_name='allocations')
    allocated_amount = _money()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.payment_id} -> {self.service_charge_id}: {self.allocated_amount}"


class CashMovement(models.Model):
    TYPE_COLLECTION = 'COLLECTION'
    TYPE_PAYMENT_RECEIVED = 'PAYMENT_RECEIVED'
    TYPE_REFUND = 'REFUND'
    TYPE_ADJUSTMENT = 'ADJUSTMENT'
    TYPE_CHOICES = [
        (TYPE_COLLECTION, TYPE_COLLECTION),
        (TYPE_PAYMENT_RECEIVED, TYPE_PAYMENT_RECEIVED),
        (TYPE_REFUND, TYPE_REFUND),
        (TYPE_ADJUSTMENT, TYPE_ADJUSTMENT),
    ]

    shift = models.ForeignKey(Shift, on_delete=models.CASCADE, related_name='cash_movements')
    amount = _money()
    movement_type = models.CharField(max_length=32, choices=TYPE_CHOICES, db_index=True)
    description = models.CharField(max_length=255, blank=True)
    payment = models.ForeignKey(
        Payment, null=True, blank=True, on_delete=models.SET_NULL, related_name='cash_movements'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.movement_type} {self.amount} on shift {self.shift_id}"


class ActivityLog(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activity_logs')
    username = models.CharField(max_length=150, blank=True)
    action = models.CharField(max_length=64, db_index=True)
    description = models.TextField(blank=True)
    entity_type = models.CharField(max_length=64, blank=True)
    entity_id = models.CharField(max_length=64, blank=True)
    ip_address = models.CharField(max_length=64, blank=True)
    user_agent = models.CharField(max_length=255, blank=True)
    detail = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'timestamp'], name='hms_activity_action_ts_idx'),
            models.Index(fields=['entity_type', 'entity_id', 'timestamp'], name='hms_activity_entity_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.username}@{self.timestamp:%F %T}"


# ---------------------------------------------------------------------
# Medicine inventory
# ---------------------------------------------------------------------
class MedicineGroup(models.Model):
    """Therapeutic group (antibiotics, analgesics...)."""
    name = models.CharField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class MedicineCompany(models.Model):
    """Supplier that medicines are purchased from."""
    name = models.CharField(max_length=200, unique=True)
    address = models.CharField(max_length=500, blank=True)
    phone_number = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Medicine(models.Model):
    generic_name = models.CharField(max_length=200)
    brand_name = models.CharField(max_length=200, blank=True)
    group = models.ForeignKey(MedicineGroup, on_delete=models.PROTECT, related_name='medicines')
    strength = models.CharField(max_length=50, blank=True)
    dosage_form = models.CharField(max_length=50, blank=True)
    current_stock = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=10)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['generic_name']
        constraints = [
            models.UniqueConstraint(fields=['generic_name', 'group'], name='hms_medicine_name_group_uniq'),
        ]

    def __str__(self) -> str:
        return f"{self.generic_name} ({self.brand_name})" if self.brand_name else self.generic_name

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.low_stock_threshold


class MedicinePurchase(models.Model):
    """One delivered batch; ``remaining_qty`` is drawn down by sales oldest batch first."""
    invoice_number = models.CharField(max_length=100, db_index=True)
    company = models.ForeignKey(MedicineCompany, on_delete=models.PROTECT, related_name='purchases')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='purchases')
    quantity = models.PositiveIntegerField()
    unit_price = _money()
    total_amount = _money()
    purchase_date = models.DateTimeField(db_index=True)
    expiry_date = models.DateField(null=True, blank=True)
    batch_number = models.CharField(max_length=100, blank=True)
    remaining_qty = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='medicine_purchases'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['medicine', 'purchase_date'], name='hms_purchase_med_date_idx')]

    def __str__(self) -> str:
        return f"{self.invoice_number}:{self.medicine_id}x{self.quantity}"


class MedicineSale(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='medicine_sales')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='sales')
    purchase = models.ForeignKey(MedicinePurchase, on_delete=models.PROTECT, related_name='sales')
    quantity = models.PositiveIntegerField()
    unit_price = _money()
    total_amount = _money()
    sale_date = models.DateTimeField(db_index=True)
    created_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='medicine_sales'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"sale {self.id}: {self.medicine_id}x{self.quantity}"
