"""
General admissions.

An admission is billed through the patient account: the admission fee is
charged and collected on creation, later edits to the charge columns move
the account by the difference, and changes to the paid amount go through
the cash ledger of the editing staff member's active shift (collection
when it rises, refund when it falls).
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from hms.exceptions import InvalidOperation, RecordNotFound
from hms.models import Admission, Department, ServiceCharge, Staff, ZERO
from hms.services import activity
from hms.services.billing import (
    add_service_charge, apply_account_delta, as_float, get_or_create_account, money,
)
from hms.services.cash import collect_for_charge, refund_for_staff
from hms.services.config import admission_fee
from hms.services.numbering import next_admission_number
from hms.services.patients import resolve_hospital, serialize_hospital, upsert_patient
from hms.services.periods import local_day_range

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('seat_number', 'ward', 'diagnosis', 'treatment', 'ot_type', 'chief_complaint', 'remarks')


def compute_discount(total: Decimal, discount_type: str | None, discount_value) -> Decimal:
    value = money(discount_value)
    if not discount_type or value <= 0:
        return ZERO
    if discount_type == Admission.DISCOUNT_PERCENTAGE:
        discount = money(total * min(value, Decimal('100')) / Decimal('100'))
    else:
        discount = value
    return min(discount, total)


def recompute_totals(admission: Admission) -> None:
    total = sum((getattr(admission, f) for f in Admission.CHARGE_FIELDS), ZERO)
    admission.total_amount = total
    admission.discount_amount = compute_discount(total, admission.discount_type, admission.discount_value)
    admission.grand_total = total - admission.discount_amount
    admission.due_amount = admission.grand_total - admission.paid_amount


def serialize_admission(a: Admission) -> dict:
    patient = a.patient
    data = {
        'id': a.id,
        'admissionNumber': a.admission_number,
        'status': a.status,
        'dateAdmitted': a.date_admitted.isoformat(),
        'dateDischarged': a.date_discharged.isoformat() if a.date_discharged else None,
        'isDischarged': a.is_discharged,
        'seatNumber': a.seat_number,
        'ward': a.ward,
        'diagnosis': a.diagnosis,
        'treatment': a.treatment,
        'otType': a.ot_type,
        'chiefComplaint': a.chief_complaint,
        'remarks': a.remarks,
        'patientId': patient.id,
        'registrationId': patient.registration_id,
        'patientFullName': patient.full_name,
        'patientGender': patient.gender,
        'patientAge': patient.age,
        'phoneNumber': patient.phone_number,
        'address': patient.address,
        'guardianName': patient.guardian_name,
        'hospital': serialize_hospital(patient.hospital),
        'departmentId': a.department_id,
        'departmentName': a.department.name,
        'doctorId': a.doctor_id,
        'doctorName': a.doctor.full_name,
        'discountType': a.discount_type or None,
        'discountValue': as_float(a.discount_value),
    }
    for f in Admission.CHARGE_FIELDS + ('total_amount', 'discount_amount', 'grand_total', 'paid_amount', 'due_amount'):
        head, *rest = f.split('_')
        data[head + ''.join(p.title() for p in rest)] = as_float(getattr(a, f))
    return data


def _department(pk) -> Department:
    department = Department.objects.filter(pk=pk).first()
    if department is None:
        raise RecordNotFound('Department not found')
    return department


def _doctor(pk) -> Staff:
    doctor = Staff.objects.filter(pk=pk).first()
    if doctor is None:
        raise RecordNotFound('Doctor not found')
    return doctor


def _admission_charge(admission: Admission) -> ServiceCharge | None:
    return (ServiceCharge.objects.filter(admission=admission, service_type=ServiceCharge.TYPE_ADMISSION)
            .order_by('id').first())


def create_admission(*, data: dict, user, request=None) -> Admission:
    staff = getattr(user, 'staff', None)
    department = _department(data['department_id'])
    doctor = _doctor(data['doctor_id'])
    fee = admission_fee()
    with transaction.atomic():
        hospital = resolve_hospital(data.get('hospital'), staff)
        patient = upsert_patient(data['patient'], staff=staff, hospital=hospital)
        when = data.get('date_admitted') or timezone.now()
        number = next_admission_number(department, when)
        admission = Admission.objects.create(
            patient=patient,
            department=department,
            doctor=doctor,
            admission_number=number,
            status=data.get('status') or Admission.STATUS_ADMITTED,
            date_admitted=when,
            admission_fee=fee,
            total_amount=fee,
            grand_total=fee,
            paid_amount=fee,
            due_amount=ZERO,
            created_by=staff,
            last_modified_by=staff,
            **{f: data.get(f) or '' for f in TEXT_FIELDS},
        )
        account = get_or_create_account(patient)
        apply_account_delta(account, charges=fee, paid=fee)
        charge = add_service_charge(
            account=account, service_type=ServiceCharge.TYPE_ADMISSION,
            service_name=f'Admission Fee - {number}', department=department,
            original_amount=fee, final_amount=fee, service_date=when, admission=admission, staff=staff,
        )
        if fee > 0:
            collect_for_charge(staff=staff, account=account, charge=charge, amount=fee,
                               notes=f'Admission fee - {number}')
        activity.log_action(
            user=user, action=activity.CREATE, entity_type='Admission', entity_id=admission.id,
            description=f'Admitted {patient.full_name} ({number}) to {department.name}', request=request,
        )
    logger.info('admission %s created for patient %s', number, patient.id)
    return admission


def update_admission(admission: Admission, *, data: dict, user, request=None) -> Admission:
    """Apply an edit from the admission form.

    Moving to ``Canceled`` zeroes every charge and the paid amount (the
    paid cash is refunded); moving out of ``Canceled`` restores the
    configured admission fee before the submitted charges are applied.
    """
    staff = getattr(user, 'staff', None)
    with transaction.atomic():
        adm = Admission.objects.select_for_update().select_related('patient', 'department').get(pk=admission.pk)
        old_grand, old_paid, old_due = adm.grand_total, adm.paid_amount, adm.due_amount
        old_status = adm.status
        new_status = data.get('status') or old_status
        canceling = new_status == Admission.STATUS_CANCELED and old_status != Admission.STATUS_CANCELED
        restoring = old_status == Admission.STATUS_CANCELED and new_status != Admission.STATUS_CANCELED

        if data.get('patient'):
            hospital = resolve_hospital(data.get('hospital'), staff) if data.get('hospital') else None
            upsert_patient({**data['patient'], 'id': adm.patient_id}, staff=staff, hospital=hospital)
        if data.get('doctor_id'):
            adm.doctor = _doctor(data['doctor_id'])
        for f in TEXT_FIELDS:
            if f in data and data[f] is not None:
                setattr(adm, f, data[f])

        if canceling:
            for f in Admission.CHARGE_FIELDS:
                setattr(adm, f, ZERO)
            adm.discount_type, adm.discount_value = '', ZERO
            adm.paid_amount = ZERO
            adm.remarks = f"[CANCELED] {adm.remarks} - Previous charges refunded".replace('  ', ' ')
        elif new_status != Admission.STATUS_CANCELED:
            if restoring:
                adm.admission_fee = admission_fee()
            for f in Admission.CHARGE_FIELDS:
                if f in data and data[f] is not None:
                    value = money(data[f])
                    if value < 0:
                        raise InvalidOperation(f'{f} cannot be negative')
                    setattr(adm, f, value)
            if 'discount_type' in data:
                adm.discount_type = data['discount_type'] or ''
            if 'discount_value' in data:
                adm.discount_value = money(data['discount_value'])
            if 'paid_amount' in data and data['paid_amount'] is not None:
                adm.paid_amount = money(data['paid_amount'])
        recompute_totals(adm)
        if adm.paid_amount < 0:
            raise InvalidOperation('Paid amount cannot be negative')
        if adm.paid_amount > adm.grand_total:
            raise InvalidOperation('Paid amount cannot exceed the grand total')

        adm.status = new_status
        if new_status == Admission.STATUS_DISCHARGED:
            adm.is_discharged = True
            adm.date_discharged = data.get('date_discharged') or adm.date_discharged or timezone.now()
        elif adm.is_discharged:
            adm.is_discharged = False
            adm.date_discharged = None
        adm.last_modified_by = staff
        adm.save()

        account = get_or_create_account(adm.patient)
        apply_account_delta(
            account,
            charges=adm.grand_total - old_grand,
            paid=adm.paid_amount - old_paid,
            due=adm.due_amount - old_due,
        )
        charge = _admission_charge(adm)
        if charge is None:
            charge = add_service_charge(
                account=account, service_type=ServiceCharge.TYPE_ADMISSION,
                service_name=f'Admission Fee - {adm.admission_number}', department=adm.department,
                service_date=adm.date_admitted, admission=adm, staff=staff,
            )
        charge.original_amount = adm.total_amount
        charge.discount_amount = adm.discount_amount
        charge.final_amount = adm.grand_total
        charge.save(update_fields=['original_amount', 'discount_amount', 'final_amount'])

        paid_delta = adm.paid_amount - old_paid
        if paid_delta > 0:
            collect_for_charge(staff=staff, account=account, charge=charge, amount=paid_delta,
                               notes=f'Admission payment - {adm.admission_number}')
        elif paid_delta < 0:
            refund_for_staff(staff=staff, amount=-paid_delta,
                             description=f'Refund - {adm.admission_number}')

        activity.log_action(
            user=user, action=activity.UPDATE, entity_type='Admission', entity_id=adm.id,
            description=f'Updated admission {adm.admission_number} ({old_status} -> {adm.status})',
            request=request,
            detail={'grandTotal': str(adm.grand_total), 'paidAmount': str(adm.paid_amount),
                    'paidDelta': str(paid_delta)},
        )
    return adm


def delete_admission(admission: Admission, *, user, request=None) -> None:
    number, pk = admission.admission_number, admission.pk
    with transaction.atomic():
        admission.delete()
        activity.log_action(user=user, action=activity.DELETE, entity_type='Admission', entity_id=pk,
                            description=f'Deleted admission {number}', request=request)


def list_admissions(*, search: str | None = None, start_date: date | None = None, end_date: date | None = None,
                    status: str | None = None, department_id: int | None = None):
    qs = Admission.objects.select_related('patient__hospital', 'department', 'doctor')
    if search:
        qs = qs.filter(
            Q(admission_number__icontains=search) | Q(patient__full_name__icontains=search)
            | Q(patient__phone_number__icontains=search)
        )
    if start_date or end_date:
        range_start, range_end = local_day_range(start_date or end_date, end_date or start_date)
        qs = qs.filter(date_admitted__gte=range_start, date_admitted__lt=range_end)
    if status:
        qs = qs.filter(status=status)
    if department_id:
        qs = qs.filter(department_id=department_id)
    return qs.order_by('-date_admitted', '-id')
