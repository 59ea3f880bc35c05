"""
Pathology orders.

Orders are priced from the catalogue (unless the desk overrides the
charge), billed as a ``PATHOLOGY_TEST`` service charge and paid through
the cash ledger exactly like admissions.
"""
from __future__ import annotations

import logging
from datetime import date

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from hms.exceptions import InvalidOperation, RecordNotFound
from hms.models import CashMovement, Department, PathologyTest, ServiceCharge, Staff
from hms.services import activity
from hms.services import pathology_catalogue as catalogue
from hms.services.billing import add_service_charge, apply_account_delta, as_float, get_or_create_account, money
from hms.services.cash import collect_for_charge, refund_for_staff
from hms.services.numbering import next_pathology_number
from hms.services.patients import resolve_hospital, serialize_hospital, upsert_patient
from hms.services.periods import local_day_range

logger = logging.getLogger(__name__)


def pathology_department() -> Department:
    department, _ = Department.objects.get_or_create(
        name='Pathology', defaults={'code': 'PATH', 'description': 'Pathology laboratory'}
    )
    return department


def serialize_test(t: PathologyTest) -> dict:
    patient = t.patient
    codes = t.selected_codes
    return {
        'id': t.id,
        'testNumber': t.test_number,
        'testDate': t.test_date.isoformat(),
        'reportDate': t.report_date.isoformat() if t.report_date else None,
        'testCategory': t.test_category,
        'tests': [
            {'code': c, 'name': getattr(catalogue.get_test(c), 'name', c),
             'price': as_float(getattr(catalogue.get_test(c), 'price', None))}
            for c in codes
        ],
        'remarks': t.remarks,
        'isCompleted': t.is_completed,
        'testCharge': as_float(t.test_charge),
        'discountAmount': as_float(t.discount_amount),
        'grandTotal': as_float(t.grand_total),
        'paidAmount': as_float(t.paid_amount),
        'dueAmount': as_float(t.due_amount),
        'orderedById': t.ordered_by_id,
        'orderedByName': t.ordered_by.full_name,
        'doneById': t.done_by_id,
        'doneByName': t.done_by.full_name if t.done_by else None,
        'patientId': patient.id,
        'registrationId': patient.registration_id,
        'patientFullName': patient.full_name,
        'patientGender': patient.gender,
        'patientAge': patient.age,
        'phoneNumber': patient.phone_number,
        'hospital': serialize_hospital(patient.hospital),
    }


def _staff(pk, label: str) -> Staff:
    staff = Staff.objects.filter(pk=pk).first()
    if staff is None:
        raise RecordNotFound(f'{label} not found')
    return staff


def _validate_codes(codes) -> list[str]:
    codes = list(dict.fromkeys(codes or []))
    if not codes:
        raise InvalidOperation('Select at least one test')
    unknown = catalogue.unknown_codes(codes)
    if unknown:
        raise InvalidOperation(f"Unknown test code(s): {', '.join(unknown)}")
    return codes


def _price(test: PathologyTest, *, charge, discount, paid) -> None:
    test.test_charge = money(charge)
    test.discount_amount = min(money(discount), test.test_charge)
    test.grand_total = test.test_charge - test.discount_amount
    test.paid_amount = money(paid)
    if test.paid_amount < 0:
        raise InvalidOperation('Paid amount cannot be negative')
    if test.paid_amount > test.grand_total:
        raise InvalidOperation('Paid amount cannot exceed the grand total')
    test.due_amount = test.grand_total - test.paid_amount


def create_test(*, data: dict, user, request=None) -> PathologyTest:
    staff = getattr(user, 'staff', None)
    codes = _validate_codes(data.get('test_codes'))
    ordered_by = _staff(data['ordered_by_id'], 'Ordering doctor')
    done_by = _staff(data['done_by_id'], 'Performing staff') if data.get('done_by_id') else None
    department = pathology_department()
    charge = data.get('test_charge')
    if charge is None:
        charge = catalogue.total_price(codes)
    with transaction.atomic():
        hospital = resolve_hospital(data.get('hospital'), staff)
        patient = upsert_patient(data['patient'], staff=staff, hospital=hospital)
        when = data.get('test_date') or timezone.now()
        test = PathologyTest(
            patient=patient,
            department=department,
            test_number=next_pathology_number(when),
            test_date=when,
            test_category=data.get('test_category') or catalogue.get_test(codes[0]).category,
            test_type={'tests': codes},
            remarks=data.get('remarks') or '',
            is_completed=bool(data.get('is_completed')),
            report_date=timezone.now() if data.get('is_completed') else None,
            ordered_by=ordered_by,
            done_by=done_by,
            created_by=staff,
            last_modified_by=staff,
        )
        _price(test, charge=charge, discount=data.get('discount_amount'), paid=data.get('paid_amount'))
        test.save()
        account = get_or_create_account(patient)
        apply_account_delta(account, charges=test.grand_total, paid=test.paid_amount, due=test.due_amount)
        service_charge = add_service_charge(
            account=account, service_type=ServiceCharge.TYPE_PATHOLOGY,
            service_name=f'Pathology Tests - {test.test_number}', department=department,
            original_amount=test.test_charge, discount_amount=test.discount_amount,
            final_amount=test.grand_total, service_date=when, pathology_test=test, staff=staff,
        )
        if test.paid_amount > 0:
            collect_for_charge(staff=staff, account=account, charge=service_charge, amount=test.paid_amount,
                               notes=f'Pathology payment - {test.test_number}',
                               movement_type=CashMovement.TYPE_PAYMENT_RECEIVED)
        activity.log_action(
            user=user, action=activity.CREATE, entity_type='PathologyTest', entity_id=test.id,
            description=f'Created pathology order {test.test_number} for {patient.full_name}', request=request,
        )
    logger.info('pathology order %s created (%s tests)', test.test_number, len(codes))
    return test


def update_test(test: PathologyTest, *, data: dict, user, request=None) -> PathologyTest:
    staff = getattr(user, 'staff', None)
    with transaction.atomic():
        t = PathologyTest.objects.select_for_update().select_related('patient').get(pk=test.pk)
        old_grand, old_paid, old_due = t.grand_total, t.paid_amount, t.due_amount
        if data.get('patient'):
            hospital = resolve_hospital(data.get('hospital'), staff) if data.get('hospital') else None
            upsert_patient({**data['patient'], 'id': t.patient_id}, staff=staff, hospital=hospital)
        charge = t.test_charge
        if 'test_codes' in data:
            codes = _validate_codes(data['test_codes'])
            t.test_type = {'tests': codes}
            charge = catalogue.total_price(codes)
        if data.get('test_charge') is not None:
            charge = data['test_charge']
        discount = data['discount_amount'] if data.get('discount_amount') is not None else t.discount_amount
        paid = data['paid_amount'] if data.get('paid_amount') is not None else t.paid_amount
        _price(t, charge=charge, discount=discount, paid=paid)
        for f in ('test_category', 'remarks'):
            if data.get(f) is not None:
                setattr(t, f, data[f])
        if data.get('ordered_by_id'):
            t.ordered_by = _staff(data['ordered_by_id'], 'Ordering doctor')
        if 'done_by_id' in data:
            t.done_by = _staff(data['done_by_id'], 'Performing staff') if data['done_by_id'] else None
        if 'is_completed' in data:
            completed = bool(data['is_completed'])
            if completed and not t.is_completed:
                t.report_date = data.get('report_date') or timezone.now()
            t.is_completed = completed
        t.last_modified_by = staff
        t.save()

        account = get_or_create_account(t.patient)
        apply_account_delta(account, charges=t.grand_total - old_grand, paid=t.paid_amount - old_paid,
                            due=t.due_amount - old_due)
        service_charge = (ServiceCharge.objects.filter(pathology_test=t).order_by('id').first()
                          or add_service_charge(account=account, service_type=ServiceCharge.TYPE_PATHOLOGY,
                                                service_name=f'Pathology Tests - {t.test_number}',
                                                department=t.department, service_date=t.test_date,
                                                pathology_test=t, staff=staff))
        service_charge.original_amount = t.test_charge
        service_charge.discount_amount = t.discount_amount
        service_charge.final_amount = t.grand_total
        service_charge.save(update_fields=['original_amount', 'discount_amount', 'final_amount'])

        paid_delta = t.paid_amount - old_paid
        if paid_delta > 0:
            collect_for_charge(staff=staff, account=account, charge=service_charge, amount=paid_delta,
                               notes=f'Pathology payment - {t.test_number}',
                               movement_type=CashMovement.TYPE_PAYMENT_RECEIVED)
        elif paid_delta < 0:
            refund_for_staff(staff=staff, amount=-paid_delta, description=f'Refund - {t.test_number}')

        activity.log_action(
            user=user, action=activity.UPDATE, entity_type='PathologyTest', entity_id=t.id,
            description=f'Updated pathology order {t.test_number}', request=request,
            detail={'grandTotal': str(t.grand_total), 'paidDelta': str(paid_delta)},
        )
    return t


def delete_test(test: PathologyTest, *, user, request=None) -> None:
    number, pk = test.test_number, test.pk
    with transaction.atomic():
        test.delete()
        activity.log_action(user=user, action=activity.DELETE, entity_type='PathologyTest', entity_id=pk,
                            description=f'Deleted pathology order {number}', request=request)


def list_tests(*, search: str | None = None, start_date: date | None = None, end_date: date | None = None,
               is_completed: bool | None = None, test_category: str | None = None):
    qs = PathologyTest.objects.select_related('patient__hospital', 'ordered_by', 'done_by')
    if search:
        qs = qs.filter(
            Q(test_number__icontains=search) | Q(patient__full_name__icontains=search)
            | Q(patient__phone_number__icontains=search)
        )
    if start_date or end_date:
        range_start, range_end = local_day_range(start_date or end_date, end_date or start_date)
        qs = qs.filter(test_date__gte=range_start, test_date__lt=range_end)
    if is_completed is not None:
        qs = qs.filter(is_completed=is_completed)
    if test_category:
        qs = qs.filter(test_category=test_category)
    return qs.order_by('-test_date', '-id')
