"""
Shift based cash accounting.

A shift is one staff member's drawer session.  Every cash event is a
:class:`CashMovement` on the shift and moves the running totals with
``F()`` increments on a row locked by ``select_for_update``, so that

    system_cash == opening_cash + total_collected - total_refunded

holds after every committed transaction.  Closing a shift records the
counted cash and ``variance = closing_cash - system_cash``.
"""
from __future__ import annotations

import logging
import time
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from hms.exceptions import Conflict, InvalidOperation
from hms.models import CashMovement, PatientAccount, Payment, ServiceCharge, Shift, Staff, ZERO
from hms.services import activity
from hms.services.billing import allocate, as_float, money
from hms.services.periods import date_range_for_preset

logger = logging.getLogger(__name__)

UPDATES_GROUP = 'updates'


# ---------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------
def serialize_shift(shift: Shift, *, with_staff: bool = True) -> dict:
    data = {
        'id': shift.id,
        'staffId': shift.staff_id,
        'startTime': shift.start_time.isoformat(),
        'endTime': shift.end_time.isoformat() if shift.end_time else None,
        'isActive': shift.is_active,
        'openingCash': as_float(shift.opening_cash),
        'closingCash': as_float(shift.closing_cash),
        'systemCash': as_float(shift.system_cash),
        'totalCollected': as_float(shift.total_collected),
        'totalRefunded': as_float(shift.total_refunded),
        'variance': as_float(shift.variance),
        'notes': shift.notes,
    }
    if with_staff:
        staff = shift.staff
        data['staff'] = {'id': staff.id, 'fullName': staff.full_name, 'role': staff.role}
    return data


def serialize_movement(m: CashMovement) -> dict:
    return {
        'id': m.id,
        'amount': as_float(m.amount),
        'movementType': m.movement_type,
        'description': m.description,
        'paymentId': m.payment_id,
        'createdAt': m.created_at.isoformat(),
    }


def serialize_payment(p: Payment) -> dict:
    return {
        'id': p.id,
        'receiptNumber': p.receipt_number,
        'amount': as_float(p.amount),
        'paymentMethod': p.payment_method,
        'paymentDate': p.payment_date.isoformat(),
        'notes': p.notes,
        'patientId': p.account.patient_id,
        'patientName': p.account.patient.full_name,
        'allocations': [
            {'serviceChargeId': a.service_charge_id, 'serviceName': a.service_charge.service_name,
             'allocatedAmount': as_float(a.allocated_amount)}
            for a in p.allocations.all()
        ],
    }


def _broadcast_shift(shift_id: int) -> None:
    def send():
        layer = get_channel_layer()
        if layer is None:
            return
        shift = Shift.objects.select_related('staff').filter(pk=shift_id).first()
        if shift is None:
            return
        async_to_sync(layer.group_send)(UPDATES_GROUP, {'type': 'shift.update', 'shift': serialize_shift(shift)})

    transaction.on_commit(send)


# ---------------------------------------------------------------------
# Shift lifecycle
# ---------------------------------------------------------------------
def get_active_shift(staff: Staff | None, *, lock: bool = False) -> Shift | None:
    if staff is None:
        return None
    qs = Shift.objects.filter(staff=staff, is_active=True)
    if lock:
        qs = qs.select_for_update()
    return qs.first()


def open_shift(*, staff: Staff, opening_cash=ZERO, notes: str = '', user=None, request=None) -> Shift:
    opening_cash = money(opening_cash)
    if opening_cash < 0:
        raise InvalidOperation('Opening cash cannot be negative')
    with transaction.atomic():
        if Shift.objects.filter(staff=staff, is_active=True).exists():
            raise Conflict('An active shift is already open for this staff member')
        try:
            with transaction.atomic():
                shift = Shift.objects.create(
                    staff=staff,
                    start_time=timezone.now(),
                    opening_cash=opening_cash,
                    system_cash=opening_cash,
                    notes=notes,
                )
        except IntegrityError:
            raise Conflict('An active shift is already open for this staff member')
        activity.log_action(
            user=user, action=activity.SHIFT_OPENED, entity_type='Shift', entity_id=shift.id,
            description=f'Opened shift with {opening_cash} opening cash', request=request,
        )
        _broadcast_shift(shift.id)
    logger.info('shift %s opened by staff %s, opening cash %s', shift.id, staff.id, opening_cash)
    return shift


def close_shift(*, shift: Shift, closing_cash, notes: str | None = None, user=None, request=None) -> Shift:
    closing_cash = money(closing_cash)
    if closing_cash < 0:
        raise InvalidOperation('Closing cash cannot be negative')
    with transaction.atomic():
        shift = Shift.objects.select_for_update().select_related('staff').get(pk=shift.pk)
        if not shift.is_active:
            raise Conflict('Shift is already closed')
        shift.closing_cash = closing_cash
        shift.variance = closing_cash - shift.system_cash
        shift.end_time = timezone.now()
        shift.is_active = False
        if notes:
            shift.notes = f"{shift.notes}\n{notes}".strip() if shift.notes else notes
        shift.save(update_fields=['closing_cash', 'variance', 'end_time', 'is_active', 'notes', 'updated_at'])
        activity.log_action(
            user=user, action=activity.SHIFT_CLOSED, entity_type='Shift', entity_id=shift.id,
            description=f'Closed shift: counted {closing_cash}, expected {shift.system_cash}, variance {shift.variance}',
            request=request,
            detail={'closingCash': str(closing_cash), 'systemCash': str(shift.system_cash),
                    'variance': str(shift.variance)},
        )
        _broadcast_shift(shift.id)
    logger.info('shift %s closed, variance %s', shift.id, shift.variance)
    return shift


# ---------------------------------------------------------------------
# Cash events
# ---------------------------------------------------------------------
def next_receipt_number() -> str:
    return f"RCP-{int(time.time() * 1000)}-{Payment.objects.count() + 1}"


def _locked_active(shift: Shift) -> Shift:
    locked = Shift.objects.select_for_update().get(pk=shift.pk)
    if not locked.is_active:
        raise Conflict('Shift is closed')
    return locked


def record_collection(*, shift: Shift, account: PatientAccount, amount, staff: Staff, notes: str = '',
                      allocations: Iterable[tuple[ServiceCharge, Decimal]] = (),
                      movement_type: str = CashMovement.TYPE_COLLECTION, description: str = '') -> Payment:
    """Take cash into ``shift``: payment, allocations, movement and totals."""
    amount = money(amount)
    if amount <= 0:
        raise InvalidOperation('Collected amount must be positive')
    with transaction.atomic():
        shift = _locked_active(shift)
        payment = Payment.objects.create(
            account=account,
            amount=amount,
            payment_method='Cash',
            payment_date=timezone.now(),
            collected_by=staff,
            shift=shift,
            receipt_number=next_receipt_number(),
            notes=notes,
        )
        allocate(payment, allocations)
        CashMovement.objects.create(
            shift=shift, amount=amount, movement_type=movement_type,
            description=(description or notes)[:255], payment=payment,
        )
        Shift.objects.filter(pk=shift.pk).update(
            system_cash=F('system_cash') + amount,
            total_collected=F('total_collected') + amount,
        )
        _broadcast_shift(shift.pk)
    logger.info('collected %s on shift %s (%s)', amount, shift.pk, payment.receipt_number)
    return payment


def record_refund(*, shift: Shift, amount, description: str = '') -> CashMovement:
    amount = money(amount)
    if amount <= 0:
        raise InvalidOperation('Refund amount must be positive')
    with transaction.atomic():
        shift = _locked_active(shift)
        movement = CashMovement.objects.create(
            shift=shift, amount=amount, movement_type=CashMovement.TYPE_REFUND, description=description[:255],
        )
        Shift.objects.filter(pk=shift.pk).update(
            system_cash=F('system_cash') - amount,
            total_refunded=F('total_refunded') + amount,
        )
        _broadcast_shift(shift.pk)
    logger.info('refunded %s on shift %s', amount, shift.pk)
    return movement


def collect_for_charge(*, staff: Staff | None, account: PatientAccount, charge: ServiceCharge, amount,
                       notes: str, movement_type: str = CashMovement.TYPE_COLLECTION) -> Payment | None:
    """Collect against one charge on the staff's active shift, if there is one."""
    shift = get_active_shift(staff)
    if shift is None:
        logger.info('no active shift for staff %s; %s not recorded as cash', getattr(staff, 'id', None), amount)
        return None
    return record_collection(
        shift=shift, account=account, amount=amount, staff=staff, notes=notes,
        allocations=[(charge, money(amount))], movement_type=movement_type,
    )


def refund_for_staff(*, staff: Staff | None, amount, description: str) -> CashMovement | None:
    shift = get_active_shift(staff)
    if shift is None:
        logger.info('no active shift for staff %s; refund of %s not recorded as cash',
                    getattr(staff, 'id', None), amount)
        return None
    return record_refund(shift=shift, amount=amount, description=description)


# ---------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------
def shift_detail(shift: Shift) -> dict:
    data = serialize_shift(shift)
    data['cashMovements'] = [serialize_movement(m) for m in shift.cash_movements.order_by('created_at', 'id')]
    payments = (shift.payments.select_related('account__patient')
                .prefetch_related('allocations__service_charge').order_by('payment_date', 'id'))
    data['payments'] = [serialize_payment(p) for p in payments]
    return data


def _registration_for(charge: ServiceCharge, patient) -> str:
    if charge.admission_id:
        return charge.admission.admission_number
    if charge.pathology_test_id:
        return charge.pathology_test.test_number
    return patient.registration_id


def _add(bucket: dict, key, name: str, amount: Decimal) -> None:
    entry = bucket.get(key)
    if entry is None:
        entry = bucket[key] = {'departmentId': key if isinstance(key, int) else None,
                               'departmentName': name, 'amount': ZERO, 'count': 0}
    entry['amount'] += amount
    entry['count'] += 1


def _breakdown(bucket: dict) -> list[dict]:
    rows = sorted(bucket.values(), key=lambda e: e['amount'], reverse=True)
    return [{**r, 'amount': as_float(r['amount'])} for r in rows]


def session_cash_summary(*, staff: Staff, preset: str | None = 'today', start: date | None = None,
                         end: date | None = None, department_id: int | None = None,
                         detailed: bool = False, now: datetime | None = None) -> dict:
    """Cash collected by one staff member over a period, per shift and department.

    Allocated amounts are credited to the department of the service charge;
    a payment without allocations counts as "General" and only when no
    department filter is applied.  Every allocation line counts as one
    transaction, as does an unallocated payment.  Refunds come from the
    shift totals.
    The detailed variant also takes shifts still active or holding payments
    in the period, counts only payments made in it and lists every line.
    """
    range_start, range_end, label = date_range_for_preset(preset, start, end, now)
    in_range = Q(start_time__gte=range_start, start_time__lt=range_end)
    shifts_qs = Shift.objects.filter(staff=staff)
    if detailed:
        shifts_qs = shifts_qs.filter(
            in_range | Q(is_active=True)
            | Q(payments__payment_date__gte=range_start, payments__payment_date__lt=range_end)
        ).distinct()
    else:
        shifts_qs = shifts_qs.filter(in_range)
    shifts = list(shifts_qs.order_by('-start_time'))

    payments_qs = (Payment.objects.filter(shift__in=shifts)
                   .select_related('account__patient')
                   .prefetch_related('allocations__service_charge__department',
                                     'allocations__service_charge__admission',
                                     'allocations__service_charge__pathology_test')
                   .order_by('payment_date', 'id'))
    if detailed:
        payments_qs = payments_qs.filter(payment_date__gte=range_start, payment_date__lt=range_end)
    by_shift = defaultdict(list)
    for p in payments_qs:
        by_shift[p.shift_id].append(p)

    overall_bucket: dict = {}
    overall_collected = overall_refunded = ZERO
    overall_count = 0
    shift_rows = []
    for shift in shifts:
        bucket: dict = {}
        collected = ZERO
        count = 0
        lines = []
        for p in by_shift.get(shift.id, []):
            patient = p.account.patient
            allocs = list(p.allocations.all())
            if not allocs:
                if department_id:
                    continue
                _add(bucket, 'general', 'General', p.amount)
                _add(overall_bucket, 'general', 'General', p.amount)
                collected += p.amount
                count += 1
                if detailed:
                    lines.append({
                        'paymentId': p.id, 'receiptNumber': p.receipt_number,
                        'paymentDate': p.payment_date.isoformat(), 'amount': as_float(p.amount),
                        'registrationId': patient.registration_id, 'patientName': patient.full_name,
                        'patientPhone': patient.phone_number, 'serviceName': 'Unallocated',
                        'serviceType': None, 'departmentName': 'General',
                    })
            for a in allocs:
                charge = a.service_charge
                dept = charge.department
                if department_id and (dept is None or dept.id != department_id):
                    continue
                key, name = (dept.id, dept.name) if dept else ('general', 'General')
                _add(bucket, key, name, a.allocated_amount)
                _add(overall_bucket, key, name, a.allocated_amount)
                collected += a.allocated_amount
                count += 1
                if detailed:
                    lines.append({
                        'paymentId': p.id, 'receiptNumber': p.receipt_number,
                        'paymentDate': p.payment_date.isoformat(), 'amount': as_float(a.allocated_amount),
                        'registrationId': _registration_for(charge, patient), 'patientName': patient.full_name,
                        'patientPhone': patient.phone_number, 'serviceName': charge.service_name,
                        'serviceType': charge.service_type, 'departmentName': name,
                    })
        refunded = shift.total_refunded
        row = {
            **serialize_shift(shift, with_staff=False),
            'totalCollected': as_float(collected),
            'totalRefunded': as_float(refunded),
            'netCash': as_float(collected - refunded),
            'transactionCount': count,
            'departmentBreakdown': _breakdown(bucket),
        }
        if detailed:
            row['transactions'] = lines
        shift_rows.append(row)
        overall_collected += collected
        overall_refunded += refunded
        overall_count += count

    return {
        'period': {'preset': preset or 'today', 'label': label,
                   'start': range_start.isoformat(), 'end': range_end.isoformat()},
        'staff': {'id': staff.id, 'fullName': staff.full_name},
        'summary': {
            'totalCollected': as_float(overall_collected),
            'totalRefunded': as_float(overall_refunded),
            'netCash': as_float(overall_collected - overall_refunded),
            'transactionCount': overall_count,
            'shiftsCount': len(shifts),
            'departmentBreakdown': _breakdown(overall_bucket),
        },
        'shifts': shift_rows,
    }


def list_shifts(*, preset: str | None = None, start: date | None = None, end: date | None = None,
                search: str | None = None, status: str | None = None) -> dict:
    qs = (Shift.objects.select_related('staff')
          .annotate(payment_count=Count('payments', distinct=True),
                    movement_count=Count('cash_movements', distinct=True)))
    if preset or (start and end):
        range_start, range_end, _ = date_range_for_preset(preset or 'custom', start, end)
        qs = qs.filter(start_time__gte=range_start, start_time__lt=range_end)
    if search:
        qs = qs.filter(Q(staff__full_name__icontains=search) | Q(staff__user__username__icontains=search))
    if status == 'Active':
        qs = qs.filter(is_active=True)
    elif status == 'Closed':
        qs = qs.filter(is_active=False)
    qs = qs.order_by('-start_time')
    rows = []
    for shift in qs:
        row = serialize_shift(shift)
        row['paymentCount'] = shift.payment_count
        row['cashMovementCount'] = shift.movement_count
        rows.append(row)
    totals = Shift.objects.filter(pk__in=[r['id'] for r in rows]).aggregate(
        collected=Sum('total_collected'), refunded=Sum('total_refunded'),
    )
    return {
        'shifts': rows,
        'summary': {
            'totalCollected': as_float(totals['collected'] or ZERO),
            'totalRefunded': as_float(totals['refunded'] or ZERO),
            'activeShiftsCount': sum(1 for r in rows if r['isActive']),
            'shiftsCount': len(rows),
        },
    }
