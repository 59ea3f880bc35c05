"""
Patient accounts, service charges and payment allocations.

An account keeps three running totals that are only moved with ``F()``
increments.  A payment may be split across several service charges;
the allocations of one payment never add up to more than its amount.
"""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from django.db import transaction
from django.db.models import F, Sum

from hms.exceptions import InvalidOperation
from hms.models import Patient, PatientAccount, Payment, PaymentAllocation, ServiceCharge, Staff, ZERO
from hms.services.numbering import find_registration_number

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def money(value) -> Decimal:
    """Coerce request input to a two place Decimal; blanks count as zero."""
    if value is None or value == '':
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def as_float(value) -> float | None:
    return None if value is None else float(value)


def get_or_create_account(patient: Patient) -> PatientAccount:
    account, _ = PatientAccount.objects.get_or_create(patient=patient)
    return account


def apply_account_delta(account: PatientAccount, *, charges=ZERO, paid=ZERO, due=ZERO) -> None:
    if not (charges or paid or due):
        return
    PatientAccount.objects.filter(pk=account.pk).update(
        total_charges=F('total_charges') + charges,
        total_paid=F('total_paid') + paid,
        total_due=F('total_due') + due,
    )


def add_service_charge(*, account: PatientAccount, service_type: str, service_name: str, department=None,
                       original_amount=ZERO, discount_amount=ZERO, final_amount=None, service_date,
                       admission=None, pathology_test=None, staff: Staff | None = None) -> ServiceCharge:
    original_amount = money(original_amount)
    discount_amount = money(discount_amount)
    if final_amount is None:
        final_amount = original_amount - discount_amount
    return ServiceCharge.objects.create(
        account=account,
        service_type=service_type,
        service_name=service_name,
        department=department,
        original_amount=original_amount,
        discount_amount=discount_amount,
        final_amount=money(final_amount),
        service_date=service_date,
        admission=admission,
        pathology_test=pathology_test,
        created_by=staff,
    )


def allocated_total(payment: Payment) -> Decimal:
    return payment.allocations.aggregate(s=Sum('allocated_amount'))['s'] or ZERO


def allocate(payment: Payment, allocations: Iterable[tuple[ServiceCharge, Decimal]]) -> list[PaymentAllocation]:
    """Attach allocations to ``payment``; rejects anything over the payment amount."""
    pairs = [(charge, money(amount)) for charge, amount in allocations]
    if not pairs:
        return []
    for charge, amount in pairs:
        if amount <= 0:
            raise InvalidOperation('Allocated amount must be positive')
        if charge.account_id != payment.account_id:
            raise InvalidOperation('Service charge belongs to a different patient account')
    requested = sum((amount for _, amount in pairs), ZERO)
    with transaction.atomic():
        Payment.objects.select_for_update().filter(pk=payment.pk).first()
        return _allocate_locked(payment, pairs, requested)


def _allocate_locked(payment: Payment, pairs: list, requested: Decimal) -> list[PaymentAllocation]:
    if allocated_total(payment) + requested > payment.amount:
        raise InvalidOperation(
            f'Allocations ({requested}) exceed the unallocated part of payment {payment.receipt_number}'
        )
    return PaymentAllocation.objects.bulk_create([
        PaymentAllocation(payment=payment, service_charge=charge, allocated_amount=amount)
        for charge, amount in pairs
    ])


def _pick_charge(payment: Payment, charges: list[ServiceCharge]) -> tuple[ServiceCharge, str]:
    reg = find_registration_number(payment.notes)
    if reg:
        for charge in charges:
            if reg in charge.service_name:
                return charge, 'registration'
    if len(charges) == 1:
        return charges[0], 'single'
    nearest = min(charges, key=lambda c: abs((c.service_date - payment.payment_date).total_seconds()))
    return nearest, 'nearest'


def repair_payment_allocations(*, dry_run: bool = False) -> dict:
    """Allocate payments that were recorded without any allocation.

    The target charge is, in order: the charge whose name contains the
    registration number quoted in the payment notes, the account's only
    charge, or the charge dated closest to the payment.  Accounts without
    charges are skipped.
    """
    fixed, skipped, details = 0, 0, []
    orphans = (Payment.objects.filter(allocations__isnull=True)
               .select_related('account').order_by('id'))
    for payment in orphans:
        charges = list(payment.account.service_charges.all())
        if not charges:
            skipped += 1
            details.append({'paymentId': payment.id, 'receiptNumber': payment.receipt_number,
                            'result': 'skipped', 'reason': 'no service charges'})
            continue
        charge, how = _pick_charge(payment, charges)
        if not dry_run:
            with transaction.atomic():
                PaymentAllocation.objects.create(
                    payment=payment, service_charge=charge, allocated_amount=payment.amount
                )
        fixed += 1
        details.append({'paymentId': payment.id, 'receiptNumber': payment.receipt_number,
                        'result': 'fixed', 'serviceChargeId': charge.id, 'matchedBy': how,
                        'amount': as_float(payment.amount)})
    logger.info('payment allocation repair: fixed=%s skipped=%s dry_run=%s', fixed, skipped, dry_run)
    return {'fixed': fixed, 'skipped': skipped, 'dryRun': dry_run, 'details': details}
