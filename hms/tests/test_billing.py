from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from hms import roles
from hms.models import (
    Department, HospitalConfig, MedicineGroup, Patient, Payment, PaymentAllocation, ServiceCharge, Staff, User,
)
from hms.services import cash
from hms.services.billing import (
    add_service_charge, apply_account_delta, get_or_create_account, money, repair_payment_allocations,
)
from hms.services.numbering import find_registration_number

pytestmark = pytest.mark.django_db


@pytest.fixture
def account(db):
    return get_or_create_account(Patient.objects.create(first_name='Rina', full_name='Rina'))


@pytest.fixture
def shift(receptionist):
    return cash.open_shift(staff=receptionist.staff)


def charge(account, name, amount='100', when=None):
    return add_service_charge(account=account, service_type=ServiceCharge.TYPE_OTHER, service_name=name,
                              original_amount=amount, service_date=when or timezone.now())


def unallocated(shift, account, amount='100', notes=''):
    return cash.record_collection(shift=shift, account=account, amount=amount, staff=shift.staff, notes=notes)


def test_money_rounds_half_up():
    assert money('10.005') == Decimal('10.01')
    assert money(None) == Decimal('0.00')
    assert money('') == Decimal('0.00')


def test_account_delta_uses_running_totals(account):
    apply_account_delta(account, charges=Decimal('500'), paid=Decimal('200'), due=Decimal('300'))
    apply_account_delta(account, charges=Decimal('-100'), due=Decimal('-100'))
    account.refresh_from_db()
    assert (account.total_charges, account.total_paid, account.total_due) == (
        Decimal('400.00'), Decimal('200.00'), Decimal('200.00'))


def test_find_registration_number():
    assert find_registration_number('Admission payment - GYNE-25-00012 cash') == 'GYNE-25-00012'
    assert find_registration_number('legacy ADM-20240101-0003') == 'ADM-20240101-0003'
    assert find_registration_number('no number here') is None


def test_repair_matches_registration_number_in_notes(shift, account):
    charge(account, 'Admission Fee - GYNE-25-00001')
    target = charge(account, 'Admission Fee - SURG-25-00007')
    payment = unallocated(shift, account, notes='Admission payment - SURG-25-00007')
    result = repair_payment_allocations()
    assert result['fixed'] == 1
    assert result['details'][0]['matchedBy'] == 'registration'
    alloc = PaymentAllocation.objects.get(payment=payment)
    assert alloc.service_charge == target
    assert alloc.allocated_amount == payment.amount


def test_repair_single_and_nearest_charge(shift, account):
    only = charge(account, 'Consultation')
    p1 = unallocated(shift, account)
    assert repair_payment_allocations()['details'][0]['matchedBy'] == 'single'
    assert PaymentAllocation.objects.get(payment=p1).service_charge == only

    other = get_or_create_account(Patient.objects.create(first_name='Mita', full_name='Mita'))
    now = timezone.now()
    charge(other, 'Old visit', when=now - timedelta(days=30))
    recent = charge(other, 'Recent visit', when=now)
    p2 = unallocated(shift, other)
    assert repair_payment_allocations()['details'][0]['matchedBy'] == 'nearest'
    assert PaymentAllocation.objects.get(payment=p2).service_charge == recent


def test_repair_skips_accounts_without_charges_and_dry_run_writes_nothing(shift, account):
    unallocated(shift, account)
    assert repair_payment_allocations()['skipped'] == 1

    charge(account, 'Consultation')
    result = repair_payment_allocations(dry_run=True)
    assert result == {'fixed': 1, 'skipped': 0, 'dryRun': True, 'details': result['details']}
    assert not PaymentAllocation.objects.exists()


def test_fix_payment_allocations_command(shift, account):
    charge(account, 'Consultation')
    payment = unallocated(shift, account)
    out = StringIO()
    call_command('fix_payment_allocations', '--dry-run', stdout=out)
    assert 'Would fix 1 payment(s)' in out.getvalue()
    assert not PaymentAllocation.objects.exists()

    out = StringIO()
    call_command('fix_payment_allocations', stdout=out)
    assert f'payment {payment.id}' in out.getvalue()
    assert PaymentAllocation.objects.filter(payment=payment).exists()
    assert Payment.objects.filter(allocations__isnull=True).count() == 0


def test_seed_clinic_is_idempotent():
    call_command('seed_clinic', stdout=StringIO())
    call_command('seed_clinic', stdout=StringIO())
    assert Department.objects.filter(name='Gynecology', code='GYNE').count() == 1
    assert Staff.objects.filter(role='Doctor').count() == 5
    assert HospitalConfig.objects.get(key='ADMISSION_FEE').value == '300'
    assert MedicineGroup.objects.filter(name='Antibiotics').count() == 1


def test_ensure_test_users_creates_one_account_per_role():
    call_command('ensure_test_users', '--password', 'Secret123!', stdout=StringIO())
    assert set(User.objects.values_list('role', flat=True)) == set(roles.SYSTEM_ROLES)
    user = User.objects.get(username='reception1')
    assert user.check_password('Secret123!')
    assert user.staff is not None


def test_refresh_caches_command():
    out = StringIO()
    call_command('refresh_caches', stdout=out)
    assert 'Refreshed 1 keys' in out.getvalue()
