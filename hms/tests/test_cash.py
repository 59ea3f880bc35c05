from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.urls import reverse
from django.utils import timezone

from hms import roles
from hms.exceptions import Conflict, InvalidOperation
from hms.models import CashMovement, Department, Patient, Payment, PaymentAllocation, ServiceCharge, Shift
from hms.services import cash
from hms.services.billing import add_service_charge, allocate, get_or_create_account

pytestmark = pytest.mark.django_db


@pytest.fixture
def account(db):
    patient = Patient.objects.create(first_name='Rina', last_name='Begum', full_name='Rina Begum')
    return get_or_create_account(patient)


def charge(account, amount, *, department=None, name='Consultation'):
    return add_service_charge(account=account, service_type=ServiceCharge.TYPE_OTHER, service_name=name,
                              department=department, original_amount=amount, service_date=timezone.now())


def test_open_shift_starts_system_cash_at_opening(receptionist):
    shift = cash.open_shift(staff=receptionist.staff, opening_cash='500', user=receptionist)
    assert shift.is_active
    assert shift.system_cash == Decimal('500.00')
    assert shift.closing_cash is None and shift.variance is None


def test_second_active_shift_is_a_conflict(receptionist):
    cash.open_shift(staff=receptionist.staff, opening_cash=0, user=receptionist)
    with pytest.raises(Conflict):
        cash.open_shift(staff=receptionist.staff, opening_cash=0, user=receptionist)


def test_negative_opening_cash_rejected(receptionist):
    with pytest.raises(InvalidOperation):
        cash.open_shift(staff=receptionist.staff, opening_cash='-1')


def test_collection_and_refund_keep_system_cash_in_step(receptionist, account):
    staff = receptionist.staff
    shift = cash.open_shift(staff=staff, opening_cash='1000')
    c = charge(account, '800')
    payment = cash.record_collection(shift=shift, account=account, amount='800', staff=staff,
                                     allocations=[(c, Decimal('800'))], notes='consult')
    cash.record_refund(shift=shift, amount='150', description='overcharge')
    shift.refresh_from_db()
    assert shift.total_collected == Decimal('800.00')
    assert shift.total_refunded == Decimal('150.00')
    assert shift.system_cash == shift.opening_cash + shift.total_collected - shift.total_refunded
    assert payment.receipt_number.startswith('RCP-')
    assert PaymentAllocation.objects.get(payment=payment).allocated_amount == Decimal('800.00')
    types = list(shift.cash_movements.order_by('id').values_list('movement_type', flat=True))
    assert types == [CashMovement.TYPE_COLLECTION, CashMovement.TYPE_REFUND]


def test_close_shift_records_variance(receptionist, account):
    staff = receptionist.staff
    shift = cash.open_shift(staff=staff, opening_cash='200')
    cash.record_collection(shift=shift, account=account, amount='300', staff=staff)
    closed = cash.close_shift(shift=shift, closing_cash='480', notes='short 20', user=receptionist)
    assert not closed.is_active
    assert closed.end_time is not None
    assert closed.system_cash == Decimal('500.00')
    assert closed.variance == Decimal('-20.00')
    with pytest.raises(Conflict):
        cash.close_shift(shift=closed, closing_cash='480')


def test_no_cash_events_on_closed_shift(receptionist, account):
    staff = receptionist.staff
    shift = cash.open_shift(staff=staff)
    cash.close_shift(shift=shift, closing_cash=0)
    with pytest.raises(Conflict):
        cash.record_collection(shift=shift, account=account, amount='10', staff=staff)
    with pytest.raises(Conflict):
        cash.record_refund(shift=shift, amount='10')


def test_allocations_cannot_exceed_payment(receptionist, account):
    staff = receptionist.staff
    shift = cash.open_shift(staff=staff)
    c1, c2 = charge(account, '300'), charge(account, '300', name='Dressing')
    with pytest.raises(InvalidOperation):
        cash.record_collection(shift=shift, account=account, amount='400', staff=staff,
                               allocations=[(c1, Decimal('300')), (c2, Decimal('200'))])
    # the whole collection rolled back, totals untouched
    shift.refresh_from_db()
    assert shift.total_collected == 0
    assert not Payment.objects.exists()

    payment = cash.record_collection(shift=shift, account=account, amount='400', staff=staff,
                                     allocations=[(c1, Decimal('300'))])
    with pytest.raises(InvalidOperation):
        allocate(payment, [(c2, Decimal('100.01'))])
    allocate(payment, [(c2, Decimal('100'))])
    assert sum(a.allocated_amount for a in payment.allocations.all()) == payment.amount


def test_allocation_to_another_account_rejected(receptionist, account):
    other = get_or_create_account(Patient.objects.create(first_name='Other', full_name='Other'))
    shift = cash.open_shift(staff=receptionist.staff)
    with pytest.raises(InvalidOperation):
        cash.record_collection(shift=shift, account=account, amount='50', staff=receptionist.staff,
                               allocations=[(charge(other, '50'), Decimal('50'))])


def test_collect_for_charge_without_shift_writes_nothing(receptionist, account):
    assert cash.collect_for_charge(staff=receptionist.staff, account=account, charge=charge(account, '50'),
                                   amount='50', notes='x') is None
    assert not Payment.objects.exists()


def test_session_cash_breaks_down_by_department(receptionist, account):
    staff = receptionist.staff
    gyne = Department.objects.create(name='Gynecology')
    lab = Department.objects.create(name='Pathology')
    shift = cash.open_shift(staff=staff, opening_cash='100')
    c_gyne, c_lab = charge(account, '600', department=gyne), charge(account, '250', department=lab)
    cash.record_collection(shift=shift, account=account, amount='600', staff=staff,
                           allocations=[(c_gyne, Decimal('600'))])
    cash.record_collection(shift=shift, account=account, amount='250', staff=staff,
                           allocations=[(c_lab, Decimal('250'))])
    cash.record_collection(shift=shift, account=account, amount='40', staff=staff, notes='walk-in')
    cash.record_refund(shift=shift, amount='90')

    report = cash.session_cash_summary(staff=staff, preset='today')
    summary = report['summary']
    assert summary['totalCollected'] == 890.0
    assert summary['totalRefunded'] == 90.0
    assert summary['netCash'] == 800.0
    assert summary['transactionCount'] == 3
    assert [d['departmentName'] for d in summary['departmentBreakdown']] == ['Gynecology', 'Pathology', 'General']

    filtered = cash.session_cash_summary(staff=staff, preset='today', department_id=lab.id)
    assert filtered['summary']['totalCollected'] == 250.0
    assert filtered['summary']['transactionCount'] == 1


def test_detailed_session_cash_lists_lines(receptionist, account):
    staff = receptionist.staff
    shift = cash.open_shift(staff=staff)
    c = charge(account, '300', name='Admission Fee - GYNE-25-00001')
    cash.record_collection(shift=shift, account=account, amount='300', staff=staff,
                           allocations=[(c, Decimal('300'))])
    report = cash.session_cash_summary(staff=staff, preset='today', detailed=True)
    [line] = report['shifts'][0]['transactions']
    assert line['serviceName'] == 'Admission Fee - GYNE-25-00001'
    assert line['patientName'] == 'Rina Begum'
    assert line['registrationId'] == account.patient.registration_id


def test_list_shifts_summary(make_user, account):
    a, b = make_user('desk_a'), make_user('desk_b')
    s1 = cash.open_shift(staff=a.staff)
    cash.record_collection(shift=s1, account=account, amount='120', staff=a.staff)
    cash.close_shift(shift=s1, closing_cash='120')
    s2 = cash.open_shift(staff=b.staff)
    cash.record_collection(shift=s2, account=account, amount='80', staff=b.staff)

    data = cash.list_shifts(preset='today')
    assert data['summary']['shiftsCount'] == 2
    assert data['summary']['activeShiftsCount'] == 1
    assert data['summary']['totalCollected'] == 200.0
    assert {r['paymentCount'] for r in data['shifts']} == {1}
    assert [r['staff']['fullName'] for r in cash.list_shifts(status='Active')['shifts']] == ['Desk_B']


def test_shift_endpoints(receptionist, api_for):
    client = api_for(receptionist)
    r = client.post(reverse('shift_open'), {'openingCash': '250.00'}, format='json')
    assert r.status_code == 201
    assert r.data['data']['openingCash'] == 250.0
    assert client.post(reverse('shift_open'), {'openingCash': '1'}, format='json').status_code == 409
    active = client.get(reverse('shift_active')).data['data']
    assert active['id'] == r.data['data']['id']
    closed = client.post(reverse('shift_close'), {'closingCash': '260'}, format='json')
    assert closed.status_code == 200
    assert closed.data['data']['variance'] == 10.0
    assert client.get(reverse('shift_active')).data['data'] is None
    assert client.post(reverse('shift_close'), {'closingCash': '0'}, format='json').status_code == 404


def test_shift_detail_visible_to_owner_and_admin_only(make_user, admin_user, api_for):
    owner, other = make_user('owner'), make_user('other')
    shift = cash.open_shift(staff=owner.staff)
    url = reverse('shift_detail', args=[shift.id])
    assert api_for(owner).get(url).status_code == 200
    assert api_for(other).get(url).status_code == 403
    r = api_for(admin_user).get(url)
    assert r.status_code == 200
    assert r.data['data']['cashMovements'] == []


def test_user_without_staff_cannot_open_shift(make_user, api_for):
    user = make_user('nostaff', with_staff=False)
    r = api_for(user).post(reverse('shift_open'), {}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'no_staff_profile'


def test_admin_shift_list_is_admin_only(receptionist, admin_user, api_for):
    cash.open_shift(staff=receptionist.staff)
    assert api_for(receptionist).get(reverse('admin_shifts')).status_code == 403
    r = api_for(admin_user).get(reverse('admin_shifts'), {'status': 'Active', 'search': 'reception'})
    assert r.status_code == 200
    assert r.data['data']['summary']['activeShiftsCount'] == 1


def test_session_cash_endpoint_custom_period_needs_dates(receptionist, api_for):
    client = api_for(receptionist)
    assert client.get(reverse('session_cash'), {'datePreset': 'custom'}).status_code == 400
    today = timezone.localdate().isoformat()
    r = client.get(reverse('session_cash_detailed'),
                   {'datePreset': 'custom', 'startDate': today, 'endDate': today})
    assert r.status_code == 200
    assert r.data['data']['summary']['shiftsCount'] == 0


def test_pharmacist_can_use_own_drawer(make_user, api_for):
    pharmacist = make_user('pharm', roles.PHARMACIST)
    assert api_for(pharmacist).post(reverse('shift_open'), {}, format='json').status_code == 201
    assert Shift.objects.filter(staff=pharmacist.staff, is_active=True).exists()


def test_split_payment_counts_each_allocation(receptionist, account):
    staff = receptionist.staff
    gyne = Department.objects.create(name='Gynecology')
    lab = Department.objects.create(name='Pathology')
    shift = cash.open_shift(staff=staff)
    c_gyne, c_lab = charge(account, '120', department=gyne), charge(account, '80', department=lab)
    cash.record_collection(shift=shift, account=account, amount='200', staff=staff,
                           allocations=[(c_gyne, Decimal('120')), (c_lab, Decimal('80'))])

    report = cash.session_cash_summary(staff=staff, preset='today')
    assert report['summary']['transactionCount'] == 2
    assert report['shifts'][0]['transactionCount'] == 2
    assert {d['departmentName']: d['count'] for d in report['summary']['departmentBreakdown']} == {
        'Gynecology': 1, 'Pathology': 1}
    filtered = cash.session_cash_summary(staff=staff, preset='today', department_id=gyne.id)
    assert filtered['summary']['transactionCount'] == 1


def test_collection_broadcasts_shift_after_commit(settings, receptionist, account,
                                                  django_capture_on_commit_callbacks):
    settings.CHANNEL_LAYERS = {'default': {'BACKEND': 'channels.layers.InMemoryChannelLayer'}}
    layer = get_channel_layer()
    async_to_sync(layer.group_add)(cash.UPDATES_GROUP, 'shift-listener')
    staff = receptionist.staff
    shift = cash.open_shift(staff=staff, opening_cash='50')

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        cash.record_collection(shift=shift, account=account, amount='120', staff=staff)
    assert len(callbacks) == 1

    message = async_to_sync(layer.receive)('shift-listener')
    assert message['type'] == 'shift.update'
    assert message['shift']['id'] == shift.id
    assert message['shift']['totalCollected'] == 120.0
    assert message['shift']['systemCash'] == 170.0
    assert message['shift']['staff']['fullName'] == staff.full_name
