from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone

from hms.exceptions import InvalidOperation
from hms.models import CashMovement, PathologyTest, PatientAccount, ServiceCharge
from hms.services import cash
from hms.services import pathology as pathology_service
from hms.services import pathology_catalogue as catalogue

pytestmark = pytest.mark.django_db


@pytest.fixture
def order(doctor, patient_payload):
    return {'testCodes': ['CBC', 'TSH'], 'orderedById': doctor.id, 'patient': patient_payload}


def test_catalogue_lookup_and_pricing():
    assert catalogue.get_test('CBC').price == Decimal('200')
    assert catalogue.total_price(['CBC', 'TSH', 'NOPE']) == Decimal('1100')
    assert catalogue.unknown_codes(['CBC', 'NOPE']) == ['NOPE']
    rows = catalogue.search_tests(category='Hormones', search='amh')
    assert [r['code'] for r in rows] == ['AMH']


def test_catalogue_endpoint(receptionist, api_for):
    r = api_for(receptionist).get(reverse('pathology_catalogue'), {'category': 'Ultrasound'})
    assert r.status_code == 200
    assert r.data['data'] and all(t['category'] == 'Ultrasound' for t in r.data['data'])
    assert 'Hematology' in r.data['categories']


def test_order_priced_from_catalogue(receptionist, api_for, order):
    shift = cash.open_shift(staff=receptionist.staff)
    r = api_for(receptionist).post(reverse('pathology_orders'), {**order, 'discountAmount': '100',
                                                                 'paidAmount': '600'}, format='json')
    assert r.status_code == 201
    data = r.data['data']
    yy = f'{timezone.localdate().year % 100:02d}'
    assert data['testNumber'] == f'PATH-{yy}-00001'
    assert data['testCharge'] == 1100.0
    assert data['grandTotal'] == 1000.0
    assert data['dueAmount'] == 400.0
    assert [t['name'] for t in data['tests']] == ['CBC', 'TSH']
    assert data['testCategory'] == 'Hematology'

    charge = ServiceCharge.objects.get(pathology_test_id=data['id'])
    assert charge.service_type == ServiceCharge.TYPE_PATHOLOGY
    assert charge.department.name == 'Pathology'
    movement = CashMovement.objects.get(shift=shift)
    assert movement.movement_type == CashMovement.TYPE_PAYMENT_RECEIVED
    assert movement.amount == Decimal('600.00')
    account = PatientAccount.objects.get(patient_id=data['patientId'])
    assert (account.total_charges, account.total_paid, account.total_due) == (
        Decimal('1000.00'), Decimal('600.00'), Decimal('400.00'))


def test_charge_override(receptionist, api_for, order):
    r = api_for(receptionist).post(reverse('pathology_orders'), {**order, 'testCharge': '750'}, format='json')
    assert r.data['data']['grandTotal'] == 750.0


def test_unknown_code_rejected(receptionist, api_for, order):
    order['testCodes'] = ['CBC', 'XRAY-MARS']
    r = api_for(receptionist).post(reverse('pathology_orders'), order, format='json')
    assert r.status_code == 400
    assert 'XRAY-MARS' in r.data['error']['message']
    assert not PathologyTest.objects.exists()


def test_empty_selection_rejected(receptionist, api_for, order):
    order['testCodes'] = []
    assert api_for(receptionist).post(reverse('pathology_orders'), order, format='json').status_code == 400


def test_overpayment_rejected(receptionist, doctor):
    with pytest.raises(InvalidOperation):
        pathology_service.create_test(
            data={'test_codes': ['HB'], 'ordered_by_id': doctor.id, 'patient': {'first_name': 'Mita'},
                  'paid_amount': Decimal('201')},
            user=receptionist,
        )


def test_complete_sets_report_date_and_pay_more(receptionist, api_for, order):
    client = api_for(receptionist)
    shift = cash.open_shift(staff=receptionist.staff)
    data = client.post(reverse('pathology_orders'), order, format='json').data['data']
    assert data['reportDate'] is None and data['paidAmount'] == 0.0
    r = client.patch(reverse('pathology_order_detail', args=[data['id']]),
                     {'isCompleted': True, 'paidAmount': '1100', 'doneById': receptionist.staff_id},
                     format='json')
    assert r.status_code == 200
    updated = r.data['data']
    assert updated['isCompleted'] is True
    assert updated['reportDate'] is not None
    assert updated['doneByName'] == receptionist.staff.full_name
    assert updated['dueAmount'] == 0.0
    shift.refresh_from_db()
    assert shift.total_collected == Decimal('1100.00')


def test_changing_tests_reprices_and_refunds(receptionist, doctor):
    shift = cash.open_shift(staff=receptionist.staff)
    test = pathology_service.create_test(
        data={'test_codes': ['TSH'], 'ordered_by_id': doctor.id, 'patient': {'first_name': 'Mita'},
              'paid_amount': Decimal('900')},
        user=receptionist,
    )
    test = pathology_service.update_test(test, data={'test_codes': ['HB'], 'paid_amount': Decimal('200')},
                                         user=receptionist)
    assert test.grand_total == Decimal('200.00')
    shift.refresh_from_db()
    assert shift.total_refunded == Decimal('700.00')
    assert shift.system_cash == Decimal('200.00')


def test_list_filters(receptionist, api_for, order):
    client = api_for(receptionist)
    first = client.post(reverse('pathology_orders'), order, format='json').data['data']
    client.post(reverse('pathology_orders'), {**order, 'testCodes': ['USG-KUB']}, format='json')
    client.patch(reverse('pathology_order_detail', args=[first['id']]), {'isCompleted': True}, format='json')

    done = client.get(reverse('pathology_orders'), {'isCompleted': 'true'}).data['data']
    assert [t['id'] for t in done] == [first['id']]
    usg = client.get(reverse('pathology_orders'), {'testCategory': 'Ultrasound'}).data['data']
    assert len(usg) == 1
    assert len(client.get(reverse('pathology_orders'), {'search': 'PATH-'}).data['data']) == 2


def test_delete_order(receptionist, api_for, order):
    client = api_for(receptionist)
    data = client.post(reverse('pathology_orders'), order, format='json').data['data']
    assert client.delete(reverse('pathology_order_detail', args=[data['id']])).status_code == 200
    assert client.get(reverse('pathology_order_detail', args=[data['id']])).status_code == 404
