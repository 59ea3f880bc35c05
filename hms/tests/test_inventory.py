from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone

from hms import roles
from hms.exceptions import Conflict, InvalidOperation, RecordNotFound
from hms.models import ActivityLog, Medicine, MedicineCompany, MedicineGroup, MedicinePurchase, MedicineSale, Patient
from hms.services import inventory

pytestmark = pytest.mark.django_db


@pytest.fixture
def pharmacist(make_user):
    return make_user('pharma1', roles.PHARMACIST)


@pytest.fixture
def group(db):
    return MedicineGroup.objects.create(name='Antibiotics')


@pytest.fixture
def company(db):
    return MedicineCompany.objects.create(name='Square Pharmaceuticals')


@pytest.fixture
def medicine(group):
    return Medicine.objects.create(generic_name='Amoxicillin', brand_name='Moxacil', group=group,
                                   strength='500mg', dosage_form='Capsule', low_stock_threshold=5)


@pytest.fixture
def buyer(db):
    return Patient.objects.create(first_name='Rina', last_name='Begum', full_name='Rina Begum')


def purchase(company, medicine, quantity, price, *, days_ago=0, user=None, invoice='INV-1'):
    return inventory.create_purchase(data={
        'invoice_number': invoice, 'company_id': company.id, 'medicine_id': medicine.id,
        'quantity': quantity, 'unit_price': Decimal(price),
        'purchase_date': timezone.now() - timedelta(days=days_ago),
    }, user=user)


def sell(buyer, medicine, quantity, *, sale_date=None, user=None):
    return inventory.create_sale(data={
        'patient_id': buyer.id, 'medicine_id': medicine.id, 'quantity': quantity, 'sale_date': sale_date,
    }, user=user)


# ---------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------
def test_group_company_and_medicine_names_are_unique(pharmacist, group):
    with pytest.raises(Conflict):
        inventory.create_group(name='antibiotics', user=pharmacist)
    inventory.create_company(data={'name': 'Beximco'}, user=pharmacist)
    with pytest.raises(Conflict):
        inventory.create_company(data={'name': ' BEXIMCO '}, user=pharmacist)

    data = {'generic_name': 'Azithromycin', 'group_id': group.id}
    inventory.create_medicine(data=data, user=pharmacist)
    with pytest.raises(Conflict):
        inventory.create_medicine(data={**data, 'generic_name': 'azithromycin'}, user=pharmacist)
    other = inventory.create_group(name='Macrolides', user=pharmacist)
    assert inventory.create_medicine(data={**data, 'group_id': other.id}, user=pharmacist).group == other


def test_medicine_needs_an_existing_group(pharmacist):
    with pytest.raises(InvalidOperation):
        inventory.create_medicine(data={'generic_name': 'Omeprazole', 'group_id': 999}, user=pharmacist)


def test_catalogue_endpoints(pharmacist, api_for):
    client = api_for(pharmacist)
    r = client.post(reverse('medicine_groups'), {'name': 'Analgesics'}, format='json')
    assert r.status_code == 201
    gid = r.data['data']['id']
    assert client.post(reverse('medicine_groups'), {'name': 'analgesics'}, format='json').status_code == 409

    r = client.post(reverse('medicines'), {'genericName': 'Paracetamol', 'brandName': 'Napa', 'groupId': gid},
                    format='json')
    assert r.status_code == 201
    assert r.data['data']['groupName'] == 'Analgesics'
    assert r.data['data']['currentStock'] == 0
    assert r.data['data']['isLowStock'] is True
    r = client.post(reverse('medicines'), {'genericName': 'Ibuprofen', 'groupId': 999}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid_operation'

    groups = client.get(reverse('medicine_groups')).data['data']
    assert groups[0]['medicineCount'] == 1

    r = client.post(reverse('medicine_companies'), {'name': 'Incepta', 'phoneNumber': '0961'}, format='json')
    assert r.status_code == 201
    assert client.get(reverse('medicine_companies'), {'search': 'incep'}).data['data'][0]['purchaseCount'] == 0


# ---------------------------------------------------------------------
# Purchases
# ---------------------------------------------------------------------
def test_purchase_adds_a_batch_and_stock(pharmacist, company, medicine):
    p = purchase(company, medicine, 30, '4.50', user=pharmacist)
    medicine.refresh_from_db()
    assert medicine.current_stock == 30
    assert p.remaining_qty == 30
    assert p.total_amount == Decimal('135.00')
    log = ActivityLog.objects.get(entity_type='MedicinePurchase')
    assert 'Invoice: INV-1' in log.description


def test_purchase_dates_are_checked(company, medicine):
    with pytest.raises(InvalidOperation):
        purchase(company, medicine, 5, '1', days_ago=-2)
    with pytest.raises(InvalidOperation):
        inventory.create_purchase(data={
            'invoice_number': 'INV-2', 'company_id': company.id, 'medicine_id': medicine.id,
            'quantity': 5, 'unit_price': Decimal('1'), 'purchase_date': timezone.now(),
            'expiry_date': timezone.localdate() - timedelta(days=1),
        }, user=None)
    assert not MedicinePurchase.objects.exists()


def test_purchase_from_inactive_company_rejected(company, medicine):
    company.is_active = False
    company.save()
    with pytest.raises(InvalidOperation):
        purchase(company, medicine, 5, '1')
    medicine.refresh_from_db()
    assert medicine.current_stock == 0


# ---------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------
def test_sale_draws_from_oldest_batch_at_its_price(pharmacist, company, medicine, buyer):
    old = purchase(company, medicine, 10, '5.00', days_ago=3, invoice='INV-OLD')
    new = purchase(company, medicine, 20, '6.00', days_ago=1, invoice='INV-NEW')

    sale = sell(buyer, medicine, 4, user=pharmacist)
    assert sale.purchase == old
    assert sale.unit_price == Decimal('5.00')
    assert sale.total_amount == Decimal('20.00')
    old.refresh_from_db()
    new.refresh_from_db()
    medicine.refresh_from_db()
    assert (old.remaining_qty, new.remaining_qty, medicine.current_stock) == (6, 20, 26)

    sell(buyer, medicine, 6)
    assert inventory.next_batch(medicine)['id'] == new.id
    assert sell(buyer, medicine, 2).unit_price == Decimal('6.00')


def test_sale_must_fit_in_the_oldest_batch(company, medicine, buyer):
    purchase(company, medicine, 3, '5.00', days_ago=2)
    purchase(company, medicine, 10, '6.00', days_ago=1)
    with pytest.raises(InvalidOperation, match='This batch has 3 units'):
        sell(buyer, medicine, 5)
    with pytest.raises(InvalidOperation, match='Available: 13, Requested: 14'):
        sell(buyer, medicine, 14)
    assert not MedicineSale.objects.exists()
    medicine.refresh_from_db()
    assert medicine.current_stock == 13


def test_sale_dates_are_checked(company, medicine, buyer):
    purchase(company, medicine, 10, '5.00', days_ago=2)
    with pytest.raises(InvalidOperation, match='before first stock purchase'):
        sell(buyer, medicine, 1, sale_date=timezone.now() - timedelta(days=3))
    with pytest.raises(InvalidOperation, match='future'):
        sell(buyer, medicine, 1, sale_date=timezone.now() + timedelta(days=1))


def test_sale_for_unknown_patient_or_empty_stock(medicine, buyer):
    with pytest.raises(RecordNotFound):
        inventory.create_sale(data={'patient_id': 999, 'medicine_id': medicine.id, 'quantity': 1}, user=None)
    with pytest.raises(InvalidOperation, match='Insufficient stock'):
        sell(buyer, medicine, 1)


def test_sale_endpoint(pharmacist, api_for, company, medicine, buyer):
    purchase(company, medicine, 10, '2.50', days_ago=1, invoice='INV-77')
    client = api_for(pharmacist)
    r = client.post(reverse('medicine_sales'), {'patientId': buyer.id, 'medicineId': medicine.id, 'quantity': 2},
                    format='json')
    assert r.status_code == 201
    data = r.data['data']
    assert data['totalAmount'] == 5.0
    assert data['purchase']['invoiceNumber'] == 'INV-77'
    assert data['patient']['fullName'] == 'Rina Begum'
    r = client.post(reverse('medicine_sales'), {'patientId': 999, 'medicineId': medicine.id, 'quantity': 1},
                    format='json')
    assert r.status_code == 404

    listed = client.get(reverse('medicine_sales'), {'patientId': buyer.id})
    assert listed.data['pagination']['total'] == 1
    assert listed.data['data'][0]['medicine']['genericName'] == 'Amoxicillin'


# ---------------------------------------------------------------------
# Stock views
# ---------------------------------------------------------------------
def test_stats_and_low_stock_filter(pharmacist, api_for, company, medicine, group, buyer):
    idle = Medicine.objects.create(generic_name='Cefixime', group=group)
    purchase(company, medicine, 10, '5.00', days_ago=2)
    purchase(company, medicine, 8, '6.00')
    sell(buyer, medicine, 10)

    stats = inventory.inventory_stats()
    assert stats['stats']['totalMedicines'] == 2
    assert stats['stats']['todaysPurchasesCount'] == 1
    assert stats['stats']['todaysPurchasesAmount'] == 48.0
    assert stats['stats']['todaysSalesAmount'] == 50.0
    # 8 units left, valued at the latest purchase price
    assert stats['stats']['totalStockValue'] == 48.0
    assert [m['id'] for m in stats['lowStockItems']] == [idle.id]

    client = api_for(pharmacist)
    r = client.get(reverse('medicines'), {'lowStockOnly': 'true'})
    assert [m['genericName'] for m in r.data['data']] == ['Cefixime']
    assert r.data['pagination'] == {'total': 1, 'page': 1, 'limit': 20, 'totalPages': 1}
    assert client.get(reverse('inventory_stats')).data['data']['stats']['lowStockCount'] == 1

    batch = client.get(reverse('medicine_next_batch', args=[medicine.id])).data['data']
    assert (batch['remainingQty'], batch['unitPrice']) == (8, 6.0)
    assert client.get(reverse('medicine_next_batch', args=[idle.id])).data['data'] is None
    assert client.get(reverse('medicine_next_batch', args=[999])).status_code == 404


def test_purchase_endpoint_and_list(pharmacist, api_for, company, medicine):
    client = api_for(pharmacist)
    r = client.post(reverse('medicine_purchases'), {
        'invoiceNumber': 'INV-9', 'companyId': company.id, 'medicineId': medicine.id,
        'quantity': 12, 'unitPrice': '3.25', 'batchNumber': 'B-01',
    }, format='json')
    assert r.status_code == 201
    assert r.data['data']['totalAmount'] == 39.0
    assert r.data['data']['remainingQty'] == 12
    r = client.post(reverse('medicine_purchases'), {
        'invoiceNumber': 'INV-10', 'companyId': company.id, 'medicineId': medicine.id,
        'quantity': 1, 'unitPrice': '0',
    }, format='json')
    assert r.status_code == 400
    rows = client.get(reverse('medicine_purchases'), {'search': 'square'}).data['data']
    assert [p['batchNumber'] for p in rows] == ['B-01']


def test_inventory_is_closed_to_front_desk(receptionist, api_for, pharmacist):
    assert api_for(receptionist).get(reverse('medicines')).status_code == 403
    assert api_for(pharmacist).get(reverse('medicines')).status_code == 200
    assert api_for(pharmacist).get(reverse('patients')).status_code == 200
