from decimal import Decimal

import pytest
from django.urls import reverse

from hms import roles
from hms.exceptions import InvalidOperation
from hms.models import ActivityLog, Hospital, InfertilityRecord, Patient
from hms.services.infertility import compute_bmi
from hms.services.patients import resolve_hospital, upsert_patient

pytestmark = pytest.mark.django_db


@pytest.fixture
def infertility_desk(make_user):
    return make_user('ivf1', roles.RECEPTIONIST_INFERTILITY)


# ---------------------------------------------------------------------
# Departments & hospitals
# ---------------------------------------------------------------------
def test_departments_list_and_admin_create(department, admin_user, receptionist, api_for):
    rows = api_for(receptionist).get(reverse('departments')).data['data']
    assert rows == [{'id': department.id, 'name': 'Gynecology', 'code': 'GYNE', 'description': '',
                     'isActive': True}]
    assert api_for(receptionist).post(reverse('departments'), {'name': 'Dental'}, format='json').status_code == 403
    client = api_for(admin_user)
    r = client.post(reverse('departments'), {'name': 'Dental', 'code': 'dent'}, format='json')
    assert r.status_code == 201
    assert r.data['data']['code'] == 'DENT'
    assert client.post(reverse('departments'), {'name': 'dental'}, format='json').status_code == 409


def test_resolve_hospital_by_id_name_or_new(hospital):
    assert resolve_hospital({'id': hospital.id}) == hospital
    assert resolve_hospital({'name': 'square hospital'}) == hospital
    created = resolve_hospital({'name': 'Labaid', 'type': 'Private'})
    assert created.pk and created.type == 'Private'
    assert resolve_hospital({'name': '  '}) is None
    assert resolve_hospital(None) is None


def test_hospital_crud(receptionist, api_for):
    client = api_for(receptionist)
    r = client.post(reverse('hospitals'), {'name': 'Ibn Sina', 'type': 'Private', 'phoneNumber': '0960'},
                    format='json')
    assert r.status_code == 201
    hid = r.data['data']['id']
    assert client.post(reverse('hospitals'), {'name': 'ibn sina'}, format='json').status_code == 409
    r = client.patch(reverse('hospital_detail', args=[hid]), {'address': 'Dhanmondi', 'isActive': False},
                     format='json')
    assert r.data['data']['address'] == 'Dhanmondi'
    assert r.data['data']['isActive'] is False
    assert client.get(reverse('hospitals'), {'search': 'ibn'}).data['data'][0]['id'] == hid
    assert client.delete(reverse('hospital_detail', args=[hid])).status_code == 200
    assert not Hospital.objects.filter(pk=hid).exists()


def test_hospital_in_use_cannot_be_deleted(infertility_desk, hospital, api_for, patient_payload):
    client = api_for(infertility_desk)
    client.post(reverse('infertility_records'), {'patient': patient_payload, 'hospital': {'id': hospital.id}},
                format='json')
    r = client.delete(reverse('hospital_detail', args=[hospital.id]))
    assert r.status_code == 409
    assert Hospital.objects.filter(pk=hospital.pk).exists()


def test_hospital_text_is_sanitized(receptionist, api_for):
    r = api_for(receptionist).post(reverse('hospitals'), {'name': '<div>City</div> Clinic'},
                                   format='json')
    assert r.data['data']['name'] == 'City Clinic'


# ---------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------
def test_upsert_patient_builds_full_name():
    patient = upsert_patient({'first_name': 'Rina', 'last_name': 'Begum', 'phone_number': '017'})
    assert patient.full_name == 'Rina Begum'
    assert patient.registration_id == f'REG-{patient.pk:06d}'
    same = upsert_patient({'id': patient.id, 'last_name': 'Akter'})
    assert same.pk == patient.pk
    assert same.full_name == 'Rina Akter'


def test_patient_search_by_name_phone_and_registration(receptionist, api_for):
    rina = upsert_patient({'first_name': 'Rina', 'phone_number': '01711000000'})
    upsert_patient({'first_name': 'Mita', 'phone_number': '01899000000'})
    client = api_for(receptionist)
    assert [p['id'] for p in client.get(reverse('patients'), {'search': 'rin'}).data['data']] == [rina.id]
    assert [p['id'] for p in client.get(reverse('patients'), {'search': '017110'}).data['data']] == [rina.id]
    by_reg = client.get(reverse('patients'), {'search': rina.registration_id.lower()}).data['data']
    assert [p['id'] for p in by_reg] == [rina.id]


def test_patient_list_pagination(receptionist, api_for):
    for i in range(5):
        upsert_patient({'first_name': f'P{i}'})
    r = api_for(receptionist).get(reverse('patients'), {'page': 2, 'pageSize': 2})
    assert r.data['pagination'] == {'page': 2, 'pageSize': 2, 'total': 5, 'totalPages': 3}
    assert len(r.data['data']) == 2


def test_patient_record_includes_history(receptionist, api_for, department, doctor, patient_payload):
    client = api_for(receptionist)
    adm = client.post(reverse('admissions'), {'departmentId': department.id, 'doctorId': doctor.id,
                                              'patient': patient_payload}, format='json').data['data']
    r = client.get(reverse('patient_record', args=[adm['patientId']]))
    assert r.status_code == 200
    data = r.data['data']
    assert [a['admissionNumber'] for a in data['admissions']] == [adm['admissionNumber']]
    assert data['account'] == {'totalCharges': 300.0, 'totalPaid': 300.0, 'totalDue': 0.0}
    assert data['pathologyTests'] == [] and data['infertilityRecords'] == []


def test_only_admins_edit_patient_records(receptionist, admin_user, api_for):
    patient = upsert_patient({'first_name': 'Rina', 'last_name': 'Begum'})
    url = reverse('patient_record', args=[patient.id])
    assert api_for(receptionist).patch(url, {'lastName': 'Akter'}, format='json').status_code == 403
    r = api_for(admin_user).patch(url, {'lastName': 'Akter', 'address': 'Mirpur'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['fullName'] == 'Rina Akter'
    log = ActivityLog.objects.get(entity_type='Patient')
    assert set(log.detail['fields']) == {'last_name', 'address'}


def test_missing_patient_is_404(receptionist, api_for):
    assert api_for(receptionist).get(reverse('patient_record', args=[424242])).status_code == 404


# ---------------------------------------------------------------------
# Infertility
# ---------------------------------------------------------------------
def test_bmi():
    assert compute_bmi(Decimal('60'), Decimal('160')) == Decimal('23.44')
    assert compute_bmi(None, 160) is None
    with pytest.raises(InvalidOperation):
        compute_bmi(Decimal('60'), Decimal('1.6'))
    with pytest.raises(InvalidOperation):
        compute_bmi(Decimal('60000'), Decimal('60'))


def test_create_infertility_record(infertility_desk, hospital, api_for, patient_payload):
    r = api_for(infertility_desk).post(reverse('infertility_records'), {
        'patient': patient_payload, 'hospital': {'id': hospital.id},
        'yearsMarried': 6, 'infertilityType': 'Primary', 'weight': '60', 'height': '160',
    }, format='json')
    assert r.status_code == 201
    data = r.data['data']
    assert data['registrationNumber'].startswith('INF-')
    assert data['bmi'] == 23.44
    assert data['status'] == 'Active'
    assert data['hospital']['name'] == 'Square Hospital'
    assert Patient.objects.get(pk=data['patient']['id']).hospital == hospital


def test_infertility_requires_hospital(infertility_desk, api_for, patient_payload):
    client = api_for(infertility_desk)
    assert client.post(reverse('infertility_records'), {'patient': patient_payload},
                       format='json').status_code == 400
    r = client.post(reverse('infertility_records'), {'patient': patient_payload, 'hospital': {'name': ''}},
                    format='json')
    assert r.status_code == 400
    assert not InfertilityRecord.objects.exists()


def test_update_edits_current_hospital_in_place(infertility_desk, hospital, api_for, patient_payload):
    client = api_for(infertility_desk)
    rec = client.post(reverse('infertility_records'), {'patient': patient_payload, 'hospital': {'id': hospital.id}},
                      format='json').data['data']
    url = reverse('infertility_record_detail', args=[rec['id']])
    r = client.patch(url, {'hospital': {'id': hospital.id, 'address': 'Panthapath'}, 'status': 'Follow-up'},
                     format='json')
    assert r.data['data']['hospital']['address'] == 'Panthapath'
    assert r.data['data']['status'] == 'Follow-up'

    moved = client.patch(url, {'hospital': {'name': 'Labaid'}}, format='json').data['data']
    assert moved['hospital']['name'] == 'Labaid'
    hospital.refresh_from_db()
    assert hospital.name == 'Square Hospital'


def test_in_place_rename_to_taken_name_is_a_conflict(infertility_desk, hospital, api_for, patient_payload):
    Hospital.objects.create(name='Labaid')
    client = api_for(infertility_desk)
    rec = client.post(reverse('infertility_records'), {'patient': patient_payload, 'hospital': {'id': hospital.id}},
                      format='json').data['data']
    url = reverse('infertility_record_detail', args=[rec['id']])
    r = client.patch(url, {'hospital': {'id': hospital.id, 'name': 'labaid'}}, format='json')
    assert r.status_code == 409
    hospital.refresh_from_db()
    assert hospital.name == 'Square Hospital'
    renamed = client.patch(url, {'hospital': {'id': hospital.id, 'name': 'Square Hospital Annex'}}, format='json')
    assert renamed.data['data']['hospital']['name'] == 'Square Hospital Annex'


def test_delete_infertility_record_is_logged(infertility_desk, hospital, api_for, patient_payload):
    client = api_for(infertility_desk)
    rec = client.post(reverse('infertility_records'), {'patient': patient_payload, 'hospital': {'id': hospital.id}},
                      format='json').data['data']
    url = reverse('infertility_record_detail', args=[rec['id']])
    r = client.delete(url)
    assert r.status_code == 200
    assert r.data == {'ok': True}
    assert not InfertilityRecord.objects.exists()
    assert Patient.objects.filter(pk=rec['patient']['id']).exists()
    log = ActivityLog.objects.get(action='DELETE', entity_type='InfertilityRecord')
    assert log.entity_id == str(rec['id'])
    assert rec['registrationNumber'] in log.description
    assert client.get(url).status_code == 404


def test_list_infertility_filters(infertility_desk, hospital, api_for, patient_payload):
    client = api_for(infertility_desk)
    client.post(reverse('infertility_records'), {'patient': patient_payload, 'hospital': {'id': hospital.id},
                                                 'infertilityType': 'Primary'}, format='json')
    client.post(reverse('infertility_records'), {'patient': {'firstName': 'Sadia'}, 'hospital': {'name': 'Labaid'},
                                                 'infertilityType': 'Secondary'}, format='json')
    rows = client.get(reverse('infertility_records'), {'hospitalId': hospital.id}).data['data']
    assert [r['patient']['firstName'] for r in rows] == ['Rina']
    rows = client.get(reverse('infertility_records'), {'infertilityType': 'secondary'}).data['data']
    assert [r['hospital']['name'] for r in rows] == ['Labaid']
    assert len(client.get(reverse('infertility_records'), {'search': 'INF-'}).data['data']) == 2


def test_general_receptionist_has_no_infertility_access(receptionist, api_for):
    assert api_for(receptionist).get(reverse('infertility_records')).status_code == 403
