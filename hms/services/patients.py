"""
Patients and referring hospitals.

Front desk forms send patient and hospital details inline; these helpers
turn that into rows, reusing an existing record when the form refers to
one (by id, or for hospitals by name).
"""
from __future__ import annotations

from django.db.models import Count, Q

from hms.exceptions import Conflict, InvalidOperation, RecordNotFound
from hms.models import Hospital, InfertilityRecord, Patient, PatientAccount, Staff
from hms.services import activity
from hms.services.billing import as_float

PATIENT_FIELDS = (
    'first_name', 'last_name', 'gender', 'date_of_birth', 'address', 'phone_number', 'email',
    'blood_group', 'guardian_name', 'guardian_phone', 'guardian_dob', 'guardian_gender',
    'spouse_dob', 'spouse_gender',
)
RECORD_EDITABLE = ('first_name', 'last_name', 'gender', 'date_of_birth', 'guardian_name', 'phone_number', 'address')
HOSPITAL_FIELDS = ('name', 'address', 'phone_number', 'email', 'website', 'type')


def full_name(first: str, last: str | None) -> str:
    return f"{first or ''} {last or ''}".strip()


# ---------------------------------------------------------------------
# Hospitals
# ---------------------------------------------------------------------
def serialize_hospital(h: Hospital | None) -> dict | None:
    if h is None:
        return None
    return {
        'id': h.id,
        'name': h.name,
        'address': h.address,
        'phoneNumber': h.phone_number,
        'email': h.email,
        'website': h.website,
        'type': h.type,
        'isActive': h.is_active,
    }


def resolve_hospital(data: dict | None, staff: Staff | None = None) -> Hospital | None:
    """Hospital by id, else by case-insensitive name, else a new one."""
    if not data:
        return None
    if data.get('id'):
        hospital = Hospital.objects.filter(pk=data['id']).first()
        if hospital is None:
            raise RecordNotFound('Hospital not found')
        return hospital
    name = (data.get('name') or '').strip()
    if not name:
        return None
    hospital = Hospital.objects.filter(name__iexact=name).first()
    if hospital:
        return hospital
    return Hospital.objects.create(
        name=name,
        address=data.get('address') or '',
        phone_number=data.get('phone_number') or '',
        email=data.get('email') or '',
        website=data.get('website') or '',
        type=data.get('type') or '',
        created_by=staff,
    )


def list_hospitals(*, search: str | None = None, type: str | None = None, limit: int = 50) -> list[dict]:
    qs = Hospital.objects.all()
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(address__icontains=search))
    if type:
        qs = qs.filter(type__iexact=type)
    return [serialize_hospital(h) for h in qs.order_by('name')[:limit]]


def unique_hospital_name(name: str, exclude_pk: int | None = None) -> str:
    name = (name or '').strip()
    qs = Hospital.objects.filter(name__iexact=name)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise Conflict('A hospital with this name already exists')
    return name


def create_hospital(*, data: dict, user, request=None) -> Hospital:
    name = unique_hospital_name(data['name'])
    hospital = Hospital.objects.create(
        created_by=getattr(user, 'staff', None),
        **{**{k: data.get(k) or '' for k in HOSPITAL_FIELDS}, 'name': name},
    )
    activity.log_action(user=user, action=activity.CREATE, entity_type='Hospital', entity_id=hospital.id,
                        description=f'Created hospital {hospital.name}', request=request)
    return hospital


def update_hospital(hospital: Hospital, *, data: dict, user, request=None) -> Hospital:
    if 'name' in data:
        data = {**data, 'name': unique_hospital_name(data['name'], hospital.pk)}
    for key in HOSPITAL_FIELDS + ('is_active',):
        if key in data:
            setattr(hospital, key, data[key] if data[key] is not None else '')
    hospital.save()
    activity.log_action(user=user, action=activity.UPDATE, entity_type='Hospital', entity_id=hospital.id,
                        description=f'Updated hospital {hospital.name}', request=request)
    return hospital


def delete_hospital(hospital: Hospital, *, user, request=None) -> None:
    in_use = InfertilityRecord.objects.filter(hospital=hospital).count()
    if in_use:
        raise Conflict(f'Hospital is referenced by {in_use} infertility record(s) and cannot be deleted')
    name, pk = hospital.name, hospital.pk
    hospital.delete()
    activity.log_action(user=user, action=activity.DELETE, entity_type='Hospital', entity_id=pk,
                        description=f'Deleted hospital {name}', request=request)


# ---------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------
def serialize_patient(p: Patient) -> dict:
    return {
        'id': p.id,
        'registrationId': p.registration_id,
        'firstName': p.first_name,
        'lastName': p.last_name,
        'fullName': p.full_name,
        'gender': p.gender,
        'dateOfBirth': p.date_of_birth.isoformat() if p.date_of_birth else None,
        'age': p.age,
        'address': p.address,
        'phoneNumber': p.phone_number,
        'email': p.email,
        'bloodGroup': p.blood_group,
        'guardianName': p.guardian_name,
        'guardianPhone': p.guardian_phone,
        'guardianDob': p.guardian_dob.isoformat() if p.guardian_dob else None,
        'guardianGender': p.guardian_gender,
        'spouseDob': p.spouse_dob.isoformat() if p.spouse_dob else None,
        'spouseGender': p.spouse_gender,
        'hospitalId': p.hospital_id,
        'createdAt': p.created_at.isoformat() if p.created_at else None,
    }


def upsert_patient(data: dict, *, staff: Staff | None = None, hospital: Hospital | None = None) -> Patient:
    """Update the patient named by ``data['id']`` or create a new one."""
    if data.get('id'):
        patient = Patient.objects.filter(pk=data['id']).first()
        if patient is None:
            raise RecordNotFound('Patient not found')
    else:
        if not (data.get('first_name') or '').strip():
            raise InvalidOperation('Patient first name is required')
        patient = Patient(created_by=staff)
    for key in PATIENT_FIELDS:
        if key in data:
            value = data[key]
            if value is None and key in ('date_of_birth', 'guardian_dob', 'spouse_dob'):
                setattr(patient, key, None)
            else:
                setattr(patient, key, value if value is not None else '')
    patient.full_name = data.get('full_name') or full_name(patient.first_name, patient.last_name)
    if hospital is not None:
        patient.hospital = hospital
    patient.save()
    return patient


def list_patients(*, search: str | None = None, page: int = 1, page_size: int = 20) -> tuple[list[dict], dict]:
    qs = Patient.objects.annotate(
        admission_count=Count('admissions', distinct=True),
        pathology_count=Count('pathology_tests', distinct=True),
        infertility_count=Count('infertility_records', distinct=True),
    )
    if search:
        cond = (Q(full_name__icontains=search) | Q(phone_number__icontains=search)
                | Q(email__icontains=search))
        reg = search.strip().upper()
        if reg.startswith('REG-') and reg[4:].isdigit():
            cond |= Q(pk=int(reg[4:]))
        qs = qs.filter(cond)
    qs = qs.order_by('-created_at', '-id')
    total = qs.count()
    start = (page - 1) * page_size
    rows = []
    for p in qs[start:start + page_size]:
        row = serialize_patient(p)
        row['admissionCount'] = p.admission_count
        row['pathologyCount'] = p.pathology_count
        row['infertilityCount'] = p.infertility_count
        rows.append(row)
    return rows, {'page': page, 'pageSize': page_size, 'total': total,
                  'totalPages': (total + page_size - 1) // page_size}


def patient_record(patient: Patient) -> dict:
    data = serialize_patient(patient)
    account = PatientAccount.objects.filter(patient=patient).first()
    data['account'] = {
        'totalCharges': as_float(account.total_charges),
        'totalPaid': as_float(account.total_paid),
        'totalDue': as_float(account.total_due),
    } if account else None
    data['hospital'] = serialize_hospital(patient.hospital)
    data['admissions'] = [
        {'id': a.id, 'admissionNumber': a.admission_number, 'status': a.status,
         'dateAdmitted': a.date_admitted.isoformat(), 'departmentName': a.department.name,
         'grandTotal': as_float(a.grand_total), 'dueAmount': as_float(a.due_amount)}
        for a in patient.admissions.select_related('department').order_by('-date_admitted')
    ]
    data['pathologyTests'] = [
        {'id': t.id, 'testNumber': t.test_number, 'testDate': t.test_date.isoformat(),
         'isCompleted': t.is_completed, 'grandTotal': as_float(t.grand_total), 'dueAmount': as_float(t.due_amount)}
        for t in patient.pathology_tests.order_by('-test_date')
    ]
    data['infertilityRecords'] = [
        {'id': r.id, 'registrationNumber': r.registration_number, 'status': r.status,
         'createdAt': r.created_at.isoformat()}
        for r in patient.infertility_records.order_by('-created_at')
    ]
    return data


def update_patient_record(patient: Patient, *, data: dict, user, request=None) -> Patient:
    changed = []
    for key in RECORD_EDITABLE:
        if key in data:
            value = data[key]
            if value is None and key != 'date_of_birth':
                value = ''
            if getattr(patient, key) != value:
                setattr(patient, key, value)
                changed.append(key)
    if 'first_name' in changed or 'last_name' in changed:
        patient.full_name = full_name(patient.first_name, patient.last_name)
    if changed:
        patient.save()
    activity.log_action(user=user, action=activity.UPDATE, entity_type='Patient', entity_id=patient.id,
                        description=f'Updated patient record {patient.registration_id}', request=request,
                        detail={'fields': changed})
    return patient
