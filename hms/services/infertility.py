"""
Infertility clinic case records.

Each case belongs to a referring hospital (required) and carries the
couple's history and the treatment plan.  No billing is attached.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Q

from hms.exceptions import InvalidOperation
from hms.models import Hospital, InfertilityRecord
from hms.services import activity
from hms.services.billing import as_float
from hms.services.numbering import next_infertility_number
from hms.services.patients import (
    HOSPITAL_FIELDS, resolve_hospital, serialize_hospital, serialize_patient, unique_hospital_name, upsert_patient,
)
from hms.services.periods import local_day_range

MEDICAL_FIELDS = (
    'years_married', 'years_trying', 'infertility_type', 'para', 'gravida', 'weight', 'height', 'bmi',
    'blood_pressure', 'blood_group', 'medical_history', 'surgical_history', 'menstrual_history',
    'contraceptive_history', 'referral_source', 'chief_complaint', 'treatment_plan', 'medications',
    'next_appointment', 'status', 'notes',
)
_NULLABLE = {'years_married', 'years_trying', 'weight', 'height', 'bmi', 'next_appointment'}
MIN_HEIGHT_CM = Decimal('50')
MAX_BMI = Decimal('999.99')


def compute_bmi(weight, height) -> Decimal | None:
    """BMI from kilograms and centimetres."""
    if not weight or not height:
        return None
    height = Decimal(str(height))
    if height < MIN_HEIGHT_CM:
        raise InvalidOperation(f'Height must be given in centimetres (at least {MIN_HEIGHT_CM})')
    metres = height / 100
    bmi = (Decimal(str(weight)) / (metres * metres)).quantize(Decimal('0.01'))
    if bmi > MAX_BMI:
        raise InvalidOperation('Weight and height give an implausible BMI')
    return bmi


def serialize_record(r: InfertilityRecord) -> dict:
    return {
        'id': r.id,
        'registrationNumber': r.registration_number,
        'patient': serialize_patient(r.patient),
        'hospital': serialize_hospital(r.hospital),
        'yearsMarried': r.years_married,
        'yearsTrying': r.years_trying,
        'infertilityType': r.infertility_type,
        'para': r.para,
        'gravida': r.gravida,
        'weight': as_float(r.weight),
        'height': as_float(r.height),
        'bmi': as_float(r.bmi),
        'bloodPressure': r.blood_pressure,
        'bloodGroup': r.blood_group,
        'medicalHistory': r.medical_history,
        'surgicalHistory': r.surgical_history,
        'menstrualHistory': r.menstrual_history,
        'contraceptiveHistory': r.contraceptive_history,
        'referralSource': r.referral_source,
        'chiefComplaint': r.chief_complaint,
        'treatmentPlan': r.treatment_plan,
        'medications': r.medications,
        'nextAppointment': r.next_appointment.isoformat() if r.next_appointment else None,
        'status': r.status,
        'notes': r.notes,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
        'updatedAt': r.updated_at.isoformat() if r.updated_at else None,
    }


def _apply_medical(record: InfertilityRecord, data: dict) -> None:
    for f in MEDICAL_FIELDS:
        if f in data:
            value = data[f]
            if value is None and f not in _NULLABLE:
                value = ''
            setattr(record, f, value)
    if not data.get('bmi') and ('weight' in data or 'height' in data):
        record.bmi = compute_bmi(record.weight, record.height)


def create_record(*, data: dict, user, request=None) -> InfertilityRecord:
    staff = getattr(user, 'staff', None)
    with transaction.atomic():
        hospital = resolve_hospital(data.get('hospital'), staff)
        if hospital is None:
            raise InvalidOperation('Hospital is required')
        patient = upsert_patient(data['patient'], staff=staff, hospital=hospital)
        record = InfertilityRecord(
            patient=patient,
            hospital=hospital,
            registration_number=next_infertility_number(),
            created_by=staff,
            last_modified_by=staff,
        )
        _apply_medical(record, data)
        record.status = record.status or 'Active'
        record.save()
        activity.log_action(
            user=user, action=activity.CREATE, entity_type='InfertilityRecord', entity_id=record.id,
            description=f'Created infertility case {record.registration_number} for {patient.full_name}',
            request=request,
        )
    return record


def update_record(record: InfertilityRecord, *, data: dict, user, request=None) -> InfertilityRecord:
    staff = getattr(user, 'staff', None)
    with transaction.atomic():
        record = InfertilityRecord.objects.select_for_update().get(pk=record.pk)
        hospital_data = data.get('hospital')
        if hospital_data:
            if hospital_data.get('id') and int(hospital_data['id']) == record.hospital_id:
                hospital = Hospital.objects.get(pk=record.hospital_id)
                if hospital_data.get('name'):
                    hospital_data = {**hospital_data,
                                     'name': unique_hospital_name(hospital_data['name'], hospital.pk)}
                for f in HOSPITAL_FIELDS:
                    if hospital_data.get(f):
                        setattr(hospital, f, hospital_data[f])
                hospital.save()
            else:
                hospital = resolve_hospital(hospital_data, staff)
                if hospital is None:
                    raise InvalidOperation('Hospital is required')
            record.hospital = hospital
        if data.get('patient'):
            upsert_patient({**data['patient'], 'id': record.patient_id}, staff=staff,
                           hospital=record.hospital)
        _apply_medical(record, data)
        record.last_modified_by = staff
        record.save()
        activity.log_action(
            user=user, action=activity.UPDATE, entity_type='InfertilityRecord', entity_id=record.id,
            description=f'Updated infertility case {record.registration_number}', request=request,
        )
    return record


def delete_record(record: InfertilityRecord, *, user, request=None) -> None:
    number, pk = record.registration_number, record.pk
    with transaction.atomic():
        record.delete()
        activity.log_action(user=user, action=activity.DELETE, entity_type='InfertilityRecord', entity_id=pk,
                            description=f'Deleted infertility case {number}', request=request)


def list_records(*, status: str | None = None, hospital_id: int | None = None,
                 infertility_type: str | None = None, search: str | None = None,
                 start_date: date | None = None, end_date: date | None = None):
    qs = InfertilityRecord.objects.select_related('patient__hospital', 'hospital')
    if status:
        qs = qs.filter(status=status)
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    if infertility_type:
        qs = qs.filter(infertility_type__iexact=infertility_type)
    if search:
        qs = qs.filter(
            Q(registration_number__icontains=search) | Q(patient__full_name__icontains=search)
            | Q(patient__phone_number__icontains=search) | Q(hospital__name__icontains=search)
        )
    if start_date or end_date:
        range_start, range_end = local_day_range(start_date or end_date, end_date or start_date)
        qs = qs.filter(created_at__gte=range_start, created_at__lt=range_end)
    return qs.order_by('-created_at', '-id')
