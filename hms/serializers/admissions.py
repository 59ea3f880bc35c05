from rest_framework import serializers

from hms.models import Admission
from hms.serializers.common import CleanCharField, DateRangeQuerySerializer, money_field
from hms.serializers.patients import HospitalSerializer, PatientSerializer, PatientUpdateSerializer

STATUSES = [s for s, _ in Admission.STATUS_CHOICES]
DISCOUNT_TYPES = [Admission.DISCOUNT_PERCENTAGE, Admission.DISCOUNT_FIXED]


class AdmissionFieldsSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    seatNumber = CleanCharField(max_length=32, source='seat_number')
    ward = CleanCharField(max_length=64)
    diagnosis = CleanCharField()
    treatment = CleanCharField()
    otType = CleanCharField(max_length=64, source='ot_type')
    chiefComplaint = CleanCharField(source='chief_complaint')
    remarks = CleanCharField()
    hospital = HospitalSerializer(required=False, allow_null=True)


class AdmissionCreateSerializer(AdmissionFieldsSerializer):
    departmentId = serializers.IntegerField(source='department_id')
    doctorId = serializers.IntegerField(source='doctor_id')
    dateAdmitted = serializers.DateTimeField(required=False, allow_null=True, source='date_admitted')
    patient = PatientSerializer()


class AdmissionUpdateSerializer(AdmissionFieldsSerializer):
    doctorId = serializers.IntegerField(required=False, source='doctor_id')
    dateDischarged = serializers.DateTimeField(required=False, allow_null=True, source='date_discharged')
    patient = PatientUpdateSerializer(required=False)
    admissionFee = money_field(source='admission_fee')
    serviceCharge = money_field(source='service_charge')
    seatRent = money_field(source='seat_rent')
    otCharge = money_field(source='ot_charge')
    doctorCharge = money_field(source='doctor_charge')
    surgeonCharge = money_field(source='surgeon_charge')
    anesthesiaFee = money_field(source='anesthesia_fee')
    assistantDoctorFee = money_field(source='assistant_doctor_fee')
    medicineCharge = money_field(source='medicine_charge')
    otherCharges = money_field(source='other_charges')
    discountType = serializers.ChoiceField(choices=DISCOUNT_TYPES, required=False, allow_null=True,
                                           allow_blank=True, source='discount_type')
    discountValue = money_field(source='discount_value')
    paidAmount = money_field(source='paid_amount')


class AdmissionQuerySerializer(DateRangeQuerySerializer):
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    departmentId = serializers.IntegerField(required=False, source='department_id')
