from rest_framework import serializers

from hms.serializers.common import CleanCharField, DateRangeQuerySerializer
from hms.serializers.patients import HospitalSerializer, PatientSerializer, PatientUpdateSerializer


class InfertilityFieldsSerializer(serializers.Serializer):
    yearsMarried = serializers.IntegerField(required=False, allow_null=True, min_value=0, source='years_married')
    yearsTrying = serializers.IntegerField(required=False, allow_null=True, min_value=0, source='years_trying')
    infertilityType = CleanCharField(max_length=32, source='infertility_type')
    para = CleanCharField(max_length=16)
    gravida = CleanCharField(max_length=16)
    weight = serializers.DecimalField(max_digits=6, decimal_places=2, required=False, allow_null=True, min_value=0)
    height = serializers.DecimalField(max_digits=6, decimal_places=2, required=False, allow_null=True, min_value=0)
    bmi = serializers.DecimalField(max_digits=6, decimal_places=2, required=False, allow_null=True, min_value=0)
    bloodPressure = CleanCharField(max_length=16, source='blood_pressure')
    bloodGroup = CleanCharField(max_length=8, source='blood_group')
    medicalHistory = CleanCharField(source='medical_history')
    surgicalHistory = CleanCharField(source='surgical_history')
    menstrualHistory = CleanCharField(source='menstrual_history')
    contraceptiveHistory = CleanCharField(source='contraceptive_history')
    referralSource = CleanCharField(max_length=200, source='referral_source')
    chiefComplaint = CleanCharField(source='chief_complaint')
    treatmentPlan = CleanCharField(source='treatment_plan')
    medications = CleanCharField()
    nextAppointment = serializers.DateTimeField(required=False, allow_null=True, source='next_appointment')
    status = CleanCharField(max_length=32)
    notes = CleanCharField()


class InfertilityCreateSerializer(InfertilityFieldsSerializer):
    patient = PatientSerializer()
    hospital = HospitalSerializer()


class InfertilityUpdateSerializer(InfertilityFieldsSerializer):
    patient = PatientUpdateSerializer(required=False)
    hospital = HospitalSerializer(required=False)


class InfertilityQuerySerializer(DateRangeQuerySerializer):
    status = serializers.CharField(required=False, allow_blank=True)
    hospitalId = serializers.IntegerField(required=False, source='hospital_id')
    infertilityType = serializers.CharField(required=False, allow_blank=True, source='infertility_type')
