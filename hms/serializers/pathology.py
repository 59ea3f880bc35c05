from rest_framework import serializers

from hms.serializers.common import CleanCharField, DateRangeQuerySerializer, money_field
from hms.serializers.patients import HospitalSerializer, PatientSerializer, PatientUpdateSerializer


class PathologyFieldsSerializer(serializers.Serializer):
    testCodes = serializers.ListField(child=serializers.CharField(max_length=64), required=False,
                                      source='test_codes')
    testCategory = CleanCharField(max_length=64, source='test_category')
    doneById = serializers.IntegerField(required=False, allow_null=True, source='done_by_id')
    testCharge = money_field(source='test_charge')
    discountAmount = money_field(source='discount_amount')
    paidAmount = money_field(source='paid_amount')
    isCompleted = serializers.BooleanField(required=False, source='is_completed')
    remarks = CleanCharField()
    hospital = HospitalSerializer(required=False, allow_null=True)


class PathologyCreateSerializer(PathologyFieldsSerializer):
    testCodes = serializers.ListField(child=serializers.CharField(max_length=64), allow_empty=False,
                                      source='test_codes')
    orderedById = serializers.IntegerField(source='ordered_by_id')
    testDate = serializers.DateTimeField(required=False, allow_null=True, source='test_date')
    patient = PatientSerializer()


class PathologyUpdateSerializer(PathologyFieldsSerializer):
    orderedById = serializers.IntegerField(required=False, source='ordered_by_id')
    reportDate = serializers.DateTimeField(required=False, allow_null=True, source='report_date')
    patient = PatientUpdateSerializer(required=False)


class PathologyQuerySerializer(DateRangeQuerySerializer):
    isCompleted = serializers.BooleanField(required=False, allow_null=True, default=None, source='is_completed')
    testCategory = serializers.CharField(required=False, allow_blank=True, source='test_category')


class CatalogueQuerySerializer(serializers.Serializer):
    category = serializers.CharField(required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True)
