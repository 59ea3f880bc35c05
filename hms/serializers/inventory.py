from decimal import Decimal

from rest_framework import serializers

from hms.serializers.common import CleanCharField, DateRangeQuerySerializer


class PageLimitSerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=20, default=20)


class GroupCreateSerializer(serializers.Serializer):
    name = CleanCharField(max_length=100, required=True, allow_blank=False)


class CompanyQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True)
    activeOnly = serializers.BooleanField(required=False, default=True, source='active_only')


class CompanyCreateSerializer(serializers.Serializer):
    name = CleanCharField(max_length=200, required=True, allow_blank=False)
    address = CleanCharField(max_length=500)
    phoneNumber = CleanCharField(max_length=50, source='phone_number')


class MedicineQuerySerializer(PageLimitSerializer):
    search = serializers.CharField(required=False, allow_blank=True)
    groupId = serializers.IntegerField(required=False, min_value=1, source='group_id')
    lowStockOnly = serializers.BooleanField(required=False, default=False, source='low_stock_only')
    activeOnly = serializers.BooleanField(required=False, default=True, source='active_only')


class MedicineCreateSerializer(serializers.Serializer):
    genericName = CleanCharField(max_length=200, required=True, allow_blank=False, source='generic_name')
    brandName = CleanCharField(max_length=200, source='brand_name')
    groupId = serializers.IntegerField(min_value=1, source='group_id')
    strength = CleanCharField(max_length=50)
    dosageForm = CleanCharField(max_length=50, source='dosage_form')
    lowStockThreshold = serializers.IntegerField(required=False, min_value=0, default=10,
                                                 source='low_stock_threshold')


class PurchaseQuerySerializer(DateRangeQuerySerializer, PageLimitSerializer):
    companyId = serializers.IntegerField(required=False, min_value=1, source='company_id')
    medicineId = serializers.IntegerField(required=False, min_value=1, source='medicine_id')


class PurchaseCreateSerializer(serializers.Serializer):
    invoiceNumber = CleanCharField(max_length=100, required=True, allow_blank=False, source='invoice_number')
    companyId = serializers.IntegerField(min_value=1, source='company_id')
    medicineId = serializers.IntegerField(min_value=1, source='medicine_id')
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'), source='unit_price')
    purchaseDate = serializers.DateTimeField(required=False, allow_null=True, source='purchase_date')
    expiryDate = serializers.DateField(required=False, allow_null=True, source='expiry_date')
    batchNumber = CleanCharField(max_length=100, source='batch_number')


class SaleQuerySerializer(DateRangeQuerySerializer, PageLimitSerializer):
    patientId = serializers.IntegerField(required=False, min_value=1, source='patient_id')
    medicineId = serializers.IntegerField(required=False, min_value=1, source='medicine_id')


class SaleCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1, source='patient_id')
    medicineId = serializers.IntegerField(min_value=1, source='medicine_id')
    quantity = serializers.IntegerField(min_value=1)
    saleDate = serializers.DateTimeField(required=False, allow_null=True, source='sale_date')


class StatsQuerySerializer(serializers.Serializer):
    startDate = serializers.DateField(required=False, source='start_date')
    endDate = serializers.DateField(required=False, source='end_date')
