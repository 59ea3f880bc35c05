"""
Django admin registrations, mainly for inspecting ledger rows during
support work.  Cash rows are read-only here: every change to them must go
through ``hms.services.cash`` so the shift totals stay consistent.
"""

from django.contrib import admin

from .models import (
    ActivityLog,
    Admission,
    CashMovement,
    Department,
    Hospital,
    HospitalConfig,
    InfertilityRecord,
    Medicine,
    MedicineCompany,
    MedicineGroup,
    MedicinePurchase,
    MedicineSale,
    PathologyTest,
    Patient,
    PatientAccount,
    Payment,
    PaymentAllocation,
    ServiceCharge,
    Shift,
    Staff,
    User,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'staff', 'is_active', 'last_login')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'staff__full_name')


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'role', 'department', 'is_active')
    list_filter = ('role', 'is_active')
    search_fields = ('full_name', 'email', 'phone_number')


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('name', 'code', 'is_active')


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('name', 'type', 'phone_number', 'is_active')
    search_fields = ('name',)


@admin.register(HospitalConfig)
class HospitalConfigAdmin(admin.ModelAdmin):
    list_display = ('key', 'value', 'updated_at')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'full_name', 'gender', 'phone_number', 'hospital', 'created_at')
    search_fields = ('full_name', 'phone_number', 'email')


@admin.register(Admission)
class AdmissionAdmin(admin.ModelAdmin):
    list_display = ('admission_number', 'patient', 'department', 'status', 'grand_total', 'paid_amount')
    list_filter = ('status', 'department')
    search_fields = ('admission_number', 'patient__full_name')


@admin.register(PathologyTest)
class PathologyTestAdmin(admin.ModelAdmin):
    list_display = ('test_number', 'patient', 'test_category', 'is_completed', 'grand_total')
    list_filter = ('is_completed', 'test_category')
    search_fields = ('test_number', 'patient__full_name')


@admin.register(InfertilityRecord)
class InfertilityRecordAdmin(admin.ModelAdmin):
    list_display = ('registration_number', 'patient', 'hospital', 'status', 'created_at')
    list_filter = ('status',)


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('generic_name', 'brand_name', 'group', 'current_stock', 'low_stock_threshold', 'is_active')
    list_filter = ('group', 'is_active')
    search_fields = ('generic_name', 'brand_name')


admin.site.register(MedicineGroup)
admin.site.register(MedicineCompany)


@admin.register(ActivityLog)
class ActivityLogAdmin(ReadOnlyAdmin):
    list_display = ('timestamp', 'username', 'action', 'entity_type', 'entity_id')
    list_filter = ('action',)
    search_fields = ('username', 'description')


for model in (PatientAccount, ServiceCharge, Shift, Payment, PaymentAllocation, CashMovement,
              MedicinePurchase, MedicineSale):
    admin.site.register(model, ReadOnlyAdmin)
