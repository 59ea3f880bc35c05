from rest_framework import serializers

from hms.roles import SYSTEM_ROLES
from hms.serializers.common import CleanCharField


class UserListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True)
    role = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=['all', 'active', 'archived'], required=False, default='all')
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, default=20)


class StaffFieldsSerializer(serializers.Serializer):
    firstName = CleanCharField(max_length=100, source='first_name')
    lastName = CleanCharField(max_length=100, source='last_name')
    staffRole = CleanCharField(max_length=64, source='staff_role')
    specialization = CleanCharField(max_length=200)
    phoneNumber = CleanCharField(max_length=32, source='phone_number')
    email = serializers.EmailField(required=False, allow_blank=True)
    departmentId = serializers.IntegerField(required=False, allow_null=True, source='department_id')


class UserCreateSerializer(StaffFieldsSerializer):
    username = serializers.CharField(min_length=3, max_length=50)
    password = serializers.CharField(min_length=8, max_length=128, trim_whitespace=False, write_only=True)
    role = serializers.ChoiceField(choices=SYSTEM_ROLES)
    staffId = serializers.IntegerField(required=False, allow_null=True, source='staff_id')

    def validate(self, attrs):
        if not attrs.get('staff_id') and not (attrs.get('first_name') or '').strip():
            raise serializers.ValidationError({'firstName': 'Provide staffId or the new staff member\'s first name'})
        return attrs


class UserUpdateSerializer(StaffFieldsSerializer):
    username = serializers.CharField(required=False, min_length=3, max_length=50)
    role = serializers.ChoiceField(choices=SYSTEM_ROLES, required=False)


class ArchiveSerializer(serializers.Serializer):
    isActive = serializers.BooleanField(source='is_active')


class ResetPasswordSerializer(serializers.Serializer):
    newPassword = serializers.CharField(min_length=8, max_length=128, trim_whitespace=False, source='new_password')


class StaffQuerySerializer(serializers.Serializer):
    withoutAccount = serializers.BooleanField(required=False, default=False, source='without_account')
    role = serializers.CharField(required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True)
