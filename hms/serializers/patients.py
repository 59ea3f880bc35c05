from rest_framework import serializers

from hms.serializers.common import CleanCharField, PageQuerySerializer


class HospitalSerializer(serializers.Serializer):
    """Inline hospital reference: an ``id`` or the details of a new one."""
    id = serializers.IntegerField(required=False, allow_null=True)
    name = CleanCharField(max_length=200)
    address = CleanCharField(max_length=255)
    phoneNumber = CleanCharField(max_length=32, source='phone_number')
    email = serializers.EmailField(required=False, allow_blank=True)
    website = CleanCharField(max_length=200)
    type = CleanCharField(max_length=64)


class HospitalCreateSerializer(HospitalSerializer):
    name = CleanCharField(max_length=200, required=True, allow_blank=False)


class HospitalUpdateSerializer(HospitalSerializer):
    isActive = serializers.BooleanField(required=False, source='is_active')


class HospitalQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True)
    type = serializers.CharField(required=False, allow_blank=True)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=50)


class PatientSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False, allow_null=True)
    firstName = CleanCharField(max_length=100, source='first_name')
    lastName = CleanCharField(max_length=100, source='last_name')
    fullName = CleanCharField(max_length=200, source='full_name')
    gender = CleanCharField(max_length=16)
    dateOfBirth = serializers.DateField(required=False, allow_null=True, source='date_of_birth')
    address = CleanCharField(max_length=255)
    phoneNumber = CleanCharField(max_length=32, source='phone_number')
    email = serializers.EmailField(required=False, allow_blank=True)
    bloodGroup = CleanCharField(max_length=8, source='blood_group')
    guardianName = CleanCharField(max_length=200, source='guardian_name')
    guardianPhone = CleanCharField(max_length=32, source='guardian_phone')
    guardianDob = serializers.DateField(required=False, allow_null=True, source='guardian_dob')
    guardianGender = CleanCharField(max_length=16, source='guardian_gender')
    spouseDob = serializers.DateField(required=False, allow_null=True, source='spouse_dob')
    spouseGender = CleanCharField(max_length=16, source='spouse_gender')

    def validate(self, attrs):
        if not attrs.get('id') and not (attrs.get('first_name') or '').strip():
            raise serializers.ValidationError({'firstName': 'Patient first name is required'})
        return attrs


class PatientUpdateSerializer(PatientSerializer):
    """Patient fields sent with an edit; the record id comes from the URL."""

    def validate(self, attrs):
        return attrs


class PatientRecordUpdateSerializer(serializers.Serializer):
    firstName = CleanCharField(max_length=100, source='first_name')
    lastName = CleanCharField(max_length=100, source='last_name')
    gender = CleanCharField(max_length=16)
    dateOfBirth = serializers.DateField(required=False, allow_null=True, source='date_of_birth')
    guardianName = CleanCharField(max_length=200, source='guardian_name')
    phoneNumber = CleanCharField(max_length=32, source='phone_number')
    address = CleanCharField(max_length=255)


class PatientListQuerySerializer(PageQuerySerializer):
    search = serializers.CharField(required=False, allow_blank=True)
