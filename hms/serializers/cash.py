from rest_framework import serializers

from hms.serializers.common import CleanCharField

PRESETS = ['today', 'yesterday', 'lastWeek', 'thisMonth', 'lastMonth', 'custom']


class OpenShiftSerializer(serializers.Serializer):
    openingCash = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False,
                                           default=0, source='opening_cash')
    notes = CleanCharField()


class CloseShiftSerializer(serializers.Serializer):
    closingCash = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, source='closing_cash')
    notes = CleanCharField()


class PeriodQuerySerializer(serializers.Serializer):
    datePreset = serializers.ChoiceField(choices=PRESETS, required=False, allow_blank=True, source='preset')
    startDate = serializers.DateField(required=False, source='start')
    endDate = serializers.DateField(required=False, source='end')

    def validate(self, attrs):
        if attrs.get('preset') == 'custom' and not (attrs.get('start') and attrs.get('end')):
            raise serializers.ValidationError('startDate and endDate are required for a custom period')
        return attrs


class SessionCashQuerySerializer(PeriodQuerySerializer):
    departmentId = serializers.IntegerField(required=False, source='department_id')


class ShiftListQuerySerializer(PeriodQuerySerializer):
    search = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=['Active', 'Closed', 'all'], required=False)
