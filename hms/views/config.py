"""
Runtime hospital settings (admission fee and friends), admins only.
"""
from __future__ import annotations

from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.models import HospitalConfig
from hms.permissions import IsAdminRole
from hms.serializers.common import CleanCharField
from hms.services import activity
from hms.services.config import ADMISSION_FEE_KEY, admission_fee, set_config
from hms.views.common import body


class ConfigUpdateSerializer(serializers.Serializer):
    key = serializers.RegexField(r'^[A-Z0-9_]{2,100}$')
    value = CleanCharField(max_length=255, required=True)
    description = CleanCharField(max_length=255)

    def validate(self, attrs):
        if attrs['key'] == ADMISSION_FEE_KEY:
            try:
                fee = float(attrs['value'])
            except ValueError:
                raise serializers.ValidationError({'value': 'Admission fee must be a number'})
            if fee < 0:
                raise serializers.ValidationError({'value': 'Admission fee cannot be negative'})
        return attrs


def _row(c: HospitalConfig) -> dict:
    return {'key': c.key, 'value': c.value, 'description': c.description, 'updatedAt': c.updated_at.isoformat()}


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def hospital_config(request):
    if request.method == 'PATCH':
        data = body(ConfigUpdateSerializer, request)
        row = set_config(data['key'], data['value'], data.get('description') or '')
        activity.log_action(user=request.user, action=activity.UPDATE, entity_type='HospitalConfig',
                            entity_id=row.key, description=f'Set {row.key} = {row.value}', request=request)
    return Response({
        'ok': True,
        'data': [_row(c) for c in HospitalConfig.objects.order_by('key')],
        'admissionFee': float(admission_fee()),
    })
