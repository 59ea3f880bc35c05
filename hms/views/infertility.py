"""
Infertility clinic case records.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.models import InfertilityRecord
from hms.permissions import CanUseInfertility
from hms.serializers.infertility import (
    InfertilityCreateSerializer, InfertilityQuerySerializer, InfertilityUpdateSerializer,
)
from hms.services import infertility as infertility_service
from hms.views.common import body, get_or_404, query

_QS = InfertilityRecord.objects.select_related('patient__hospital', 'hospital')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseInfertility])
def infertility_records(request):
    if request.method == 'GET':
        qs = infertility_service.list_records(**query(InfertilityQuerySerializer, request))
        return Response({'ok': True, 'data': [infertility_service.serialize_record(r) for r in qs]})
    record = infertility_service.create_record(data=body(InfertilityCreateSerializer, request),
                                               user=request.user, request=request)
    return Response({'ok': True, 'data': infertility_service.serialize_record(_QS.get(pk=record.pk))},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanUseInfertility])
def infertility_record_detail(request, record_id: int):
    record = get_or_404(_QS, record_id, 'Infertility record')
    if request.method == 'DELETE':
        infertility_service.delete_record(record, user=request.user, request=request)
        return Response({'ok': True})
    if request.method == 'PATCH':
        data = body(InfertilityUpdateSerializer, request, partial=True)
        infertility_service.update_record(record, data=data, user=request.user, request=request)
        record = _QS.get(pk=record.pk)
    return Response({'ok': True, 'data': infertility_service.serialize_record(record)})
