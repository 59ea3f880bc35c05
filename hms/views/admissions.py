"""
Admission endpoints.  Billing side effects live in ``hms.services.admissions``.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.models import Admission
from hms.permissions import CanUseFrontDesk
from hms.serializers.admissions import AdmissionCreateSerializer, AdmissionQuerySerializer, AdmissionUpdateSerializer
from hms.services import admissions as admission_service
from hms.views.common import body, get_or_404, query

_QS = Admission.objects.select_related('patient__hospital', 'department', 'doctor')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def admissions(request):
    if request.method == 'GET':
        qs = admission_service.list_admissions(**query(AdmissionQuerySerializer, request))
        return Response({'ok': True, 'data': [admission_service.serialize_admission(a) for a in qs]})
    admission = admission_service.create_admission(data=body(AdmissionCreateSerializer, request),
                                                   user=request.user, request=request)
    admission = _QS.get(pk=admission.pk)
    return Response({'ok': True, 'data': admission_service.serialize_admission(admission)},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def admission_detail(request, admission_id: int):
    admission = get_or_404(_QS, admission_id, 'Admission')
    if request.method == 'DELETE':
        admission_service.delete_admission(admission, user=request.user, request=request)
        return Response({'ok': True})
    if request.method == 'PATCH':
        data = body(AdmissionUpdateSerializer, request, partial=True)
        admission_service.update_admission(admission, data=data, user=request.user, request=request)
        admission = _QS.get(pk=admission.pk)
    return Response({'ok': True, 'data': admission_service.serialize_admission(admission)})
