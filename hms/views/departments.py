"""
Departments and referral hospitals.
"""
from __future__ import annotations

from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.exceptions import Conflict, error_response
from hms.models import Department, Hospital
from hms.permissions import CanUseFrontDesk
from hms.roles import is_admin_role
from hms.serializers.common import CleanCharField
from hms.serializers.patients import HospitalCreateSerializer, HospitalQuerySerializer, HospitalUpdateSerializer
from hms.services import activity
from hms.services import patients as patient_service
from hms.services.numbering import department_code
from hms.views.common import body, get_or_404, query


class DepartmentSerializer(serializers.Serializer):
    name = CleanCharField(max_length=100, required=True, allow_blank=False)
    code = CleanCharField(max_length=16)
    description = CleanCharField()


def _department(d: Department) -> dict:
    return {'id': d.id, 'name': d.name, 'code': department_code(d), 'description': d.description,
            'isActive': d.is_active}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def departments(request):
    """``GET`` lists active departments; ``POST`` creates one (admins only)."""
    if request.method == 'GET':
        return Response({'ok': True, 'data': [_department(d) for d in
                                              Department.objects.filter(is_active=True).order_by('name')]})
    if not is_admin_role(request.user.role):
        return error_response('Only administrators can create departments', 'permission_denied', 403)
    data = body(DepartmentSerializer, request)
    if Department.objects.filter(name__iexact=data['name']).exists():
        raise Conflict('A department with this name already exists')
    dept = Department.objects.create(name=data['name'], code=(data.get('code') or '').upper(),
                                     description=data.get('description') or '')
    activity.log_action(user=request.user, action=activity.CREATE, entity_type='Department', entity_id=dept.id,
                        description=f'Created department {dept.name}', request=request)
    return Response({'ok': True, 'data': _department(dept)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def hospitals(request):
    if request.method == 'GET':
        q = query(HospitalQuerySerializer, request)
        return Response({'ok': True, 'data': patient_service.list_hospitals(**q)})
    hospital = patient_service.create_hospital(data=body(HospitalCreateSerializer, request), user=request.user,
                                               request=request)
    return Response({'ok': True, 'data': patient_service.serialize_hospital(hospital)},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def hospital_detail(request, hospital_id: int):
    hospital = get_or_404(Hospital.objects.all(), hospital_id, 'Hospital')
    if request.method == 'DELETE':
        patient_service.delete_hospital(hospital, user=request.user, request=request)
        return Response({'ok': True})
    if request.method == 'PATCH':
        data = body(HospitalUpdateSerializer, request, partial=True)
        data.pop('id', None)
        hospital = patient_service.update_hospital(hospital, data=data, user=request.user, request=request)
    return Response({'ok': True, 'data': patient_service.serialize_hospital(hospital)})
