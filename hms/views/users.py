"""
User administration (admin roles) and staff lookups.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.permissions import CanUseFrontDesk, IsAdminRole
from hms.serializers.users import (
    ArchiveSerializer, ResetPasswordSerializer, StaffQuerySerializer, UserCreateSerializer,
    UserListQuerySerializer, UserUpdateSerializer,
)
from hms.services import users as user_service
from hms.views.common import body, query


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_users(request):
    if request.method == 'GET':
        rows, pagination = user_service.list_users(**query(UserListQuerySerializer, request))
        return Response({'ok': True, 'data': rows, 'pagination': pagination})
    user = user_service.create_user(data=body(UserCreateSerializer, request), actor=request.user,
                                    request=request)
    return Response({'ok': True, 'data': user_service.serialize_user(user)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_user_detail(request, user_id: int):
    user = user_service.get_user(user_id)
    if request.method == 'PATCH':
        user = user_service.update_user(user, data=body(UserUpdateSerializer, request, partial=True),
                                        actor=request.user, request=request)
    return Response({'ok': True, 'data': user_service.serialize_user(user)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_user_archive(request, user_id: int):
    data = body(ArchiveSerializer, request)
    user = user_service.set_archived(user_service.get_user(user_id), is_active=data['is_active'],
                                     actor=request.user, request=request)
    return Response({'ok': True, 'data': user_service.serialize_user(user)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_user_reset_password(request, user_id: int):
    data = body(ResetPasswordSerializer, request)
    user_service.reset_password(user_service.get_user(user_id), new_password=data['new_password'],
                                actor=request.user, request=request)
    return Response({'ok': True, 'message': 'Password has been reset'})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_staff(request):
    q = query(StaffQuerySerializer, request)
    rows = user_service.staff_for_linking(without_account=q['without_account'], search=q.get('search'))
    return Response({'ok': True, 'data': rows})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def staff_list(request):
    """Active staff for the doctor / ordering staff dropdowns."""
    q = query(StaffQuerySerializer, request)
    return Response({'ok': True, 'data': user_service.active_staff(role=q.get('role'), search=q.get('search'))})
