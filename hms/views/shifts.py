"""
Cash shifts: the caller's own drawer, session cash reports and the
all-staff shift overview for administrators.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.exceptions import RecordNotFound, error_response
from hms.models import Shift
from hms.permissions import CanUseShifts, IsAdminRole
from hms.roles import is_admin_role
from hms.serializers.cash import (
    CloseShiftSerializer, OpenShiftSerializer, SessionCashQuerySerializer, ShiftListQuerySerializer,
)
from hms.services import cash
from hms.views.common import body, get_or_404, query, staff_of


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanUseShifts])
def open_shift(request):
    data = body(OpenShiftSerializer, request)
    shift = cash.open_shift(staff=staff_of(request), opening_cash=data['opening_cash'],
                            notes=data.get('notes') or '', user=request.user, request=request)
    return Response({'ok': True, 'data': cash.serialize_shift(shift)}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanUseShifts])
def close_shift(request):
    data = body(CloseShiftSerializer, request)
    shift = cash.get_active_shift(staff_of(request))
    if shift is None:
        raise RecordNotFound('No active shift to close')
    shift = cash.close_shift(shift=shift, closing_cash=data['closing_cash'], notes=data.get('notes'),
                             user=request.user, request=request)
    return Response({'ok': True, 'data': cash.serialize_shift(shift)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseShifts])
def active_shift(request):
    shift = cash.get_active_shift(getattr(request.user, 'staff', None))
    return Response({'ok': True, 'data': cash.serialize_shift(shift) if shift else None})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseShifts])
def shift_detail(request, shift_id: int):
    shift = get_or_404(Shift.objects.select_related('staff'), shift_id, 'Shift')
    staff = getattr(request.user, 'staff', None)
    if not is_admin_role(request.user.role) and (staff is None or shift.staff_id != staff.id):
        return error_response('You can only view your own shifts', 'permission_denied', 403)
    return Response({'ok': True, 'data': cash.shift_detail(shift)})


def _session_cash(request, *, detailed: bool):
    q = query(SessionCashQuerySerializer, request)
    data = cash.session_cash_summary(staff=staff_of(request), detailed=detailed, **q)
    return Response({'ok': True, 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseShifts])
def session_cash(request):
    return _session_cash(request, detailed=False)


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseShifts])
def session_cash_detailed(request):
    return _session_cash(request, detailed=True)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_shifts(request):
    q = query(ShiftListQuerySerializer, request)
    return Response({'ok': True, 'data': cash.list_shifts(**q)})
