"""
Dashboard overview for every signed-in role.
"""
from __future__ import annotations

from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.permissions import CanUseDashboard
from hms.services import dashboard as dashboard_service
from hms.views.common import query


class DashboardQuerySerializer(serializers.Serializer):
    recentLimit = serializers.IntegerField(required=False, min_value=1, max_value=50, default=5,
                                           source='recent_limit')


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseDashboard])
def dashboard(request):
    q = query(DashboardQuerySerializer, request)
    data = dashboard_service.dashboard(staff=getattr(request.user, 'staff', None), **q)
    return Response({'ok': True, 'data': data})
