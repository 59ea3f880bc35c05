"""
Activity log browsing for administrators.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.models import ActivityLog
from hms.permissions import IsAdminRole
from hms.serializers.activity import ActivityFilterSerializer, ActivityListQuerySerializer
from hms.services import activity
from hms.views.common import get_or_404


def _filters(serializer_class, request):
    s = serializer_class(data=request.query_params)
    s.is_valid(raise_exception=True)
    return s.to_filters()


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def activity_logs(request):
    rows, pagination = activity.list_logs(**_filters(ActivityListQuerySerializer, request))
    return Response({'ok': True, 'data': rows, 'pagination': pagination})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def activity_log_detail(request, log_id: int):
    log = get_or_404(ActivityLog.objects.all(), log_id, 'Activity log')
    return Response({'ok': True, 'data': activity.serialize_log(log)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def activity_log_summary(request):
    return Response({'ok': True, 'data': activity.summary(**_filters(ActivityFilterSerializer, request))})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def activity_log_actions(request):
    return Response({'ok': True, 'data': activity.action_types()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def activity_log_users(request):
    return Response({'ok': True, 'data': activity.users_with_logs()})
