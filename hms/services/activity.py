"""
Activity log writing and querying.

``log_action`` is called by every mutating service inside the same
transaction as the change it records, so an audit row exists exactly
when the change does.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from django.db.models import Count, Max, Q

from hms.models import ActivityLog, User
from hms.services.periods import local_day_start, local_day_range

logger = logging.getLogger(__name__)

LOGIN = 'LOGIN'
LOGIN_FAILED = 'LOGIN_FAILED'
LOGOUT = 'LOGOUT'
CREATE = 'CREATE'
UPDATE = 'UPDATE'
DELETE = 'DELETE'
USER_CREATED = 'USER_CREATED'
USER_UPDATED = 'USER_UPDATED'
USER_ARCHIVED = 'USER_ARCHIVED'
USER_UNARCHIVED = 'USER_UNARCHIVED'
USER_PASSWORD_RESET = 'USER_PASSWORD_RESET'
SHIFT_OPENED = 'SHIFT_OPENED'
SHIFT_CLOSED = 'SHIFT_CLOSED'

MAX_PAGE_SIZE = 100


def client_ip(request) -> str:
    if request is None:
        return ''
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    ip = forwarded.split(',')[0].strip() if forwarded else request.META.get('REMOTE_ADDR', '')
    if ip in ('127.0.0.1', '::1'):
        return 'localhost'
    return ip or ''


def log_action(*, user: Optional[User], action: str, description: str = '', entity_type: str = '',
               entity_id: Any = None, request=None, detail: Optional[Dict[str, Any]] = None,
               username: str = '') -> ActivityLog:
    real_user = user if isinstance(user, User) and user.pk else None
    return ActivityLog.objects.create(
        user=real_user,
        username=(real_user.username if real_user else username)[:150],
        action=action,
        description=description,
        entity_type=entity_type or '',
        entity_id='' if entity_id is None else str(entity_id),
        ip_address=client_ip(request),
        user_agent=(request.META.get('HTTP_USER_AGENT', '') if request is not None else '')[:255],
        detail=detail or {},
    )


def serialize_log(log: ActivityLog) -> dict:
    return {
        'id': log.id,
        'userId': log.user_id,
        'username': log.username,
        'action': log.action,
        'description': log.description,
        'entityType': log.entity_type or None,
        'entityId': log.entity_id or None,
        'ipAddress': log.ip_address or None,
        'userAgent': log.user_agent or None,
        'detail': log.detail,
        'timestamp': log.timestamp.isoformat(),
    }


def filter_logs(*, user_id: int | None = None, actions: list[str] | None = None,
                entity_type: str | None = None, start_date: date | None = None,
                end_date: date | None = None, search: str | None = None):
    qs = ActivityLog.objects.all()
    if user_id:
        qs = qs.filter(user_id=user_id)
    if actions:
        cond = Q()
        for a in actions:
            cond |= Q(action__iexact=a)
        qs = qs.filter(cond)
    if entity_type:
        qs = qs.filter(entity_type__iexact=entity_type)
    if start_date and end_date:
        start, end = local_day_range(start_date, end_date)
        qs = qs.filter(timestamp__gte=start, timestamp__lt=end)
    elif start_date:
        qs = qs.filter(timestamp__gte=local_day_start(start_date))
    elif end_date:
        qs = qs.filter(timestamp__lt=local_day_range(end_date)[1])
    if search:
        qs = qs.filter(
            Q(description__icontains=search) | Q(username__icontains=search) | Q(action__icontains=search)
        )
    return qs


def list_logs(*, page: int = 1, page_size: int = 20, **filters) -> tuple[list[dict], dict]:
    page = max(page, 1)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    qs = filter_logs(**filters).order_by('-timestamp', '-id')
    total = qs.count()
    start = (page - 1) * page_size
    rows = [serialize_log(log) for log in qs[start:start + page_size]]
    pagination = {
        'page': page,
        'pageSize': page_size,
        'total': total,
        'totalPages': (total + page_size - 1) // page_size,
    }
    return rows, pagination


def summary(**filters) -> dict:
    qs = filter_logs(**filters)
    agg = qs.aggregate(
        total=Count('id'),
        users=Count('user', distinct=True),
        logins=Count('id', filter=Q(action=LOGIN)),
        last=Max('timestamp'),
    )
    return {
        'totalActions': agg['total'],
        'uniqueUsers': agg['users'],
        'loginCount': agg['logins'],
        'lastActivity': agg['last'].isoformat() if agg['last'] else None,
    }


def action_types() -> list[str]:
    return sorted(set(ActivityLog.objects.values_list('action', flat=True)))


def users_with_logs() -> list[dict]:
    qs = (User.objects.filter(activity_logs__isnull=False)
          .select_related('staff').distinct().order_by('username'))
    return [{
        'id': u.id,
        'username': u.username,
        'fullName': u.staff.full_name if u.staff else None,
    } for u in qs]
