"""
User and staff administration.

Users are login accounts; staff rows are the people behind them (doctors,
receptionists...).  A staff member may exist without an account, in which
case the admin can link a new user to it.
"""
from __future__ import annotations

import logging
import re

from django.db import transaction
from django.db.models import Q
from rest_framework.authtoken.models import Token
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from hms.exceptions import Conflict, InvalidOperation, RecordNotFound
from hms.models import Department, Staff, User
from hms.roles import SYSTEM_ROLES, normalize_role, role_display_name
from hms.services import activity

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r'^[A-Za-z0-9_-]{3,50}$')
PASSWORD_MIN, PASSWORD_MAX = 8, 128
MAX_LIMIT = 50

STAFF_FIELDS = ('first_name', 'last_name', 'specialization', 'phone_number', 'email')


def validate_username(username: str) -> str:
    username = (username or '').strip()
    if not USERNAME_RE.match(username):
        raise InvalidOperation('Username must be 3-50 characters of letters, digits, "_" or "-"')
    return username


def validate_password(password: str) -> str:
    if not password or not PASSWORD_MIN <= len(password) <= PASSWORD_MAX:
        raise InvalidOperation(f'Password must be {PASSWORD_MIN}-{PASSWORD_MAX} characters')
    return password


def validate_role(role: str) -> str:
    role = normalize_role(role)
    if role not in SYSTEM_ROLES:
        raise InvalidOperation(f'Unknown role: {role}')
    return role


def serialize_staff(s: Staff | None) -> dict | None:
    if s is None:
        return None
    return {
        'id': s.id,
        'firstName': s.first_name,
        'lastName': s.last_name,
        'fullName': s.full_name,
        'role': s.role,
        'specialization': s.specialization,
        'departmentId': s.department_id,
        'phoneNumber': s.phone_number,
        'email': s.email,
        'isActive': s.is_active,
    }


def serialize_user(u: User) -> dict:
    return {
        'id': u.id,
        'username': u.username,
        'role': u.role,
        'roleDisplay': role_display_name(u.role),
        'isActive': u.is_active,
        'lastLogin': u.last_login.isoformat() if u.last_login else None,
        'dateJoined': u.date_joined.isoformat(),
        'staff': serialize_staff(u.staff),
    }


def get_user(pk) -> User:
    user = User.objects.select_related('staff').filter(pk=pk).first()
    if user is None:
        raise RecordNotFound('User not found')
    return user


def list_users(*, search: str | None = None, role: str | None = None, status: str = 'all',
               page: int = 1, limit: int = 20) -> tuple[list[dict], dict]:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_LIMIT)
    qs = User.objects.select_related('staff')
    if search:
        qs = qs.filter(
            Q(username__icontains=search) | Q(staff__full_name__icontains=search)
            | Q(staff__email__icontains=search) | Q(email__icontains=search)
        )
    if role:
        qs = qs.filter(role=normalize_role(role))
    if status == 'active':
        qs = qs.filter(is_active=True)
    elif status == 'archived':
        qs = qs.filter(is_active=False)
    qs = qs.order_by('-date_joined', '-id')
    total = qs.count()
    start = (page - 1) * limit
    rows = [serialize_user(u) for u in qs[start:start + limit]]
    return rows, {'total': total, 'page': page, 'limit': limit, 'totalPages': (total + limit - 1) // limit}


def _full_name(first: str, last: str) -> str:
    return f"{first or ''} {last or ''}".strip()


def create_user(*, data: dict, actor, request=None) -> User:
    """Create a login account, linking or creating its staff row.

    ``data`` keys: username, password, role, and either ``staff_id`` of a
    staff member without an account or ``first_name`` (plus optional
    last_name, staff_role, specialization, phone_number, email,
    department_id) for a new staff row.
    """
    username = validate_username(data.get('username'))
    password = validate_password(data.get('password'))
    role = validate_role(data.get('role'))
    with transaction.atomic():
        if User.objects.filter(username__iexact=username).exists():
            raise Conflict('Username is already taken')
        if data.get('staff_id'):
            staff = Staff.objects.select_for_update().filter(pk=data['staff_id']).first()
            if staff is None:
                raise RecordNotFound('Staff member not found')
            if User.objects.filter(staff=staff).exists():
                raise Conflict('This staff member already has an account')
        else:
            first = (data.get('first_name') or '').strip()
            if not first:
                raise InvalidOperation('First name is required to create a staff member')
            last = (data.get('last_name') or '').strip()
            department = None
            if data.get('department_id'):
                department = Department.objects.filter(pk=data['department_id']).first()
            staff = Staff.objects.create(
                first_name=first,
                last_name=last,
                full_name=_full_name(first, last),
                role=data.get('staff_role') or role_display_name(role),
                specialization=data.get('specialization') or '',
                phone_number=data.get('phone_number') or '',
                email=data.get('email') or '',
                department=department,
            )
        user = User.objects.create_user(
            username=username, password=password, role=role, staff=staff, email=staff.email or '',
        )
        activity.log_action(
            user=actor, action=activity.USER_CREATED, entity_type='User', entity_id=user.id,
            description=f'Created user {username} ({role_display_name(role)}) for {staff.full_name}',
            request=request,
        )
    logger.info('user %s created by %s', username, getattr(actor, 'username', None))
    return user


def update_user(user: User, *, data: dict, actor, request=None) -> User:
    changed = []
    with transaction.atomic():
        if data.get('username') and data['username'] != user.username:
            username = validate_username(data['username'])
            if User.objects.filter(username__iexact=username).exclude(pk=user.pk).exists():
                raise Conflict('Username is already taken')
            user.username = username
            changed.append('username')
        if data.get('role'):
            role = validate_role(data['role'])
            if role != user.role:
                user.role = role
                changed.append('role')
        if changed:
            user.save(update_fields=changed)
        staff = user.staff
        if staff is not None:
            staff_changed = False
            for f in STAFF_FIELDS:
                if f in data and data[f] is not None:
                    setattr(staff, f, data[f])
                    staff_changed = True
            if data.get('staff_role'):
                staff.role = data['staff_role']
                staff_changed = True
            if 'department_id' in data:
                staff.department = (Department.objects.filter(pk=data['department_id']).first()
                                    if data['department_id'] else None)
                staff_changed = True
            if staff_changed:
                staff.full_name = _full_name(staff.first_name, staff.last_name)
                staff.save()
                changed.append('staff')
        activity.log_action(
            user=actor, action=activity.USER_UPDATED, entity_type='User', entity_id=user.id,
            description=f'Updated user {user.username}', request=request, detail={'fields': changed},
        )
    return user


def invalidate_sessions(user: User) -> int:
    """Drop the user's API token and blacklist every outstanding refresh token."""
    Token.objects.filter(user=user).delete()
    blacklisted = 0
    for token in OutstandingToken.objects.filter(user=user):
        _, created = BlacklistedToken.objects.get_or_create(token=token)
        blacklisted += int(created)
    return blacklisted


def set_archived(user: User, *, is_active: bool, actor, request=None) -> User:
    if user.pk == getattr(actor, 'pk', None) and not is_active:
        raise InvalidOperation('You cannot archive your own account')
    with transaction.atomic():
        user.is_active = is_active
        user.save(update_fields=['is_active'])
        if not is_active:
            invalidate_sessions(user)
        activity.log_action(
            user=actor, action=activity.USER_UNARCHIVED if is_active else activity.USER_ARCHIVED,
            entity_type='User', entity_id=user.id, request=request,
            description=f"{'Restored' if is_active else 'Archived'} user {user.username}",
        )
    logger.info('user %s %s by %s', user.username, 'restored' if is_active else 'archived',
                getattr(actor, 'username', None))
    return user


def reset_password(user: User, *, new_password: str, actor, request=None) -> None:
    validate_password(new_password)
    with transaction.atomic():
        user.set_password(new_password)
        user.save(update_fields=['password'])
        invalidate_sessions(user)
        activity.log_action(user=actor, action=activity.USER_PASSWORD_RESET, entity_type='User',
                            entity_id=user.id, description=f'Reset password for {user.username}',
                            request=request)


def staff_for_linking(*, without_account: bool = False, search: str | None = None) -> list[dict]:
    qs = Staff.objects.all()
    if without_account:
        qs = qs.filter(user__isnull=True)
    if search:
        qs = qs.filter(Q(full_name__icontains=search) | Q(email__icontains=search))
    linked = set(User.objects.filter(staff__isnull=False).values_list('staff_id', flat=True))
    return [{**serialize_staff(s), 'hasAccount': s.id in linked} for s in qs.order_by('full_name')]


def active_staff(*, role: str | None = None, search: str | None = None) -> list[dict]:
    qs = Staff.objects.filter(is_active=True)
    if role:
        qs = qs.filter(role__iexact=role)
    if search:
        qs = qs.filter(Q(full_name__icontains=search) | Q(specialization__icontains=search))
    return [serialize_staff(s) for s in qs.order_by('full_name')]
