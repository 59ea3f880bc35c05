"""
Authentication views: login, session verification, JWT refresh and logout.

Kept apart from the authentication class (see ``hms.authentication``) so
DRF can import authentication classes at start-up without pulling in views.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from django.utils import timezone
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from hms.exceptions import error_response
from hms.models import User
from hms.roles import normalize_role, role_display_name
from hms.serializers.auth import LoginSerializer, LogoutSerializer
from hms.services import activity
from hms.services.users import invalidate_sessions, serialize_staff

logger = logging.getLogger(__name__)

DEACTIVATED_MESSAGE = 'Account has been deactivated. Please contact your administrator.'


def _user_payload(user: User) -> dict:
    staff = user.staff
    return {
        'id': user.id,
        'username': user.username,
        'fullName': staff.full_name if staff else (user.get_full_name() or user.username),
        'role': normalize_role(user.role),
        'roleDisplay': role_display_name(user.role),
        'staffId': staff.id if staff else None,
    }


# ---------------------------------------------------------------------
# Username/password login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Exchange username/password for an API token and a JWT pair.

    Archived accounts that give the right password get 403 so the desk can
    tell them apart from typos; everything else that fails is a plain 401.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']

    user = authenticate(request, username=username, password=password)
    if user is None:
        archived = User.objects.filter(username=username, is_active=False).first()
        if archived is not None and archived.check_password(password):
            logger.warning('login refused for archived user %s', username)
            activity.log_action(user=archived, action=activity.LOGIN_FAILED, entity_type='User',
                                entity_id=archived.id, description='Login refused: account archived',
                                request=request)
            return error_response(DEACTIVATED_MESSAGE, 'account_deactivated', 403)
        logger.warning('failed login for %s from %s', username, activity.client_ip(request))
        activity.log_action(user=None, username=username, action=activity.LOGIN_FAILED, entity_type='User',
                            description=f'Failed login attempt for {username}', request=request)
        return error_response('Invalid username or password', 'invalid_credentials', 401)

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    activity.log_action(user=user, action=activity.LOGIN, entity_type='User', entity_id=user.id,
                        description=f'{user.username} logged in', request=request)

    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': normalize_role(user.role),
        'user': _user_payload(user),
    }, status=200)


# ScopedRateThrottle reads throttle_scope from the view class
login_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def verify_session_view(request):
    user = request.user
    return Response({
        'ok': True,
        'user': _user_payload(user),
        'staff': serialize_staff(user.staff),
        'role': normalize_role(user.role),
    })


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the given refresh token, or all of them, and drop the API token."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = s.validated_data.get('refresh')
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError as exc:
            return error_response(str(exc), 'invalid_token', 400)
        Token.objects.filter(user=request.user).delete()
        count = 1
    else:
        count = invalidate_sessions(request.user)
    activity.log_action(user=request.user, action=activity.LOGOUT, entity_type='User',
                        entity_id=request.user.id, description=f'{request.user.username} logged out',
                        request=request)
    return Response({'ok': True, 'blacklisted': count})
