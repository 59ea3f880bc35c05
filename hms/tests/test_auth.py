import pytest
from django.urls import reverse
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken

from hms import roles
from hms.models import ActivityLog

pytestmark = pytest.mark.django_db

PASSWORD = 'P@ssw0rd123'


def login(client, username, password=PASSWORD, **extra):
    return client.post(reverse('login_view'), {'username': username, 'password': password, **extra}, format='json')


def test_login_returns_token_jwt_and_user(receptionist):
    r = login(APIClient(), 'reception1')
    assert r.status_code == 200
    assert r.data['ok'] is True
    assert r.data['token'] and r.data['jwt_access'] and r.data['jwt_refresh']
    assert r.data['role'] == roles.RECEPTIONIST
    assert r.data['user']['staffId'] == receptionist.staff_id
    assert Token.objects.filter(user=receptionist, key=r.data['token']).exists()


def test_login_records_activity_with_client_ip(receptionist):
    login(APIClient(), 'reception1', HTTP_USER_AGENT='pytest')
    log = ActivityLog.objects.get(action='LOGIN')
    assert log.user == receptionist
    assert log.ip_address == 'localhost'


def test_login_uses_first_forwarded_hop():
    from hms.services.activity import client_ip

    class Req:
        META = {'HTTP_X_FORWARDED_FOR': '203.0.113.9, 10.0.0.1', 'REMOTE_ADDR': '10.0.0.1'}

    assert client_ip(Req()) == '203.0.113.9'


def test_wrong_password_is_401_with_error_envelope(receptionist):
    r = login(APIClient(), 'reception1', 'wrong-password')
    assert r.status_code == 401
    assert r.data == {'ok': False, 'error': {'code': 'invalid_credentials',
                                             'message': 'Invalid username or password'}}
    failed = ActivityLog.objects.get(action='LOGIN_FAILED')
    assert failed.user is None
    assert failed.username == 'reception1'


def test_unknown_user_is_401():
    r = login(APIClient(), 'nobody')
    assert r.status_code == 401


def test_archived_user_gets_403_only_with_right_password(make_user):
    make_user('gone', is_active=False)
    r = login(APIClient(), 'gone')
    assert r.status_code == 403
    assert r.data['error']['message'] == 'Account has been deactivated. Please contact your administrator.'
    assert login(APIClient(), 'gone', 'not-the-password').status_code == 401


def test_role_cannot_be_escalated_through_login(receptionist):
    r = login(APIClient(), 'reception1', role='system-admin')
    assert r.status_code == 200
    receptionist.refresh_from_db()
    assert receptionist.role == roles.RECEPTIONIST
    assert r.data['role'] == roles.RECEPTIONIST


def test_verify_session(receptionist, api_for):
    r = api_for(receptionist).get(reverse('verify_session'))
    assert r.status_code == 200
    assert r.data['user']['username'] == 'reception1'
    assert r.data['staff']['id'] == receptionist.staff_id


def test_verify_session_requires_credentials():
    r = APIClient().get(reverse('verify_session'))
    assert r.status_code == 401
    assert r.data['ok'] is False


def test_refresh_returns_new_access_token(receptionist):
    tokens = login(APIClient(), 'reception1').data
    r = APIClient().post(reverse('jwt_refresh'), {'refresh': tokens['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access']


def test_jwt_access_token_authenticates(receptionist):
    tokens = login(APIClient(), 'reception1').data
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['jwt_access']}")
    assert client.get(reverse('verify_session')).status_code == 200


def test_logout_blacklists_and_drops_api_token(receptionist):
    client = APIClient()
    tokens = login(client, 'reception1').data
    client.credentials(HTTP_AUTHORIZATION=f"Token {tokens['token']}")
    r = client.post(reverse('logout_view'), {}, format='json')
    assert r.status_code == 200
    assert BlacklistedToken.objects.filter(token__user=receptionist).exists()
    assert not Token.objects.filter(user=receptionist).exists()
    assert ActivityLog.objects.filter(action='LOGOUT', user=receptionist).exists()
    assert client.get(reverse('verify_session')).status_code == 401
