import pytest
from django.core.cache import cache
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from hms import roles
from hms.models import Department, Hospital, Staff, User

PASSWORD = 'P@ssw0rd123'


@pytest.fixture(autouse=True)
def _clear_cache():
    # login throttling and dashboard stats both live in the default cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def department(db):
    return Department.objects.create(name='Gynecology')


@pytest.fixture
def doctor(db, department):
    return Staff.objects.create(first_name='Farhana', last_name='Akter', full_name='Dr. Farhana Akter',
                                role='Doctor', department=department)


@pytest.fixture
def hospital(db):
    return Hospital.objects.create(name='Square Hospital', type='Private')


@pytest.fixture
def make_user(db):
    def make(username, role=roles.RECEPTIONIST, *, with_staff=True, password=PASSWORD, **kwargs):
        staff = None
        if with_staff:
            staff = Staff.objects.create(first_name=username.title(), full_name=username.title(), role='Staff')
        return User.objects.create_user(username=username, password=password, role=role, staff=staff, **kwargs)
    return make


@pytest.fixture
def api_for():
    def client_for(user):
        client = APIClient()
        token, _ = Token.objects.get_or_create(user=user)
        client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
        return client
    return client_for


@pytest.fixture
def admin_user(make_user):
    return make_user('admin1', roles.ADMIN)


@pytest.fixture
def receptionist(make_user):
    return make_user('reception1', roles.RECEPTIONIST)


@pytest.fixture
def patient_payload():
    return {'firstName': 'Rina', 'lastName': 'Begum', 'gender': 'Female', 'phoneNumber': '01711000000'}
