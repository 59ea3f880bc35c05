from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from hms.models import ActivityLog
from hms.services import activity

pytestmark = pytest.mark.django_db


@pytest.fixture
def logs(admin_user, receptionist):
    activity.log_action(user=receptionist, action=activity.LOGIN, description='reception1 logged in')
    activity.log_action(user=receptionist, action=activity.CREATE, entity_type='Admission', entity_id=7,
                        description='Admitted Rina Begum (GYNE-25-00001)')
    activity.log_action(user=admin_user, action=activity.LOGIN, description='admin1 logged in')
    activity.log_action(user=None, username='ghost', action=activity.LOGIN_FAILED,
                        description='Failed login attempt for ghost')
    return ActivityLog.objects.order_by('id')


def test_log_action_stores_username_snapshot(logs, receptionist):
    first = logs.first()
    assert first.username == 'reception1'
    assert first.entity_id == ''
    assert logs.get(action='CREATE').entity_id == '7'
    ghost = logs.get(action='LOGIN_FAILED')
    assert ghost.user is None and ghost.username == 'ghost'


def test_list_is_newest_first_and_paginated(logs, admin_user, api_for):
    r = api_for(admin_user).get(reverse('activity_logs'), {'pageSize': 3})
    assert r.status_code == 200
    assert [row['action'] for row in r.data['data']] == ['LOGIN_FAILED', 'LOGIN', 'CREATE']
    assert r.data['pagination'] == {'page': 1, 'pageSize': 3, 'total': 4, 'totalPages': 2}


def test_page_size_is_clamped(logs):
    _, pagination = activity.list_logs(page_size=1000)
    assert pagination['pageSize'] == activity.MAX_PAGE_SIZE


def test_filters(logs, receptionist, admin_user, api_for):
    client = api_for(admin_user)
    mine = client.get(reverse('activity_logs'), {'userId': receptionist.id}).data['data']
    assert {row['username'] for row in mine} == {'reception1'}
    several = client.get(reverse('activity_logs'), {'action': 'login, login_failed'}).data['data']
    assert len(several) == 3
    by_entity = client.get(reverse('activity_logs'), {'entityType': 'admission'}).data['data']
    assert [row['entityId'] for row in by_entity] == ['7']
    found = client.get(reverse('activity_logs'), {'search': 'GYNE-25'}).data['data']
    assert len(found) == 1


def test_date_filters_use_local_days(logs):
    today = timezone.localdate()
    assert activity.filter_logs(start_date=today, end_date=today).count() == 4
    assert activity.filter_logs(start_date=today + timedelta(days=1)).count() == 0
    assert activity.filter_logs(end_date=today - timedelta(days=1)).count() == 0


def test_summary(logs, admin_user, api_for):
    r = api_for(admin_user).get(reverse('activity_log_summary'))
    data = r.data['data']
    assert data['totalActions'] == 4
    assert data['uniqueUsers'] == 2
    assert data['loginCount'] == 2
    assert data['lastActivity'] is not None


def test_actions_and_users(logs, admin_user, api_for):
    client = api_for(admin_user)
    assert client.get(reverse('activity_log_actions')).data['data'] == ['CREATE', 'LOGIN', 'LOGIN_FAILED']
    users = client.get(reverse('activity_log_users')).data['data']
    assert [u['username'] for u in users] == ['admin1', 'reception1']


def test_detail(logs, admin_user, api_for):
    client = api_for(admin_user)
    log = logs.get(action='CREATE')
    r = client.get(reverse('activity_log_detail', args=[log.id]))
    assert r.data['data']['description'].startswith('Admitted')
    assert client.get(reverse('activity_log_detail', args=[99999])).status_code == 404


def test_non_admins_cannot_read_logs(logs, receptionist, api_for):
    assert api_for(receptionist).get(reverse('activity_logs')).status_code == 403
