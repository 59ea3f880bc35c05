"""
URL mappings for the clinic API.

Trailing slashes are deliberately omitted; the front end calls the bare
paths (``APPEND_SLASH`` is off).
"""
from django.urls import include, path

from .auth_views import jwt_refresh_view, login_view, logout_view, verify_session_view
from .views import activity_logs, admissions, config, dashboard, departments, health, infertility
from .views import inventory, pathology, patients, shifts, users

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/verify-session', verify_session_view, name='verify_session'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/auth/logout', logout_view, name='logout_view'),
    # Dashboard and cash
    path('api/dashboard', dashboard.dashboard, name='dashboard'),
    path('api/dashboard/session-cash', shifts.session_cash, name='session_cash'),
    path('api/dashboard/session-cash/detailed', shifts.session_cash_detailed, name='session_cash_detailed'),
    path('api/shifts/open', shifts.open_shift, name='shift_open'),
    path('api/shifts/close', shifts.close_shift, name='shift_close'),
    path('api/shifts/active', shifts.active_shift, name='shift_active'),
    path('api/shifts/<int:shift_id>', shifts.shift_detail, name='shift_detail'),
    # Front desk
    path('api/departments', departments.departments, name='departments'),
    path('api/hospitals', departments.hospitals, name='hospitals'),
    path('api/hospitals/<int:hospital_id>', departments.hospital_detail, name='hospital_detail'),
    path('api/staff', users.staff_list, name='staff_list'),
    path('api/patients', patients.list_patients, name='patients'),
    path('api/patient-records/<int:patient_id>', patients.patient_record, name='patient_record'),
    path('api/admissions', admissions.admissions, name='admissions'),
    path('api/admissions/<int:admission_id>', admissions.admission_detail, name='admission_detail'),
    path('api/pathology/tests', pathology.test_catalogue, name='pathology_catalogue'),
    path('api/pathology', pathology.pathology_orders, name='pathology_orders'),
    path('api/pathology/<int:test_id>', pathology.pathology_order_detail, name='pathology_order_detail'),
    path('api/infertility', infertility.infertility_records, name='infertility_records'),
    path('api/infertility/<int:record_id>', infertility.infertility_record_detail, name='infertility_record_detail'),
    # Medicine inventory
    path('api/medicine-inventory/stats', inventory.inventory_stats, name='inventory_stats'),
    path('api/medicine-inventory/groups', inventory.medicine_groups, name='medicine_groups'),
    path('api/medicine-inventory/companies', inventory.medicine_companies, name='medicine_companies'),
    path('api/medicine-inventory/medicines', inventory.medicines, name='medicines'),
    path('api/medicine-inventory/medicines/<int:medicine_id>/next-batch', inventory.medicine_next_batch,
         name='medicine_next_batch'),
    path('api/medicine-inventory/purchases', inventory.purchases, name='medicine_purchases'),
    path('api/medicine-inventory/sales', inventory.sales, name='medicine_sales'),
    # Administration
    path('api/admin/users', users.admin_users, name='admin_users'),
    path('api/admin/users/<int:user_id>', users.admin_user_detail, name='admin_user_detail'),
    path('api/admin/users/<int:user_id>/archive', users.admin_user_archive, name='admin_user_archive'),
    path('api/admin/users/<int:user_id>/reset-password', users.admin_user_reset_password,
         name='admin_user_reset_password'),
    path('api/admin/staff', users.admin_staff, name='admin_staff'),
    path('api/admin/shifts', shifts.admin_shifts, name='admin_shifts'),
    path('api/admin/hospital-config', config.hospital_config, name='hospital_config'),
    path('api/admin/activity-logs', activity_logs.activity_logs, name='activity_logs'),
    path('api/admin/activity-logs/summary', activity_logs.activity_log_summary, name='activity_log_summary'),
    path('api/admin/activity-logs/actions', activity_logs.activity_log_actions, name='activity_log_actions'),
    path('api/admin/activity-logs/users', activity_logs.activity_log_users, name='activity_log_users'),
    path('api/admin/activity-logs/<int:log_id>', activity_logs.activity_log_detail, name='activity_log_detail'),
]
