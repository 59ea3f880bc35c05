"""
Front page figures: bed occupancy, today's activity and the caller's drawer.
"""
from __future__ import annotations

from datetime import datetime

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Q
from django.utils import timezone

from hms.models import Admission, PathologyTest, Staff
from hms.services.billing import as_float
from hms.services.cash import get_active_shift
from hms.services.periods import local_day_range

STATS_CACHE_KEY = 'dashboard:stats'
STATS_TTL = 60
# keeps pathology rows from colliding with admission ids in the merged list
PATHOLOGY_ID_OFFSET = 20000

_ACTIVE = (Admission.STATUS_ADMITTED, Admission.STATUS_UNDER_TREATMENT, Admission.STATUS_AWAITING_DISCHARGE)


def compute_stats(now: datetime | None = None) -> dict:
    today_start, today_end = local_day_range(timezone.localdate(now or timezone.now()))
    today = Q(date_admitted__gte=today_start, date_admitted__lt=today_end)
    discharged_today = Q(date_discharged__gte=today_start, date_discharged__lt=today_end)
    adm = Admission.objects.aggregate(
        active=Count('id', filter=Q(status__in=_ACTIVE)),
        admitted_today=Count('id', filter=today),
        discharged_today=Count('id', filter=Q(status=Admission.STATUS_DISCHARGED) & discharged_today),
        discharged=Count('id', filter=Q(status=Admission.STATUS_DISCHARGED)),
    )
    path = PathologyTest.objects.aggregate(
        completed=Count('id', filter=Q(is_completed=True)),
        completed_today=Count('id', filter=Q(is_completed=True, report_date__gte=today_start,
                                             report_date__lt=today_end)),
        ordered_today=Count('id', filter=Q(test_date__gte=today_start, test_date__lt=today_end)),
    )
    capacity = settings.TOTAL_BED_CAPACITY
    occupancy = min(100, round(adm['active'] * 100 / capacity)) if capacity else 0
    return {
        'activeAdmissions': adm['active'],
        'admittedToday': adm['admitted_today'],
        'dischargedToday': adm['discharged_today'],
        'totalDischarged': adm['discharged'],
        'bedCapacity': capacity,
        'occupancyRate': occupancy,
        'pathologyOrderedToday': path['ordered_today'],
        'pathologyCompletedToday': path['completed_today'],
        'pathologyCompleted': path['completed'],
    }


def cached_stats() -> dict:
    stats = cache.get(STATS_CACHE_KEY)
    if stats is None:
        stats = compute_stats()
        cache.set(STATS_CACHE_KEY, stats, STATS_TTL)
    return stats


def refresh_stats() -> dict:
    stats = compute_stats()
    cache.set(STATS_CACHE_KEY, stats, STATS_TTL)
    return stats


def recent_patients(limit: int = 5) -> list[dict]:
    rows = []
    for a in Admission.objects.select_related('patient', 'department').order_by('-date_admitted', '-id')[:limit]:
        rows.append({
            'id': a.id,
            'type': 'Admission',
            'number': a.admission_number,
            'patientId': a.patient_id,
            'patientName': a.patient.full_name,
            'department': a.department.name,
            'status': a.status,
            'date': a.date_admitted,
        })
    for t in PathologyTest.objects.select_related('patient').order_by('-test_date', '-id')[:limit]:
        rows.append({
            'id': t.id + PATHOLOGY_ID_OFFSET,
            'type': 'Pathology',
            'number': t.test_number,
            'patientId': t.patient_id,
            'patientName': t.patient.full_name,
            'department': 'Pathology',
            'status': 'Completed' if t.is_completed else 'Pending',
            'date': t.test_date,
        })
    rows.sort(key=lambda r: r['date'], reverse=True)
    return [{**r, 'date': r['date'].isoformat()} for r in rows[:limit]]


def cash_session(staff: Staff | None) -> dict | None:
    shift = get_active_shift(staff)
    if shift is None:
        return None
    current = shift.opening_cash + shift.total_collected - shift.total_refunded
    return {
        'shiftId': shift.id,
        'startTime': shift.start_time.isoformat(),
        'openingCash': as_float(shift.opening_cash),
        'currentCash': as_float(current),
        'systemCash': as_float(shift.system_cash),
        'totalCollected': as_float(shift.total_collected),
        'totalRefunded': as_float(shift.total_refunded),
        'paymentCount': shift.payments.count(),
        'variance': as_float(shift.variance),
    }


def dashboard(*, staff: Staff | None, recent_limit: int = 5) -> dict:
    return {
        'stats': cached_stats(),
        'recentPatients': recent_patients(recent_limit),
        'cashSession': cash_session(staff),
    }
