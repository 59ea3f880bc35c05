"""
Reporting periods in clinic local time.

The clinic works on Bangladesh time (``settings.TIME_ZONE``, UTC+6); a
"day" in every report is a local calendar day, turned into an aware
``[start, end)`` interval before it reaches the ORM.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta

from django.utils import timezone

PRESETS = ('today', 'yesterday', 'lastWeek', 'thisMonth', 'lastMonth', 'custom')

_LABELS = {
    'today': 'Today',
    'yesterday': 'Yesterday',
    'lastWeek': 'Last Week',
    'thisMonth': 'This Month',
    'lastMonth': 'Last Month',
}


def local_day_start(d: date) -> datetime:
    return timezone.make_aware(datetime.combine(d, time.min), timezone.get_current_timezone())


def local_day_range(start: date, end: date | None = None) -> tuple[datetime, datetime]:
    """Aware ``[start 00:00, end+1 00:00)`` for inclusive local dates."""
    end = end or start
    return local_day_start(start), local_day_start(end + timedelta(days=1))


def _one_month_back(d: date) -> date:
    year, month = (d.year - 1, 12) if d.month == 1 else (d.year, d.month - 1)
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def date_range_for_preset(preset: str | None, start: date | None = None, end: date | None = None,
                          now: datetime | None = None) -> tuple[datetime, datetime, str]:
    """Resolve a dashboard preset to ``(start, end_exclusive, label)``.

    ``lastWeek`` covers the six days before today plus today and
    ``lastMonth`` runs from the same day of the previous month through
    today.  ``custom`` needs both dates; without them it behaves like
    ``today``.
    """
    today = timezone.localtime(now).date() if now else timezone.localdate()
    preset = preset or 'today'
    if preset == 'yesterday':
        day = today - timedelta(days=1)
        return (*local_day_range(day), _LABELS[preset])
    if preset == 'lastWeek':
        return (*local_day_range(today - timedelta(days=6), today), _LABELS[preset])
    if preset == 'thisMonth':
        return (*local_day_range(today.replace(day=1), today), _LABELS[preset])
    if preset == 'lastMonth':
        return (*local_day_range(_one_month_back(today), today), _LABELS[preset])
    if preset == 'custom' and start and end:
        if end < start:
            start, end = end, start
        label = f"{start.day}/{start.month}/{start.year} - {end.day}/{end.month}/{end.year}"
        return (*local_day_range(start, end), label)
    return (*local_day_range(today), _LABELS['today'])
