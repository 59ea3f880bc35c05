"""
Human-facing registration numbers.

Admissions are numbered per department and year (``GYNE-25-00001``),
pathology orders and infertility cases per year (``PATH-25-00001``,
``INF-25-00001``).  Sequences restart every year.
"""
from __future__ import annotations

import re
from datetime import datetime

from django.utils import timezone

from hms.models import Admission, Department, InfertilityRecord, PathologyTest

DEPARTMENT_CODES = {
    'gynecology': 'GYNE',
    'surgery': 'SURG',
    'medicine': 'MED',
    'pediatrics': 'PED',
    'cardiology': 'CARD',
    'ent': 'ENT',
    'orthopedics': 'ORTH',
    'radiology': 'RAD',
    'psychology': 'PSY',
    'eye': 'EYE',
    'pathology': 'PATH',
    'anesthesia': 'ANES',
    'general': 'GEN',
}

# current and pre-migration formats; used to find numbers inside free text
REGISTRATION_RE = re.compile(
    r'\b(?:[A-Z]{2,5}-\d{2}-\d{5}|ADM-\d{8}-\d{4}|PATH-\d{6}-\d{4}|INF-\d{6})\b'
)


def department_code(department: Department | None) -> str:
    if department is None:
        return 'GEN'
    if department.code:
        return department.code.upper()
    return DEPARTMENT_CODES.get(department.name.strip().lower(), 'GEN')


def _next_in_series(model, field: str, prefix: str) -> str:
    last = (model.objects.filter(**{f'{field}__startswith': prefix})
            .order_by(f'-{field}').values_list(field, flat=True).first())
    seq = 1
    if last:
        tail = last[len(prefix):]
        if tail.isdigit():
            seq = int(tail) + 1
    return f"{prefix}{seq:05d}"


def _yy(when: datetime | None) -> str:
    return f"{timezone.localtime(when).year % 100:02d}" if when else f"{timezone.localdate().year % 100:02d}"


def next_admission_number(department: Department, when: datetime | None = None) -> str:
    return _next_in_series(Admission, 'admission_number', f"{department_code(department)}-{_yy(when)}-")


def next_pathology_number(when: datetime | None = None) -> str:
    return _next_in_series(PathologyTest, 'test_number', f"PATH-{_yy(when)}-")


def next_infertility_number(when: datetime | None = None) -> str:
    return _next_in_series(InfertilityRecord, 'registration_number', f"INF-{_yy(when)}-")


def find_registration_number(text: str | None) -> str | None:
    if not text:
        return None
    m = REGISTRATION_RE.search(text)
    return m.group(0) if m else None
