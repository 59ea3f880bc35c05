"""
System roles and the module access matrix.

Roles are stored as plain strings on ``User.role``.  Older accounts may
still carry free-form spellings (``SysAdmin``, ``Pharmacist``...);
``normalize_role`` folds those onto the canonical values before any
access decision is made.
"""
from __future__ import annotations

import re

SYSTEM_ADMIN = 'system-admin'
ADMIN = 'admin'
RECEPTIONIST = 'receptionist'
RECEPTIONIST_INFERTILITY = 'receptionist-infertility'
PHARMACIST = 'medicine-pharmacist'
STAFF = 'staff'

SYSTEM_ROLES = (SYSTEM_ADMIN, ADMIN, RECEPTIONIST, RECEPTIONIST_INFERTILITY, PHARMACIST, STAFF)

ADMIN_ROLES = {SYSTEM_ADMIN, ADMIN}
RECEPTIONIST_ROLES = {RECEPTIONIST, RECEPTIONIST_INFERTILITY}

# spellings compared with case, spaces, underscores and hyphens removed
_ALIASES = {
    'systemadmin': SYSTEM_ADMIN,
    'sysadmin': SYSTEM_ADMIN,
    'superadmin': SYSTEM_ADMIN,
    'admin': ADMIN,
    'administrator': ADMIN,
    'receptionist': RECEPTIONIST,
    'receptionistinfertility': RECEPTIONIST_INFERTILITY,
    'infertilityreceptionist': RECEPTIONIST_INFERTILITY,
    'medicinepharmacist': PHARMACIST,
    'pharmacist': PHARMACIST,
    'staff': STAFF,
    'employee': STAFF,
}

_DISPLAY = {
    SYSTEM_ADMIN: 'System Administrator',
    ADMIN: 'Administrator',
    RECEPTIONIST: 'Receptionist',
    RECEPTIONIST_INFERTILITY: 'Receptionist (Infertility)',
    PHARMACIST: 'Medicine Pharmacist',
    STAFF: 'Staff',
}

# module -> roles allowed to use it
MODULE_ACCESS = {
    'dashboard': set(SYSTEM_ROLES),
    'shifts': set(SYSTEM_ROLES),
    'admissions': ADMIN_ROLES | RECEPTIONIST_ROLES | {STAFF},
    'pathology': ADMIN_ROLES | RECEPTIONIST_ROLES | {STAFF},
    'hospitals': ADMIN_ROLES | RECEPTIONIST_ROLES | {STAFF},
    'patients': ADMIN_ROLES | RECEPTIONIST_ROLES | {PHARMACIST, STAFF},
    'inventory': ADMIN_ROLES | {PHARMACIST, STAFF},
    'infertility': ADMIN_ROLES | {RECEPTIONIST_INFERTILITY, STAFF},
    'patient-records': set(ADMIN_ROLES),
    'user-management': set(ADMIN_ROLES),
    'activity-logs': set(ADMIN_ROLES),
    'cash-tracking': set(ADMIN_ROLES),
}


def normalize_role(role: str | None) -> str:
    if not role:
        return ''
    value = role.strip()
    return _ALIASES.get(re.sub(r'[\s_-]', '', value.lower()), value)


def is_admin_role(role: str | None) -> bool:
    return normalize_role(role) in ADMIN_ROLES


def is_system_admin_role(role: str | None) -> bool:
    return normalize_role(role) == SYSTEM_ADMIN


def is_receptionist_role(role: str | None) -> bool:
    return normalize_role(role) in RECEPTIONIST_ROLES


def role_display_name(role: str | None) -> str:
    normalized = normalize_role(role)
    return _DISPLAY.get(normalized, normalized or 'Unknown')


def can_access(role: str | None, module: str) -> bool:
    return normalize_role(role) in MODULE_ACCESS.get(module, set())
