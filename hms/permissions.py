"""
Custom permission classes for role based access control.
"""
from rest_framework.permissions import BasePermission

from .roles import can_access, is_admin_role, is_system_admin_role


def _role(request):
    user = getattr(request, 'user', None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, 'role', None)


class IsAdminRole(BasePermission):
    """Allow access only to system administrators and administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return is_admin_role(_role(request))


class IsSystemAdmin(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return is_system_admin_role(_role(request))


class ModulePermission(BasePermission):
    """Base for module gates; subclasses set ``module``."""
    module = ''
    message = 'You do not have access to this module.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return can_access(_role(request), self.module)


class CanUseFrontDesk(ModulePermission):
    """Admissions, pathology, patient lookups, hospitals and staff lists."""
    module = 'admissions'


class CanUseInfertility(ModulePermission):
    module = 'infertility'


class CanUseDashboard(ModulePermission):
    module = 'dashboard'


class CanUseShifts(ModulePermission):
    """Own cash drawer: open/close shifts and view session cash."""
    module = 'shifts'


class CanLookUpPatients(ModulePermission):
    """Patient search; the pharmacy counter needs it to record sales."""
    module = 'patients'


class CanUseInventory(ModulePermission):
    module = 'inventory'
