from __future__ import annotations

from hms.exceptions import InvalidOperation, RecordNotFound
from hms.models import Staff


def get_or_404(queryset, pk, label: str):
    obj = queryset.filter(pk=pk).first()
    if obj is None:
        raise RecordNotFound(f'{label} not found')
    return obj


def staff_of(request) -> Staff:
    staff = getattr(request.user, 'staff', None)
    if staff is None:
        raise InvalidOperation('No staff profile is linked to this account', 'no_staff_profile')
    return staff


def query(serializer_class, request) -> dict:
    s = serializer_class(data=request.query_params)
    s.is_valid(raise_exception=True)
    return dict(s.validated_data)


def body(serializer_class, request, *, partial: bool = False) -> dict:
    s = serializer_class(data=request.data, partial=partial)
    s.is_valid(raise_exception=True)
    return dict(s.validated_data)
