import bleach
from rest_framework import serializers


def clean_text(value: str | None) -> str:
    return bleach.clean((value or '').strip(), strip=True)


class CleanCharField(serializers.CharField):
    """CharField that strips markup from free text before it is stored."""

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_blank', True)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))


def money_field(**kwargs):
    kwargs.setdefault('required', False)
    kwargs.setdefault('allow_null', True)
    return serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, **kwargs)


class DateRangeQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True)
    startDate = serializers.DateField(required=False, source='start_date')
    endDate = serializers.DateField(required=False, source='end_date')


class PageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=200, default=20, source='page_size')
