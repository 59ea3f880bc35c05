from decimal import Decimal, InvalidOperation as DecimalError

from django.conf import settings

from hms.models import HospitalConfig

ADMISSION_FEE_KEY = 'ADMISSION_FEE'


def get_config(key: str, default: str | None = None) -> str | None:
    row = HospitalConfig.objects.filter(key=key).values_list('value', flat=True).first()
    return row if row is not None else default


def set_config(key: str, value, description: str = '') -> HospitalConfig:
    obj, _ = HospitalConfig.objects.update_or_create(
        key=key, defaults={'value': str(value), 'description': description}
    )
    return obj


def admission_fee() -> Decimal:
    raw = get_config(ADMISSION_FEE_KEY)
    try:
        fee = Decimal(str(raw)) if raw is not None else None
    except DecimalError:
        fee = None
    if fee is None or fee < 0:
        fee = Decimal(str(settings.ADMISSION_FEE_DEFAULT))
    return fee.quantize(Decimal('0.01'))
