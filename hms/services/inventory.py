"""
Medicine inventory: groups, supplier companies, medicines, purchases and
sales.

Every purchase is a batch with its own ``remaining_qty``.  A sale always
draws from the oldest batch that still has stock, takes that batch's unit
price, and must fit inside it.  ``Medicine.current_stock`` is the sum of
the remaining quantities and is only moved with ``F()`` updates under a
row lock.
"""
from __future__ import annotations

import logging
from datetime import date, datetime

from django.db import transaction
from django.db.models import Count, F, OuterRef, Q, Subquery, Sum
from django.utils import timezone

from hms.exceptions import Conflict, InvalidOperation, RecordNotFound
from hms.models import Medicine, MedicineCompany, MedicineGroup, MedicinePurchase, MedicineSale, Patient, ZERO
from hms.services import activity
from hms.services.billing import as_float, money
from hms.services.periods import local_day_range

logger = logging.getLogger(__name__)

MAX_LIMIT = 20
LOW_STOCK_ALERTS = 10


def _page(qs, page: int, limit: int, serialize) -> tuple[list[dict], dict]:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_LIMIT)
    total = qs.count()
    start = (page - 1) * limit
    rows = [serialize(obj) for obj in qs[start:start + limit]]
    return rows, {'total': total, 'page': page, 'limit': limit, 'totalPages': (total + limit - 1) // limit}


def _iso(value) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------
def serialize_group(g: MedicineGroup) -> dict:
    row = {'id': g.id, 'name': g.name, 'isActive': g.is_active, 'createdAt': _iso(g.created_at)}
    if hasattr(g, 'medicine_count'):
        row['medicineCount'] = g.medicine_count
    return row


def serialize_company(c: MedicineCompany) -> dict:
    row = {
        'id': c.id,
        'name': c.name,
        'address': c.address,
        'phoneNumber': c.phone_number,
        'isActive': c.is_active,
        'createdAt': _iso(c.created_at),
    }
    if hasattr(c, 'purchase_count'):
        row['purchaseCount'] = c.purchase_count
    return row


def serialize_medicine(m: Medicine) -> dict:
    return {
        'id': m.id,
        'genericName': m.generic_name,
        'brandName': m.brand_name,
        'strength': m.strength,
        'dosageForm': m.dosage_form,
        'currentStock': m.current_stock,
        'lowStockThreshold': m.low_stock_threshold,
        'isLowStock': m.is_low_stock,
        'isActive': m.is_active,
        'groupId': m.group_id,
        'groupName': m.group.name,
        'createdAt': _iso(m.created_at),
    }


def _medicine_ref(m: Medicine) -> dict:
    return {'id': m.id, 'genericName': m.generic_name, 'brandName': m.brand_name,
            'group': {'id': m.group_id, 'name': m.group.name}}


def serialize_purchase(p: MedicinePurchase) -> dict:
    return {
        'id': p.id,
        'invoiceNumber': p.invoice_number,
        'quantity': p.quantity,
        'unitPrice': as_float(p.unit_price),
        'totalAmount': as_float(p.total_amount),
        'purchaseDate': _iso(p.purchase_date),
        'expiryDate': _iso(p.expiry_date),
        'batchNumber': p.batch_number,
        'remainingQty': p.remaining_qty,
        'company': {'id': p.company_id, 'name': p.company.name},
        'medicine': _medicine_ref(p.medicine),
        'createdAt': _iso(p.created_at),
    }


def serialize_sale(s: MedicineSale) -> dict:
    return {
        'id': s.id,
        'quantity': s.quantity,
        'unitPrice': as_float(s.unit_price),
        'totalAmount': as_float(s.total_amount),
        'saleDate': _iso(s.sale_date),
        'patient': {'id': s.patient_id, 'fullName': s.patient.full_name, 'phoneNumber': s.patient.phone_number},
        'medicine': _medicine_ref(s.medicine),
        'purchase': {
            'id': s.purchase_id,
            'invoiceNumber': s.purchase.invoice_number,
            'batchNumber': s.purchase.batch_number,
            'company': {'id': s.purchase.company_id, 'name': s.purchase.company.name},
        },
        'createdAt': _iso(s.created_at),
    }


# ---------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------
def inventory_stats(*, start_date: date | None = None, end_date: date | None = None) -> dict:
    """Counts for the inventory landing page; the period defaults to today."""
    today = timezone.localdate()
    range_start, range_end = local_day_range(start_date or end_date or today, end_date or start_date or today)
    sales = MedicineSale.objects.filter(sale_date__gte=range_start, sale_date__lt=range_end).aggregate(
        total=Sum('total_amount'), count=Count('id'))
    purchases = MedicinePurchase.objects.filter(
        purchase_date__gte=range_start, purchase_date__lt=range_end).aggregate(
        total=Sum('total_amount'), count=Count('id'))

    active = Medicine.objects.filter(is_active=True)
    low = list(active.filter(current_stock__lte=F('low_stock_threshold'))
               .select_related('group').order_by('current_stock', 'generic_name'))
    latest_price = (MedicinePurchase.objects.filter(medicine=OuterRef('pk'))
                    .order_by('-purchase_date', '-id').values('unit_price')[:1])
    stock_value = ZERO
    for stock, price in active.annotate(price=Subquery(latest_price)).values_list('current_stock', 'price'):
        if price is not None:
            stock_value += price * stock
    return {
        'stats': {
            'totalMedicines': active.count(),
            'lowStockCount': len(low),
            'todaysSalesAmount': as_float(sales['total'] or ZERO),
            'todaysSalesCount': sales['count'],
            'todaysPurchasesAmount': as_float(purchases['total'] or ZERO),
            'todaysPurchasesCount': purchases['count'],
            'totalStockValue': as_float(money(stock_value)),
        },
        'lowStockItems': [
            {'id': m.id, 'genericName': m.generic_name, 'brandName': m.brand_name,
             'currentStock': m.current_stock, 'lowStockThreshold': m.low_stock_threshold,
             'groupName': m.group.name}
            for m in low[:LOW_STOCK_ALERTS]
        ],
    }


# ---------------------------------------------------------------------
# Groups & companies
# ---------------------------------------------------------------------
def list_groups(*, active_only: bool = True) -> list[dict]:
    qs = MedicineGroup.objects.annotate(medicine_count=Count('medicines'))
    if active_only:
        qs = qs.filter(is_active=True)
    return [serialize_group(g) for g in qs.order_by('name')]


def create_group(*, name: str, user, request=None) -> MedicineGroup:
    name = name.strip()
    if MedicineGroup.objects.filter(name__iexact=name).exists():
        raise Conflict('A group with this name already exists')
    group = MedicineGroup.objects.create(name=name)
    activity.log_action(user=user, action=activity.CREATE, entity_type='MedicineGroup', entity_id=group.id,
                        description=f'Created medicine group {name}', request=request)
    return group


def list_companies(*, active_only: bool = True, search: str | None = None) -> list[dict]:
    qs = MedicineCompany.objects.annotate(purchase_count=Count('purchases'))
    if active_only:
        qs = qs.filter(is_active=True)
    if search:
        qs = qs.filter(name__icontains=search)
    return [serialize_company(c) for c in qs.order_by('name')]


def create_company(*, data: dict, user, request=None) -> MedicineCompany:
    name = data['name'].strip()
    if MedicineCompany.objects.filter(name__iexact=name).exists():
        raise Conflict('A company with this name already exists')
    company = MedicineCompany.objects.create(
        name=name, address=data.get('address') or '', phone_number=data.get('phone_number') or '')
    activity.log_action(user=user, action=activity.CREATE, entity_type='MedicineCompany', entity_id=company.id,
                        description=f'Created medicine company {name}', request=request)
    return company


# ---------------------------------------------------------------------
# Medicines
# ---------------------------------------------------------------------
def list_medicines(*, search: str | None = None, group_id: int | None = None, low_stock_only: bool = False,
                   active_only: bool = True, page: int = 1, limit: int = MAX_LIMIT) -> tuple[list[dict], dict]:
    qs = Medicine.objects.select_related('group')
    if active_only:
        qs = qs.filter(is_active=True)
    if search:
        qs = qs.filter(Q(generic_name__icontains=search) | Q(brand_name__icontains=search))
    if group_id:
        qs = qs.filter(group_id=group_id)
    if low_stock_only:
        qs = qs.filter(current_stock__lte=F('low_stock_threshold'))
    return _page(qs.order_by('generic_name', 'id'), page, limit, serialize_medicine)


def create_medicine(*, data: dict, user, request=None) -> Medicine:
    group = MedicineGroup.objects.filter(pk=data['group_id']).first()
    if group is None:
        raise InvalidOperation('Invalid group ID')
    generic_name = data['generic_name'].strip()
    if Medicine.objects.filter(generic_name__iexact=generic_name, group=group).exists():
        raise Conflict('A medicine with this name already exists in this group')
    medicine = Medicine.objects.create(
        generic_name=generic_name,
        brand_name=data.get('brand_name') or '',
        group=group,
        strength=data.get('strength') or '',
        dosage_form=data.get('dosage_form') or '',
        low_stock_threshold=data.get('low_stock_threshold', 10),
    )
    activity.log_action(user=user, action=activity.CREATE, entity_type='Medicine', entity_id=medicine.id,
                        description=f'Added medicine {medicine}', request=request)
    return medicine


def oldest_batch(medicine_id: int, *, lock: bool = False) -> MedicinePurchase | None:
    """Oldest purchase of the medicine that still has units left."""
    qs = MedicinePurchase.objects.filter(medicine_id=medicine_id, remaining_qty__gt=0)
    if lock:
        qs = qs.select_for_update()
    return qs.select_related('company').order_by('purchase_date', 'id').first()


# ---------------------------------------------------------------------
# Purchases
# ---------------------------------------------------------------------
def _date_window(qs, field: str, start_date: date | None, end_date: date | None):
    if start_date or end_date:
        range_start, range_end = local_day_range(start_date or end_date, end_date or start_date)
        qs = qs.filter(**{f'{field}__gte': range_start, f'{field}__lt': range_end})
    return qs


def list_purchases(*, search: str | None = None, company_id: int | None = None, medicine_id: int | None = None,
                   start_date: date | None = None, end_date: date | None = None,
                   page: int = 1, limit: int = MAX_LIMIT) -> tuple[list[dict], dict]:
    qs = MedicinePurchase.objects.select_related('company', 'medicine__group')
    if search:
        qs = qs.filter(Q(invoice_number__icontains=search) | Q(medicine__generic_name__icontains=search)
                       | Q(company__name__icontains=search))
    if company_id:
        qs = qs.filter(company_id=company_id)
    if medicine_id:
        qs = qs.filter(medicine_id=medicine_id)
    qs = _date_window(qs, 'purchase_date', start_date, end_date)
    return _page(qs.order_by('-purchase_date', '-id'), page, limit, serialize_purchase)


def create_purchase(*, data: dict, user, request=None) -> MedicinePurchase:
    staff = getattr(user, 'staff', None)
    now = timezone.now()
    purchase_date: datetime = data.get('purchase_date') or now
    if purchase_date > now:
        raise InvalidOperation('Purchase date cannot be in the future')
    expiry = data.get('expiry_date')
    if expiry and expiry < timezone.localtime(purchase_date).date():
        raise InvalidOperation('Expiry date cannot be earlier than purchase date')
    quantity = data['quantity']
    unit_price = money(data['unit_price'])

    with transaction.atomic():
        company = MedicineCompany.objects.filter(pk=data['company_id'], is_active=True).first()
        if company is None:
            raise InvalidOperation('Invalid or inactive company')
        medicine = Medicine.objects.select_for_update().filter(pk=data['medicine_id'], is_active=True).first()
        if medicine is None:
            raise InvalidOperation('Invalid or inactive medicine')
        purchase = MedicinePurchase.objects.create(
            invoice_number=data['invoice_number'].strip(),
            company=company,
            medicine=medicine,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=money(unit_price * quantity),
            purchase_date=purchase_date,
            expiry_date=expiry,
            batch_number=data.get('batch_number') or '',
            remaining_qty=quantity,
            created_by=staff,
        )
        Medicine.objects.filter(pk=medicine.pk).update(current_stock=F('current_stock') + quantity)
        activity.log_action(
            user=user, action=activity.CREATE, entity_type='MedicinePurchase', entity_id=purchase.id,
            description=(f'Purchased {quantity} units of {medicine.generic_name} from {company.name}. '
                         f'Invoice: {purchase.invoice_number}'),
            request=request,
        )
    logger.info('purchase %s: %s x%s from company %s', purchase.id, medicine.id, quantity, company.id)
    return purchase


# ---------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------
def list_sales(*, search: str | None = None, patient_id: int | None = None, medicine_id: int | None = None,
               start_date: date | None = None, end_date: date | None = None,
               page: int = 1, limit: int = MAX_LIMIT) -> tuple[list[dict], dict]:
    qs = MedicineSale.objects.select_related('patient', 'medicine__group', 'purchase__company')
    if search:
        qs = qs.filter(Q(medicine__generic_name__icontains=search) | Q(patient__full_name__icontains=search))
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if medicine_id:
        qs = qs.filter(medicine_id=medicine_id)
    qs = _date_window(qs, 'sale_date', start_date, end_date)
    return _page(qs.order_by('-sale_date', '-id'), page, limit, serialize_sale)


def create_sale(*, data: dict, user, request=None) -> MedicineSale:
    staff = getattr(user, 'staff', None)
    now = timezone.now()
    sale_date: datetime = data.get('sale_date') or now
    if sale_date > now:
        raise InvalidOperation('Sale date cannot be in the future')
    quantity = data['quantity']

    with transaction.atomic():
        patient = Patient.objects.filter(pk=data['patient_id']).first()
        if patient is None:
            raise RecordNotFound('Patient not found')
        medicine = Medicine.objects.select_for_update().filter(pk=data['medicine_id'], is_active=True).first()
        if medicine is None:
            raise InvalidOperation('Invalid or inactive medicine')
        if medicine.current_stock < quantity:
            raise InvalidOperation(
                f'Insufficient stock. Available: {medicine.current_stock}, Requested: {quantity}')
        first = (MedicinePurchase.objects.filter(medicine=medicine)
                 .order_by('purchase_date').values_list('purchase_date', flat=True).first())
        if first is None:
            raise InvalidOperation('No stock purchase history found for this medicine')
        if sale_date < first:
            raise InvalidOperation('Sale date cannot be before first stock purchase date')
        batch = oldest_batch(medicine.pk, lock=True)
        if batch is None:
            raise InvalidOperation('No stock available from purchases')
        if batch.remaining_qty < quantity:
            raise InvalidOperation(
                f'Insufficient batch stock. This batch has {batch.remaining_qty} units. '
                f'Consider splitting the sale.')
        sale = MedicineSale.objects.create(
            patient=patient,
            medicine=medicine,
            purchase=batch,
            quantity=quantity,
            unit_price=batch.unit_price,
            total_amount=money(batch.unit_price * quantity),
            sale_date=sale_date,
            created_by=staff,
        )
        MedicinePurchase.objects.filter(pk=batch.pk).update(remaining_qty=F('remaining_qty') - quantity)
        Medicine.objects.filter(pk=medicine.pk).update(current_stock=F('current_stock') - quantity)
        activity.log_action(
            user=user, action=activity.CREATE, entity_type='MedicineSale', entity_id=sale.id,
            description=(f'Sold {quantity} units of {medicine.generic_name} to {patient.full_name}. '
                         f'Amount: BDT {sale.total_amount}'),
            request=request,
        )
    logger.info('sale %s: %s x%s from batch %s', sale.id, medicine.id, quantity, batch.id)
    return sale


def next_batch(medicine: Medicine) -> dict | None:
    batch = oldest_batch(medicine.pk)
    if batch is None:
        return None
    return {
        'id': batch.id,
        'remainingQty': batch.remaining_qty,
        'unitPrice': as_float(batch.unit_price),
        'batchNumber': batch.batch_number,
        'company': {'id': batch.company_id, 'name': batch.company.name},
    }
