"""
Medicine inventory endpoints for the pharmacy counter.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.models import Medicine, MedicinePurchase, MedicineSale
from hms.permissions import CanUseInventory
from hms.serializers.inventory import (
    CompanyCreateSerializer, CompanyQuerySerializer, GroupCreateSerializer, MedicineCreateSerializer,
    MedicineQuerySerializer, PurchaseCreateSerializer, PurchaseQuerySerializer, SaleCreateSerializer,
    SaleQuerySerializer, StatsQuerySerializer,
)
from hms.services import inventory as inventory_service
from hms.views.common import body, get_or_404, query


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseInventory])
def inventory_stats(request):
    q = query(StatsQuerySerializer, request)
    return Response({'ok': True, 'data': inventory_service.inventory_stats(**q)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseInventory])
def medicine_groups(request):
    if request.method == 'GET':
        active_only = request.query_params.get('activeOnly') != 'false'
        return Response({'ok': True, 'data': inventory_service.list_groups(active_only=active_only)})
    group = inventory_service.create_group(name=body(GroupCreateSerializer, request)['name'],
                                           user=request.user, request=request)
    return Response({'ok': True, 'data': inventory_service.serialize_group(group)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseInventory])
def medicine_companies(request):
    if request.method == 'GET':
        rows = inventory_service.list_companies(**query(CompanyQuerySerializer, request))
        return Response({'ok': True, 'data': rows})
    company = inventory_service.create_company(data=body(CompanyCreateSerializer, request), user=request.user,
                                               request=request)
    return Response({'ok': True, 'data': inventory_service.serialize_company(company)},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseInventory])
def medicines(request):
    if request.method == 'GET':
        rows, pagination = inventory_service.list_medicines(**query(MedicineQuerySerializer, request))
        return Response({'ok': True, 'data': rows, 'pagination': pagination})
    medicine = inventory_service.create_medicine(data=body(MedicineCreateSerializer, request), user=request.user,
                                                 request=request)
    medicine = Medicine.objects.select_related('group').get(pk=medicine.pk)
    return Response({'ok': True, 'data': inventory_service.serialize_medicine(medicine)},
                    status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseInventory])
def medicine_next_batch(request, medicine_id: int):
    medicine = get_or_404(Medicine.objects.all(), medicine_id, 'Medicine')
    return Response({'ok': True, 'data': inventory_service.next_batch(medicine)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseInventory])
def purchases(request):
    if request.method == 'GET':
        rows, pagination = inventory_service.list_purchases(**query(PurchaseQuerySerializer, request))
        return Response({'ok': True, 'data': rows, 'pagination': pagination})
    purchase = inventory_service.create_purchase(data=body(PurchaseCreateSerializer, request), user=request.user,
                                                 request=request)
    purchase = MedicinePurchase.objects.select_related('company', 'medicine__group').get(pk=purchase.pk)
    return Response({'ok': True, 'data': inventory_service.serialize_purchase(purchase)},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseInventory])
def sales(request):
    if request.method == 'GET':
        rows, pagination = inventory_service.list_sales(**query(SaleQuerySerializer, request))
        return Response({'ok': True, 'data': rows, 'pagination': pagination})
    sale = inventory_service.create_sale(data=body(SaleCreateSerializer, request), user=request.user,
                                         request=request)
    sale = MedicineSale.objects.select_related('patient', 'medicine__group', 'purchase__company').get(pk=sale.pk)
    return Response({'ok': True, 'data': inventory_service.serialize_sale(sale)}, status=status.HTTP_201_CREATED)
