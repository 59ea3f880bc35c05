"""
Pathology orders and the test catalogue.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.models import PathologyTest
from hms.permissions import CanUseFrontDesk
from hms.serializers.pathology import (
    CatalogueQuerySerializer, PathologyCreateSerializer, PathologyQuerySerializer, PathologyUpdateSerializer,
)
from hms.services import pathology as pathology_service
from hms.services import pathology_catalogue as catalogue
from hms.views.common import body, get_or_404, query

_QS = PathologyTest.objects.select_related('patient__hospital', 'ordered_by', 'done_by')


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def test_catalogue(request):
    q = query(CatalogueQuerySerializer, request)
    return Response({'ok': True, 'data': catalogue.search_tests(**q), 'categories': catalogue.CATEGORIES})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def pathology_orders(request):
    if request.method == 'GET':
        qs = pathology_service.list_tests(**query(PathologyQuerySerializer, request))
        return Response({'ok': True, 'data': [pathology_service.serialize_test(t) for t in qs]})
    test = pathology_service.create_test(data=body(PathologyCreateSerializer, request), user=request.user,
                                         request=request)
    return Response({'ok': True, 'data': pathology_service.serialize_test(_QS.get(pk=test.pk))},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def pathology_order_detail(request, test_id: int):
    test = get_or_404(_QS, test_id, 'Pathology test')
    if request.method == 'DELETE':
        pathology_service.delete_test(test, user=request.user, request=request)
        return Response({'ok': True})
    if request.method == 'PATCH':
        data = body(PathologyUpdateSerializer, request, partial=True)
        pathology_service.update_test(test, data=data, user=request.user, request=request)
        test = _QS.get(pk=test.pk)
    return Response({'ok': True, 'data': pathology_service.serialize_test(test)})
