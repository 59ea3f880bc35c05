"""
Patient lookup and the consolidated patient record.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from hms.exceptions import error_response
from hms.models import Patient
from hms.permissions import CanLookUpPatients, CanUseFrontDesk
from hms.roles import is_admin_role
from hms.serializers.patients import PatientListQuerySerializer, PatientRecordUpdateSerializer
from hms.services import patients as patient_service
from hms.views.common import body, get_or_404, query


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanLookUpPatients])
def list_patients(request):
    rows, pagination = patient_service.list_patients(**query(PatientListQuerySerializer, request))
    return Response({'ok': True, 'data': rows, 'pagination': pagination})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, CanUseFrontDesk])
def patient_record(request, patient_id: int):
    patient = get_or_404(Patient.objects.select_related('hospital'), patient_id, 'Patient')
    if request.method == 'PATCH':
        if not is_admin_role(request.user.role):
            return error_response('Only administrators can edit patient records', 'permission_denied', 403)
        data = body(PatientRecordUpdateSerializer, request, partial=True)
        patient = patient_service.update_patient_record(patient, data=data, user=request.user, request=request)
    return Response({'ok': True, 'data': patient_service.patient_record(patient)})
