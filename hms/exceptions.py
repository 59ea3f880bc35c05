"""
Domain errors and the unified API exception handler.

Every error leaving the API has the shape
``{'ok': False, 'error': {'code': ..., 'message': ...}}``.  Services raise
:class:`DomainError` subclasses; DRF's own exceptions keep their status
codes and anything else becomes a logged 500.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'invalid'

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class RecordNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = 'conflict'


class InvalidOperation(DomainError):
    code = 'invalid_operation'


def error_response(message, code: str = 'api_error', status_code: int = 400) -> Response:
    return Response({'ok': False, 'error': {'code': code, 'message': message}}, status=status_code)


def api_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        return error_response(exc.message, exc.code, exc.status_code)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        request = context.get('request')
        logger.error('unhandled API error on %s', getattr(request, 'path', '?'), exc_info=exc)
        return error_response('Internal server error', 'server_error', 500)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', None) or 'api_error'
    if code == 'invalid':
        code = 'validation_error'
    return error_response(detail, code, resp.status_code)
