import logging
import time
import uuid

logger = logging.getLogger('hms.requests')


class RequestLogMiddleware:
    """Tag every request with an ``X-Request-ID`` and log API calls with timing."""
    HEADER = 'HTTP_X_REQUEST_ID'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.META.get(self.HEADER) or uuid.uuid4().hex
        request.request_id = request_id
        started = time.monotonic()
        response = self.get_response(request)
        response['X-Request-ID'] = request_id
        path = request.path or ''
        if path.startswith('/api/'):
            elapsed_ms = int((time.monotonic() - started) * 1000)
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(level, '%s %s -> %s (%sms)', request.method, path, response.status_code, elapsed_ms,
                       extra={'request_id': request_id, 'status': response.status_code,
                              'duration_ms': elapsed_ms})
        return response
