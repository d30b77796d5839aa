"""
Error types and the DRF exception handler that renders every failure as
{"success": false, "error": <code>, "message": <text>}
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(exceptions.APIException):
    """Business-rule violation raised by service functions"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'service_error'

    def __init__(self, message=None, error='service_error', status_code=None):
        self.message = message or self.default_detail
        self.error = error
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail=self.message, code=error)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message='Not found.'):
        super().__init__(message, error='not_found')


ERROR_CODES = {
    exceptions.ValidationError: 'validation_error',
    exceptions.NotAuthenticated: 'not_authenticated',
    exceptions.AuthenticationFailed: 'authentication_failed',
    exceptions.PermissionDenied: 'permission_denied',
    exceptions.NotFound: 'not_found',
    exceptions.MethodNotAllowed: 'method_not_allowed',
    exceptions.ParseError: 'parse_error',
}


def _error_code(exc):
    if isinstance(exc, ServiceError):
        return exc.error
    if isinstance(exc, Http404):
        return 'not_found'
    if isinstance(exc, DjangoPermissionDenied):
        return 'permission_denied'
    for exc_class, code in ERROR_CODES.items():
        if isinstance(exc, exc_class):
            return code
    return getattr(exc, 'default_code', 'error')


def _first_message(detail):
    """Pull a readable message out of a DRF error detail structure"""
    if isinstance(detail, dict):
        if 'detail' in detail:
            return str(detail['detail'])
        for field, value in detail.items():
            message = _first_message(value)
            if field == 'non_field_errors':
                return message
            return f"{field}: {message}"
        return 'Validation failed.'
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else 'Validation failed.'
    return str(detail)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if response is None:
        logger.exception(f"Unhandled error in {view_name}: {exc}")
        return Response(
            {'success': False, 'error': 'server_error', 'message': 'Internal server error.'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code = _error_code(exc)
    payload = {
        'success': False,
        'error': code,
        'message': _first_message(response.data),
    }
    if isinstance(exc, exceptions.ValidationError) and not isinstance(exc, ServiceError):
        payload['errors'] = response.data

    if response.status_code >= 500:
        logger.error(f"{view_name} failed with {response.status_code}: {payload['message']}")
    else:
        logger.warning(f"{view_name} rejected request ({response.status_code} {code}): {payload['message']}")

    response.data = payload
    return response
