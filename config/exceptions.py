"""
Global exception handler for consistent API error responses.
Follows DRF convention and returns uniform structure.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from rest_framework.exceptions import ValidationError
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.conf import settings

from core.exceptions import DomainError

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns:
    { "detail": str, "code": str, "errors": dict (validation only), ...domain fields }
    """
    if isinstance(exc, DomainError):
        if exc.status_code >= 500:
            logger.error('%s: %s', type(exc).__name__, exc.detail)
        return Response(exc.payload(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, ValidationError):
            response.data = {
                'detail': 'Validation failed',
                'code': 'validation_error',
                'errors': response.data,
            }
            return response
        data = response.data if isinstance(response.data, dict) else {'detail': str(response.data)}
        data.setdefault('detail', _get_detail(exc))
        data.setdefault('code', _get_code(exc))
        response.data = data
        return response

    if isinstance(exc, PermissionDenied):
        return Response(
            {'detail': str(exc) or 'Permission denied', 'code': 'permission_denied'},
            status=status.HTTP_403_FORBIDDEN
        )
    if isinstance(exc, DjangoValidationError):
        return Response(
            {'detail': ' '.join(exc.messages), 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception('Unhandled exception: %s', exc)
    error_detail = 'An internal error occurred.'
    if settings.DEBUG:
        error_detail = f'An internal error occurred: {str(exc)}'
    # Never expose stack traces to frontend
    return Response(
        {'detail': error_detail, 'code': 'internal_error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def _get_detail(exc):
    if hasattr(exc, 'detail'):
        d = exc.detail
        if isinstance(d, list):
            return d[0] if d else 'Error'
        if isinstance(d, dict):
            return d.get('detail', str(d))
        return str(d)
    return str(exc)


def _get_code(exc):
    """ErrorDetail code (e.g. subscription_inactive), falling back to a per-class name."""
    detail = getattr(exc, 'detail', None)
    code = getattr(detail, 'code', None)
    if code and code != getattr(exc, 'default_code', None):
        return code
    codes = {
        'AuthenticationFailed': 'invalid_credentials',
        'NotAuthenticated': 'not_authenticated',
        'NotFound': 'not_found',
        'PermissionDenied': 'permission_denied',
        'MethodNotAllowed': 'method_not_allowed',
    }
    return codes.get(type(exc).__name__, code or 'error')
