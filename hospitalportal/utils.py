import logging
from rest_framework.views import exception_handler
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated, ValidationError
from rest_framework.response import Response
from rest_framework import status

logger = logging.getLogger(__name__)

UUID_PATTERN = '[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}'


def envelope(data=None, message=None, **extra):
    """Build the success body shared by every endpoint."""
    body = {'success': True}
    if message:
        body['message'] = message
    body.update(extra)
    if data is not None:
        body['data'] = data
    return body


def flatten_errors(detail, prefix=''):
    """
    Turn DRF's nested validation detail into a flat list of
    ``{"field": ..., "message": ...}`` entries.
    """
    errors = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            field = f"{prefix}.{key}" if prefix else str(key)
            errors.extend(flatten_errors(value, field))
    elif isinstance(detail, list):
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                errors.extend(flatten_errors(value, f"{prefix}[{index}]" if prefix else str(index)))
            else:
                errors.append({'field': prefix or 'non_field_errors', 'message': str(value)})
    else:
        errors.append({'field': prefix or 'non_field_errors', 'message': str(detail)})
    return errors


def custom_exception_handler(exc, context):
    """
    Render every failure in the response envelope:
    ``{"success": false, "message": ..., "errors": [...]}``.
    """
    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)
    request = context.get('request')
    view = context.get('view')

    if response is None:
        logger.exception(
            f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
        )
        return Response(
            {'success': False, 'message': 'Server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(exc, ValidationError):
        response.data = {
            'success': False,
            'message': 'Validation failed',
            'errors': flatten_errors(exc.detail),
        }
        return response

    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        if request is not None:
            logger.info(f"Authentication error on {request.method} {request.path}: {exc}")

    detail = getattr(exc, 'detail', None)
    if isinstance(detail, dict):
        message = str(detail.get('detail', detail))
    elif isinstance(detail, list):
        message = '; '.join(str(item) for item in detail)
    else:
        message = str(detail) if detail is not None else str(exc)

    response.data = {'success': False, 'message': message}
    return response


def validate_complete(serializer_class, value, many=True):
    """
    Re-run ``serializer_class`` over nested data without ``partial``.

    ``partial=True`` on a root serializer relaxes required fields all the way
    down, so replacing a nested list on PATCH would otherwise store entries
    that are missing mandatory keys.
    """
    serializer = serializer_class(data=value, many=many)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data
