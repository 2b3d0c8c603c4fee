"""
Error kinds raised by the domain services.

Every kind is an ``APIException`` so the project exception handler can render
it in the response envelope with the matching status code. Field validation
uses DRF's own ``ValidationError``.
"""
from rest_framework import exceptions, status
from rest_framework.exceptions import ValidationError  # noqa: F401


class AuthError(exceptions.AuthenticationFailed):
    default_detail = 'Not authorized to access this route'
    default_code = 'not_authenticated'


class Forbidden(exceptions.PermissionDenied):
    default_detail = 'Not authorized to access this resource'
    default_code = 'forbidden'


class NotFound(exceptions.NotFound):
    default_detail = 'Resource not found'
    default_code = 'not_found'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource conflict'
    default_code = 'conflict'


class SlotTaken(Conflict):
    default_detail = 'This appointment slot is already booked'
    default_code = 'slot_taken'


class UpstreamFailure(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An upstream service failed'
    default_code = 'upstream_failure'


class BadRequest(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request'
    default_code = 'bad_request'
