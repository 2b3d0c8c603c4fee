import logging
from collections import namedtuple

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.tokens import RefreshToken

from hospitalportal.exceptions import AuthError
from .models import Role

logger = logging.getLogger(__name__)


class Caller(namedtuple('Caller', ['id', 'role', 'user'])):
    """
    The acting identity of a request. ``id`` is the Patient or Doctor profile id.
    """
    __slots__ = ()

    @property
    def is_patient(self):
        return self.role == Role.PATIENT

    @property
    def is_doctor(self):
        return self.role == Role.DOCTOR

    def is_patient_of(self, patient_id):
        return self.is_patient and str(self.id) == str(patient_id)

    def is_doctor_of(self, doctor_id):
        return self.is_doctor and str(self.id) == str(doctor_id)


class CookieJWTAuthentication(JWTAuthentication):
    """
    Accept the access token from the ``token`` cookie first, then from an
    ``Authorization: Bearer`` header.
    """

    def authenticate(self, request):
        raw_token = request.COOKIES.get(settings.JWT_COOKIE_NAME)
        if raw_token is None:
            header = self.get_header(request)
            if header is None:
                return None
            raw_token = self.get_raw_token(header)
            if raw_token is None:
                return None

        try:
            validated_token = self.get_validated_token(raw_token)
        except InvalidToken:
            raise AuthError()
        user = self.get_user(validated_token)
        return user, validated_token


def issue_token(user):
    """Sign an access token for ``user`` carrying its role claim."""
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    return str(refresh.access_token)


def set_token_cookie(response, token):
    response.set_cookie(
        settings.JWT_COOKIE_NAME,
        token,
        max_age=int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
        httponly=True,
        secure=settings.JWT_COOKIE_SECURE,
        samesite=settings.JWT_COOKIE_SAMESITE,
    )
    return response


def clear_token_cookie(response):
    response.delete_cookie(settings.JWT_COOKIE_NAME, samesite=settings.JWT_COOKIE_SAMESITE)
    return response


def resolve_caller(request):
    """
    Return the ``Caller`` behind an authenticated request: the id of its
    Patient or Doctor profile plus the role it acts as.
    """
    user = request.user
    if not user or not user.is_authenticated:
        raise AuthError()

    token = getattr(request, 'auth', None)
    role = (token.get('role') if token is not None else None) or user.role

    if role == Role.DOCTOR and hasattr(user, 'doctor'):
        return Caller(user.doctor.id, Role.DOCTOR, user)
    if role == Role.PATIENT and hasattr(user, 'patient'):
        return Caller(user.patient.id, Role.PATIENT, user)

    logger.info(f"Token for user {user.id} names role {role!r} without a matching profile")
    raise AuthError('Not authorized to access this route')
