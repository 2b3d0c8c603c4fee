import logging
from rest_framework import status, permissions, viewsets
from rest_framework.views import APIView
from rest_framework.response import Response
from django.contrib.auth import authenticate
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from hospitalportal.exceptions import AuthError
from hospitalportal.utils import envelope, UUID_PATTERN
from .authentication import issue_token, set_token_cookie, clear_token_cookie
from .filters import PatientFilter
from .models import Role, Patient
from .permissions import IsPatientUser, IsDoctorUser
from .serializers import (
    PatientSerializer, PatientRegisterSerializer, PatientUpdateSerializer,
    LoginSerializer, PasswordChangeSerializer, ForgotPasswordSerializer, ResetPasswordSerializer
)
from .services import PasswordResetService
from doctors.serializers import DoctorSerializer, DoctorRegisterSerializer, DoctorUpdateSerializer

logger = logging.getLogger(__name__)

ACCOUNT_SERIALIZERS = {
    Role.PATIENT: {
        'register': PatientRegisterSerializer,
        'update': PatientUpdateSerializer,
        'profile': PatientSerializer,
    },
    Role.DOCTOR: {
        'register': DoctorRegisterSerializer,
        'update': DoctorUpdateSerializer,
        'profile': DoctorSerializer,
    },
}

ROLE_PERMISSIONS = {
    Role.PATIENT: IsPatientUser,
    Role.DOCTOR: IsDoctorUser,
}

token_response_schema = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    properties={
        'success': openapi.Schema(type=openapi.TYPE_BOOLEAN),
        'token': openapi.Schema(type=openapi.TYPE_STRING, description="JWT access token, also set as the token cookie"),
        'data': openapi.Schema(type=openapi.TYPE_OBJECT, description="Account profile"),
    }
)


class AccountAPIView(APIView):
    """
    Base for the identity endpoints. ``role`` is bound per URL through
    ``as_view(role=...)`` so one view class serves both account kinds.
    """
    role = None
    public = False

    def get_authenticators(self):
        # Public endpoints ignore a stale token cookie
        if self.public:
            return []
        return super().get_authenticators()

    def get_permissions(self):
        if self.public:
            return [permissions.AllowAny()]
        return [ROLE_PERMISSIONS[self.role]()]

    def get_serializer_class(self, kind):
        return ACCOUNT_SERIALIZERS[self.role][kind]

    def profile_data(self, user):
        return self.get_serializer_class('profile')(user.profile).data

    def token_response(self, user, message=None, status_code=status.HTTP_200_OK):
        token = issue_token(user)
        response = Response(
            envelope(self.profile_data(user), message=message, token=token),
            status=status_code
        )
        return set_token_cookie(response, token)


class RegisterAPIView(AccountAPIView):
    public = True

    def post(self, request):
        serializer = self.get_serializer_class('register')(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Registered {self.role} account {user.id}")
        return self.token_response(user, message='Registration successful', status_code=status.HTTP_201_CREATED)


class LoginAPIView(AccountAPIView):
    public = True

    @swagger_auto_schema(
        operation_description="Log in with email and password and obtain an access token",
        request_body=LoginSerializer,
        responses={200: openapi.Response("Success", token_response_schema), 401: "Invalid credentials"}
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request,
            username=serializer.validated_data['email'].lower(),
            password=serializer.validated_data['password']
        )
        # Inactive accounts are rejected by authenticate() itself
        if user is None or user.role != self.role:
            raise AuthError('Invalid credentials')

        logger.info(f"{self.role.capitalize()} {user.id} logged in")
        return self.token_response(user)


class LogoutAPIView(AccountAPIView):
    def post(self, request):
        response = Response(envelope(message='Logged out successfully'))
        return clear_token_cookie(response)


class MeAPIView(AccountAPIView):
    def get(self, request):
        return Response(envelope(self.profile_data(request.user)))


class UpdateDetailsAPIView(AccountAPIView):
    def put(self, request):
        serializer = self.get_serializer_class('update')(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(envelope(self.profile_data(user), message='Details updated'))


class UpdatePasswordAPIView(AccountAPIView):
    @swagger_auto_schema(request_body=PasswordChangeSerializer, responses={200: openapi.Response("Success", token_response_schema)})
    def put(self, request):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        if not user.check_password(serializer.validated_data['current_password']):
            raise AuthError('Password is incorrect')

        user.set_password(serializer.validated_data['new_password'])
        user.save()
        logger.info(f"Password changed for user {user.id}")
        return self.token_response(user, message='Password updated')


class ForgotPasswordAPIView(AccountAPIView):
    """
    Endpoint to initiate password reset process.
    """
    public = True

    @swagger_auto_schema(request_body=ForgotPasswordSerializer)
    def post(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        PasswordResetService.request_reset(self.role, serializer.validated_data['email'])

        # Always return success to prevent email enumeration
        return Response(envelope(
            message='If an account with this email exists, a password reset link has been sent.'
        ))


class ResetPasswordAPIView(AccountAPIView):
    """
    Endpoint to reset password using the token sent via email.
    """
    public = True

    @swagger_auto_schema(request_body=ResetPasswordSerializer, responses={200: openapi.Response("Success", token_response_schema)})
    def put(self, request, token):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = PasswordResetService.reset(self.role, token, serializer.validated_data['password'])
        return self.token_response(user, message='Password has been reset successfully')


class PatientViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Patient directory for doctors. Inactive accounts are hidden.
    """
    serializer_class = PatientSerializer
    permission_classes = [IsDoctorUser]
    filter_backends = [DjangoFilterBackend]
    filterset_class = PatientFilter
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        return (
            Patient.objects.select_related('user')
            .filter(user__is_active=True)
            .order_by('user__last_name', 'user__first_name')
        )

    @swagger_auto_schema(
        operation_description="List active patients (doctors only)",
        manual_parameters=[
            openapi.Parameter('name', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Filter by patient's first or last name"),
            openapi.Parameter('email', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Filter by exact email"),
        ]
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @swagger_auto_schema(operation_description="Get details of a specific patient (doctors only)")
    def retrieve(self, request, *args, **kwargs):
        return Response(envelope(self.get_serializer(self.get_object()).data))
