"""
URL configuration for the hospital portal project.
"""
from django.contrib import admin
from django.urls import path, include
from django.views.generic import RedirectView
from rest_framework import permissions
from rest_framework.routers import DefaultRouter
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

from users.models import Role
from users.views import (
    PatientViewSet,
    RegisterAPIView, LoginAPIView, LogoutAPIView, MeAPIView, UpdateDetailsAPIView,
    UpdatePasswordAPIView, ForgotPasswordAPIView, ResetPasswordAPIView
)
from doctors.views import DoctorViewSet
from healthcare.views import AppointmentViewSet, ConsultationViewSet
from messaging.views import MessageViewSet


schema_view = get_schema_view(
   openapi.Info(
      title="Hospital Portal API",
      default_version='v1',
      description="""
      API documentation for the Hospital Portal

      Most endpoints require authentication with a JWT token, sent either as
      the `token` cookie set at login or in the Authorization header:

      `Authorization: Bearer <your_token>`

      Tokens are obtained through `POST /api/patients/login/` or `POST /api/doctors/login/`.

      Responses follow this structure:

      ```json
      {
          "success": true,
          "message": "...",
          "data": { ... },
          "errors": [{"field": "...", "message": "..."}]
      }
      ```

      Status codes: 200, 201, 400, 401, 403, 404, 409 (slot already booked), 500.
      """,
   ),
   public=True,
   permission_classes=[permissions.AllowAny],
)

router = DefaultRouter()
router.register(r'doctors', DoctorViewSet, basename='doctor')
router.register(r'patients', PatientViewSet, basename='patient')
router.register(r'appointments', AppointmentViewSet, basename='appointment')
router.register(r'consultations', ConsultationViewSet, basename='consultation')
router.register(r'messages', MessageViewSet, basename='message')


def account_urls(role):
    """Identity endpoints for one account kind, mounted under ``/api/<role>s/``."""
    prefix = f'api/{role}s/'
    return [
        path(f'{prefix}register/', RegisterAPIView.as_view(role=role), name=f'{role}-register'),
        path(f'{prefix}login/', LoginAPIView.as_view(role=role), name=f'{role}-login'),
        path(f'{prefix}logout/', LogoutAPIView.as_view(role=role), name=f'{role}-logout'),
        path(f'{prefix}me/', MeAPIView.as_view(role=role), name=f'{role}-me'),
        path(f'{prefix}updatedetails/', UpdateDetailsAPIView.as_view(role=role), name=f'{role}-update-details'),
        path(f'{prefix}updatepassword/', UpdatePasswordAPIView.as_view(role=role), name=f'{role}-update-password'),
        path(f'{prefix}forgotpassword/', ForgotPasswordAPIView.as_view(role=role), name=f'{role}-forgot-password'),
        path(f'{prefix}resetpassword/<str:token>/', ResetPasswordAPIView.as_view(role=role), name=f'{role}-reset-password'),
    ]


urlpatterns = [
    path('admin/', admin.site.urls),

    path('', RedirectView.as_view(url='/swagger/', permanent=False), name='index'),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('swagger.json', schema_view.without_ui(cache_timeout=0), name='schema-json'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),

    *account_urls(Role.PATIENT),
    *account_urls(Role.DOCTOR),

    path('api/', include(router.urls)),
]
