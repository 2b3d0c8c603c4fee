from rest_framework import viewsets, permissions
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from hospitalportal.utils import envelope, UUID_PATTERN
from .filters import DoctorFilter
from .models import Doctor
from .serializers import DoctorSerializer


class DoctorViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Public directory of active doctors.
    """
    serializer_class = DoctorSerializer
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    filter_backends = [DjangoFilterBackend]
    filterset_class = DoctorFilter
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        return Doctor.objects.select_related('user').filter(user__is_active=True)

    @swagger_auto_schema(
        operation_description="List active doctors. Patients use this to find a doctor to book.",
        manual_parameters=[
            openapi.Parameter('specialization', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Filter by specialization"),
            openapi.Parameter('name', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Filter by doctor's first or last name"),
            openapi.Parameter('verified', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN, description="Filter by verification status"),
        ]
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @swagger_auto_schema(operation_description="Get details of a specific doctor")
    def retrieve(self, request, *args, **kwargs):
        return Response(envelope(self.get_serializer(self.get_object()).data))
