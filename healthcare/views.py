from rest_framework import viewsets, permissions, status
from rest_framework.response import Response
from rest_framework.decorators import action
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from hospitalportal.pagination import parse_page_params, paginated_body
from hospitalportal.utils import envelope, UUID_PATTERN
from users.authentication import resolve_caller
from users.permissions import IsPatientUser, IsDoctorUser, IsPatientOrDoctor
from .serializers import (
    AppointmentSerializer, BookAppointmentSerializer, AppointmentReasonInputSerializer,
    AppointmentStatusInputSerializer, AppointmentCancelSerializer, AvailabilityQuerySerializer,
    ConsultationSerializer, ConsultationCreateSerializer, ConsultationPayloadSerializer,
)
from .services import AppointmentLedger, ConsultationRecords

status_parameter = openapi.Parameter(
    'status', openapi.IN_QUERY, type=openapi.TYPE_STRING, required=False,
    enum=['scheduled', 'completed', 'cancelled'], description="Filter by appointment status"
)
page_parameters = [
    openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, description="Page number, default 1"),
    openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, description="Page size, default 10"),
]


class AppointmentViewSet(viewsets.ViewSet):
    """
    ViewSet for managing appointments

    Booking again with the same doctor extends the existing appointment:
    the new reason is appended to its history and the appointment moves to
    the requested slot.
    """
    lookup_value_regex = UUID_PATTERN

    def get_permissions(self):
        """
        Override to set custom permissions for different actions
        """
        if self.action in ['create', 'add_reason']:
            permission_classes = [IsPatientUser]
        elif self.action == 'update_status':
            permission_classes = [IsDoctorUser]
        elif self.action == 'availability':
            permission_classes = [permissions.IsAuthenticated]
        else:
            permission_classes = [IsPatientOrDoctor]
        return [permission() for permission in permission_classes]

    def render(self, appointment, caller, **kwargs):
        context = {'request': self.request, 'include_history': caller.is_doctor}
        many = isinstance(appointment, list)
        return AppointmentSerializer(appointment, many=many, context=context).data

    @swagger_auto_schema(
        operation_description="Book an appointment, or extend the live appointment already held with this doctor",
        request_body=BookAppointmentSerializer,
        responses={201: AppointmentSerializer, 200: AppointmentSerializer, 404: "Doctor not found", 409: "Slot already booked"}
    )
    def create(self, request):
        serializer = BookAppointmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        caller = resolve_caller(request)
        data = serializer.validated_data

        appointment, created = AppointmentLedger.book_or_extend(
            caller.user.patient, data['doctor'], data['date'], data['time'], data['reason']
        )
        if created:
            return Response(
                envelope(self.render(appointment, caller), message='Appointment booked successfully'),
                status=status.HTTP_201_CREATED
            )
        return Response(envelope(
            self.render(appointment, caller),
            message='Existing appointment updated with a new reason'
        ))

    @swagger_auto_schema(
        operation_description="List the caller's appointments by date, earliest first",
        manual_parameters=[status_parameter]
    )
    def list(self, request):
        caller = resolve_caller(request)
        status_param = request.query_params.get('status')
        if caller.is_doctor:
            appointments = AppointmentLedger.list_for_doctor(caller.id, status_param)
        else:
            appointments = AppointmentLedger.list_for_patient(caller.id, status_param)
        return Response(envelope(self.render(appointments, caller), count=len(appointments)))

    def retrieve(self, request, pk=None):
        caller = resolve_caller(request)
        appointment = AppointmentLedger.get(pk, caller)
        return Response(envelope(self.render(appointment, caller)))

    @swagger_auto_schema(request_body=AppointmentReasonInputSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=['post'], url_path='reasons')
    def add_reason(self, request, pk=None):
        """
        Endpoint for patients to add a reason to their appointment
        """
        serializer = AppointmentReasonInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        caller = resolve_caller(request)
        appointment = AppointmentLedger.add_reason(pk, caller, serializer.validated_data['reason'])
        return Response(envelope(self.render(appointment, caller), message='Reason added'))

    @swagger_auto_schema(request_body=AppointmentStatusInputSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=['put'], url_path='status')
    def update_status(self, request, pk=None):
        """
        Endpoint for doctors to set the status of their appointment
        """
        serializer = AppointmentStatusInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        caller = resolve_caller(request)
        appointment = AppointmentLedger.update_status(
            pk, caller, serializer.validated_data['status'], serializer.validated_data.get('notes')
        )
        return Response(envelope(self.render(appointment, caller), message='Appointment status updated'))

    @swagger_auto_schema(request_body=AppointmentCancelSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=['put'])
    def cancel(self, request, pk=None):
        serializer = AppointmentCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        caller = resolve_caller(request)
        appointment = AppointmentLedger.cancel(pk, caller, serializer.validated_data.get('reason'))
        return Response(envelope(self.render(appointment, caller), message='Appointment cancelled successfully'))

    @swagger_auto_schema(
        operation_description="Free 30-minute slots of a doctor on a date",
        manual_parameters=[openapi.Parameter('date', openapi.IN_QUERY, type=openapi.TYPE_STRING, format='date', required=True)]
    )
    @action(detail=False, methods=['get'], url_path=r'doctor/(?P<doctor_id>' + UUID_PATTERN + r')/availability')
    def availability(self, request, doctor_id=None):
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        slots, window = AppointmentLedger.available_slots(doctor_id, query.validated_data['date'])

        body = {'available_slots': slots, 'doctor_availability': window}
        message = None if window else 'Doctor is not available on this day'
        return Response(envelope(body, message=message))


class ConsultationViewSet(viewsets.ViewSet):
    lookup_value_regex = UUID_PATTERN

    def get_permissions(self):
        if self.action in ['create', 'update', 'partial_update', 'destroy']:
            permission_classes = [IsDoctorUser]
        else:
            permission_classes = [IsPatientOrDoctor]
        return [permission() for permission in permission_classes]

    def paginated(self, request, fetch, owner_id):
        caller = resolve_caller(request)
        page, limit = parse_page_params(request.query_params)
        result = fetch(owner_id, caller, page, limit)
        return Response(paginated_body(result, ConsultationSerializer(result.items, many=True).data))

    @swagger_auto_schema(request_body=ConsultationCreateSerializer, responses={201: ConsultationSerializer})
    def create(self, request):
        serializer = ConsultationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        caller = resolve_caller(request)

        payload = dict(serializer.validated_data)
        patient_id = payload.pop('patient')
        consultation = ConsultationRecords.create(caller.user.doctor, patient_id, payload)
        return Response(
            envelope(ConsultationSerializer(consultation).data, message='Consultation recorded successfully'),
            status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, pk=None):
        consultation = ConsultationRecords.get(pk, resolve_caller(request))
        return Response(envelope(ConsultationSerializer(consultation).data))

    @swagger_auto_schema(request_body=ConsultationPayloadSerializer, responses={200: ConsultationSerializer})
    def update(self, request, pk=None):
        serializer = ConsultationPayloadSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        consultation = ConsultationRecords.update(pk, resolve_caller(request), serializer.validated_data)
        return Response(envelope(ConsultationSerializer(consultation).data, message='Consultation updated successfully'))

    @swagger_auto_schema(request_body=ConsultationPayloadSerializer, responses={200: ConsultationSerializer})
    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        ConsultationRecords.soft_delete(pk, resolve_caller(request))
        return Response(envelope(message='Consultation deleted successfully'))

    @swagger_auto_schema(
        operation_description="Active consultations of a patient, newest first",
        manual_parameters=page_parameters
    )
    @action(detail=False, methods=['get'], url_path=r'patient/(?P<patient_id>' + UUID_PATTERN + r')')
    def for_patient(self, request, patient_id=None):
        return self.paginated(request, ConsultationRecords.list_for_patient, patient_id)

    @action(detail=False, methods=['get'], url_path=r'patient/(?P<patient_id>' + UUID_PATTERN + r')/latest')
    def latest_for_patient(self, request, patient_id=None):
        consultation = ConsultationRecords.get_latest_for_patient(patient_id, resolve_caller(request))
        return Response(envelope(ConsultationSerializer(consultation).data))

    @swagger_auto_schema(
        operation_description="Active consultations recorded by a doctor, newest first",
        manual_parameters=page_parameters
    )
    @action(detail=False, methods=['get'], url_path=r'doctor/(?P<doctor_id>' + UUID_PATTERN + r')')
    def for_doctor(self, request, doctor_id=None):
        return self.paginated(request, ConsultationRecords.list_for_doctor, doctor_id)
