import calendar
from datetime import date
from django.utils import timezone
from rest_framework import serializers
from hospitalportal.utils import validate_complete
from .models import (
    Appointment, AppointmentReason, AppointmentStatus,
    Consultation, ConsultationType, ConsultationStatus,
)
from doctors.serializers import DoctorSummarySerializer
from users.serializers import PatientSummarySerializer

TIME_PATTERN = r'^([01]\d|2[0-3]):[0-5]\d$'
BOOKING_HORIZON_MONTHS = 3


def add_months(day, months):
    """Shift ``day`` by whole months, clamping to the last day of the target month."""
    month_index = day.month - 1 + months
    year, month = day.year + month_index // 12, month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


class AppointmentReasonSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentReason
        fields = ['text', 'date']


class AppointmentSerializer(serializers.ModelSerializer):
    """
    Appointment with its reason history. ``current_reason`` is the newest
    reason; with ``include_history`` in the context the earlier reasons are
    also listed as ``previous_consultations``.
    """
    patient = PatientSummarySerializer(read_only=True)
    doctor = DoctorSummarySerializer(read_only=True)
    reasons = AppointmentReasonSerializer(many=True, read_only=True)
    current_reason = serializers.SerializerMethodField()
    previous_consultations = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id', 'patient', 'doctor', 'date', 'time', 'status', 'notes',
            'reasons', 'current_reason', 'previous_consultations',
            'cancelled_by', 'cancellation_reason', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_current_reason(self, obj):
        reason = obj.current_reason
        return AppointmentReasonSerializer(reason).data if reason else None

    def get_previous_consultations(self, obj):
        return AppointmentReasonSerializer(obj.previous_reasons, many=True).data

    def to_representation(self, instance):
        ret = super().to_representation(instance)
        if not self.context.get('include_history'):
            ret.pop('previous_consultations', None)
        return ret


class BookAppointmentSerializer(serializers.Serializer):
    doctor = serializers.UUIDField(help_text="ID of the doctor to book")
    date = serializers.DateField(help_text="Requested date (YYYY-MM-DD)")
    time = serializers.RegexField(TIME_PATTERN, help_text="Requested time (HH:MM)")
    reason = serializers.CharField(max_length=500, help_text="Reason for the visit")

    def validate_date(self, value):
        today = timezone.localdate()
        if value < today:
            raise serializers.ValidationError("Appointment date cannot be in the past")
        if value > add_months(today, BOOKING_HORIZON_MONTHS):
            raise serializers.ValidationError("Appointment date cannot be more than 3 months in advance")
        return value


class AppointmentReasonInputSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


class AppointmentStatusInputSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AppointmentStatus.choices)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class AppointmentCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class AvailabilityQuerySerializer(serializers.Serializer):
    date = serializers.DateField()


class SymptomSerializer(serializers.Serializer):
    SEVERITY_CHOICES = ['mild', 'moderate', 'severe']

    symptom = serializers.CharField(max_length=200)
    severity = serializers.ChoiceField(choices=SEVERITY_CHOICES, default='mild')
    duration = serializers.CharField(max_length=100, required=False, allow_blank=True)


class DiagnosisSerializer(serializers.Serializer):
    primary_diagnosis = serializers.CharField(max_length=300)
    secondary_diagnosis = serializers.CharField(max_length=300, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class MedicationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    dosage = serializers.CharField(max_length=100)
    frequency = serializers.CharField(max_length=100)
    duration = serializers.CharField(max_length=100)
    instructions = serializers.CharField(max_length=500, required=False, allow_blank=True)


class BloodPressureSerializer(serializers.Serializer):
    systolic = serializers.IntegerField(min_value=0)
    diastolic = serializers.IntegerField(min_value=0)


class VitalsSerializer(serializers.Serializer):
    blood_pressure = BloodPressureSerializer(required=False)
    heart_rate = serializers.IntegerField(min_value=0, required=False)
    temperature = serializers.FloatField(required=False)
    weight = serializers.FloatField(min_value=0, required=False)
    height = serializers.FloatField(min_value=0, required=False)


class ConsultationPayloadSerializer(serializers.Serializer):
    """Clinical fields a doctor writes. Used with ``partial=True`` for updates."""
    medical_condition = serializers.CharField(max_length=200)
    symptoms = SymptomSerializer(many=True, allow_empty=False)
    diagnosis = DiagnosisSerializer()
    medications = MedicationSerializer(many=True, required=False)
    vitals = VitalsSerializer(required=False, allow_null=True)
    follow_up_date = serializers.DateTimeField(required=False, allow_null=True)
    consultation_fee = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    consultation_type = serializers.ChoiceField(choices=ConsultationType.choices, required=False)
    status = serializers.ChoiceField(choices=ConsultationStatus.choices, required=False)

    def validate_diagnosis(self, value):
        # Partial updates relax nested required fields
        if not value.get('primary_diagnosis'):
            raise serializers.ValidationError("Primary diagnosis is required")
        return value

    # Nested lists and vitals are replaced wholesale, so entries must be complete
    def validate_symptoms(self, value):
        return validate_complete(SymptomSerializer, value)

    def validate_medications(self, value):
        return validate_complete(MedicationSerializer, value)

    def validate_vitals(self, value):
        if value is None:
            return value
        return validate_complete(VitalsSerializer, value, many=False)


class ConsultationCreateSerializer(ConsultationPayloadSerializer):
    patient = serializers.UUIDField(help_text="ID of the patient the consultation concerns")


class ConsultationSerializer(serializers.ModelSerializer):
    patient = PatientSummarySerializer(read_only=True)
    doctor = DoctorSummarySerializer(read_only=True)

    class Meta:
        model = Consultation
        fields = [
            'id', 'patient', 'doctor', 'medical_condition', 'symptoms', 'diagnosis',
            'medications', 'vitals', 'follow_up_date', 'consultation_fee',
            'consultation_type', 'status', 'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = fields
