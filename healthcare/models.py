from django.db import models
from django.core.validators import MinValueValidator
from django.db.models import Count
import uuid


class AppointmentStatus(models.TextChoices):
    SCHEDULED = 'scheduled', 'Scheduled'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'

    @classmethod
    def live(cls):
        """Statuses that keep a (patient, doctor) relationship open."""
        return [cls.SCHEDULED, cls.COMPLETED]


class AppointmentQuerySet(models.QuerySet):
    def live(self):
        return self.filter(status__in=AppointmentStatus.live())

    def for_pair(self, patient, doctor):
        return self.filter(patient=patient, doctor=doctor)

    def duplicate_live_pairs(self):
        """(patient, doctor) pairs holding more than one live appointment."""
        return (
            self.live()
            .values('patient', 'doctor')
            .annotate(live_count=Count('id'))
            .filter(live_count__gt=1)
            .order_by()
        )


class Appointment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey('users.Patient', on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey('doctors.Doctor', on_delete=models.CASCADE, related_name='appointments')
    date = models.DateField()
    time = models.CharField(max_length=5, help_text="HH:MM")
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED
    )
    notes = models.TextField(max_length=1000, blank=True)
    cancelled_by = models.CharField(max_length=10, blank=True, choices=[
        ('patient', 'Patient'),
        ('doctor', 'Doctor'),
    ])
    cancellation_reason = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        verbose_name = "Appointment"
        verbose_name_plural = "Appointments"
        ordering = ['date', 'time']
        indexes = [
            models.Index(fields=['patient', 'date'], name='appt_patient_date_idx'),
            models.Index(fields=['doctor', 'date'], name='appt_doctor_date_idx'),
            models.Index(fields=['status'], name='appt_status_idx'),
        ]

    def __str__(self):
        return f"{self.patient.full_name} with Dr. {self.doctor.full_name} on {self.date} at {self.time}"

    @property
    def reason_history(self):
        return list(self.reasons.all())

    @property
    def current_reason(self):
        history = self.reason_history
        return history[-1] if history else None

    @property
    def previous_reasons(self):
        return self.reason_history[:-1]

    def append_reason(self, text):
        return AppointmentReason.objects.create(appointment=self, text=text)


class AppointmentReason(models.Model):
    """
    One entry in an appointment's append-only reason history.
    """
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='reasons')
    text = models.CharField(max_length=500)
    date = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.text


class ConsultationType(models.TextChoices):
    IN_PERSON = 'in-person', 'In Person'
    VIDEO_CALL = 'video-call', 'Video Call'
    PHONE_CALL = 'phone-call', 'Phone Call'


class ConsultationStatus(models.TextChoices):
    SCHEDULED = 'scheduled', 'Scheduled'
    IN_PROGRESS = 'in-progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class ConsultationQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class Consultation(models.Model):
    """
    Clinical outcome of a visit, recorded by the doctor.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey('users.Patient', on_delete=models.CASCADE, related_name='consultations')
    doctor = models.ForeignKey('doctors.Doctor', on_delete=models.CASCADE, related_name='consultations')
    medical_condition = models.CharField(max_length=200)
    symptoms = models.JSONField(default=list, blank=True)
    diagnosis = models.JSONField(default=dict)
    medications = models.JSONField(default=list, blank=True)
    vitals = models.JSONField(null=True, blank=True)
    follow_up_date = models.DateTimeField(null=True, blank=True)
    consultation_fee = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    consultation_type = models.CharField(
        max_length=20,
        choices=ConsultationType.choices,
        default=ConsultationType.IN_PERSON
    )
    status = models.CharField(
        max_length=20,
        choices=ConsultationStatus.choices,
        default=ConsultationStatus.COMPLETED
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ConsultationQuerySet.as_manager()

    class Meta:
        verbose_name = "Consultation"
        verbose_name_plural = "Consultations"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['patient', '-created_at'], name='consult_patient_created_idx'),
            models.Index(fields=['doctor', '-created_at'], name='consult_doctor_created_idx'),
        ]

    def __str__(self):
        return f"{self.medical_condition} - {self.patient.full_name} ({self.created_at:%Y-%m-%d})"
