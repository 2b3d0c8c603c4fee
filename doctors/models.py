from django.db import models
from django.core.validators import MinValueValidator
from django.conf import settings
import uuid


class Specialization(models.TextChoices):
    CARDIOLOGY = 'cardiology', 'Cardiology'
    DERMATOLOGY = 'dermatology', 'Dermatology'
    ENDOCRINOLOGY = 'endocrinology', 'Endocrinology'
    GASTROENTEROLOGY = 'gastroenterology', 'Gastroenterology'
    NEUROLOGY = 'neurology', 'Neurology'
    ONCOLOGY = 'oncology', 'Oncology'
    ORTHOPEDICS = 'orthopedics', 'Orthopedics'
    PEDIATRICS = 'pediatrics', 'Pediatrics'
    PSYCHIATRY = 'psychiatry', 'Psychiatry'
    PULMONOLOGY = 'pulmonology', 'Pulmonology'
    RADIOLOGY = 'radiology', 'Radiology'
    SURGERY = 'surgery', 'Surgery'
    UROLOGY = 'urology', 'Urology'
    GENERAL_MEDICINE = 'general_medicine', 'General Medicine'
    EMERGENCY_MEDICINE = 'emergency_medicine', 'Emergency Medicine'
    ANESTHESIOLOGY = 'anesthesiology', 'Anesthesiology'
    PATHOLOGY = 'pathology', 'Pathology'
    OPHTHALMOLOGY = 'ophthalmology', 'Ophthalmology'
    OTOLARYNGOLOGY = 'otolaryngology', 'Otolaryngology'


class Doctor(models.Model):
    """
    Doctor identity variant.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='doctor')

    specialization = models.CharField(max_length=50, choices=Specialization.choices)
    license_number = models.CharField(max_length=50, unique=True)
    experience_years = models.PositiveIntegerField(default=0)
    education = models.JSONField(default=list, blank=True, help_text="Degree, institution and year entries")
    hospital = models.JSONField(default=dict, blank=True, help_text="Hospital or clinic name and address")
    consultation_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)]
    )
    availability = models.JSONField(default=list, blank=True, help_text="Weekly day/start_time/end_time windows")
    bio = models.TextField(blank=True)
    languages = models.JSONField(default=list, blank=True)
    awards = models.JSONField(default=list, blank=True)

    is_verified = models.BooleanField(default=False)

    # Metadata fields
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Doctor"
        verbose_name_plural = "Doctors"
        ordering = ['user__last_name', 'user__first_name']

    def __str__(self):
        return f"Dr. {self.user.get_full_name()} - {self.get_specialization_display()}"

    @property
    def is_active(self):
        return self.user.is_active

    @property
    def full_name(self):
        return self.user.get_full_name()

    def availability_for(self, day_name):
        """Return the availability window for a lower-case weekday name, if any."""
        for window in self.availability or []:
            if str(window.get('day', '')).lower() == day_name:
                return window
        return None
