from datetime import timedelta
from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.utils.translation import gettext_lazy as _
from django.conf import settings
from django.utils import timezone
import hashlib
import secrets
import uuid


class Role(models.Model):
    PATIENT = 'patient'
    DOCTOR = 'doctor'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class UserManager(BaseUserManager):
    """
    Manager for users that log in with their email address.
    """
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('The email address must be set')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Common identity core shared by patients and doctors.
    """
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]

    username = None
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(_('email address'), unique=True)
    phone_number = models.CharField(max_length=15, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    roles = models.ManyToManyField(Role, related_name='users', blank=True)

    # Password reset: only the hash of the mailed token is stored
    reset_password_token = models.CharField(max_length=64, null=True, blank=True)
    reset_password_expire = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower()
        super().save(*args, **kwargs)

    @property
    def role(self):
        """Identity variant of this account, derived from its profile."""
        if hasattr(self, 'doctor'):
            return Role.DOCTOR
        if hasattr(self, 'patient'):
            return Role.PATIENT
        return None

    @property
    def profile(self):
        if self.role == Role.DOCTOR:
            return self.doctor
        if self.role == Role.PATIENT:
            return self.patient
        return None

    @staticmethod
    def hash_reset_token(raw_token):
        return hashlib.sha256(raw_token.encode()).hexdigest()

    def get_reset_password_token(self):
        """
        Generate a reset token, keep its hash and expiry on the user and
        return the raw token for delivery. The caller saves the user.
        """
        raw_token = secrets.token_hex(20)
        self.reset_password_token = self.hash_reset_token(raw_token)
        self.reset_password_expire = timezone.now() + timedelta(
            minutes=settings.PASSWORD_RESET_TIMEOUT_MINUTES
        )
        return raw_token

    def clear_reset_password_token(self):
        self.reset_password_token = None
        self.reset_password_expire = None


class Patient(models.Model):
    """
    Patient identity variant.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='patient')

    address = models.JSONField(default=dict, blank=True, help_text="Street, city, state, zip code, country")
    emergency_contact = models.JSONField(default=dict, blank=True, help_text="Name, relationship, phone")
    medical_history = models.JSONField(default=list, blank=True)
    allergies = models.JSONField(default=list, blank=True)

    # Metadata fields
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Patient"
        verbose_name_plural = "Patients"

    def __str__(self):
        return f"{self.user.get_full_name() or self.user.email}'s Patient Record"

    @property
    def is_active(self):
        return self.user.is_active

    @property
    def full_name(self):
        return self.user.get_full_name()
