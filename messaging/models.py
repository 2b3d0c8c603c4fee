from collections import namedtuple

from django.db import models
from django.utils import timezone
import uuid


class ParticipantModel(models.TextChoices):
    PATIENT = 'Patient', 'Patient'
    DOCTOR = 'Doctor', 'Doctor'

    @classmethod
    def for_role(cls, role):
        return cls.DOCTOR if role == 'doctor' else cls.PATIENT


class Participant(namedtuple('Participant', ['kind', 'id'])):
    """
    Tagged reference to either identity variant.
    """
    __slots__ = ()

    def resolve(self):
        """Load the Patient or Doctor this reference points at, or ``None``."""
        from users.models import Patient
        from doctors.models import Doctor

        model = Doctor if self.kind == ParticipantModel.DOCTOR else Patient
        return model.objects.select_related('user').filter(id=self.id).first()

    def is_caller(self, caller):
        if self.kind == ParticipantModel.DOCTOR:
            return caller.is_doctor_of(self.id)
        return caller.is_patient_of(self.id)


class MessageType(models.TextChoices):
    APPOINTMENT_REQUEST = 'appointment_request', 'Appointment Request'
    APPOINTMENT_RESPONSE = 'appointment_response', 'Appointment Response'
    GENERAL = 'general', 'General'
    PRESCRIPTION = 'prescription', 'Prescription'
    FOLLOW_UP = 'follow_up', 'Follow Up'


class MessagePriority(models.TextChoices):
    LOW = 'low', 'Low'
    NORMAL = 'normal', 'Normal'
    HIGH = 'high', 'High'
    URGENT = 'urgent', 'Urgent'


class Message(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sender_model = models.CharField(max_length=10, choices=ParticipantModel.choices)
    sender_id = models.UUIDField()
    recipient_model = models.CharField(max_length=10, choices=ParticipantModel.choices)
    recipient_id = models.UUIDField()
    message_type = models.CharField(max_length=30, choices=MessageType.choices, default=MessageType.GENERAL)
    subject = models.CharField(max_length=200)
    content = models.TextField(max_length=2000)
    appointment = models.ForeignKey(
        'healthcare.Appointment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='messages'
    )
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    priority = models.CharField(max_length=10, choices=MessagePriority.choices, default=MessagePriority.NORMAL)
    attachments = models.JSONField(default=list, blank=True)
    is_archived = models.BooleanField(default=False)
    parent_message = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='replies'
    )
    thread_id = models.CharField(max_length=36, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient_id', '-created_at'], name='msg_recipient_created_idx'),
            models.Index(fields=['sender_id', '-created_at'], name='msg_sender_created_idx'),
            models.Index(fields=['appointment'], name='msg_appointment_idx'),
            models.Index(fields=['thread_id'], name='msg_thread_idx'),
            models.Index(fields=['is_read'], name='msg_is_read_idx'),
        ]

    def __str__(self):
        return f"{self.subject} ({self.sender_model} -> {self.recipient_model})"

    def save(self, *args, **kwargs):
        # Thread id is fixed on first write: replies join the parent's thread,
        # root messages start one named after themselves.
        if self._state.adding and not self.thread_id:
            if self.parent_message_id:
                self.thread_id = self.parent_message.thread_id
            else:
                self.thread_id = str(self.id)
        super().save(*args, **kwargs)

    @property
    def sender(self):
        return Participant(self.sender_model, self.sender_id)

    @sender.setter
    def sender(self, participant):
        self.sender_model, self.sender_id = participant

    @property
    def recipient(self):
        return Participant(self.recipient_model, self.recipient_id)

    @recipient.setter
    def recipient(self, participant):
        self.recipient_model, self.recipient_id = participant

    def mark_as_read(self):
        """Mark message as read"""
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at', 'updated_at'])
