from rest_framework import serializers
from healthcare.models import Appointment
from .models import Message, MessageType, MessagePriority, ParticipantModel


class AttachmentSerializer(serializers.Serializer):
    filename = serializers.CharField(max_length=255)
    original_name = serializers.CharField(max_length=255)
    mime_type = serializers.CharField(max_length=100)
    size = serializers.IntegerField(min_value=0)
    url = serializers.URLField()


class MessageAppointmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Appointment
        fields = ['id', 'date', 'time', 'status']


def participant_summary(participant):
    profile = participant.resolve()
    summary = {'model': participant.kind, 'id': str(participant.id)}
    if profile is not None:
        summary['first_name'] = profile.user.first_name
        summary['last_name'] = profile.user.last_name
        if participant.kind == ParticipantModel.DOCTOR:
            summary['specialization'] = profile.specialization
    return summary


class MessageSerializer(serializers.ModelSerializer):
    sender = serializers.SerializerMethodField()
    recipient = serializers.SerializerMethodField()
    appointment = MessageAppointmentSerializer(read_only=True)

    class Meta:
        model = Message
        fields = [
            'id', 'sender', 'recipient', 'message_type', 'subject', 'content',
            'appointment', 'is_read', 'read_at', 'priority', 'attachments',
            'is_archived', 'parent_message', 'thread_id', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_sender(self, obj):
        return participant_summary(obj.sender)

    def get_recipient(self, obj):
        return participant_summary(obj.recipient)


class SendMessageSerializer(serializers.Serializer):
    recipient = serializers.UUIDField(help_text="ID of the receiving patient or doctor")
    recipient_model = serializers.ChoiceField(choices=ParticipantModel.choices)
    subject = serializers.CharField(max_length=200)
    content = serializers.CharField(max_length=2000)
    message_type = serializers.ChoiceField(choices=MessageType.choices, required=False)
    priority = serializers.ChoiceField(choices=MessagePriority.choices, required=False)
    appointment = serializers.UUIDField(required=False, allow_null=True)
    attachments = AttachmentSerializer(many=True, required=False)


class ReplySerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000)


class MarkManyReadSerializer(serializers.Serializer):
    message_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class ArchiveSerializer(serializers.Serializer):
    archived = serializers.BooleanField(default=True)
