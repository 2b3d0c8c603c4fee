from django.db.models import Q
from django.utils import timezone
import logging

from hospitalportal.exceptions import Forbidden, NotFound, ValidationError
from hospitalportal.pagination import paginate
from healthcare.models import Appointment
from .filters import MessageFilter
from .models import Message, MessageType, MessagePriority, Participant, ParticipantModel

logger = logging.getLogger(__name__)


def received_by(caller):
    return Q(recipient_model=ParticipantModel.for_role(caller.role), recipient_id=caller.id)


def sent_by(caller):
    return Q(sender_model=ParticipantModel.for_role(caller.role), sender_id=caller.id)


class MessageService:
    """Service for point-to-point messages between patients and doctors"""

    @staticmethod
    def _messages():
        return Message.objects.select_related('appointment')

    @staticmethod
    def _load(message_id, missing='Message not found'):
        try:
            return MessageService._messages().get(id=message_id)
        except Message.DoesNotExist:
            raise NotFound(missing)

    @staticmethod
    def _load_received(message_id, caller, action):
        message = MessageService._load(message_id)
        if not message.recipient.is_caller(caller):
            raise Forbidden(f'Not authorized to {action} this message')
        return message

    @staticmethod
    def send(caller, recipient_id, recipient_model, subject, content,
             message_type=None, priority=None, appointment_id=None, attachments=None):
        """
        Start a new thread with ``recipient_model``/``recipient_id``.

        The recipient must exist as the declared kind and the appointment,
        when given, must exist.
        """
        recipient = Participant(recipient_model, recipient_id)
        if recipient.resolve() is None:
            raise NotFound('Recipient not found')

        appointment = None
        if appointment_id:
            appointment = Appointment.objects.filter(id=appointment_id).first()
            if appointment is None:
                raise NotFound('Appointment not found')

        sender = Participant(ParticipantModel.for_role(caller.role), caller.id)
        message = Message.objects.create(
            sender_model=sender.kind,
            sender_id=sender.id,
            recipient_model=recipient.kind,
            recipient_id=recipient.id,
            subject=subject,
            content=content,
            message_type=message_type or MessageType.GENERAL,
            priority=priority or MessagePriority.NORMAL,
            appointment=appointment,
            attachments=attachments or [],
        )
        logger.info(f"Message {message.id} sent from {sender.kind} {sender.id} to {recipient.kind} {recipient.id}")
        return message

    @staticmethod
    def reply(parent_id, caller, content):
        """Answer the other party of ``parent_id`` inside the same thread."""
        parent = MessageService._load(parent_id, missing='Original message not found')

        if parent.sender.is_caller(caller):
            recipient = parent.recipient
        elif parent.recipient.is_caller(caller):
            recipient = parent.sender
        else:
            raise Forbidden('Not authorized to reply to this message')

        message = Message.objects.create(
            sender_model=ParticipantModel.for_role(caller.role),
            sender_id=caller.id,
            recipient_model=recipient.kind,
            recipient_id=recipient.id,
            subject=f"Re: {parent.subject}"[:200],
            content=content,
            message_type=parent.message_type,
            priority=parent.priority,
            appointment=parent.appointment,
            parent_message=parent,
            thread_id=parent.thread_id,
        )
        logger.info(f"Reply {message.id} added to thread {message.thread_id}")
        return message

    @staticmethod
    def get(message_id, caller):
        message = MessageService._load(message_id)
        if message.recipient.is_caller(caller):
            message.mark_as_read()
        elif not message.sender.is_caller(caller):
            raise Forbidden('Not authorized to view this message')
        return message

    @staticmethod
    def mark_read(message_id, caller):
        message = MessageService._load_received(message_id, caller, 'mark as read')
        message.mark_as_read()
        return message

    @staticmethod
    def mark_many_read(message_ids, caller):
        """Mark the caller's unread messages among ``message_ids``; returns how many changed."""
        now = timezone.now()
        return Message.objects.filter(received_by(caller), id__in=message_ids, is_read=False).update(
            is_read=True, read_at=now, updated_at=now
        )

    @staticmethod
    def get_thread(thread_id, caller):
        """
        Messages of a thread the caller takes part in, oldest first. Unread
        ones addressed to the caller are marked read.
        """
        thread = MessageService._messages().filter(thread_id=thread_id).filter(received_by(caller) | sent_by(caller))
        if not thread.exists():
            raise NotFound('Thread not found')

        now = timezone.now()
        thread.filter(received_by(caller), is_read=False).update(is_read=True, read_at=now, updated_at=now)
        return list(thread.order_by('created_at'))

    @staticmethod
    def delete(message_id, caller):
        message = MessageService._load_received(message_id, caller, 'delete')
        message.delete()
        logger.info(f"Message {message_id} deleted by its recipient")

    @staticmethod
    def archive(message_id, caller, archived=True):
        message = MessageService._load_received(message_id, caller, 'archive')
        message.is_archived = archived
        message.save(update_fields=['is_archived', 'updated_at'])
        return message

    @staticmethod
    def list(caller, filters=None, page=1, limit=20):
        """
        The caller's received messages, newest first. Returns the page and the
        caller's total unread count, which ignores ``filters``.
        """
        inbox = MessageService._messages().filter(received_by(caller))
        filterset = MessageFilter(filters or {}, queryset=inbox)
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)

        page_result = paginate(filterset.qs.order_by('-created_at'), page, limit)
        unread_count = inbox.filter(is_read=False).count()
        return page_result, unread_count
