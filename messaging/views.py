from rest_framework import viewsets, status
from rest_framework.response import Response
from rest_framework.decorators import action
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from hospitalportal.pagination import parse_page_params, paginated_body
from hospitalportal.utils import envelope, UUID_PATTERN
from users.authentication import resolve_caller
from users.permissions import IsPatientOrDoctor
from .serializers import (
    MessageSerializer, SendMessageSerializer, ReplySerializer,
    MarkManyReadSerializer, ArchiveSerializer
)
from .services import MessageService


class MessageViewSet(viewsets.ViewSet):
    """
    Messages between patients and doctors.

    Everything here acts on behalf of the caller: the inbox lists what the
    caller received, and only the recipient may mark, archive or delete.
    """
    permission_classes = [IsPatientOrDoctor]
    lookup_value_regex = UUID_PATTERN

    @swagger_auto_schema(
        operation_description="Received messages, newest first, with the total unread count",
        manual_parameters=[
            openapi.Parameter('type', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Filter by message type"),
            openapi.Parameter('is_read', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN, description="Filter by read state"),
            openapi.Parameter('priority', openapi.IN_QUERY, type=openapi.TYPE_STRING, description="Filter by priority"),
            openapi.Parameter('is_archived', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN, description="Filter by archived state"),
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, description="Page number, default 1"),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, description="Page size, default 20"),
        ]
    )
    def list(self, request):
        caller = resolve_caller(request)
        page, limit = parse_page_params(request.query_params, default_limit=20)
        result, unread_count = MessageService.list(caller, request.query_params, page, limit)
        data = MessageSerializer(result.items, many=True).data
        return Response(paginated_body(result, data, unread_count=unread_count))

    @swagger_auto_schema(request_body=SendMessageSerializer, responses={201: MessageSerializer})
    def create(self, request):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        message = MessageService.send(
            resolve_caller(request),
            data['recipient'],
            data['recipient_model'],
            data['subject'],
            data['content'],
            message_type=data.get('message_type'),
            priority=data.get('priority'),
            appointment_id=data.get('appointment'),
            attachments=data.get('attachments'),
        )
        return Response(
            envelope(MessageSerializer(message).data, message='Message sent successfully'),
            status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, pk=None):
        message = MessageService.get(pk, resolve_caller(request))
        return Response(envelope(MessageSerializer(message).data))

    def destroy(self, request, pk=None):
        MessageService.delete(pk, resolve_caller(request))
        return Response(envelope(message='Message deleted successfully'))

    @swagger_auto_schema(request_body=ReplySerializer, responses={201: MessageSerializer})
    @action(detail=True, methods=['post'])
    def reply(self, request, pk=None):
        serializer = ReplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = MessageService.reply(pk, resolve_caller(request), serializer.validated_data['content'])
        return Response(
            envelope(MessageSerializer(message).data, message='Reply sent successfully'),
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['put'])
    def read(self, request, pk=None):
        MessageService.mark_read(pk, resolve_caller(request))
        return Response(envelope(message='Message marked as read'))

    @swagger_auto_schema(request_body=ArchiveSerializer)
    @action(detail=True, methods=['put'])
    def archive(self, request, pk=None):
        serializer = ArchiveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = MessageService.archive(pk, resolve_caller(request), serializer.validated_data['archived'])
        return Response(envelope(MessageSerializer(message).data))

    @swagger_auto_schema(request_body=MarkManyReadSerializer)
    @action(detail=False, methods=['put'], url_path='mark-read')
    def mark_read(self, request):
        serializer = MarkManyReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        modified = MessageService.mark_many_read(serializer.validated_data['message_ids'], resolve_caller(request))
        return Response(envelope(message=f'{modified} messages marked as read', modified=modified))

    @action(detail=False, methods=['get'], url_path=r'thread/(?P<thread_id>' + UUID_PATTERN + r')')
    def thread(self, request, thread_id=None):
        messages = MessageService.get_thread(thread_id, resolve_caller(request))
        return Response(envelope(MessageSerializer(messages, many=True).data, count=len(messages)))
