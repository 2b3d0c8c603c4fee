from django.contrib import admin
from django.utils import timezone
from .models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['subject', 'sender_model', 'sender_id', 'recipient_model', 'recipient_id',
                    'message_type', 'priority', 'is_read', 'is_archived', 'created_at']
    list_filter = ['message_type', 'priority', 'is_read', 'is_archived', 'created_at']
    search_fields = ['subject', 'content', 'thread_id']
    readonly_fields = ['thread_id', 'created_at', 'updated_at', 'read_at']
    ordering = ['-created_at']

    fieldsets = (
        ('Parties', {
            'fields': ('sender_model', 'sender_id', 'recipient_model', 'recipient_id')
        }),
        ('Content', {
            'fields': ('message_type', 'priority', 'subject', 'content', 'attachments')
        }),
        ('Threading', {
            'fields': ('appointment', 'parent_message', 'thread_id')
        }),
        ('Status', {
            'fields': ('is_read', 'read_at', 'is_archived', 'created_at', 'updated_at')
        }),
    )

    actions = ['mark_as_read', 'mark_as_unread']

    def mark_as_read(self, request, queryset):
        updated = queryset.filter(is_read=False).update(is_read=True, read_at=timezone.now())
        self.message_user(request, f'{updated} messages marked as read.')
    mark_as_read.short_description = 'Mark selected messages as read'

    def mark_as_unread(self, request, queryset):
        updated = queryset.update(is_read=False, read_at=None)
        self.message_user(request, f'{updated} messages marked as unread.')
    mark_as_unread.short_description = 'Mark selected messages as unread'
