import django_filters

from .models import Message, MessageType, MessagePriority


class MessageFilter(django_filters.FilterSet):
    type = django_filters.ChoiceFilter(field_name='message_type', choices=MessageType.choices)
    is_read = django_filters.BooleanFilter()
    priority = django_filters.ChoiceFilter(choices=MessagePriority.choices)
    is_archived = django_filters.BooleanFilter()

    class Meta:
        model = Message
        fields = ['type', 'is_read', 'priority', 'is_archived']
