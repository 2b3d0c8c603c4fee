import django_filters
from django.db.models import Q

from .models import Patient


class PatientFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(method='filter_name', help_text="Filter by patient's first or last name")
    email = django_filters.CharFilter(field_name='user__email', lookup_expr='iexact')

    class Meta:
        model = Patient
        fields = ['name', 'email']

    def filter_name(self, queryset, name, value):
        return queryset.filter(
            Q(user__first_name__icontains=value) |
            Q(user__last_name__icontains=value)
        )
