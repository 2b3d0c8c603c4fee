import django_filters
from django.db.models import Q

from .models import Doctor, Specialization


class DoctorFilter(django_filters.FilterSet):
    specialization = django_filters.ChoiceFilter(choices=Specialization.choices)
    name = django_filters.CharFilter(method='filter_name', help_text="Filter by doctor's first or last name")
    verified = django_filters.BooleanFilter(field_name='is_verified')

    class Meta:
        model = Doctor
        fields = ['specialization', 'name', 'verified']

    def filter_name(self, queryset, name, value):
        return queryset.filter(
            Q(user__first_name__icontains=value) |
            Q(user__last_name__icontains=value)
        )
