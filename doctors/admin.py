from django.contrib import admin
from .models import Doctor

@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('user', 'specialization', 'license_number', 'experience_years', 'consultation_fee', 'is_verified')
    list_filter = ('specialization', 'is_verified')
    search_fields = ('user__email', 'user__first_name', 'user__last_name', 'license_number')
