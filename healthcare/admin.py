from django.contrib import admin
from .models import Appointment, AppointmentReason, Consultation


class AppointmentReasonInline(admin.TabularInline):
    model = AppointmentReason
    extra = 0
    readonly_fields = ('text', 'date')
    can_delete = False


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('patient', 'doctor', 'date', 'time', 'status', 'created_at')
    list_filter = ('status', 'date')
    search_fields = ('patient__user__email', 'doctor__user__email', 'doctor__user__last_name')
    inlines = [AppointmentReasonInline]


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('medical_condition', 'patient', 'doctor', 'consultation_type', 'status', 'is_active', 'created_at')
    list_filter = ('consultation_type', 'status', 'is_active')
    search_fields = ('medical_condition', 'patient__user__email', 'doctor__user__email')
