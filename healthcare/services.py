from datetime import datetime, timedelta
from django.db import transaction
import logging

from hospitalportal.exceptions import Forbidden, NotFound, SlotTaken, ValidationError
from hospitalportal.pagination import paginate
from users.models import Patient
from doctors.models import Doctor
from .models import Appointment, AppointmentStatus, Consultation

logger = logging.getLogger(__name__)

SLOT_MINUTES = 30


class AppointmentLedger:
    """
    Booking, reason history and status lifecycle of appointments.

    A (patient, doctor) pair keeps one live appointment: booking again
    appends a reason to it instead of creating a second row.
    """

    @staticmethod
    def _appointments():
        return Appointment.objects.select_related('patient__user', 'doctor__user').prefetch_related('reasons')

    @staticmethod
    def _load(appointment_id):
        try:
            return AppointmentLedger._appointments().get(id=appointment_id)
        except Appointment.DoesNotExist:
            raise NotFound('Appointment not found')

    @staticmethod
    def _active_doctor(doctor_id):
        doctor = Doctor.objects.select_related('user').filter(id=doctor_id, user__is_active=True).first()
        if doctor is None:
            raise NotFound('Doctor not found')
        return doctor

    @staticmethod
    def _check_status(status):
        if status not in AppointmentStatus.values:
            raise ValidationError({'status': [f"Status must be one of: {', '.join(AppointmentStatus.values)}"]})

    @staticmethod
    def _is_party(appointment, caller):
        return caller.is_patient_of(appointment.patient_id) or caller.is_doctor_of(appointment.doctor_id)

    @staticmethod
    def book_or_extend(patient, doctor_id, date, time, reason_text):
        """
        Book ``patient`` with a doctor, or extend their live appointment.

        Returns ``(appointment, created)``. When the pair already holds a
        scheduled or completed appointment the newest one gets the reason
        appended, takes the new slot and goes back to scheduled. Otherwise a
        new appointment is created unless another scheduled booking holds the
        exact slot, which raises ``SlotTaken``.
        """
        doctor = AppointmentLedger._active_doctor(doctor_id)

        existing = (
            Appointment.objects.for_pair(patient, doctor)
            .live()
            .order_by('-created_at')
            .first()
        )

        if existing is not None:
            existing.append_reason(reason_text)
            existing.date = date
            existing.time = time
            existing.status = AppointmentStatus.SCHEDULED
            existing.save(update_fields=['date', 'time', 'status', 'updated_at'])
            logger.info(f"Extended appointment {existing.id} for patient {patient.id} with doctor {doctor.id}")
            AppointmentLedger._warn_on_duplicates(patient, doctor)
            return AppointmentLedger._load(existing.id), False

        slot_taken = Appointment.objects.filter(
            doctor=doctor, date=date, time=time, status=AppointmentStatus.SCHEDULED
        ).exists()
        if slot_taken:
            raise SlotTaken()

        with transaction.atomic():
            appointment = Appointment.objects.create(
                patient=patient,
                doctor=doctor,
                date=date,
                time=time,
                status=AppointmentStatus.SCHEDULED
            )
            appointment.append_reason(reason_text)

        logger.info(f"Created appointment {appointment.id} for patient {patient.id} with doctor {doctor.id}")
        AppointmentLedger._warn_on_duplicates(patient, doctor)
        return AppointmentLedger._load(appointment.id), True

    @staticmethod
    def _warn_on_duplicates(patient, doctor):
        live_count = Appointment.objects.for_pair(patient, doctor).live().count()
        if live_count > 1:
            logger.warning(
                f"Patient {patient.id} and doctor {doctor.id} hold {live_count} live appointments"
            )

    @staticmethod
    def duplicate_live_pairs():
        """List of ``{patient, doctor, live_count}`` for pairs with more than one live appointment."""
        return list(Appointment.objects.duplicate_live_pairs())

    @staticmethod
    def list_for_patient(patient_id, status=None):
        queryset = AppointmentLedger._appointments().filter(patient_id=patient_id)
        if status:
            AppointmentLedger._check_status(status)
            queryset = queryset.filter(status=status)
        return list(queryset.order_by('date', 'time'))

    @staticmethod
    def list_for_doctor(doctor_id, status=None):
        queryset = AppointmentLedger._appointments().filter(doctor_id=doctor_id)
        if status:
            AppointmentLedger._check_status(status)
            queryset = queryset.filter(status=status)
        return list(queryset.order_by('date', 'time'))

    @staticmethod
    def get(appointment_id, caller):
        appointment = AppointmentLedger._load(appointment_id)
        if not AppointmentLedger._is_party(appointment, caller):
            raise Forbidden('Not authorized to view this appointment')
        return appointment

    @staticmethod
    def add_reason(appointment_id, caller, reason_text):
        appointment = AppointmentLedger._load(appointment_id)
        if not caller.is_patient_of(appointment.patient_id):
            raise Forbidden('Not authorized to update this appointment')

        appointment.append_reason(reason_text)
        logger.info(f"Added reason to appointment {appointment.id}")
        return AppointmentLedger._load(appointment.id)

    @staticmethod
    def update_status(appointment_id, caller, status, notes=None):
        """Set any status on the doctor's appointment; ``notes`` replaces the doctor's notes when given."""
        AppointmentLedger._check_status(status)
        appointment = AppointmentLedger._load(appointment_id)
        if not caller.is_doctor_of(appointment.doctor_id):
            raise Forbidden('Not authorized to update this appointment')

        previous = appointment.status
        appointment.status = status
        update_fields = ['status', 'updated_at']
        if notes is not None:
            appointment.notes = notes
            update_fields.append('notes')
        appointment.save(update_fields=update_fields)
        logger.info(f"Appointment {appointment.id} status changed from {previous} to {status}")
        return appointment

    @staticmethod
    def cancel(appointment_id, caller, reason=None):
        appointment = AppointmentLedger._load(appointment_id)
        if not AppointmentLedger._is_party(appointment, caller):
            raise Forbidden('Not authorized to cancel this appointment')

        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancelled_by = caller.role
        appointment.cancellation_reason = reason or ''
        appointment.save(update_fields=['status', 'cancelled_by', 'cancellation_reason', 'updated_at'])
        logger.info(f"Appointment {appointment.id} cancelled by {caller.role}")
        return appointment

    @staticmethod
    def available_slots(doctor_id, date):
        """
        Free 30-minute slots inside the doctor's working window on ``date``.

        Returns ``(slots, window)``; both are empty when the doctor does not
        work that weekday.
        """
        doctor = AppointmentLedger._active_doctor(doctor_id)
        window = doctor.availability_for(date.strftime('%A').lower())
        if window is None:
            return [], None

        taken = set(
            Appointment.objects.filter(
                doctor=doctor, date=date, status=AppointmentStatus.SCHEDULED
            ).values_list('time', flat=True)
        )
        return [slot for slot in generate_time_slots(window['start_time'], window['end_time']) if slot not in taken], window


def generate_time_slots(start_time, end_time, interval_minutes=SLOT_MINUTES):
    """``HH:MM`` slot starts from ``start_time`` up to, not including, ``end_time``."""
    current = datetime.strptime(start_time, '%H:%M')
    end = datetime.strptime(end_time, '%H:%M')
    slots = []
    while current < end:
        slots.append(current.strftime('%H:%M'))
        current += timedelta(minutes=interval_minutes)
    return slots


class ConsultationRecords:
    """
    Consultation records written by doctors and read by the patients they
    concern. Deletion only clears ``is_active``.
    """

    @staticmethod
    def _consultations():
        return Consultation.objects.select_related('patient__user', 'doctor__user')

    @staticmethod
    def _load(consultation_id):
        try:
            return ConsultationRecords._consultations().get(id=consultation_id)
        except Consultation.DoesNotExist:
            raise NotFound('Consultation not found')

    @staticmethod
    def _load_authored(consultation_id, caller):
        consultation = ConsultationRecords._load(consultation_id)
        if not caller.is_doctor_of(consultation.doctor_id):
            raise Forbidden('Not authorized to modify this consultation')
        return consultation

    @staticmethod
    def _check_patient_access(patient_id, caller):
        # Doctors may read any patient's history, patients only their own
        if caller.is_patient and not caller.is_patient_of(patient_id):
            raise Forbidden('Not authorized to view these consultations')

    @staticmethod
    def _active_for_patient(patient_id):
        return ConsultationRecords._consultations().active().filter(patient_id=patient_id).order_by('-created_at')

    @staticmethod
    def create(doctor, patient_id, payload):
        patient = Patient.objects.filter(id=patient_id, user__is_active=True).first()
        if patient is None:
            raise NotFound('Patient not found')

        consultation = Consultation.objects.create(patient=patient, doctor=doctor, **payload)
        logger.info(f"Doctor {doctor.id} recorded consultation {consultation.id} for patient {patient.id}")
        return ConsultationRecords._load(consultation.id)

    @staticmethod
    def get(consultation_id, caller):
        consultation = ConsultationRecords._load(consultation_id)
        if not (caller.is_patient_of(consultation.patient_id) or caller.is_doctor_of(consultation.doctor_id)):
            raise Forbidden('Not authorized to view this consultation')
        return consultation

    @staticmethod
    def list_for_patient(patient_id, caller, page=1, limit=10):
        ConsultationRecords._check_patient_access(patient_id, caller)
        return paginate(ConsultationRecords._active_for_patient(patient_id), page, limit)

    @staticmethod
    def list_for_doctor(doctor_id, caller, page=1, limit=10):
        if not caller.is_doctor_of(doctor_id):
            raise Forbidden('Not authorized to view these consultations')
        queryset = ConsultationRecords._consultations().active().filter(doctor_id=doctor_id).order_by('-created_at')
        return paginate(queryset, page, limit)

    @staticmethod
    def get_latest_for_patient(patient_id, caller):
        ConsultationRecords._check_patient_access(patient_id, caller)
        consultation = ConsultationRecords._active_for_patient(patient_id).first()
        if consultation is None:
            raise NotFound('No consultations found for this patient')
        return consultation

    @staticmethod
    def update(consultation_id, caller, partial_payload):
        consultation = ConsultationRecords._load_authored(consultation_id, caller)
        for field, value in partial_payload.items():
            setattr(consultation, field, value)
        consultation.save()
        logger.info(f"Consultation {consultation.id} updated by doctor {caller.id}")
        return consultation

    @staticmethod
    def soft_delete(consultation_id, caller):
        consultation = ConsultationRecords._load_authored(consultation_id, caller)
        consultation.is_active = False
        consultation.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Consultation {consultation.id} deactivated by doctor {caller.id}")
        return consultation
