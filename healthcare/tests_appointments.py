from datetime import date, timedelta
from io import StringIO
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework import status

from hospitalportal.exceptions import NotFound, SlotTaken, ValidationError
from hospitalportal.testing import create_patient, create_doctor, caller_for, authenticate
from healthcare.models import Appointment, AppointmentStatus
from healthcare.services import AppointmentLedger, generate_time_slots

MONDAY = date(2030, 1, 7)
SATURDAY = date(2030, 1, 12)


def upcoming(weekday):
    """Next date after today that falls on ``weekday`` (0 is Monday)."""
    today = timezone.localdate()
    return today + timedelta(days=(weekday - today.weekday() - 1) % 7 + 1)


class AppointmentLedgerTests(TestCase):
    def setUp(self):
        self.patient = create_patient()
        self.doctor = create_doctor()

    def test_first_booking_creates_appointment_with_one_reason(self):
        appointment, created = AppointmentLedger.book_or_extend(
            self.patient, self.doctor.id, MONDAY, '10:00', 'Chest pain'
        )

        self.assertTrue(created)
        self.assertEqual(appointment.status, AppointmentStatus.SCHEDULED)
        self.assertEqual([reason.text for reason in appointment.reason_history], ['Chest pain'])
        self.assertEqual(appointment.current_reason.text, 'Chest pain')

    def test_second_booking_extends_the_live_appointment(self):
        first, _ = AppointmentLedger.book_or_extend(self.patient, self.doctor.id, MONDAY, '10:00', 'Chest pain')
        AppointmentLedger.update_status(first.id, caller_for(self.doctor), AppointmentStatus.COMPLETED)

        second, created = AppointmentLedger.book_or_extend(
            self.patient, self.doctor.id, date(2030, 1, 14), '11:00', 'Follow-up on chest pain'
        )

        self.assertFalse(created)
        self.assertEqual(second.id, first.id)
        self.assertEqual(second.status, AppointmentStatus.SCHEDULED)
        self.assertEqual(second.date, date(2030, 1, 14))
        self.assertEqual(second.time, '11:00')
        self.assertEqual(
            [reason.text for reason in second.reason_history],
            ['Chest pain', 'Follow-up on chest pain']
        )
        self.assertEqual([reason.text for reason in second.previous_reasons], ['Chest pain'])
        self.assertEqual(Appointment.objects.count(), 1)

    def test_cancelled_appointment_is_not_extended(self):
        first, _ = AppointmentLedger.book_or_extend(self.patient, self.doctor.id, MONDAY, '10:00', 'Chest pain')
        AppointmentLedger.cancel(first.id, caller_for(self.patient), 'Feeling better')

        second, created = AppointmentLedger.book_or_extend(self.patient, self.doctor.id, MONDAY, '10:00', 'Pain is back')

        self.assertTrue(created)
        self.assertNotEqual(second.id, first.id)
        self.assertEqual([reason.text for reason in second.reason_history], ['Pain is back'])

    def test_scheduled_slot_cannot_be_taken_by_another_patient(self):
        AppointmentLedger.book_or_extend(self.patient, self.doctor.id, MONDAY, '10:00', 'Chest pain')
        other = create_patient(email='other@example.com')

        with self.assertRaises(SlotTaken):
            AppointmentLedger.book_or_extend(other, self.doctor.id, MONDAY, '10:00', 'Headache')

    def test_booking_an_unknown_doctor_is_not_found(self):
        inactive = create_doctor(email='gone@example.com', license_number='LIC-9')
        inactive.user.is_active = False
        inactive.user.save()

        with self.assertRaisesMessage(NotFound, 'Doctor not found'):
            AppointmentLedger.book_or_extend(self.patient, inactive.id, MONDAY, '10:00', 'Chest pain')

    def test_duplicate_live_pairs_are_reported(self):
        AppointmentLedger.book_or_extend(self.patient, self.doctor.id, MONDAY, '10:00', 'Chest pain')
        # A concurrent booking can slip past the live-appointment lookup
        Appointment.objects.create(patient=self.patient, doctor=self.doctor, date=MONDAY, time='11:00')

        with self.assertLogs('healthcare.services', level='WARNING'):
            AppointmentLedger.book_or_extend(self.patient, self.doctor.id, MONDAY, '12:00', 'Still hurts')

        pairs = AppointmentLedger.duplicate_live_pairs()
        self.assertEqual(len(pairs), 1)
        self.assertEqual(pairs[0]['patient'], self.patient.id)
        self.assertEqual(pairs[0]['live_count'], 2)

    def test_lists_are_ordered_by_date_then_time(self):
        other_doctor = create_doctor(email='second@example.com', license_number='LIC-2')
        third_doctor = create_doctor(email='third@example.com', license_number='LIC-3')
        AppointmentLedger.book_or_extend(self.patient, self.doctor.id, date(2030, 1, 9), '09:00', 'A')
        AppointmentLedger.book_or_extend(self.patient, other_doctor.id, MONDAY, '14:00', 'B')
        AppointmentLedger.book_or_extend(self.patient, third_doctor.id, MONDAY, '09:30', 'C')

        appointments = AppointmentLedger.list_for_patient(self.patient.id)

        self.assertEqual([a.current_reason.text for a in appointments], ['C', 'B', 'A'])

    def test_list_rejects_unknown_status(self):
        with self.assertRaises(ValidationError):
            AppointmentLedger.list_for_patient(self.patient.id, 'postponed')

    def test_available_slots_skip_scheduled_times(self):
        AppointmentLedger.book_or_extend(self.patient, self.doctor.id, MONDAY, '09:30', 'Chest pain')

        slots, window = AppointmentLedger.available_slots(self.doctor.id, MONDAY)

        self.assertEqual(window['day'], 'monday')
        self.assertEqual(slots[:2], ['09:00', '10:00'])
        self.assertNotIn('09:30', slots)
        self.assertEqual(slots[-1], '16:30')

    def test_no_slots_on_days_off(self):
        slots, window = AppointmentLedger.available_slots(self.doctor.id, SATURDAY)
        self.assertEqual(slots, [])
        self.assertIsNone(window)

    def test_generate_time_slots(self):
        self.assertEqual(generate_time_slots('09:00', '10:30'), ['09:00', '09:30', '10:00'])
        self.assertEqual(generate_time_slots('09:00', '09:00'), [])


@override_settings(ALLOWED_HOSTS=['*'])
class AppointmentAPITests(APITestCase):
    def setUp(self):
        self.patient = create_patient()
        self.doctor = create_doctor()
        self.url = '/api/appointments/'
        self.monday = upcoming(0)
        self.saturday = upcoming(5)

    def book(self, reason='Chest pain', time='10:00', when=None):
        authenticate(self.client, self.patient)
        return self.client.post(self.url, {
            'doctor': str(self.doctor.id),
            'date': (when or self.monday).isoformat(),
            'time': time,
            'reason': reason,
        }, format='json')

    def test_patient_books_then_extends_with_cardiologist(self):
        first = self.book()
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data['data']['current_reason']['text'], 'Chest pain')
        self.assertNotIn('previous_consultations', first.data['data'])

        second = self.book(reason='Shortness of breath', time='11:00')
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(second.data['message'], 'Existing appointment updated with a new reason')
        self.assertEqual(second.data['data']['id'], first.data['data']['id'])
        self.assertEqual(len(second.data['data']['reasons']), 2)

        authenticate(self.client, self.doctor)
        response = self.client.get(f"{self.url}{first.data['data']['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['current_reason']['text'], 'Shortness of breath')
        self.assertEqual(
            [reason['text'] for reason in response.data['data']['previous_consultations']],
            ['Chest pain']
        )

    def test_taken_slot_answers_conflict(self):
        self.book()
        other = create_patient(email='other@example.com')
        authenticate(self.client, other)

        response = self.client.post(self.url, {
            'doctor': str(self.doctor.id), 'date': self.monday.isoformat(), 'time': '10:00', 'reason': 'Headache'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(response.data['success'])

    def test_invalid_time_is_rejected(self):
        response = self.book(time='25:00')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors'][0]['field'], 'time')

    def test_past_date_is_rejected(self):
        response = self.book(when=timezone.localdate() - timedelta(days=1))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors'][0]['field'], 'date')
        self.assertEqual(response.data['errors'][0]['message'], 'Appointment date cannot be in the past')
        self.assertFalse(Appointment.objects.exists())

    def test_date_beyond_three_months_is_rejected(self):
        response = self.book(when=timezone.localdate() + timedelta(days=120))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data['errors'][0]['message'], 'Appointment date cannot be more than 3 months in advance'
        )

    def test_booking_today_is_accepted(self):
        response = self.book(when=timezone.localdate(), time='23:30')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_doctor_cannot_book(self):
        authenticate(self.client, self.doctor)
        response = self.client.post(self.url, {
            'doctor': str(self.doctor.id), 'date': self.monday.isoformat(), 'time': '10:00', 'reason': 'x'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_only_the_owning_patient_adds_reasons(self):
        appointment_id = self.book().data['data']['id']
        authenticate(self.client, create_patient(email='stranger@example.com'))

        response = self.client.post(f'{self.url}{appointment_id}/reasons/', {'reason': 'Me too'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_patient_adds_reason(self):
        appointment_id = self.book().data['data']['id']

        response = self.client.post(f'{self.url}{appointment_id}/reasons/', {'reason': 'Also dizzy'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['current_reason']['text'], 'Also dizzy')

    def test_doctor_updates_status_and_patient_cannot(self):
        appointment_id = self.book().data['data']['id']

        response = self.client.put(f'{self.url}{appointment_id}/status/', {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        authenticate(self.client, self.doctor)
        response = self.client.put(
            f'{self.url}{appointment_id}/status/', {'status': 'completed', 'notes': 'ECG normal'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'completed')
        self.assertEqual(response.data['data']['notes'], 'ECG normal')

    def test_other_doctor_cannot_update_status(self):
        appointment_id = self.book().data['data']['id']
        authenticate(self.client, create_doctor(email='other@example.com', license_number='LIC-2'))

        response = self.client.put(f'{self.url}{appointment_id}/status/', {'status': 'completed'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_patient_cancels_with_reason(self):
        appointment_id = self.book().data['data']['id']

        response = self.client.put(f'{self.url}{appointment_id}/cancel/', {'reason': 'Travelling'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'cancelled')
        self.assertEqual(response.data['data']['cancelled_by'], 'patient')
        self.assertEqual(response.data['data']['cancellation_reason'], 'Travelling')

    def test_list_filters_by_status(self):
        self.book()

        response = self.client.get(self.url, {'status': 'cancelled'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 0)

        response = self.client.get(self.url, {'status': 'scheduled'})
        self.assertEqual(response.data['count'], 1)

    def test_unknown_appointment_is_not_found(self):
        authenticate(self.client, self.patient)
        response = self.client.get(f'{self.url}00000000-0000-4000-8000-000000000000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_availability_endpoint(self):
        self.book(time='09:00')

        response = self.client.get(f'{self.url}doctor/{self.doctor.id}/availability/', {'date': self.monday.isoformat()})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['available_slots'][0], '09:30')
        self.assertEqual(response.data['data']['doctor_availability']['start_time'], '09:00')

    def test_availability_on_day_off(self):
        authenticate(self.client, self.patient)

        response = self.client.get(f'{self.url}doctor/{self.doctor.id}/availability/', {'date': self.saturday.isoformat()})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['available_slots'], [])
        self.assertEqual(response.data['message'], 'Doctor is not available on this day')


class DuplicateReportCommandTests(TestCase):
    def test_reports_duplicate_pairs(self):
        patient = create_patient()
        doctor = create_doctor()
        Appointment.objects.create(patient=patient, doctor=doctor, date=MONDAY, time='10:00')
        Appointment.objects.create(patient=patient, doctor=doctor, date=MONDAY, time='11:00')
        out = StringIO()

        with self.assertRaises(CommandError):
            call_command('report_duplicate_appointments', '--fail-on-duplicates', stdout=out)

        self.assertIn(str(patient.id), out.getvalue())

    def test_clean_ledger(self):
        out = StringIO()
        call_command('report_duplicate_appointments', stdout=out)
        self.assertIn('No duplicate live appointments found.', out.getvalue())
