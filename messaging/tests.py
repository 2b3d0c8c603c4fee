from datetime import date, timedelta
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework import status

from hospitalportal.exceptions import Forbidden, NotFound
from hospitalportal.testing import create_patient, create_doctor, caller_for, authenticate
from healthcare.models import AppointmentStatus
from healthcare.services import AppointmentLedger
from .models import Message, MessagePriority, MessageType, ParticipantModel
from .services import MessageService


def age(message, minutes):
    Message.objects.filter(pk=message.pk).update(created_at=timezone.now() - timedelta(minutes=minutes))


class MessageServiceTests(TestCase):
    def setUp(self):
        self.patient = create_patient()
        self.doctor = create_doctor()
        self.patient_caller = caller_for(self.patient)
        self.doctor_caller = caller_for(self.doctor)

    def send_to_doctor(self, subject='Test results', **kwargs):
        return MessageService.send(
            self.patient_caller, self.doctor.id, ParticipantModel.DOCTOR, subject, 'Are my results in?', **kwargs
        )

    def test_send_defaults_and_new_thread(self):
        message = self.send_to_doctor()

        self.assertEqual(message.sender_model, ParticipantModel.PATIENT)
        self.assertEqual(message.message_type, MessageType.GENERAL)
        self.assertEqual(message.priority, MessagePriority.NORMAL)
        self.assertEqual(message.thread_id, str(message.id))
        self.assertFalse(message.is_read)

    def test_send_to_wrong_kind_is_not_found(self):
        with self.assertRaisesMessage(NotFound, 'Recipient not found'):
            MessageService.send(
                self.patient_caller, self.doctor.id, ParticipantModel.PATIENT, 'Hi', 'Hello'
            )

    def test_send_with_unknown_appointment_is_not_found(self):
        with self.assertRaisesMessage(NotFound, 'Appointment not found'):
            self.send_to_doctor(appointment_id='00000000-0000-4000-8000-000000000000')

    def test_reply_chain_shares_the_thread(self):
        root = self.send_to_doctor(priority=MessagePriority.HIGH)
        answer = MessageService.reply(root.id, self.doctor_caller, 'Yes, all normal')
        follow_up = MessageService.reply(answer.id, self.patient_caller, 'Thank you')

        self.assertEqual({answer.thread_id, follow_up.thread_id}, {root.thread_id})
        self.assertEqual(answer.subject, 'Re: Test results')
        self.assertEqual(answer.priority, MessagePriority.HIGH)
        self.assertEqual(answer.recipient.kind, ParticipantModel.PATIENT)
        self.assertEqual(follow_up.recipient.kind, ParticipantModel.DOCTOR)
        self.assertEqual(follow_up.parent_message_id, answer.id)

    def test_reply_subject_is_truncated(self):
        root = self.send_to_doctor(subject='x' * 200)
        answer = MessageService.reply(root.id, self.doctor_caller, 'ok')
        self.assertEqual(len(answer.subject), 200)
        self.assertTrue(answer.subject.startswith('Re: '))

    def test_outsider_cannot_reply(self):
        root = self.send_to_doctor()
        outsider = caller_for(create_patient(email='outsider@example.com'))

        with self.assertRaises(Forbidden):
            MessageService.reply(root.id, outsider, 'Hello?')

    def test_mark_read_is_idempotent(self):
        message = self.send_to_doctor()

        MessageService.mark_read(message.id, self.doctor_caller)
        message.refresh_from_db()
        first_read_at = message.read_at
        MessageService.mark_read(message.id, self.doctor_caller)
        message.refresh_from_db()

        self.assertTrue(message.is_read)
        self.assertEqual(message.read_at, first_read_at)

    def test_sender_cannot_mark_read_or_delete(self):
        message = self.send_to_doctor()

        with self.assertRaises(Forbidden):
            MessageService.mark_read(message.id, self.patient_caller)
        with self.assertRaises(Forbidden):
            MessageService.delete(message.id, self.patient_caller)

    def test_mark_many_counts_only_changed_messages(self):
        first = self.send_to_doctor()
        second = self.send_to_doctor()
        MessageService.mark_read(first.id, self.doctor_caller)
        not_mine = MessageService.send(
            self.doctor_caller, self.patient.id, ParticipantModel.PATIENT, 'Reminder', 'See you Monday'
        )

        modified = MessageService.mark_many_read([first.id, second.id, not_mine.id], self.doctor_caller)

        self.assertEqual(modified, 1)
        not_mine.refresh_from_db()
        self.assertFalse(not_mine.is_read)

    def test_thread_is_oldest_first_and_marks_read(self):
        root = self.send_to_doctor()
        answer = MessageService.reply(root.id, self.doctor_caller, 'Yes')
        age(root, 10)
        age(answer, 5)

        thread = MessageService.get_thread(root.thread_id, self.patient_caller)

        self.assertEqual([m.id for m in thread], [root.id, answer.id])
        answer.refresh_from_db()
        root.refresh_from_db()
        self.assertTrue(answer.is_read)
        self.assertFalse(root.is_read)

    def test_thread_hidden_from_outsiders(self):
        root = self.send_to_doctor()
        outsider = caller_for(create_doctor(email='other@example.com', license_number='LIC-2'))

        with self.assertRaisesMessage(NotFound, 'Thread not found'):
            MessageService.get_thread(root.thread_id, outsider)

    def test_get_by_recipient_marks_read(self):
        message = self.send_to_doctor()

        MessageService.get(message.id, self.patient_caller)
        message.refresh_from_db()
        self.assertFalse(message.is_read)

        MessageService.get(message.id, self.doctor_caller)
        message.refresh_from_db()
        self.assertTrue(message.is_read)
        self.assertIsNotNone(message.read_at)

    def test_unread_count_ignores_filters(self):
        self.send_to_doctor(priority=MessagePriority.URGENT)
        self.send_to_doctor()
        self.send_to_doctor()

        page, unread_count = MessageService.list(self.doctor_caller, {'priority': 'urgent'})

        self.assertEqual(page.total, 1)
        self.assertEqual(unread_count, 3)

    def test_archive_and_unarchive(self):
        message = self.send_to_doctor()

        self.assertTrue(MessageService.archive(message.id, self.doctor_caller).is_archived)
        self.assertFalse(MessageService.archive(message.id, self.doctor_caller, archived=False).is_archived)


@override_settings(ALLOWED_HOSTS=['*'])
class MessageAPITests(APITestCase):
    def setUp(self):
        self.patient = create_patient()
        self.doctor = create_doctor()
        self.url = '/api/messages/'

    def send(self):
        authenticate(self.client, self.patient)
        return self.client.post(self.url, {
            'recipient': str(self.doctor.id),
            'recipient_model': 'Doctor',
            'subject': 'Prescription refill',
            'content': 'Could you renew my prescription?',
            'message_type': 'prescription',
        }, format='json')

    def test_send_and_read_inbox(self):
        response = self.send()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['recipient']['specialization'], 'cardiology')

        authenticate(self.client, self.doctor)
        inbox = self.client.get(self.url)

        self.assertEqual(inbox.status_code, status.HTTP_200_OK)
        self.assertEqual(inbox.data['total'], 1)
        self.assertEqual(inbox.data['unread_count'], 1)
        self.assertEqual(inbox.data['data'][0]['sender']['first_name'], 'Jane')

    def test_send_to_missing_recipient(self):
        authenticate(self.client, self.patient)

        response = self.client.post(self.url, {
            'recipient': '00000000-0000-4000-8000-000000000000',
            'recipient_model': 'Doctor',
            'subject': 'Hello',
            'content': 'Anyone there?',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Recipient not found')

    def test_invalid_filter_is_rejected(self):
        authenticate(self.client, self.doctor)
        response = self.client.get(self.url, {'priority': 'whenever'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reply_and_thread(self):
        message_id = self.send().data['data']['id']
        authenticate(self.client, self.doctor)

        reply = self.client.post(f'{self.url}{message_id}/reply/', {'content': 'Renewed'}, format='json')
        self.assertEqual(reply.status_code, status.HTTP_201_CREATED)

        thread = self.client.get(f'{self.url}thread/{message_id}/')
        self.assertEqual(thread.status_code, status.HTTP_200_OK)
        self.assertEqual(thread.data['count'], 2)

    def test_bulk_mark_read(self):
        message_id = self.send().data['data']['id']
        authenticate(self.client, self.doctor)

        response = self.client.put(f'{self.url}mark-read/', {'message_ids': [message_id]}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['modified'], 1)
        self.assertEqual(self.client.get(self.url).data['unread_count'], 0)

    def test_sender_cannot_delete(self):
        message_id = self.send().data['data']['id']

        response = self.client.delete(f'{self.url}{message_id}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_recipient_deletes(self):
        message_id = self.send().data['data']['id']
        authenticate(self.client, self.doctor)

        response = self.client.delete(f'{self.url}{message_id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Message.objects.filter(pk=message_id).exists())

    def test_archive_endpoint(self):
        message_id = self.send().data['data']['id']
        authenticate(self.client, self.doctor)

        response = self.client.put(f'{self.url}{message_id}/archive/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['data']['is_archived'])


@override_settings(ALLOWED_HOSTS=['*'])
class CompletedAppointmentConversationTests(APITestCase):
    """A doctor follows up on a completed visit and the patient answers."""

    def test_follow_up_thread_on_completed_appointment(self):
        patient = create_patient()
        doctor = create_doctor()
        appointment, _ = AppointmentLedger.book_or_extend(patient, doctor.id, date(2030, 1, 7), '10:00', 'Chest pain')
        AppointmentLedger.update_status(appointment.id, caller_for(doctor), AppointmentStatus.COMPLETED)

        authenticate(self.client, doctor)
        sent = self.client.post('/api/messages/', {
            'recipient': str(patient.id),
            'recipient_model': 'Patient',
            'subject': 'After your visit',
            'content': 'How is the chest pain since Monday?',
            'message_type': 'follow_up',
            'appointment': str(appointment.id),
        }, format='json')
        self.assertEqual(sent.status_code, status.HTTP_201_CREATED)
        self.assertEqual(sent.data['data']['appointment']['status'], 'completed')

        authenticate(self.client, patient)
        reply = self.client.post(
            f"/api/messages/{sent.data['data']['id']}/reply/", {'content': 'Much better, thanks'}, format='json'
        )

        self.assertEqual(reply.status_code, status.HTTP_201_CREATED)
        self.assertEqual(reply.data['data']['thread_id'], sent.data['data']['thread_id'])
        self.assertEqual(reply.data['data']['message_type'], 'follow_up')
        self.assertEqual(reply.data['data']['appointment']['id'], str(appointment.id))
        self.assertEqual(reply.data['data']['recipient']['model'], 'Doctor')
        self.assertFalse(Message.objects.get(pk=sent.data['data']['id']).is_read)
