from datetime import timedelta
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework import status

from hospitalportal.exceptions import Forbidden, NotFound
from hospitalportal.testing import create_patient, create_doctor, caller_for, authenticate
from healthcare.models import Consultation
from healthcare.services import ConsultationRecords


def consultation_payload(patient, /, **overrides):
    payload = {
        'patient': str(patient.id),
        'medical_condition': 'Hypertension',
        'symptoms': [{'symptom': 'Headache', 'severity': 'moderate', 'duration': '3 days'}],
        'diagnosis': {'primary_diagnosis': 'Stage 1 hypertension'},
        'medications': [{
            'name': 'Amlodipine', 'dosage': '5mg', 'frequency': 'Once daily', 'duration': '30 days'
        }],
        'vitals': {'blood_pressure': {'systolic': 145, 'diastolic': 95}, 'heart_rate': 80},
        'consultation_fee': '150.00',
        'consultation_type': 'in-person',
    }
    payload.update(overrides)
    return payload


def record(doctor, patient, condition='Hypertension', days_ago=0):
    consultation = Consultation.objects.create(
        patient=patient,
        doctor=doctor,
        medical_condition=condition,
        symptoms=[{'symptom': 'Headache', 'severity': 'mild'}],
        diagnosis={'primary_diagnosis': condition},
    )
    # Pin creation times so newest-first ordering is deterministic
    Consultation.objects.filter(pk=consultation.pk).update(created_at=timezone.now() - timedelta(days=days_ago))
    return consultation


class ConsultationRecordsTests(TestCase):
    def setUp(self):
        self.patient = create_patient()
        self.doctor = create_doctor()

    def test_pagination_math(self):
        for day in range(12):
            record(self.doctor, self.patient, condition=f'Visit {day}', days_ago=day)

        caller = caller_for(self.patient)
        first = ConsultationRecords.list_for_patient(self.patient.id, caller, page=1, limit=5)
        last = ConsultationRecords.list_for_patient(self.patient.id, caller, page=3, limit=5)
        beyond = ConsultationRecords.list_for_patient(self.patient.id, caller, page=4, limit=5)

        self.assertEqual(first.total, 12)
        self.assertEqual(first.page_count, 3)
        self.assertEqual(first.items[0].medical_condition, 'Visit 0')
        self.assertEqual(len(last.items), 2)
        self.assertEqual(beyond.items, [])
        self.assertEqual(beyond.total, 12)

    def test_soft_deleted_records_leave_lists_but_stay_readable(self):
        kept = record(self.doctor, self.patient, condition='Older', days_ago=2)
        removed = record(self.doctor, self.patient, condition='Newer', days_ago=1)

        ConsultationRecords.soft_delete(removed.id, caller_for(self.doctor))

        listed = ConsultationRecords.list_for_patient(self.patient.id, caller_for(self.patient))
        self.assertEqual([c.id for c in listed.items], [kept.id])
        self.assertEqual(ConsultationRecords.get_latest_for_patient(self.patient.id, caller_for(self.doctor)).id, kept.id)
        self.assertFalse(ConsultationRecords.get(removed.id, caller_for(self.patient)).is_active)

    def test_latest_without_records_is_not_found(self):
        with self.assertRaisesMessage(NotFound, 'No consultations found for this patient'):
            ConsultationRecords.get_latest_for_patient(self.patient.id, caller_for(self.patient))

    def test_patient_cannot_read_another_patients_history(self):
        other = create_patient(email='other@example.com')
        record(self.doctor, other)

        with self.assertRaises(Forbidden):
            ConsultationRecords.list_for_patient(other.id, caller_for(self.patient))

    def test_only_the_author_modifies(self):
        consultation = record(self.doctor, self.patient)
        colleague = create_doctor(email='colleague@example.com', license_number='LIC-2')

        with self.assertRaises(Forbidden):
            ConsultationRecords.update(consultation.id, caller_for(colleague), {'medical_condition': 'Migraine'})
        with self.assertRaises(Forbidden):
            ConsultationRecords.soft_delete(consultation.id, caller_for(colleague))


@override_settings(ALLOWED_HOSTS=['*'])
class ConsultationAPITests(APITestCase):
    def setUp(self):
        self.patient = create_patient()
        self.doctor = create_doctor()
        self.url = '/api/consultations/'

    def test_doctor_records_consultation(self):
        authenticate(self.client, self.doctor)

        response = self.client.post(self.url, consultation_payload(self.patient), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['patient']['id'], str(self.patient.id))
        self.assertEqual(data['doctor']['id'], str(self.doctor.id))
        self.assertEqual(data['diagnosis']['primary_diagnosis'], 'Stage 1 hypertension')
        self.assertEqual(data['vitals']['blood_pressure']['systolic'], 145)
        self.assertEqual(data['status'], 'completed')
        self.assertTrue(data['is_active'])

    def test_patient_cannot_record_consultation(self):
        authenticate(self.client, self.patient)
        response = self.client.post(self.url, consultation_payload(self.patient), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_symptoms_are_required(self):
        authenticate(self.client, self.doctor)

        response = self.client.post(self.url, consultation_payload(self.patient, symptoms=[]), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('symptoms', [error['field'] for error in response.data['errors']])

    def test_unknown_patient_is_not_found(self):
        authenticate(self.client, self.doctor)
        payload = consultation_payload(self.patient, patient='00000000-0000-4000-8000-000000000000')

        response = self.client.post(self.url, payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patient_history_is_paginated(self):
        for day in range(12):
            record(self.doctor, self.patient, days_ago=day)
        authenticate(self.client, self.patient)

        response = self.client.get(f'{self.url}patient/{self.patient.id}/', {'page': 3, 'limit': 5})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['total'], 12)
        self.assertEqual(response.data['page'], 3)
        self.assertEqual(response.data['page_count'], 3)

    def test_patient_cannot_list_doctor_records(self):
        authenticate(self.client, self.patient)
        response = self.client.get(f'{self.url}doctor/{self.doctor.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_doctor_lists_own_records(self):
        record(self.doctor, self.patient)
        authenticate(self.client, self.doctor)

        response = self.client.get(f'{self.url}doctor/{self.doctor.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)

    def test_latest_for_patient(self):
        record(self.doctor, self.patient, condition='Older', days_ago=3)
        record(self.doctor, self.patient, condition='Newest', days_ago=0)
        authenticate(self.client, self.patient)

        response = self.client.get(f'{self.url}patient/{self.patient.id}/latest/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['medical_condition'], 'Newest')

    def test_partial_update_keeps_other_fields(self):
        consultation = record(self.doctor, self.patient)
        authenticate(self.client, self.doctor)

        response = self.client.patch(
            f'{self.url}{consultation.id}/', {'medical_condition': 'Controlled hypertension'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['medical_condition'], 'Controlled hypertension')
        self.assertEqual(response.data['data']['diagnosis']['primary_diagnosis'], 'Hypertension')

    def test_update_with_empty_diagnosis_is_rejected(self):
        consultation = record(self.doctor, self.patient)
        authenticate(self.client, self.doctor)

        response = self.client.put(
            f'{self.url}{consultation.id}/', {'diagnosis': {'notes': 'pending labs'}}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_partial_update_rejects_incomplete_entries(self):
        consultation = record(self.doctor, self.patient)
        authenticate(self.client, self.doctor)

        response = self.client.patch(f'{self.url}{consultation.id}/', {
            'symptoms': [{'severity': 'severe'}],
            'medications': [{'name': 'Aspirin'}],
            'vitals': {'blood_pressure': {'systolic': 120}},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        fields = [error['field'] for error in response.data['errors']]
        self.assertIn('symptoms[0].symptom', fields)
        self.assertIn('medications[0].dosage', fields)
        self.assertIn('vitals.blood_pressure.diastolic', fields)
        consultation.refresh_from_db()
        self.assertEqual(consultation.symptoms, [{'symptom': 'Headache', 'severity': 'mild'}])
        self.assertEqual(consultation.medications, [])

    def test_partial_update_replaces_symptoms_with_defaults(self):
        consultation = record(self.doctor, self.patient)
        authenticate(self.client, self.doctor)

        response = self.client.patch(
            f'{self.url}{consultation.id}/', {'symptoms': [{'symptom': 'Dizziness'}]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        consultation.refresh_from_db()
        self.assertEqual(consultation.symptoms, [{'symptom': 'Dizziness', 'severity': 'mild'}])
        self.assertEqual(consultation.diagnosis['primary_diagnosis'], 'Hypertension')

    def test_delete_is_soft(self):
        consultation = record(self.doctor, self.patient)
        authenticate(self.client, self.doctor)

        response = self.client.delete(f'{self.url}{consultation.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(f'{self.url}{consultation.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['data']['is_active'])
        self.assertTrue(Consultation.objects.filter(pk=consultation.pk).exists())

    def test_unrelated_patient_cannot_read_record(self):
        consultation = record(self.doctor, self.patient)
        authenticate(self.client, create_patient(email='other@example.com'))

        response = self.client.get(f'{self.url}{consultation.id}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
