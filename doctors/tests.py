from django.test import override_settings
from rest_framework.test import APITestCase
from rest_framework import status

from hospitalportal.testing import create_doctor, create_patient, authenticate


@override_settings(ALLOWED_HOSTS=['*'])
class DoctorDirectoryTestCase(APITestCase):
    """Test cases for the public doctor directory"""

    def setUp(self):
        self.cardiologist = create_doctor(email='heart@example.com', license_number='LIC-1', first_name='Amina')
        self.neurologist = create_doctor(
            email='brain@example.com', license_number='LIC-2', specialization='neurology', last_name='Wanjiru'
        )
        self.retired = create_doctor(email='retired@example.com', license_number='LIC-3')
        self.retired.user.is_active = False
        self.retired.user.save()

    def test_list_is_public_and_hides_inactive_doctors(self):
        response = self.client.get('/api/doctors/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['total'], 2)
        ids = {doctor['id'] for doctor in response.data['data']}
        self.assertNotIn(str(self.retired.id), ids)

    def test_list_ignores_a_stale_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer expired-or-garbage')
        response = self.client.get('/api/doctors/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_filter_by_specialization(self):
        response = self.client.get('/api/doctors/', {'specialization': 'neurology'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([doctor['id'] for doctor in response.data['data']], [str(self.neurologist.id)])

    def test_filter_by_name(self):
        response = self.client.get('/api/doctors/', {'name': 'amin'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([doctor['id'] for doctor in response.data['data']], [str(self.cardiologist.id)])

    def test_retrieve_doctor(self):
        response = self.client.get(f'/api/doctors/{self.cardiologist.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['license_number'], 'LIC-1')
        self.assertEqual(response.data['data']['specialization_display'], 'Cardiology')
        self.assertNotIn('password', response.data['data']['user'])

    def test_retrieve_inactive_doctor_is_not_found(self):
        response = self.client.get(f'/api/doctors/{self.retired.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])

    def test_doctor_me_returns_profile(self):
        authenticate(self.client, self.cardiologist)

        response = self.client.get('/api/doctors/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['id'], str(self.cardiologist.id))

    def test_doctor_token_on_patient_endpoint_is_forbidden(self):
        create_patient()
        authenticate(self.client, self.cardiologist)
        response = self.client.get('/api/patients/me/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
