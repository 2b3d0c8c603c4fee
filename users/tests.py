from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.conf import settings
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from hospitalportal.testing import PASSWORD, create_patient, create_doctor, authenticate
from users.models import User, Role


@override_settings(ALLOWED_HOSTS=['*'])
class PatientAccountTestCase(APITestCase):
    """Registration, login and profile endpoints for patients"""

    def setUp(self):
        self.register_url = '/api/patients/register/'
        self.login_url = '/api/patients/login/'
        self.valid_data = {
            'first_name': 'Jane',
            'last_name': 'Doe',
            'email': 'Jane.Doe@Example.com',
            'password': PASSWORD,
            'phone_number': '0712345678',
            'gender': 'female',
            'allergies': ['penicillin'],
        }

    def test_register_returns_token_and_profile(self):
        response = self.client.post(self.register_url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertIn('token', response.data)
        self.assertIn(settings.JWT_COOKIE_NAME, response.cookies)

        user_data = response.data['data']['user']
        self.assertEqual(user_data['email'], 'jane.doe@example.com')
        self.assertNotIn('password', user_data)
        self.assertNotIn('reset_password_token', user_data)
        self.assertEqual(response.data['data']['allergies'], ['penicillin'])

        user = User.objects.get(email='jane.doe@example.com')
        self.assertEqual(user.role, 'patient')
        self.assertTrue(user.check_password(PASSWORD))

    def test_register_duplicate_email_is_rejected(self):
        create_patient(email='jane.doe@example.com')

        response = self.client.post(self.register_url, self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn('email', [error['field'] for error in response.data['errors']])

    def test_register_invalid_phone_is_rejected(self):
        self.valid_data['phone_number'] = '12ab'
        response = self.client.post(self.register_url, self.valid_data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_is_case_insensitive_on_email(self):
        create_patient(email='jane.doe@example.com')

        response = self.client.post(self.login_url, {'email': 'JANE.DOE@example.com', 'password': PASSWORD}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('token', response.data)

    def test_login_failures_are_indistinguishable(self):
        create_patient(email='jane.doe@example.com')
        inactive = create_patient(email='gone@example.com')
        inactive.user.is_active = False
        inactive.user.save()
        create_doctor(email='doc@example.com')

        attempts = [
            {'email': 'jane.doe@example.com', 'password': 'wrong-password'},
            {'email': 'nobody@example.com', 'password': PASSWORD},
            {'email': 'gone@example.com', 'password': PASSWORD},
            {'email': 'doc@example.com', 'password': PASSWORD},
        ]
        for attempt in attempts:
            response = self.client.post(self.login_url, attempt, format='json')
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED, attempt)
            self.assertEqual(response.data['message'], 'Invalid credentials')

    def test_me_with_bearer_token(self):
        patient = create_patient()
        authenticate(self.client, patient)

        response = self.client.get('/api/patients/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['id'], str(patient.id))

    def test_me_with_cookie_from_login(self):
        create_patient(email='jane.doe@example.com')
        self.client.post(self.login_url, {'email': 'jane.doe@example.com', 'password': PASSWORD}, format='json')

        response = self.client.get('/api/patients/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_me_without_token_is_unauthorized(self):
        response = self.client.get('/api/patients/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_invalid_token_is_unauthorized(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.get('/api/patients/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_patient_token_on_doctor_endpoint_is_forbidden(self):
        authenticate(self.client, create_patient())
        response = self.client.get('/api/doctors/me/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_logout_clears_cookie(self):
        patient = create_patient()
        authenticate(self.client, patient)

        response = self.client.post('/api/patients/logout/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.cookies[settings.JWT_COOKIE_NAME].value, '')

    def test_update_details_is_partial(self):
        patient = create_patient()
        authenticate(self.client, patient)

        response = self.client.put(
            '/api/patients/updatedetails/',
            {'first_name': 'Janet', 'address': {'city': 'Nairobi'}},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        patient.refresh_from_db()
        patient.user.refresh_from_db()
        self.assertEqual(patient.user.first_name, 'Janet')
        self.assertEqual(patient.user.last_name, 'Doe')
        self.assertEqual(patient.address, {'city': 'Nairobi'})

    def test_update_details_rejects_taken_email(self):
        create_patient(email='taken@example.com')
        patient = create_patient(email='me@example.com')
        authenticate(self.client, patient)

        response = self.client.put('/api/patients/updatedetails/', {'email': 'TAKEN@example.com'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_password_requires_current_password(self):
        patient = create_patient()
        authenticate(self.client, patient)

        response = self.client.put(
            '/api/patients/updatepassword/',
            {'current_password': 'wrong', 'new_password': 'An0therPass!45'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_password_returns_fresh_token(self):
        patient = create_patient()
        authenticate(self.client, patient)

        response = self.client.put(
            '/api/patients/updatepassword/',
            {'current_password': PASSWORD, 'new_password': 'An0therPass!45'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('token', response.data)
        patient.user.refresh_from_db()
        self.assertTrue(patient.user.check_password('An0therPass!45'))


@override_settings(ALLOWED_HOSTS=['*'])
class DoctorAccountTestCase(APITestCase):

    def setUp(self):
        self.valid_data = {
            'first_name': 'Ada',
            'last_name': 'Okoro',
            'email': 'ada@example.com',
            'password': PASSWORD,
            'specialization': 'cardiology',
            'license_number': 'MD-1001',
            'consultation_fee': '120.00',
            'availability': [{'day': 'monday', 'start_time': '09:00', 'end_time': '12:00'}],
            'education': [{'degree': 'MBChB', 'institution': 'University of Nairobi', 'year': 2010}],
        }

    def test_register_doctor(self):
        response = self.client.post('/api/doctors/register/', self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['specialization'], 'cardiology')
        self.assertEqual(response.data['data']['availability'][0]['day'], 'monday')
        self.assertEqual(User.objects.get(email='ada@example.com').role, 'doctor')

    def test_register_duplicate_license_is_rejected(self):
        create_doctor(email='other@example.com', license_number='MD-1001')

        response = self.client.post('/api/doctors/register/', self.valid_data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('license_number', [error['field'] for error in response.data['errors']])

    def test_register_unknown_specialization_is_rejected(self):
        self.valid_data['specialization'] = 'astrology'
        response = self.client.post('/api/doctors/register/', self.valid_data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_doctor_can_update_own_profile(self):
        doctor = create_doctor()
        authenticate(self.client, doctor)

        response = self.client.put('/api/doctors/updatedetails/', {'bio': 'Heart specialist'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        doctor.refresh_from_db()
        self.assertEqual(doctor.bio, 'Heart specialist')
        self.assertEqual(doctor.license_number, 'LIC-0001')

    def test_update_with_incomplete_availability_is_rejected(self):
        doctor = create_doctor()
        authenticate(self.client, doctor)

        response = self.client.put(
            '/api/doctors/updatedetails/', {'availability': [{'day': 'monday'}]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        fields = [error['field'] for error in response.data['errors']]
        self.assertIn('availability[0].start_time', fields)
        self.assertIn('availability[0].end_time', fields)
        doctor.refresh_from_db()
        self.assertEqual(len(doctor.availability), 5)

    def test_update_with_incomplete_education_is_rejected(self):
        doctor = create_doctor()
        authenticate(self.client, doctor)

        response = self.client.put(
            '/api/doctors/updatedetails/', {'education': [{'year': 2012}]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('education[0].degree', [error['field'] for error in response.data['errors']])

    def test_update_replaces_availability(self):
        doctor = create_doctor()
        authenticate(self.client, doctor)

        response = self.client.put('/api/doctors/updatedetails/', {
            'availability': [{'day': 'saturday', 'start_time': '08:00', 'end_time': '10:00'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        doctor.refresh_from_db()
        self.assertEqual(doctor.availability, [{'day': 'saturday', 'start_time': '08:00', 'end_time': '10:00'}])


@override_settings(ALLOWED_HOSTS=['*'])
class PatientDirectoryTestCase(APITestCase):
    """Doctors look up patients; patients cannot"""

    def setUp(self):
        self.url = '/api/patients/'
        self.doctor = create_doctor()
        self.patient = create_patient()
        self.other = create_patient(email='sam@example.com', first_name='Sam', last_name='Kim')

    def test_doctor_lists_active_patients(self):
        User.objects.filter(pk=self.other.user_id).update(is_active=False)
        authenticate(self.client, self.doctor)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['id'], str(self.patient.id))
        self.assertNotIn('password', response.data['data'][0]['user'])

    def test_name_filter(self):
        authenticate(self.client, self.doctor)

        response = self.client.get(self.url, {'name': 'kim'})

        self.assertEqual([patient['id'] for patient in response.data['data']], [str(self.other.id)])

    def test_doctor_retrieves_patient(self):
        authenticate(self.client, self.doctor)

        response = self.client.get(f'{self.url}{self.patient.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['user']['email'], 'patient@example.com')

    def test_patient_is_forbidden(self):
        authenticate(self.client, self.patient)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_is_unauthorized(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


@override_settings(ALLOWED_HOSTS=['*'])
class PasswordResetTestCase(APITestCase):

    def setUp(self):
        self.patient = create_patient(email='jane@example.com')
        self.client = APIClient()

    @patch('users.services.send_email')
    def test_unknown_email_answers_success_without_mail(self, mock_send):
        response = self.client.post('/api/patients/forgotpassword/', {'email': 'nobody@example.com'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        mock_send.assert_not_called()

    @patch('users.services.send_email')
    def test_forgot_password_stores_only_the_hash(self, mock_send):
        response = self.client.post('/api/patients/forgotpassword/', {'email': 'jane@example.com'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mock_send.assert_called_once()
        mailed_body = mock_send.call_args[0][2]

        user = User.objects.get(pk=self.patient.user.pk)
        self.assertIsNotNone(user.reset_password_token)
        self.assertNotIn(user.reset_password_token, mailed_body)
        self.assertGreater(user.reset_password_expire, timezone.now() + timedelta(minutes=9))
        self.assertLessEqual(user.reset_password_expire, timezone.now() + timedelta(minutes=10))

    @override_settings(PASSWORD_RESET_TIMEOUT_MINUTES=30)
    def test_reset_token_expiry_follows_setting(self):
        user = self.patient.user
        before = timezone.now()

        raw_token = user.get_reset_password_token()

        self.assertEqual(user.reset_password_token, User.hash_reset_token(raw_token))
        self.assertGreaterEqual(user.reset_password_expire, before + timedelta(minutes=30))
        self.assertLessEqual(user.reset_password_expire, timezone.now() + timedelta(minutes=30))

    @patch('users.services.send_email', side_effect=ConnectionError('smtp down'))
    def test_mail_failure_clears_token(self, mock_send):
        response = self.client.post('/api/patients/forgotpassword/', {'email': 'jane@example.com'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(response.data['success'])
        user = User.objects.get(pk=self.patient.user.pk)
        self.assertIsNone(user.reset_password_token)
        self.assertIsNone(user.reset_password_expire)

    def test_reset_password_with_valid_token(self):
        user = self.patient.user
        raw_token = user.get_reset_password_token()
        user.save()

        response = self.client.put(
            f'/api/patients/resetpassword/{raw_token}/', {'password': 'Br4ndNewPass!'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('token', response.data)
        user.refresh_from_db()
        self.assertTrue(user.check_password('Br4ndNewPass!'))
        self.assertIsNone(user.reset_password_token)

    def test_reset_password_with_expired_token(self):
        user = self.patient.user
        raw_token = user.get_reset_password_token()
        user.reset_password_expire = timezone.now() - timedelta(minutes=1)
        user.save()

        response = self.client.put(
            f'/api/patients/resetpassword/{raw_token}/', {'password': 'Br4ndNewPass!'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invalid or expired token')

    def test_reset_token_is_scoped_to_account_kind(self):
        user = self.patient.user
        raw_token = user.get_reset_password_token()
        user.save()

        response = self.client.put(
            f'/api/doctors/resetpassword/{raw_token}/', {'password': 'Br4ndNewPass!'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CreateRolesCommandTestCase(TestCase):
    def test_creates_roles_once(self):
        call_command('create_roles', stdout=StringIO())
        call_command('create_roles', stdout=StringIO())

        self.assertEqual(sorted(Role.objects.values_list('name', flat=True)), ['doctor', 'patient'])
