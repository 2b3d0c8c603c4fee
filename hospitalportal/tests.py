from django.test import TestCase, SimpleTestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError

from hospitalportal.exceptions import SlotTaken, UpstreamFailure
from hospitalportal.pagination import paginate, parse_page_params
from hospitalportal.testing import create_patient
from hospitalportal.utils import custom_exception_handler, envelope, flatten_errors
from users.models import User


class EnvelopeTests(SimpleTestCase):
    def test_success_body(self):
        self.assertEqual(envelope({'id': 1}, message='Done'), {'success': True, 'message': 'Done', 'data': {'id': 1}})
        self.assertEqual(envelope(message='Deleted'), {'success': True, 'message': 'Deleted'})

    def test_flatten_nested_errors(self):
        errors = flatten_errors({
            'email': ['Enter a valid email address.'],
            'symptoms': [{'severity': ['"extreme" is not a valid choice.']}],
        })

        self.assertEqual(errors, [
            {'field': 'email', 'message': 'Enter a valid email address.'},
            {'field': 'symptoms[0].severity', 'message': '"extreme" is not a valid choice.'},
        ])

    def test_validation_errors_render_as_field_list(self):
        response = custom_exception_handler(ValidationError({'time': ['Invalid time']}), {})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['success'], False)
        self.assertEqual(response.data['errors'], [{'field': 'time', 'message': 'Invalid time'}])

    def test_domain_errors_keep_their_status(self):
        self.assertEqual(custom_exception_handler(SlotTaken(), {}).status_code, status.HTTP_409_CONFLICT)

        response = custom_exception_handler(UpstreamFailure('Email could not be sent'), {})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'success': False, 'message': 'Email could not be sent'})

    def test_unexpected_errors_become_server_error(self):
        with self.assertLogs('hospitalportal.utils', level='ERROR'):
            response = custom_exception_handler(RuntimeError('boom'), {})

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['message'], 'Server error')


class PaginationTests(TestCase):
    def setUp(self):
        for index in range(7):
            create_patient(email=f'patient{index}@example.com')
        self.queryset = User.objects.order_by('email')

    def test_page_count_rounds_up(self):
        page = paginate(self.queryset, 1, 3)
        self.assertEqual((page.total, page.page_count, len(page.items)), (7, 3, 3))

    def test_page_past_the_end_is_empty(self):
        page = paginate(self.queryset, 4, 3)
        self.assertEqual(page.items, [])
        self.assertEqual(page.page_count, 3)

    def test_parse_page_params(self):
        self.assertEqual(parse_page_params({}), (1, 10))
        self.assertEqual(parse_page_params({'page': '2', 'limit': '500'}), (2, 100))
        with self.assertRaises(ValidationError):
            parse_page_params({'page': 'two'})
        with self.assertRaises(ValidationError):
            parse_page_params({'limit': '0'})
