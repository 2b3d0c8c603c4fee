"""
Builders shared by the app test suites.
"""
from decimal import Decimal

from users.authentication import Caller, issue_token
from users.models import User, Role, Patient
from doctors.models import Doctor

PASSWORD = 'Str0ngPass!23'

WEEKDAY_AVAILABILITY = [
    {'day': day, 'start_time': '09:00', 'end_time': '17:00'}
    for day in ['monday', 'tuesday', 'wednesday', 'thursday', 'friday']
]


def create_user(email, role_name, first_name='Test', last_name='User', **extra):
    user = User.objects.create_user(
        email=email,
        password=PASSWORD,
        first_name=first_name,
        last_name=last_name,
        **extra
    )
    role, _ = Role.objects.get_or_create(name=role_name)
    user.roles.add(role)
    return user


def create_patient(email='patient@example.com', first_name='Jane', last_name='Doe', **extra):
    user = create_user(email, Role.PATIENT, first_name=first_name, last_name=last_name, **extra)
    return Patient.objects.create(user=user)


def create_doctor(email='doctor@example.com', license_number='LIC-0001', specialization='cardiology',
                  first_name='John', last_name='Smith', availability=None, **extra):
    user = create_user(email, Role.DOCTOR, first_name=first_name, last_name=last_name, **extra)
    return Doctor.objects.create(
        user=user,
        specialization=specialization,
        license_number=license_number,
        consultation_fee=Decimal('150.00'),
        availability=WEEKDAY_AVAILABILITY if availability is None else availability,
    )


def caller_for(profile):
    role = Role.DOCTOR if isinstance(profile, Doctor) else Role.PATIENT
    return Caller(profile.id, role, profile.user)


def authenticate(client, profile):
    """Send ``profile``'s access token as a bearer header on every request."""
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(profile.user)}')
