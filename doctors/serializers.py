from rest_framework import serializers
from hospitalportal.utils import validate_complete
from users.models import Role
from users.serializers import UserSerializer, AccountRegisterSerializer, AccountUpdateSerializer
from .models import Doctor, Specialization


class EducationSerializer(serializers.Serializer):
    degree = serializers.CharField(max_length=100, help_text="Degree obtained (e.g., MBChB, MD)")
    institution = serializers.CharField(max_length=200, help_text="Educational institution name")
    year = serializers.IntegerField(min_value=1900, required=False, help_text="Year of graduation")


class HospitalSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    address = serializers.CharField(max_length=300, required=False, allow_blank=True)


class AvailabilitySerializer(serializers.Serializer):
    DAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']

    day = serializers.ChoiceField(choices=DAYS)
    start_time = serializers.RegexField(r'^([01]\d|2[0-3]):[0-5]\d$', help_text="HH:MM")
    end_time = serializers.RegexField(r'^([01]\d|2[0-3]):[0-5]\d$', help_text="HH:MM")

    def validate(self, data):
        start_time, end_time = data.get('start_time'), data.get('end_time')
        if start_time and end_time and start_time >= end_time:
            raise serializers.ValidationError("start_time must be before end_time")
        return data


class DoctorProfileFields(serializers.Serializer):
    """Doctor-specific fields accepted on registration and profile update"""
    specialization = serializers.ChoiceField(choices=Specialization.choices, help_text="Medical specialization")
    license_number = serializers.CharField(max_length=50, help_text="Medical license number")
    experience_years = serializers.IntegerField(min_value=0, required=False, help_text="Years of professional experience")
    education = EducationSerializer(many=True, required=False)
    hospital = HospitalSerializer(required=False)
    consultation_fee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    availability = AvailabilitySerializer(many=True, required=False)
    bio = serializers.CharField(max_length=1000, required=False, allow_blank=True, help_text="Doctor's biography")
    languages = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    awards = serializers.ListField(child=serializers.CharField(max_length=200), required=False)

    def validate_license_number(self, value):
        queryset = Doctor.objects.filter(license_number=value)
        profile = getattr(self.instance, 'doctor', None)
        if profile is not None:
            queryset = queryset.exclude(pk=profile.pk)
        if queryset.exists():
            raise serializers.ValidationError("A doctor with this license number already exists")
        return value

    def validate_education(self, value):
        return validate_complete(EducationSerializer, value)

    def validate_availability(self, value):
        return validate_complete(AvailabilitySerializer, value)


DOCTOR_PROFILE_FIELDS = (
    'specialization', 'license_number', 'experience_years', 'education', 'hospital',
    'consultation_fee', 'availability', 'bio', 'languages', 'awards',
)


class DoctorRegisterSerializer(DoctorProfileFields, AccountRegisterSerializer):
    role = Role.DOCTOR
    profile_fields = DOCTOR_PROFILE_FIELDS

    def create_profile(self, user, profile_data):
        return Doctor.objects.create(user=user, **profile_data)


class DoctorUpdateSerializer(DoctorProfileFields, AccountUpdateSerializer):
    profile_fields = DOCTOR_PROFILE_FIELDS

    def get_fields(self):
        fields = super().get_fields()
        for field in DOCTOR_PROFILE_FIELDS:
            fields[field].required = False
        return fields


class DoctorSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    full_name = serializers.CharField(read_only=True)
    specialization_display = serializers.CharField(source='get_specialization_display', read_only=True)

    class Meta:
        model = Doctor
        fields = [
            'id', 'user', 'full_name', 'specialization', 'specialization_display',
            'license_number', 'experience_years', 'education', 'hospital',
            'consultation_fee', 'availability', 'bio', 'languages', 'awards',
            'is_verified', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class DoctorSummarySerializer(serializers.ModelSerializer):
    first_name = serializers.CharField(source='user.first_name', read_only=True)
    last_name = serializers.CharField(source='user.last_name', read_only=True)

    class Meta:
        model = Doctor
        fields = ['id', 'first_name', 'last_name', 'specialization', 'consultation_fee']
