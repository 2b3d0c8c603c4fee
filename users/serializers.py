from rest_framework import serializers
from django.contrib.auth import password_validation
from django.core.validators import RegexValidator
from django.db import transaction
from .models import User, Role, Patient

phone_validator = RegexValidator(r'^\d{10}$', 'Please add a valid 10-digit phone number')


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ['id', 'name', 'description']


class UserSerializer(serializers.ModelSerializer):
    """Account core. Never exposes the password or reset-token fields."""
    roles = RoleSerializer(many=True, read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'phone_number',
                  'date_of_birth', 'gender', 'is_active', 'roles', 'date_joined']
        read_only_fields = fields


class PatientSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Patient
        fields = ['id', 'user', 'full_name', 'address', 'emergency_contact',
                  'medical_history', 'allergies', 'created_at', 'updated_at']
        read_only_fields = fields


class PatientSummarySerializer(serializers.ModelSerializer):
    first_name = serializers.CharField(source='user.first_name', read_only=True)
    last_name = serializers.CharField(source='user.last_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Patient
        fields = ['id', 'first_name', 'last_name', 'email']


class AccountRegisterSerializer(serializers.Serializer):
    """
    Registration input shared by both account kinds.

    Subclasses set ``role`` and ``profile_fields`` and implement
    ``create_profile``.
    """
    role = None
    profile_fields = ()

    first_name = serializers.CharField(max_length=50, help_text="Your first name")
    last_name = serializers.CharField(max_length=50, help_text="Your last name")
    email = serializers.EmailField(help_text="Your email address, used to log in")
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})
    phone_number = serializers.CharField(
        required=False, allow_blank=True, validators=[phone_validator], help_text="10-digit phone number"
    )
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=User.GENDER_CHOICES, required=False, allow_blank=True)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists")
        return value.lower()

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value

    @transaction.atomic
    def create(self, validated_data):
        profile_data = {
            field: validated_data.pop(field)
            for field in self.profile_fields
            if field in validated_data
        }
        password = validated_data.pop('password')
        user = User.objects.create_user(password=password, **validated_data)

        role, _ = Role.objects.get_or_create(name=self.role)
        user.roles.add(role)

        self.create_profile(user, profile_data)
        return user

    def create_profile(self, user, profile_data):
        raise NotImplementedError


class AccountUpdateSerializer(serializers.Serializer):
    """
    Partial self-service update of the account core and its profile.
    Absent fields are left untouched.
    """
    profile_fields = ()

    first_name = serializers.CharField(max_length=50, required=False)
    last_name = serializers.CharField(max_length=50, required=False)
    email = serializers.EmailField(required=False)
    phone_number = serializers.CharField(required=False, allow_blank=True, validators=[phone_validator])
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=User.GENDER_CHOICES, required=False, allow_blank=True)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("A user with this email already exists")
        return value.lower()

    @transaction.atomic
    def update(self, instance, validated_data):
        profile = instance.profile
        for field, value in validated_data.items():
            target = profile if field in self.profile_fields else instance
            setattr(target, field, value)
        instance.save()
        profile.save()
        return instance


class PatientRegisterSerializer(AccountRegisterSerializer):
    role = Role.PATIENT
    profile_fields = ('address', 'emergency_contact', 'medical_history', 'allergies')

    address = serializers.DictField(required=False, help_text="Street, city, state, zip code, country")
    emergency_contact = serializers.DictField(required=False, help_text="Name, relationship, phone")
    medical_history = serializers.ListField(child=serializers.DictField(), required=False)
    allergies = serializers.ListField(child=serializers.CharField(), required=False)

    def create_profile(self, user, profile_data):
        return Patient.objects.create(user=user, **profile_data)


class PatientUpdateSerializer(AccountUpdateSerializer):
    profile_fields = ('address', 'emergency_contact', 'medical_history', 'allergies')

    address = serializers.DictField(required=False)
    emergency_contact = serializers.DictField(required=False)
    medical_history = serializers.ListField(child=serializers.DictField(), required=False)
    allergies = serializers.ListField(child=serializers.CharField(), required=False)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(style={'input_type': 'password'})


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(style={'input_type': 'password'})
    new_password = serializers.CharField(style={'input_type': 'password'})

    def validate_new_password(self, value):
        password_validation.validate_password(value)
        return value


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(style={'input_type': 'password'})

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value
