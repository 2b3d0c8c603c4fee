from rest_framework import permissions

from .models import Role


class IsPatientUser(permissions.BasePermission):
    """
    Permission class to check if the user is a patient
    """
    message = 'Only patients can perform this action'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.role == Role.PATIENT


class IsDoctorUser(permissions.BasePermission):
    """
    Permission class to check if the user is a doctor
    """
    message = 'Only doctors can perform this action'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.role == Role.DOCTOR


class IsPatientOrDoctor(permissions.BasePermission):
    message = 'Not authorized to access this route'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.role in (Role.PATIENT, Role.DOCTOR)
