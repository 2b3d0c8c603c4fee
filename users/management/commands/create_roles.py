from django.core.management.base import BaseCommand
from users.models import Role


class Command(BaseCommand):
    help = 'Create the patient and doctor roles used at registration'

    def handle(self, *args, **options):
        default_roles = [
            {'name': Role.PATIENT, 'description': 'Person who books appointments and receives care'},
            {'name': Role.DOCTOR, 'description': 'Medical professional who sees patients and records consultations'},
        ]

        created_count = 0
        for role_data in default_roles:
            role, created = Role.objects.get_or_create(
                name=role_data['name'],
                defaults={'description': role_data['description']}
            )
            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"Created role: {role.name}"))
            else:
                self.stdout.write(self.style.WARNING(f"Role already exists: {role.name}"))

        self.stdout.write(self.style.SUCCESS(
            f"Created {created_count} new roles, {len(default_roles) - created_count} already existed."
        ))
