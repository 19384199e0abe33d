from django.core.management.base import BaseCommand
from django.db import transaction

from housing.models import Student, User

PASSWORD = "Hostel@12345"

TEST_SET = [
    ("super1", User.Role.SUPERADMIN, "super1@example.com"),
    ("admin1", User.Role.ADMIN, "admin1@example.com"),
    ("PNR0001", User.Role.STUDENT, "student1@example.com"),
]


class Command(BaseCommand):
    help = f"Ensure one superadmin, one admin and one student exist with password={PASSWORD} (idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        for username, role, email in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "email": email, "first_name": username, "is_active": True},
            )
            u.set_password(PASSWORD)
            u.role = role
            u.is_active = True
            u.save(update_fields=["password", "role", "is_active"])
            if role == User.Role.STUDENT:
                Student.objects.get_or_create(
                    user=u,
                    defaults={"name": "Test Student", "email": email, "pnr": username,
                              "gender": Student.Gender.MALE, "year": Student.Year.FIRST},
                )
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role}){' created' if created else ''}"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
