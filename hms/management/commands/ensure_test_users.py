from django.core.management.base import BaseCommand
from django.db import transaction

from hms import roles
from hms.models import Staff, User

DEFAULT_PASSWORD = "Clinic@12345"

# username, role, staff name, staff role
TEST_SET = [
    ("sysadmin", roles.SYSTEM_ADMIN, "System Admin", "Administrator"),
    ("admin1", roles.ADMIN, "Admin One", "Administrator"),
    ("reception1", roles.RECEPTIONIST, "Front Desk", "Receptionist"),
    ("infertility1", roles.RECEPTIONIST_INFERTILITY, "Infertility Desk", "Receptionist"),
    ("pharmacy1", roles.PHARMACIST, "Pharmacy Counter", "Pharmacist"),
    ("staff1", roles.STAFF, "Ward Staff", "Staff"),
]


class Command(BaseCommand):
    help = "Ensure one test account per role exists with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--password', default=DEFAULT_PASSWORD)

    @transaction.atomic
    def handle(self, *args, **opts):
        for username, role, name, staff_role in TEST_SET:
            first, _, last = name.partition(' ')
            staff, _ = Staff.objects.get_or_create(
                full_name=name, defaults={"first_name": first, "last_name": last, "role": staff_role},
            )
            user, created = User.objects.get_or_create(username=username, defaults={"role": role, "staff": staff})
            user.set_password(opts['password'])
            user.role = role
            user.is_active = True
            if user.staff_id is None:
                user.staff = staff
            user.save()
            self.stdout.write(self.style.SUCCESS(f"{'created' if created else 'ok'}: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
