"""
Seed reference data: departments, doctors, referral hospitals, medicine
groups and the admission fee.  Safe to run repeatedly.
"""
from django.conf import settings
from django.core.management import call_command
from django.core.management.base import BaseCommand
from django.db import transaction

from hms.models import Department, Hospital, MedicineGroup, Staff
from hms.services.config import ADMISSION_FEE_KEY, get_config, set_config

DEPARTMENTS = [
    ("Gynecology", "GYNE"),
    ("Surgery", "SURG"),
    ("Medicine", "MED"),
    ("Pediatrics", "PED"),
    ("Cardiology", "CARD"),
    ("ENT", "ENT"),
    ("Orthopedics", "ORTH"),
    ("Radiology", "RAD"),
    ("Eye", "EYE"),
    ("Pathology", "PATH"),
    ("Anesthesia", "ANES"),
    ("General", "GEN"),
]

DOCTORS = [
    ("Farhana", "Akter", "Gynecology", "Obstetrics & Gynecology"),
    ("Mahmud", "Hasan", "Surgery", "General Surgery"),
    ("Nusrat", "Jahan", "Medicine", "Internal Medicine"),
    ("Tanvir", "Rahman", "Pediatrics", "Child Health"),
    ("Sadia", "Islam", "Pathology", "Clinical Pathology"),
]

HOSPITALS = [
    ("Dhaka Medical College Hospital", "Government"),
    ("Square Hospital", "Private"),
    ("Popular Diagnostic Centre", "Diagnostic"),
]

MEDICINE_GROUPS = ["Antibiotics", "Analgesics", "Antacids", "Vitamins & Supplements", "Hormones"]


class Command(BaseCommand):
    help = "Seed departments, doctors, referral hospitals, medicine groups and the admission fee (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--with-users', action='store_true', help='Also run ensure_test_users.')

    @transaction.atomic
    def handle(self, *args, **options):
        depts = {}
        for name, code in DEPARTMENTS:
            dept, created = Department.objects.get_or_create(name=name, defaults={"code": code})
            depts[name] = dept
            if created:
                self.stdout.write(f"department {name}")
        for first, last, dept_name, specialization in DOCTORS:
            _, created = Staff.objects.get_or_create(
                first_name=first, last_name=last, role="Doctor",
                defaults={"full_name": f"Dr. {first} {last}", "department": depts[dept_name],
                          "specialization": specialization},
            )
            if created:
                self.stdout.write(f"doctor {first} {last}")
        for name, kind in HOSPITALS:
            Hospital.objects.get_or_create(name=name, defaults={"type": kind})
        for name in MEDICINE_GROUPS:
            MedicineGroup.objects.get_or_create(name=name)
        if get_config(ADMISSION_FEE_KEY) is None:
            set_config(ADMISSION_FEE_KEY, settings.ADMISSION_FEE_DEFAULT, "Fee charged when a patient is admitted")
        if options['with_users']:
            call_command('ensure_test_users', stdout=self.stdout)
        self.stdout.write(self.style.SUCCESS("Clinic reference data seeded."))
