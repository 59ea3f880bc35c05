"""
End-to-end desk workflow through the public API.

One receptionist signs in, opens a drawer, admits a patient, orders
pathology, takes a further payment, checks the session cash report and
closes the shift.  The administrator then reviews the shift and the
audit trail.
"""

from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from hms.models import ActivityLog, Department, Shift, Staff, User


class DeskWorkflowTests(APITestCase):
    def setUp(self) -> None:
        self.gyne = Department.objects.create(name="Gynecology", code="GYNE")
        self.doctor = Staff.objects.create(first_name="Farhana", last_name="Akter", full_name="Dr. Farhana Akter",
                                           role="Doctor", department=self.gyne)
        desk = Staff.objects.create(first_name="Front", last_name="Desk", full_name="Front Desk", role="Receptionist")
        self.receptionist = User.objects.create_user(username="desk1", password="deskpass123",
                                                     role="receptionist", staff=desk)
        boss = Staff.objects.create(first_name="Clinic", last_name="Admin", full_name="Clinic Admin", role="Admin")
        self.admin = User.objects.create_user(username="boss", password="bosspass123", role="admin", staff=boss)

    def _login(self, username: str, password: str) -> APIClient:
        client = APIClient()
        resp = client.post(reverse("login_view"), {"username": username, "password": password}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        client.credentials(HTTP_AUTHORIZATION=f"Token {resp.data['token']}")
        return client

    def test_full_shift(self):
        desk = self._login("desk1", "deskpass123")

        resp = desk.post(reverse("shift_open"), {"openingCash": "500"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        shift_id = resp.data["data"]["id"]

        resp = desk.post(reverse("admissions"), {
            "departmentId": self.gyne.id,
            "doctorId": self.doctor.id,
            "patient": {"firstName": "Rina", "lastName": "Begum", "phoneNumber": "01711000000"},
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        admission = resp.data["data"]
        patient_id = admission["patientId"]

        resp = desk.post(reverse("pathology_orders"), {
            "testCodes": ["CBC", "RBS"],
            "orderedById": self.doctor.id,
            "paidAmount": "300",
            "patient": {"id": patient_id},
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["data"]["patientId"], patient_id)

        resp = desk.patch(reverse("admission_detail", args=[admission["id"]]),
                          {"seatRent": "700", "paidAmount": "800"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["dueAmount"], 200.0)

        resp = desk.get(reverse("session_cash"), {"datePreset": "today"})
        summary = resp.data["data"]["summary"]
        self.assertEqual(summary["totalCollected"], 1100.0)
        self.assertEqual(summary["transactionCount"], 3)
        by_dept = {d["departmentName"]: d["amount"] for d in summary["departmentBreakdown"]}
        self.assertEqual(by_dept, {"Gynecology": 800.0, "Pathology": 300.0})

        resp = desk.get(reverse("dashboard"))
        self.assertEqual(resp.data["data"]["cashSession"]["currentCash"], 1600.0)

        resp = desk.post(reverse("shift_close"), {"closingCash": "1590", "notes": "one note torn"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["variance"], -10.0)

        shift = Shift.objects.get(pk=shift_id)
        self.assertFalse(shift.is_active)
        self.assertEqual(shift.system_cash, Decimal("1600.00"))

        boss = self._login("boss", "bosspass123")
        resp = boss.get(reverse("shift_detail", args=[shift_id]))
        self.assertEqual(len(resp.data["data"]["payments"]), 3)
        self.assertEqual(len(resp.data["data"]["cashMovements"]), 3)

        resp = boss.get(reverse("patient_record", args=[patient_id]))
        account = resp.data["data"]["account"]
        self.assertEqual(account, {"totalCharges": 1300.0, "totalPaid": 1100.0, "totalDue": 200.0})

        actions = set(ActivityLog.objects.filter(user=self.receptionist).values_list("action", flat=True))
        self.assertTrue({"LOGIN", "SHIFT_OPENED", "CREATE", "UPDATE", "SHIFT_CLOSED"} <= actions)

    def test_cash_endpoints_require_login(self):
        resp = APIClient().post(reverse("shift_open"), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
