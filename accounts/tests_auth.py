"""
Registration, login and the subscription gate.
- Register creates an institute (trial) and its owner
- Login returns tokens and institute info
- Inactive institute: login 403, every tenant API 403 before any data access
"""
from datetime import timedelta
from unittest import mock

from django.conf import settings
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from core.models import Institute
from students.models import Student


REGISTER_PAYLOAD = {
    "instituteName": "Bright Future Classes",
    "ownerName": "Asha Rao",
    "email": "Owner@Bright.in",
    "contactNumber": "9876543210",
    "address": "Pune",
    "username": "asha",
    "password": "secret123",
}


class RegisterTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_creates_trial_institute_and_owner(self):
        res = self.client.post("/api/auth/register", REGISTER_PAYLOAD, format="json")
        self.assertEqual(res.status_code, 201)
        code = res.data["instituteCode"]
        self.assertTrue(code.startswith("BRI"))
        self.assertEqual(len(code), 7)
        self.assertEqual(res.data["trialDays"], settings.TRIAL_DAYS)

        institute = Institute.objects.get(code=code)
        self.assertEqual(institute.subscription_status, Institute.STATUS_TRIAL)
        self.assertGreater(institute.subscription_expiry, timezone.now() + timedelta(days=settings.TRIAL_DAYS - 1))

        owner = User.objects.get(email="owner@bright.in")
        self.assertEqual(owner.institute, institute)
        self.assertEqual(owner.role, User.ROLE_OWNER)
        self.assertTrue(owner.check_password("secret123"))

    def test_register_rejects_duplicate_email(self):
        self.client.post("/api/auth/register", REGISTER_PAYLOAD, format="json")
        res = self.client.post("/api/auth/register", REGISTER_PAYLOAD, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["code"], "validation_error")
        self.assertIn("email", res.data["errors"])
        self.assertEqual(Institute.objects.count(), 1)

    def test_register_rejects_bad_contact_number(self):
        payload = dict(REGISTER_PAYLOAD, contactNumber="12345")
        res = self.client.post("/api/auth/register", payload, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertIn("contactNumber", res.data["errors"])
        self.assertFalse(Institute.objects.exists())


class LoginTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.institute = Institute.objects.create(
            name="Test Institute", code="TST1", contact_number="9876543210",
            email="inst@test.in", owner_name="Owner",
        )
        self.owner = User.objects.create_user(
            email="owner@test.in", password="pass123", full_name="Owner", institute=self.institute,
        )

    def test_login_returns_tokens_and_institute(self):
        res = self.client.post("/api/auth/login", {"email": "OWNER@test.in", "password": "pass123"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertIn("token", res.data)
        self.assertIn("refreshToken", res.data)
        self.assertEqual(res.data["user"]["instituteCode"], "TST1")
        self.assertEqual(AccessToken(res.data["token"])["institute_id"], self.institute.id)

    def test_login_wrong_password_returns_401(self):
        res = self.client.post("/api/auth/login", {"email": "owner@test.in", "password": "nope"}, format="json")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.data["code"], "invalid_credentials")

    def test_login_inactive_institute_returns_403(self):
        self.institute.subscription_status = Institute.STATUS_INACTIVE
        self.institute.save()
        res = self.client.post("/api/auth/login", {"email": "owner@test.in", "password": "pass123"}, format="json")
        self.assertEqual(res.status_code, 403)

    def test_me_and_change_password(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.owner)}")
        res = self.client.get("/api/auth/me")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["instituteName"], "Test Institute")

        res = self.client.post(
            "/api/auth/change-password",
            {"currentPassword": "pass123", "newPassword": "newpass1"},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.owner.refresh_from_db()
        self.assertTrue(self.owner.check_password("newpass1"))


class SubscriptionGateTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.institute = Institute.objects.create(
            name="Expired Institute", code="EXP1", contact_number="9876543210",
            email="exp@test.in", owner_name="Owner",
        )
        self.owner = User.objects.create_user(
            email="owner@exp.in", password="pass123", full_name="Owner", institute=self.institute,
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.owner)}")

    def _expire(self):
        self.institute.subscription_expiry = timezone.now() - timedelta(days=1)
        self.institute.save()
        call_command("expire_subscriptions", verbosity=0)
        self.institute.refresh_from_db()
        self.assertEqual(self.institute.subscription_status, Institute.STATUS_INACTIVE)

    def test_active_trial_reaches_views(self):
        res = self.client.get("/api/students")
        self.assertEqual(res.status_code, 200)

    def test_inactive_institute_blocked_before_store_access(self):
        self._expire()
        with mock.patch("students.views.allocate_student") as allocate, \
                mock.patch("payments.views.record_payment_with_recheck") as record:
            res = self.client.post("/api/students", {"studentName": "X"}, format="json")
            self.assertEqual(res.status_code, 403)
            self.assertEqual(res.data["code"], "subscription_inactive")

            res = self.client.post("/api/fees", {"studentId": 1, "monthYear": "2025-03"}, format="json")
            self.assertEqual(res.status_code, 403)

            allocate.assert_not_called()
            record.assert_not_called()
        self.assertFalse(Student.objects.exists())

    def test_user_without_institute_is_rejected(self):
        admin = User.objects.create_user(email="staff@platform.in", password="pass123", full_name="Staff")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(admin)}")
        res = self.client.get("/api/students")
        self.assertEqual(res.status_code, 403)

    def test_unauthenticated_returns_401(self):
        self.client.credentials()
        res = self.client.get("/api/students")
        self.assertEqual(res.status_code, 401)
