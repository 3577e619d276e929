"""
Institute model, counters, tenant store and subscription expiry.
"""
from datetime import timedelta
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from core.exceptions import ConstraintViolation, NotFound
from core.models import Institute, InstituteSequence
from core.services import next_sequence_value
from core.store import count_matching, find_matching, insert_with_constraint, is_unique_violation, update_one
from core.utils import generate_institute_code, institute_code_prefix


def make_institute(code="ABC1", name="ABC Classes", **extra):
    return Institute.objects.create(
        name=name, code=code, contact_number="9876543210", email=f"{code.lower()}@test.in", owner_name="Owner", **extra
    )


class InstituteTests(TestCase):
    def test_code_is_uppercased(self):
        institute = make_institute(code="abc1")
        self.assertEqual(institute.code, "ABC1")

    def test_code_is_immutable(self):
        institute = make_institute()
        institute.code = "ZZZ9"
        with self.assertRaises(ValidationError):
            institute.save()
        institute.refresh_from_db()
        self.assertEqual(institute.code, "ABC1")

    def test_other_fields_can_change(self):
        institute = make_institute()
        institute.name = "ABC Coaching"
        institute.save()
        self.assertEqual(Institute.objects.get(pk=institute.pk).name, "ABC Coaching")

    def test_generate_code(self):
        self.assertEqual(institute_code_prefix("Bright Future"), "BRI")
        self.assertEqual(institute_code_prefix("1st Class"), "ST")
        code = generate_institute_code("Bright Future", exists=lambda c: False)
        self.assertTrue(code.startswith("BRI"))
        self.assertEqual(len(code), 7)

    def test_generate_code_gives_up(self):
        with self.assertRaises(RuntimeError):
            generate_institute_code("Bright Future", exists=lambda c: True)


class SequenceTests(TestCase):
    def test_counter_increments_per_institute_and_name(self):
        a = make_institute()
        b = make_institute(code="XYZ9", name="XYZ Tutorials")
        self.assertEqual(next_sequence_value(a, InstituteSequence.RECEIPT), 1)
        self.assertEqual(next_sequence_value(a, InstituteSequence.RECEIPT), 2)
        self.assertEqual(next_sequence_value(b, InstituteSequence.RECEIPT), 1)
        self.assertEqual(next_sequence_value(a, "other"), 1)


class StoreTests(TestCase):
    def setUp(self):
        self.institute = make_institute()
        self.other = make_institute(code="XYZ9", name="XYZ Tutorials")

    def test_queries_are_scoped(self):
        InstituteSequence.objects.create(institute=self.institute, name="a")
        InstituteSequence.objects.create(institute=self.other, name="a")
        self.assertEqual(count_matching(self.institute, InstituteSequence, name="a"), 1)
        self.assertEqual(find_matching(self.institute, InstituteSequence).get().institute, self.institute)

    def test_insert_with_constraint(self):
        insert_with_constraint(InstituteSequence, institute=self.institute, name="a")
        with self.assertRaises(ConstraintViolation) as ctx:
            insert_with_constraint(InstituteSequence, institute=self.institute, name="a")
        self.assertIs(ctx.exception.model, InstituteSequence)
        # the transaction is still usable after the rejected insert
        self.assertEqual(InstituteSequence.objects.count(), 1)

    def test_non_unique_integrity_error_propagates(self):
        with self.assertRaises(IntegrityError):
            insert_with_constraint(InstituteSequence, institute=self.institute, name=None)
        self.assertEqual(InstituteSequence.objects.count(), 0)

    def test_unique_violation_classification(self):
        class DriverError(Exception):
            def __init__(self, sqlstate):
                self.sqlstate = sqlstate

        unique = IntegrityError("duplicate key value violates unique constraint")
        unique.__cause__ = DriverError("23505")
        not_null = IntegrityError("null value in column violates not-null constraint")
        not_null.__cause__ = DriverError("23502")
        self.assertTrue(is_unique_violation(unique))
        self.assertFalse(is_unique_violation(not_null))
        self.assertTrue(is_unique_violation(IntegrityError("UNIQUE constraint failed: students.student_code")))
        self.assertFalse(is_unique_violation(IntegrityError("NOT NULL constraint failed: students.name")))

    def test_update_one(self):
        sequence = InstituteSequence.objects.create(institute=self.institute, name="a")
        updated = update_one(InstituteSequence, {"pk": sequence.pk}, {"value": 9})
        self.assertEqual(updated.value, 9)
        with self.assertRaises(NotFound):
            update_one(InstituteSequence, {"pk": 0}, {"value": 1})


class ExpireSubscriptionsTests(TestCase):
    def test_expires_only_past_due(self):
        past = timezone.now() - timedelta(days=1)
        expired_trial = make_institute(code="OLD1", name="Old Trial", subscription_expiry=past)
        expired_active = make_institute(
            code="OLD2", name="Old Paid", subscription_expiry=past, subscription_status=Institute.STATUS_ACTIVE,
        )
        current = make_institute()

        out = StringIO()
        call_command("expire_subscriptions", "--dry-run", stdout=out)
        self.assertIn("2 institute(s) would be deactivated", out.getvalue())
        self.assertEqual(Institute.objects.filter(subscription_status=Institute.STATUS_INACTIVE).count(), 0)

        call_command("expire_subscriptions", stdout=StringIO())
        for institute in (expired_trial, expired_active, current):
            institute.refresh_from_db()
        self.assertFalse(expired_trial.is_subscription_active)
        self.assertFalse(expired_active.is_subscription_active)
        self.assertEqual(current.subscription_status, Institute.STATUS_TRIAL)


class HealthTests(TestCase):
    def test_health(self):
        res = self.client.get("/api/health/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["status"], "ok")

    def test_system_health(self):
        res = self.client.get("/api/system/health/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"db": "ok", "auth": "ok"})


class CollectionRouteTests(TestCase):
    """Collections answer at /api/<name>, with or without a trailing slash."""

    def setUp(self):
        institute = make_institute()
        owner = User.objects.create_user(email="owner@abc.in", password="pass123", full_name="Owner", institute=institute)
        self.client = APIClient()
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(owner)}")

    def test_collections_resolve_without_slash(self):
        for url in ("/api/students", "/api/fees", "/api/attendance"):
            with self.subTest(url=url):
                self.assertEqual(self.client.get(url).status_code, 200)

    def test_collections_resolve_with_slash(self):
        for url in ("/api/students/", "/api/fees/", "/api/attendance/"):
            with self.subTest(url=url):
                self.assertEqual(self.client.get(url).status_code, 200)

    def test_sub_routes(self):
        for url in ("/api/students/stats/dashboard", "/api/fees/pending", "/api/fees/stats", "/api/attendance/today"):
            with self.subTest(url=url):
                self.assertEqual(self.client.get(url).status_code, 200)
