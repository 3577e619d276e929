"""
Student code allocation.
- Codes are {instituteCode}-{NNNN}, sequential per institute, never reused
- A lost race (stale max) converges on the next free code
- Exhausted retries raise AllocationExhausted; no timestamp codes
"""
from unittest import mock

from django.db import IntegrityError
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from core.exceptions import AllocationExhausted
from core.models import Institute
from students.models import Student
from students.services import (
    allocate_student,
    current_max_suffix,
    deactivate_student,
    next_student_code,
    parse_code_suffix,
)


def make_institute(code="ABC1", name="ABC Classes"):
    return Institute.objects.create(
        name=name, code=code, contact_number="9876543210", email=f"{code.lower()}@test.in", owner_name="Owner",
    )


def student_fields(**overrides):
    fields = {
        "name": "Riya Sharma",
        "grade": "10",
        "board_type": Student.BOARD_CBSE,
        "parent_name": "Mr Sharma",
        "contact_number": "9123456780",
        "monthly_fee": 1500,
    }
    fields.update(overrides)
    return fields


class ParseCodeSuffixTests(TestCase):
    def test_parse(self):
        self.assertEqual(parse_code_suffix("ABC1-0042", "ABC1"), 42)
        self.assertEqual(parse_code_suffix("ABC1-12345", "ABC1"), 12345)
        self.assertEqual(parse_code_suffix("ABC1-12a", "ABC1"), 0)
        self.assertEqual(parse_code_suffix("XYZ9-0042", "ABC1"), 0)
        self.assertEqual(parse_code_suffix("", "ABC1"), 0)


class AllocateStudentTests(TestCase):
    def setUp(self):
        self.institute = make_institute()

    def test_first_codes_are_sequential(self):
        first = allocate_student(self.institute, **student_fields())
        second = allocate_student(self.institute, **student_fields(name="Arjun"))
        self.assertEqual(first.student_code, "ABC1-0001")
        self.assertEqual(second.student_code, "ABC1-0002")
        self.assertIsNotNone(first.admission_date)

    def test_next_code_uses_max_not_count(self):
        Student.objects.create(institute=self.institute, student_code="ABC1-0007", admission_date="2025-01-01", **student_fields())
        self.assertEqual(next_student_code(self.institute), "ABC1-0008")

    def test_inactive_student_code_not_reused(self):
        allocate_student(self.institute, **student_fields())
        last = allocate_student(self.institute, **student_fields(name="Arjun"))
        deactivate_student(last)
        nxt = allocate_student(self.institute, **student_fields(name="Meera"))
        self.assertEqual(nxt.student_code, "ABC1-0003")

    def test_unparsable_codes_are_ignored(self):
        Student.objects.create(institute=self.institute, student_code="legacy-x", admission_date="2025-01-01", **student_fields())
        Student.objects.create(institute=self.institute, student_code="ABC1-00zz", admission_date="2025-01-01", **student_fields())
        self.assertEqual(current_max_suffix(self.institute), 0)
        self.assertEqual(allocate_student(self.institute, **student_fields()).student_code, "ABC1-0001")

    def test_codes_are_per_institute(self):
        other = make_institute(code="XYZ9", name="XYZ Tutorials")
        allocate_student(self.institute, **student_fields())
        allocate_student(self.institute, **student_fields())
        self.assertEqual(allocate_student(other, **student_fields()).student_code, "XYZ9-0001")

    def test_n_allocations_yield_one_to_n(self):
        for _ in range(12):
            allocate_student(self.institute, **student_fields())
        suffixes = sorted(
            parse_code_suffix(code, "ABC1")
            for code in Student.objects.filter(institute=self.institute).values_list("student_code", flat=True)
        )
        self.assertEqual(suffixes, list(range(1, 13)))

    def test_stale_read_retries_and_converges(self):
        allocate_student(self.institute, **student_fields())
        # First read is stale (as if another request committed 0001 after we scanned)
        with mock.patch(
            "students.services.current_max_suffix",
            side_effect=[0, 1],
        ):
            student = allocate_student(self.institute, **student_fields(name="Arjun"))
        self.assertEqual(student.student_code, "ABC1-0002")
        self.assertEqual(Student.objects.filter(institute=self.institute).count(), 2)

    def test_exhaustion_raises_without_fallback(self):
        allocate_student(self.institute, **student_fields())
        with mock.patch("students.services.current_max_suffix", return_value=0):
            with self.assertRaises(AllocationExhausted) as ctx:
                allocate_student(self.institute, max_attempts=3, **student_fields(name="Arjun"))
        self.assertEqual(ctx.exception.attempts, 3)
        codes = list(Student.objects.filter(institute=self.institute).values_list("student_code", flat=True))
        self.assertEqual(codes, ["ABC1-0001"])

    def test_invalid_row_is_not_retried(self):
        with mock.patch("students.services.current_max_suffix", wraps=current_max_suffix) as scan:
            with self.assertRaises(IntegrityError):
                allocate_student(self.institute, **student_fields(name=None))
        self.assertEqual(scan.call_count, 1)
        self.assertFalse(Student.objects.exists())

    def test_unicode_digit_suffix_is_ignored(self):
        Student.objects.create(institute=self.institute, student_code="ABC1-²", admission_date="2025-01-01", **student_fields())
        Student.objects.create(institute=self.institute, student_code="ABC1-٣", admission_date="2025-01-01", **student_fields())
        self.assertEqual(parse_code_suffix("ABC1-²", "ABC1"), 0)
        self.assertEqual(allocate_student(self.institute, **student_fields()).student_code, "ABC1-0001")


class StudentApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.institute = make_institute()
        self.owner = User.objects.create_user(
            email="owner@abc.in", password="pass123", full_name="Owner", institute=self.institute,
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.owner)}")
        self.payload = {
            "studentName": "Riya Sharma",
            "class": "10",
            "boardType": "CBSE",
            "parentName": "Mr Sharma",
            "contactNumber": "9123456780",
            "monthlyFee": 1500,
        }

    def test_create_assigns_code(self):
        res = self.client.post("/api/students", self.payload, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["studentId"], "ABC1-0001")
        self.assertEqual(res.data["class"], "10")
        self.assertEqual(res.data["monthlyFee"], 1500.0)

    def test_client_supplied_code_is_ignored(self):
        res = self.client.post("/api/students", dict(self.payload, studentId="ABC1-9999"), format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["studentId"], "ABC1-0001")

    def test_exhaustion_maps_to_503(self):
        with mock.patch("students.views.allocate_student", side_effect=AllocationExhausted(attempts=5)):
            res = self.client.post("/api/students", self.payload, format="json")
        self.assertEqual(res.status_code, 503)
        self.assertEqual(res.data["code"], "allocation_exhausted")
        self.assertTrue(res.data["retryable"])

    def test_update_cannot_change_code_and_delete_is_soft(self):
        created = self.client.post("/api/students", self.payload, format="json").data
        res = self.client.patch(
            f"/api/students/{created['id']}", {"studentId": "ABC1-0500", "studentName": "Riya S"}, format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["studentId"], "ABC1-0001")
        self.assertEqual(res.data["studentName"], "Riya S")

        res = self.client.delete(f"/api/students/{created['id']}")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(Student.objects.get(pk=created["id"]).status, Student.STATUS_INACTIVE)

    def test_list_filters_and_paginates(self):
        for name in ("Riya", "Arjun", "Meera"):
            self.client.post("/api/students", dict(self.payload, studentName=name), format="json")
        res = self.client.get("/api/students", {"search": "arj"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual([s["studentName"] for s in res.data["students"]], ["Arjun"])

        res = self.client.get("/api/students", {"limit": 2, "page": 2})
        self.assertEqual(len(res.data["students"]), 1)
        self.assertEqual(res.data["pagination"]["totalPages"], 2)
        self.assertFalse(res.data["pagination"]["hasNextPage"])

    def test_other_institute_student_not_visible(self):
        other = make_institute(code="XYZ9", name="XYZ Tutorials")
        foreign = allocate_student(other, **student_fields())
        res = self.client.get(f"/api/students/{foreign.id}")
        self.assertEqual(res.status_code, 404)

    def test_dashboard_stats(self):
        self.client.post("/api/students", self.payload, format="json")
        self.client.post("/api/students", dict(self.payload, boardType="ICSE"), format="json")
        res = self.client.get("/api/students/stats/dashboard")
        self.assertEqual(res.data["totalStudents"], 2)
        self.assertEqual(res.data["boardWise"]["ICSE"], 1)


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentAllocationTests(TransactionTestCase):
    """Real concurrent inserts; needs PostgreSQL (DATABASE_URL)."""

    def test_parallel_allocations_get_distinct_codes(self):
        import threading
        from django.db import connection

        institute = make_institute()
        errors = []

        def worker():
            try:
                allocate_student(institute, max_attempts=20, **student_fields())
            except Exception as exc:  # collected and asserted below
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        codes = sorted(Student.objects.filter(institute=institute).values_list("student_code", flat=True))
        self.assertEqual(codes, [f"ABC1-{i:04d}" for i in range(1, 9)])
