"""
Duplicate-safe fee recording.
- Receipt numbers {code}-REC-{year}-{NNNNN}, per-institute counter
- A paid period raises DuplicatePayment carrying the existing receipt
- A lost race (lookup missed the winner) raises PersistenceConflict; one paid row survives
- API: 201 on success, 409 with existingPayment on duplicates
"""
from datetime import date
from decimal import Decimal
from unittest import mock

from django.db import IntegrityError
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from core.exceptions import DuplicatePayment, PersistenceConflict
from core.models import Institute, InstituteSequence
from payments.models import Payment
from payments.services import (
    collection_stats,
    format_receipt_number,
    pending_fees,
    record_payment,
    record_payment_with_recheck,
)
from students.models import Student
from students.services import allocate_student


def make_institute(code="ABC1", name="ABC Classes"):
    return Institute.objects.create(
        name=name, code=code, contact_number="9876543210", email=f"{code.lower()}@test.in", owner_name="Owner",
    )


def make_student(institute, name="Riya Sharma", fee=1500):
    return allocate_student(
        institute,
        name=name,
        grade="10",
        board_type=Student.BOARD_CBSE,
        parent_name="Mr Sharma",
        contact_number="9123456780",
        monthly_fee=Decimal(fee),
    )


class RecordPaymentTests(TestCase):
    def setUp(self):
        self.institute = make_institute()
        self.student = make_student(self.institute)

    def test_receipt_number_format(self):
        self.assertEqual(format_receipt_number("ABC1", 2025, 1), "ABC1-REC-2025-00001")
        self.assertEqual(format_receipt_number("ABC1", 2025, 123456), "ABC1-REC-2025-123456")

    def test_first_payment_gets_first_receipt(self):
        payment = record_payment(
            self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH, paid_on=date(2025, 3, 5),
        )
        self.assertEqual(payment.receipt_no, "ABC1-REC-2025-00001")
        self.assertEqual(payment.status, Payment.STATUS_PAID)
        self.assertEqual(payment.amount, Decimal("1500"))
        self.assertEqual(payment.payment_date, date(2025, 3, 5))

    def test_receipts_are_sequential_across_students(self):
        other = make_student(self.institute, name="Arjun")
        first = record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH, paid_on=date(2025, 3, 5))
        second = record_payment(self.institute, other, "2025-03", 1500, Payment.MODE_UPI, paid_on=date(2025, 3, 6))
        self.assertEqual(first.receipt_no, "ABC1-REC-2025-00001")
        self.assertEqual(second.receipt_no, "ABC1-REC-2025-00002")

    def test_receipt_counter_is_per_institute(self):
        other_institute = make_institute(code="XYZ9", name="XYZ Tutorials")
        other_student = make_student(other_institute)
        record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH, paid_on=date(2025, 3, 5))
        payment = record_payment(other_institute, other_student, "2025-03", 1500, Payment.MODE_CASH, paid_on=date(2025, 3, 5))
        self.assertEqual(payment.receipt_no, "XYZ9-REC-2025-00001")

    def test_duplicate_period_raises_with_existing(self):
        original = record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH, paid_on=date(2025, 3, 5))
        with self.assertRaises(DuplicatePayment) as ctx:
            record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_ONLINE)
        self.assertEqual(ctx.exception.existing.pk, original.pk)
        payload = ctx.exception.payload()
        self.assertTrue(payload["alreadyPaid"])
        self.assertEqual(payload["existingPayment"]["receiptNumber"], "ABC1-REC-2025-00001")
        self.assertEqual(payload["existingPayment"]["paymentMode"], "cash")
        self.assertEqual(Payment.objects.filter(status=Payment.STATUS_PAID).count(), 1)

    def test_different_period_is_allowed(self):
        record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH)
        record_payment(self.institute, self.student, "2025-04", 1500, Payment.MODE_CASH)
        self.assertEqual(Payment.objects.filter(student=self.student).count(), 2)

    def test_pending_rows_do_not_block(self):
        Payment.objects.create(institute=self.institute, student=self.student, period="2025-03", amount=1500)
        Payment.objects.create(institute=self.institute, student=self.student, period="2025-03", amount=1500)
        payment = record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH)
        self.assertEqual(payment.status, Payment.STATUS_PAID)
        self.assertEqual(Payment.objects.filter(period="2025-03").count(), 3)

    def test_lost_race_raises_persistence_conflict(self):
        record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH, paid_on=date(2025, 3, 5))
        # Lookup misses the committed winner, as a concurrent request would
        with mock.patch("payments.services.find_paid_payment", return_value=None):
            with self.assertRaises(PersistenceConflict):
                record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH)
        self.assertEqual(
            Payment.objects.filter(student=self.student, period="2025-03", status=Payment.STATUS_PAID).count(), 1,
        )
        # The losing request's counter increment was rolled back
        sequence = InstituteSequence.objects.get(institute=self.institute, name=InstituteSequence.RECEIPT)
        self.assertEqual(sequence.value, 1)

    def test_recheck_turns_lost_race_into_duplicate(self):
        winner = record_payment(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH)
        with mock.patch(
            "payments.services.find_paid_payment",
            side_effect=[None, winner],
        ):
            with self.assertRaises(DuplicatePayment) as ctx:
                record_payment_with_recheck(self.institute, self.student, "2025-03", 1500, Payment.MODE_CASH)
        self.assertEqual(ctx.exception.existing.receipt_no, winner.receipt_no)

    def test_invalid_period_rejected(self):
        with self.assertRaises(ValueError):
            record_payment(self.institute, self.student, "2025-13", 1500, Payment.MODE_CASH)
        self.assertFalse(Payment.objects.exists())

    def test_student_from_other_institute_rejected(self):
        other_institute = make_institute(code="XYZ9", name="XYZ Tutorials")
        with self.assertRaises(ValueError):
            record_payment(other_institute, self.student, "2025-03", 1500, Payment.MODE_CASH)

    def test_invalid_row_is_not_a_conflict(self):
        with self.assertRaises(IntegrityError):
            record_payment(self.institute, self.student, "2025-03", 1500, None)
        self.assertFalse(Payment.objects.exists())
        self.assertFalse(InstituteSequence.objects.filter(institute=self.institute, value__gt=0).exists())


class FeeReportTests(TestCase):
    def setUp(self):
        self.institute = make_institute()
        self.paid = make_student(self.institute, name="Arjun", fee=1200)
        self.unpaid = make_student(self.institute, name="Meera", fee=1500)
        self.inactive = make_student(self.institute, name="Zoya", fee=900)
        self.inactive.status = Student.STATUS_INACTIVE
        self.inactive.save()
        record_payment(self.institute, self.paid, "2025-03", 1200, Payment.MODE_CASH)

    def test_pending_fees_lists_active_unpaid(self):
        rows = pending_fees(self.institute, "2025-03")
        self.assertEqual([row["student"].pk for row in rows], [self.unpaid.pk])
        self.assertEqual(rows[0]["amount"], Decimal("1500"))

    def test_collection_stats(self):
        stats = collection_stats(self.institute, "2025-03")
        self.assertEqual(stats, {
            "month": "2025-03",
            "totalCollected": 1200.0,
            "totalStudents": 2,
            "paidCount": 1,
            "pendingCount": 1,
        })


class FeesApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.institute = make_institute()
        self.student = make_student(self.institute)
        self.owner = User.objects.create_user(
            email="owner@abc.in", password="pass123", full_name="Owner", institute=self.institute,
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.owner)}")
        self.payload = {
            "studentId": self.student.id,
            "monthYear": "2025-03",
            "amount": 1500,
            "paymentMode": "cash",
        }

    def test_record_then_duplicate_returns_409(self):
        res = self.client.post("/api/fees", self.payload, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["message"], "Payment recorded successfully")
        receipt = res.data["payment"]["receiptNumber"]
        self.assertTrue(receipt.startswith("ABC1-REC-"))
        self.assertEqual(res.data["payment"]["student"]["studentId"], "ABC1-0001")

        res = self.client.post("/api/fees", dict(self.payload, paymentMode="upi"), format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["code"], "duplicate_payment")
        self.assertTrue(res.data["alreadyPaid"])
        self.assertEqual(res.data["existingPayment"]["receiptNumber"], receipt)
        self.assertEqual(res.data["existingPayment"]["amount"], 1500.0)
        self.assertIn("already paid", res.data["detail"])
        self.assertEqual(Payment.objects.count(), 1)

    def test_persistent_conflict_maps_to_409(self):
        with mock.patch("payments.views.record_payment_with_recheck", side_effect=PersistenceConflict()):
            res = self.client.post("/api/fees", self.payload, format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["code"], "persistence_conflict")

    def test_validation(self):
        res = self.client.post("/api/fees", dict(self.payload, monthYear="March"), format="json")
        self.assertEqual(res.status_code, 400)
        self.assertIn("monthYear", res.data["errors"])
        res = self.client.post("/api/fees", dict(self.payload, amount=0), format="json")
        self.assertEqual(res.status_code, 400)
        res = self.client.post("/api/fees", dict(self.payload, studentId=99999), format="json")
        self.assertEqual(res.status_code, 404)

    def test_list_pending_and_stats(self):
        self.client.post("/api/fees", self.payload, format="json")
        res = self.client.get("/api/fees", {"monthYear": "2025-03"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data), 1)
        self.assertEqual(res.data[0]["monthYear"], "2025-03")

        res = self.client.get("/api/fees/pending", {"monthYear": "2025-04"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data[0]["student"]["studentId"], "ABC1-0001")
        self.assertEqual(res.data[0]["amount"], 1500.0)

        res = self.client.get("/api/fees/stats", {"monthYear": "2025-03"})
        self.assertEqual(res.data["paidCount"], 1)
        self.assertEqual(res.data["pendingCount"], 0)

        res = self.client.get("/api/fees/stats", {"monthYear": "bad"})
        self.assertEqual(res.status_code, 400)

    def test_list_rejects_non_integer_student_filter(self):
        self.client.post("/api/fees", self.payload, format="json")
        res = self.client.get("/api/fees", {"studentId": "abc"})
        self.assertEqual(res.status_code, 400)
        self.assertIn("studentId", res.data["errors"])
        res = self.client.get("/api/fees", {"studentId": self.student.id})
        self.assertEqual(len(res.data), 1)


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentPaymentTests(TransactionTestCase):
    """Two requests for the same student and month; needs PostgreSQL (DATABASE_URL)."""

    def test_parallel_payments_record_one_receipt(self):
        import threading
        from django.db import connection

        institute = make_institute()
        student = make_student(institute)
        barrier = threading.Barrier(2)
        recorded, rejected, errors = [], [], []

        def worker():
            try:
                barrier.wait(timeout=10)
                recorded.append(record_payment(institute, student, "2025-03", 1500, Payment.MODE_CASH))
            except (DuplicatePayment, PersistenceConflict) as exc:
                rejected.append(exc)
            except Exception as exc:  # collected and asserted below
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(recorded), 1)
        self.assertEqual(len(rejected), 1)
        self.assertEqual(
            Payment.objects.filter(student=student, period="2025-03", status=Payment.STATUS_PAID).count(), 1,
        )
        sequence = InstituteSequence.objects.get(institute=institute, name=InstituteSequence.RECEIPT)
        self.assertEqual(sequence.value, 1)
        self.assertEqual(recorded[0].receipt_no, f"ABC1-REC-{recorded[0].payment_date.year}-00001")
