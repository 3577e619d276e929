"""
Attendance marking.
- Marking the same student and day twice updates one record
- Absences: SMS queued after commit when enabled; delivery stores sent/failed
- Bulk, list filters, today summary
"""
from datetime import date, timedelta
from unittest import mock

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from attendance.models import AttendanceRecord
from attendance.services import deliver_absence_sms, dispatch_absence_sms, mark_attendance
from core.models import Institute
from notifications.sms import SmsResult
from students.models import Student
from students.services import allocate_student


def make_student(institute, name):
    return allocate_student(
        institute,
        name=name,
        grade="9",
        board_type=Student.BOARD_ICSE,
        parent_name="Parent",
        contact_number="9123456780",
    )


class MarkAttendanceTests(TestCase):
    def setUp(self):
        self.institute = Institute.objects.create(
            name="ABC Classes", code="ABC1", contact_number="9876543210", email="abc@test.in", owner_name="Owner",
        )
        self.student = make_student(self.institute, "Riya")
        self.day = date(2025, 3, 5)

    def test_marking_twice_updates_same_record(self):
        mark_attendance(self.institute, self.student, self.day, AttendanceRecord.STATUS_PRESENT)
        record = mark_attendance(self.institute, self.student, self.day, AttendanceRecord.STATUS_ABSENT)
        self.assertEqual(AttendanceRecord.objects.count(), 1)
        self.assertEqual(record.status, AttendanceRecord.STATUS_ABSENT)

    def test_absent_with_sms_disabled_is_not_sent(self):
        with mock.patch("attendance.services.send_absence_notification") as send:
            record = mark_attendance(self.institute, self.student, self.day, AttendanceRecord.STATUS_ABSENT)
        send.assert_not_called()
        self.assertEqual(record.sms_status, AttendanceRecord.SMS_NOT_SENT)

    @override_settings(SMS_ENABLED=True)
    def test_absent_with_sms_enabled_sends_after_commit(self):
        with mock.patch("attendance.services.dispatch_absence_sms") as dispatch, \
                mock.patch("attendance.services.send_absence_notification") as send:
            with self.captureOnCommitCallbacks() as callbacks:
                record = mark_attendance(self.institute, self.student, self.day, AttendanceRecord.STATUS_ABSENT)
            dispatch.assert_not_called()
            for callback in callbacks:
                callback()
        send.assert_not_called()
        dispatch.assert_called_once_with(record.pk)
        self.assertEqual(record.sms_status, AttendanceRecord.SMS_NOT_SENT)

    def test_delivery_records_outcome(self):
        record = mark_attendance(self.institute, self.student, self.day, AttendanceRecord.STATUS_ABSENT)
        with mock.patch("attendance.services.send_absence_notification", return_value=SmsResult(success=True)) as send:
            self.assertEqual(deliver_absence_sms(record.pk), AttendanceRecord.SMS_SENT)
        send.assert_called_once_with("Riya", "9123456780", self.day, "ABC Classes")
        record.refresh_from_db()
        self.assertEqual(record.sms_status, AttendanceRecord.SMS_SENT)

        with mock.patch("attendance.services.send_absence_notification", return_value=SmsResult(success=False, error="x")):
            deliver_absence_sms(record.pk)
        record.refresh_from_db()
        self.assertEqual(record.sms_status, AttendanceRecord.SMS_FAILED)

    def test_delivery_skips_record_marked_present_meanwhile(self):
        record = mark_attendance(self.institute, self.student, self.day, AttendanceRecord.STATUS_ABSENT)
        mark_attendance(self.institute, self.student, self.day, AttendanceRecord.STATUS_PRESENT)
        with mock.patch("attendance.services.send_absence_notification") as send:
            deliver_absence_sms(record.pk)
        send.assert_not_called()

    def test_dispatch_runs_delivery_in_worker(self):
        with mock.patch("attendance.services.deliver_absence_sms") as deliver:
            dispatch_absence_sms(42).result(timeout=5)
        deliver.assert_called_once_with(42)

    @override_settings(SMS_ENABLED=True)
    def test_present_sends_nothing(self):
        with mock.patch("attendance.services.send_absence_notification") as send:
            mark_attendance(self.institute, self.student, self.day, AttendanceRecord.STATUS_PRESENT)
        send.assert_not_called()


class AttendanceApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.institute = Institute.objects.create(
            name="ABC Classes", code="ABC1", contact_number="9876543210", email="abc@test.in", owner_name="Owner",
        )
        self.owner = User.objects.create_user(
            email="owner@abc.in", password="pass123", full_name="Owner", institute=self.institute,
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.owner)}")
        self.riya = make_student(self.institute, "Riya")
        self.arjun = make_student(self.institute, "Arjun")
        self.meera = make_student(self.institute, "Meera")

    def test_mark_single(self):
        res = self.client.post(
            "/api/attendance", {"studentId": self.riya.id, "date": "2025-03-05", "status": "present"}, format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["student"]["studentId"], "ABC1-0001")
        self.assertEqual(res.data["markedBy"], self.owner.id)

    def test_mark_unknown_student_returns_404(self):
        res = self.client.post(
            "/api/attendance", {"studentId": 99999, "date": "2025-03-05", "status": "present"}, format="json",
        )
        self.assertEqual(res.status_code, 404)

    def test_invalid_status_returns_400(self):
        res = self.client.post(
            "/api/attendance", {"studentId": self.riya.id, "date": "2025-03-05", "status": "late"}, format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertIn("status", res.data["errors"])

    def test_bulk_skips_unknown_students(self):
        res = self.client.post("/api/attendance/bulk", {
            "date": "2025-03-05",
            "attendanceData": [
                {"studentId": self.riya.id, "status": "present"},
                {"studentId": self.arjun.id, "status": "absent"},
                {"studentId": 99999, "status": "present"},
            ],
        }, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["results"]), 2)
        absent = AttendanceRecord.objects.get(student=self.arjun)
        self.assertEqual(absent.sms_status, AttendanceRecord.SMS_NOT_SENT)

    def test_list_filters(self):
        mark_attendance(self.institute, self.riya, date(2025, 3, 1), "present")
        mark_attendance(self.institute, self.riya, date(2025, 3, 2), "absent")
        mark_attendance(self.institute, self.arjun, date(2025, 3, 2), "present")
        mark_attendance(self.institute, self.arjun, date(2025, 3, 9), "present")

        res = self.client.get("/api/attendance", {"date": "2025-03-02"})
        self.assertEqual(len(res.data), 2)
        res = self.client.get("/api/attendance", {"studentId": self.riya.id})
        self.assertEqual([r["date"] for r in res.data], ["2025-03-02", "2025-03-01"])
        res = self.client.get("/api/attendance", {"startDate": "2025-03-01", "endDate": "2025-03-05"})
        self.assertEqual(len(res.data), 3)

    def test_list_rejects_non_integer_student_filter(self):
        mark_attendance(self.institute, self.riya, date(2025, 3, 1), "present")
        res = self.client.get("/api/attendance", {"studentId": "abc"})
        self.assertEqual(res.status_code, 400)
        self.assertIn("studentId", res.data["errors"])

    def test_today_summary(self):
        today = timezone.localdate()
        mark_attendance(self.institute, self.riya, today, "present")
        mark_attendance(self.institute, self.arjun, today, "absent")
        mark_attendance(self.institute, self.meera, today - timedelta(days=1), "present")

        res = self.client.get("/api/attendance/today")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["present"], 1)
        self.assertEqual(res.data["absent"], 1)
        self.assertEqual(res.data["notMarked"], 1)
        self.assertEqual(res.data["total"], 3)
        self.assertEqual(len(res.data["records"]), 2)
