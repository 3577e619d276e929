"""
Attendance model: one record per student per day.
Unique constraint: (institute, student, date).
"""
from django.db import models
from students.models import Student


class AttendanceRecord(models.Model):
    """
    Daily attendance record. Marking the same student and day again
    updates the existing row.
    """
    STATUS_PRESENT = "present"
    STATUS_ABSENT = "absent"

    STATUS_CHOICES = [
        (STATUS_PRESENT, "Present"),
        (STATUS_ABSENT, "Absent"),
    ]

    SMS_SENT = "sent"
    SMS_FAILED = "failed"
    SMS_NOT_SENT = "not_sent"

    SMS_STATUS_CHOICES = [
        (SMS_SENT, "Sent"),
        (SMS_FAILED, "Failed"),
        (SMS_NOT_SENT, "Not sent"),
    ]

    institute = models.ForeignKey(
        "core.Institute",
        on_delete=models.CASCADE,
        related_name="attendance_records",
        db_column="institute_id",
    )
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name="attendance_records",
    )
    date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    sms_status = models.CharField(max_length=20, choices=SMS_STATUS_CHOICES, default=SMS_NOT_SENT)
    marked_by = models.ForeignKey(
        "accounts.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="marked_attendance",
        db_column="marked_by_id",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "attendance_records"
        verbose_name = "Attendance Record"
        verbose_name_plural = "Attendance Records"
        ordering = ["-date", "student"]
        constraints = [
            models.UniqueConstraint(
                fields=["institute", "student", "date"],
                name="unique_institute_student_date",
            ),
        ]
        indexes = [
            models.Index(fields=["institute", "date"], name="attendance_inst_date_idx"),
        ]

    def __str__(self):
        return f"{self.student.name} - {self.date} - {self.status}"
