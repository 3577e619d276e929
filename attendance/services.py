"""
Attendance services: mark (upsert) a student's day and notify parents of absences.

Absence SMS leave the request thread: once the marking transaction commits,
the record id goes to a small worker pool that sends the message and stores
sent/failed on the record. Until then sms_status stays not_sent.
"""
import logging
from concurrent.futures import ThreadPoolExecutor

from django.conf import settings
from django.db import close_old_connections, transaction

from notifications.sms import send_absence_notification
from students.models import Student
from .models import AttendanceRecord

logger = logging.getLogger(__name__)

_sms_executor = ThreadPoolExecutor(max_workers=settings.SMS_WORKERS, thread_name_prefix='absence-sms')


def deliver_absence_sms(record_id):
    """Send the absence SMS for one record and store the outcome. Returns the new sms_status."""
    try:
        record = AttendanceRecord.objects.select_related('student', 'institute').get(pk=record_id)
    except AttendanceRecord.DoesNotExist:
        logger.warning('Attendance record %s vanished before its absence SMS was sent', record_id)
        return None
    if record.status != AttendanceRecord.STATUS_ABSENT:
        logger.info('Attendance record %s no longer absent; SMS skipped', record_id)
        return record.sms_status

    student = record.student
    result = send_absence_notification(
        student.name,
        student.contact_number,
        record.date,
        record.institute.name,
    )
    sms_status = AttendanceRecord.SMS_SENT if result.success else AttendanceRecord.SMS_FAILED
    AttendanceRecord.objects.filter(pk=record_id).update(sms_status=sms_status)
    return sms_status


def _deliver_in_worker(record_id):
    close_old_connections()
    try:
        deliver_absence_sms(record_id)
    except Exception:
        logger.exception('Absence SMS for attendance record %s failed', record_id)
    finally:
        close_old_connections()


def dispatch_absence_sms(record_id):
    """Hand one absence SMS to the worker pool; returns the Future."""
    return _sms_executor.submit(_deliver_in_worker, record_id)


def _notify_absence(record):
    student = record.student
    if not settings.SMS_ENABLED:
        logger.info(
            'SMS disabled; absence of %s on %s not sent to %s',
            student.student_code, record.date, student.contact_number,
        )
        return
    record_id = record.pk
    transaction.on_commit(lambda: dispatch_absence_sms(record_id))


def mark_attendance(institute, student, date, status, marked_by=None):
    """
    Create or update the (student, date) record.
    Absences queue a parent SMS when SMS_ENABLED; sms_status is not_sent until
    the worker records sent or failed.
    """
    if student.institute_id != institute.pk:
        raise ValueError('Student does not belong to this institute')

    record, created = AttendanceRecord.objects.update_or_create(
        institute=institute,
        student=student,
        date=date,
        defaults={'status': status, 'marked_by': marked_by},
    )
    logger.info(
        '%s attendance %s for %s on %s',
        'Marked' if created else 'Updated', status, student.student_code, date,
    )

    if status == AttendanceRecord.STATUS_ABSENT:
        if record.sms_status != AttendanceRecord.SMS_NOT_SENT:
            record.sms_status = AttendanceRecord.SMS_NOT_SENT
            record.save(update_fields=['sms_status', 'updated_at'])
        _notify_absence(record)
    return record


def today_summary(institute, today):
    """Counts for `today` against the institute's active students."""
    records = list(
        AttendanceRecord.objects.filter(institute=institute, date=today).select_related('student')
    )
    present = sum(1 for r in records if r.status == AttendanceRecord.STATUS_PRESENT)
    absent = sum(1 for r in records if r.status == AttendanceRecord.STATUS_ABSENT)
    total = Student.objects.filter(institute=institute, status=Student.STATUS_ACTIVE).count()
    return {
        'date': today,
        'present': present,
        'absent': absent,
        'notMarked': max(total - len(records), 0),
        'total': total,
        'records': records,
    }
