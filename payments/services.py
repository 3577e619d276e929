"""
Payment services: duplicate-safe fee recording and receipt numbering.

The lookup for an existing paid payment is only a fast path: two requests
can both pass it. The partial unique constraint on (institute, student,
period) where status='paid' decides which insert wins.
"""
import logging
import re
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from core.exceptions import ConstraintViolation, DuplicatePayment, PersistenceConflict
from core.models import InstituteSequence
from core.services import next_sequence_value
from core.store import count_matching, find_matching, insert_with_constraint
from students.models import Student
from .models import Payment

logger = logging.getLogger(__name__)

PERIOD_RE = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')
RECEIPT_WIDTH = 5


def current_period(today=None):
    today = today or timezone.localdate()
    return today.strftime('%Y-%m')


def format_receipt_number(institute_code, year, sequence):
    return f"{institute_code}-REC-{year}-{sequence:0{RECEIPT_WIDTH}d}"


def find_paid_payment(institute, student, period):
    return find_matching(
        institute,
        Payment,
        student=student,
        period=period,
        status=Payment.STATUS_PAID,
    ).first()


def record_payment(institute, student, period, amount, mode, created_by=None, note=None, paid_on=None):
    """
    Record a paid fee for (student, period).

    Raises DuplicatePayment (carrying the existing payment) when the period is
    already paid, and PersistenceConflict when a concurrent request won the
    race after the lookup; callers should then run the whole call again.
    """
    if student.institute_id != institute.pk:
        raise ValueError('Student does not belong to this institute')
    if not PERIOD_RE.match(period or ''):
        raise ValueError(f'Invalid billing period {period!r}, expected YYYY-MM')

    existing = find_paid_payment(institute, student, period)
    if existing is not None:
        logger.info('Duplicate payment for student %s period %s (receipt %s)', student.student_code, period, existing.receipt_no)
        raise DuplicatePayment(existing)

    paid_on = paid_on or timezone.localdate()
    try:
        with transaction.atomic():
            sequence = next_sequence_value(institute, InstituteSequence.RECEIPT)
            payment = insert_with_constraint(
                Payment,
                institute=institute,
                student=student,
                period=period,
                amount=Decimal(str(amount)),
                mode=mode,
                status=Payment.STATUS_PAID,
                payment_date=paid_on,
                receipt_no=format_receipt_number(institute.code, paid_on.year, sequence),
                note=note or '',
                created_by=created_by,
            )
    except ConstraintViolation as exc:
        logger.warning('Payment insert for student %s period %s lost a race', student.student_code, period)
        raise PersistenceConflict() from exc

    logger.info('Recorded payment %s: student=%s period=%s amount=%s', payment.receipt_no, student.student_code, period, payment.amount)
    return payment


def record_payment_with_recheck(institute, student, period, amount, mode, **kwargs):
    """
    record_payment, re-running the full check once after a lost race.
    The second run normally surfaces the winner as DuplicatePayment.
    """
    try:
        return record_payment(institute, student, period, amount, mode, **kwargs)
    except PersistenceConflict:
        return record_payment(institute, student, period, amount, mode, **kwargs)


def pending_fees(institute, period):
    """Active students with no paid payment for `period`."""
    paid_student_ids = find_matching(
        institute, Payment, period=period, status=Payment.STATUS_PAID,
    ).values_list('student_id', flat=True)
    students = find_matching(institute, Student, status=Student.STATUS_ACTIVE).exclude(
        pk__in=paid_student_ids,
    ).order_by('name')
    return [
        {'student': student, 'monthYear': period, 'amount': student.monthly_fee, 'status': Payment.STATUS_PENDING}
        for student in students
    ]


def collection_stats(institute, period):
    """Collection totals for `period`: paid count vs. active students."""
    paid = find_matching(institute, Payment, period=period, status=Payment.STATUS_PAID)
    total_collected = paid.aggregate(total=Sum('amount'))['total'] or Decimal('0')
    paid_count = paid.count()
    total_students = count_matching(institute, Student, status=Student.STATUS_ACTIVE)
    return {
        'month': period,
        'totalCollected': float(total_collected),
        'totalStudents': total_students,
        'paidCount': paid_count,
        'pendingCount': max(total_students - paid_count, 0),
    }
