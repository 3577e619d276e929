"""
Student services: identifier allocation.

Student codes are `{instituteCode}-{NNNN}`. The next code is the current
maximum numeric suffix + 1; the (institute, student_code) unique constraint
decides which of several concurrent requests gets a given number, and the
losers recompute and try again.
"""
import logging

from django.conf import settings
from django.utils import timezone

from core.exceptions import AllocationExhausted, ConstraintViolation
from core.store import find_matching, insert_with_constraint
from .models import Student

logger = logging.getLogger(__name__)

CODE_WIDTH = 4


def format_student_code(institute_code, suffix):
    return f"{institute_code}-{suffix:0{CODE_WIDTH}d}"


def parse_code_suffix(student_code, institute_code):
    """Numeric suffix after `{institute_code}-`; anything unparsable counts as 0."""
    prefix = f"{institute_code}-"
    if not student_code or not student_code.startswith(prefix):
        return 0
    tail = student_code[len(prefix):]
    return int(tail) if tail.isascii() and tail.isdigit() else 0


def current_max_suffix(institute):
    """Highest suffix ever assigned in the institute, inactive students included."""
    codes = find_matching(institute, Student).values_list('student_code', flat=True)
    return max((parse_code_suffix(code, institute.code) for code in codes), default=0)


def next_student_code(institute):
    return format_student_code(institute.code, current_max_suffix(institute) + 1)


def allocate_student(institute, max_attempts=None, **fields):
    """
    Create a student with the next free code for the institute.
    Retries on a lost race; raises AllocationExhausted after max_attempts.
    """
    if max_attempts is None:
        max_attempts = settings.STUDENT_CODE_MAX_ATTEMPTS
    fields.setdefault('admission_date', timezone.localdate())

    for attempt in range(1, max_attempts + 1):
        code = next_student_code(institute)
        try:
            student = insert_with_constraint(
                Student,
                institute=institute,
                student_code=code,
                **fields,
            )
        except ConstraintViolation:
            logger.warning(
                'Student code %s taken in institute %s (attempt %s/%s), retrying',
                code, institute.code, attempt, max_attempts,
            )
            continue
        logger.info('Allocated student code %s', code)
        return student

    logger.error('Student code allocation exhausted for institute %s after %s attempts', institute.code, max_attempts)
    raise AllocationExhausted(attempts=max_attempts)


def deactivate_student(student):
    """Soft delete: the code stays reserved."""
    if student.status != Student.STATUS_INACTIVE:
        student.status = Student.STATUS_INACTIVE
        student.save(update_fields=['status', 'updated_at'])
    return student
