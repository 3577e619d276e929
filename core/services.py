"""
Institute services: per-institute counters.
"""
from django.db import transaction

from core.models import InstituteSequence


def next_sequence_value(institute, name):
    """
    Atomically increment the (institute, name) counter and return the new value.
    The row stays locked until the enclosing transaction ends, so a caller that
    rolls back also gives the value back.
    """
    with transaction.atomic():
        sequence, _ = InstituteSequence.objects.get_or_create(institute=institute, name=name)
        sequence = InstituteSequence.objects.select_for_update().get(pk=sequence.pk)
        sequence.value += 1
        sequence.save(update_fields=['value', 'updated_at'])
        return sequence.value
