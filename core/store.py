"""
Tenant-scoped store: the few ORM operations the allocator and the payment
guard rely on. Each call touches exactly one model.
"""
import logging

from django.db import IntegrityError, transaction

from core.exceptions import ConstraintViolation, NotFound

logger = logging.getLogger(__name__)


def count_matching(institute, model, **filters):
    return model.objects.filter(institute=institute, **filters).count()


def find_matching(institute, model, **filters):
    return model.objects.filter(institute=institute, **filters)


UNIQUE_VIOLATION_SQLSTATE = '23505'


def is_unique_violation(exc):
    """True when an IntegrityError comes from a unique constraint or index."""
    cause = exc.__cause__
    sqlstate = getattr(cause, 'sqlstate', None) or getattr(cause, 'pgcode', None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    # sqlite3 only reports the failure in the message
    return 'UNIQUE constraint failed' in str(exc)


def insert_with_constraint(model, **fields):
    """
    Insert one row inside a savepoint. A uniqueness rejection rolls back
    only the savepoint and is raised as ConstraintViolation; any other
    IntegrityError (NOT NULL, foreign key, check) propagates unchanged.
    """
    try:
        with transaction.atomic():
            return model.objects.create(**fields)
    except IntegrityError as exc:
        if not is_unique_violation(exc):
            raise
        logger.info('Insert into %s rejected: %s', model._meta.db_table, exc)
        raise ConstraintViolation(model=model) from exc


def update_one(model, key, patch):
    """Apply `patch` to the single row matching `key` and return it."""
    try:
        instance = model.objects.get(**key)
    except model.DoesNotExist:
        raise NotFound(f'{model._meta.verbose_name} not found')
    for field, value in patch.items():
        setattr(instance, field, value)
    update_fields = set(patch)
    if hasattr(instance, 'updated_at'):
        update_fields.add('updated_at')
    instance.save(update_fields=sorted(update_fields))
    return instance
