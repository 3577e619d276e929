"""
Core utilities: institute scoping, query parameters and institute code generation.
"""
import re

from django.utils.crypto import get_random_string
from rest_framework.exceptions import ValidationError

CODE_SUFFIX_CHARS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
CODE_MAX_ATTEMPTS = 10


def _user_institute_id(user):
    return getattr(user, 'institute_id', None)


def belongs_to_user_institute(obj, user, institute_attr='institute'):
    """
    Check if object belongs to user's institute.
    Objects without an institute never match a user that has one.
    """
    user_institute_id = _user_institute_id(user)
    if user_institute_id is None:
        return False
    return getattr(obj, f'{institute_attr}_id', None) == user_institute_id


def filter_by_institute(queryset, user, institute_field='institute'):
    """
    Filter queryset by user's institute.
    Users without an institute (platform staff) see nothing through tenant APIs.
    """
    institute_id = _user_institute_id(user)
    if institute_id is None:
        return queryset.none()
    return queryset.filter(**{f'{institute_field}_id': institute_id})


def int_query_param(params, name):
    """Integer query parameter, None when absent; a non-integer value is a 400."""
    value = params.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError({name: ['A valid integer is required.']})


def institute_code_prefix(name):
    """First three characters of the name, uppercased, letters only."""
    return re.sub(r'[^A-Z]', '', (name or '')[:3].upper())


def generate_institute_code(name, exists=None):
    """
    Build a globally unique institute code: name prefix + 4 random base-36 chars.
    `exists(code) -> bool` checks uniqueness; defaults to an Institute lookup.
    """
    if exists is None:
        from core.models import Institute

        def exists(code):
            return Institute.objects.filter(code=code).exists()

    prefix = institute_code_prefix(name)
    for _ in range(CODE_MAX_ATTEMPTS):
        code = prefix + get_random_string(4, allowed_chars=CODE_SUFFIX_CHARS)
        if not exists(code):
            return code
    raise RuntimeError(f'Could not generate a unique institute code for {name!r}')
