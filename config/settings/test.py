"""
Test settings: in-memory SQLite unless DATABASE_URL points elsewhere
(set DATABASE_URL to a PostgreSQL URL to run the row-locking tests).
"""
import os

os.environ.setdefault('DATABASE_URL', 'sqlite://:memory:')

from .base import *

DEBUG = False

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

SMS_ENABLED = False
FAST2SMS_API_KEY = 'test-key'

LOGGING['root']['level'] = 'CRITICAL'
for _logger in LOGGING['loggers'].values():
    _logger['level'] = 'CRITICAL'
