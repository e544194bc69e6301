# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite
- Fast password hashing
- Outbox email backend (django.core.mail.outbox)
- No throttling surprises across test cases
- Gateway is a stub; tests inject their own
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import PAYMENTS, REST_FRAMEWORK

DEBUG = False
TESTING = True

SECRET_KEY = "test-secret-key-not-for-production"
APP_SECRET = "test-app-secret-not-for-production"

SIMPLE_JWT = {
    **SIMPLE_JWT,  # noqa: F405
    "SIGNING_KEY": APP_SECRET,
}

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
    "DEFAULT_THROTTLE_RATES": {
        "anon": "10000/min",
        "user": "10000/min",
        "auth": "10000/min",
        "checkout": "10000/min",
    },
}

PAYMENTS = {
    **PAYMENTS,
    "GATEWAY": "orders.tests.stubs.StubGateway",
    "CURRENCY": "USD",
    "TIMEOUT_SECONDS": 5,
    "STRIPE": {"SECRET_KEY": "sk_test_dummy"},
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"], "level": "CRITICAL"},
}
