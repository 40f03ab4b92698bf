"""
Test settings: in-memory SQLite, fake payment provider, fast hashing.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from .base import *  # noqa

DEBUG = False
DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": ":memory:"}}
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PAYMENT_PROVIDER = "tests.fakes.FakePaymentProvider"
STRIPE_API_KEY = "sk_test_dummy"
STRIPE_WEBHOOK_SECRET = "whsec_test"
EVENTS_CANCELLATION_POLICY = "events.services.policies.full_refund"
LIVE_ROOM_BASE_URL = "https://live.test/rooms"

# Let pytest's caplog see module loggers.
LOGGING = {"version": 1, "disable_existing_loggers": False}
