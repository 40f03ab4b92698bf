"""
Payments & event participation settings:
- Stripe credentials
- which PaymentProvider / cancellation policy to load (dotted paths)
- live room and archive access windows
"""
import environ

env = environ.Env()

STRIPE_API_KEY = env("STRIPE_API_KEY", default="")
STRIPE_WEBHOOK_SECRET = env("STRIPE_WEBHOOK_SECRET", default="")

PAYMENT_PROVIDER = env("PAYMENT_PROVIDER", default="payments.providers.stripe_provider.StripePaymentProvider")

# Callable (event, participant, now) -> refund amount, or a class built with the options below.
EVENTS_CANCELLATION_POLICY = env("EVENTS_CANCELLATION_POLICY", default="events.services.policies.full_refund")
EVENTS_CANCELLATION_POLICY_OPTIONS = {}

EVENTS_ROOM_PREROLL_MINUTES = env.int("EVENTS_ROOM_PREROLL_MINUTES", default=30)
EVENTS_ARCHIVE_DEFAULT_ACCESS_DAYS = env.int("EVENTS_ARCHIVE_DEFAULT_ACCESS_DAYS", default=30)

LIVE_ROOM_BASE_URL = env("LIVE_ROOM_BASE_URL", default="https://live.example.com/rooms")
