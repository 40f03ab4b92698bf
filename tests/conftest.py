from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from events.services import factory
from events.services.access import WorkshopAccessController
from events.services.capacity import CapacityGuard
from events.services.catalog import EventCatalog
from events.services.participation import ParticipationManager
from events.services.webhooks import PaymentWebhookHandler
from events.stores.django_store import DjangoArchivePurchaseStore, DjangoEventStore, DjangoParticipantStore
from payments.services import PaymentOrchestrator
from payments.stores.django_store import DjangoPaymentLedger
from tests.fakes import FakePaymentProvider

User = get_user_model()


class Clock:
    """Settable clock handed to services instead of timezone.now."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def create_user(db):
    def make_user(username="member", password="StrongPass123!"):
        return User.objects.create_user(username=username, email=f"{username}@example.com", password=password)
    return make_user


@pytest.fixture
def organizer(create_user):
    return create_user("organizer")


@pytest.fixture
def member(create_user):
    return create_user("member")


@pytest.fixture
def other_member(create_user):
    return create_user("other")


@pytest.fixture
def clock():
    return Clock(datetime(2030, 5, 1, 9, 0, tzinfo=dt_timezone.utc))


@pytest.fixture
def fake_provider(monkeypatch):
    provider = FakePaymentProvider()
    monkeypatch.setattr(factory, "get_payment_provider", lambda: provider)
    return provider


# ----------------------
# 🔹 Services wired to the Django stores
# ----------------------
@pytest.fixture
def orchestrator(fake_provider):
    return PaymentOrchestrator(fake_provider, DjangoPaymentLedger())


@pytest.fixture
def catalog(db, clock):
    return EventCatalog(DjangoEventStore(), clock=clock)


@pytest.fixture
def participation(db, orchestrator, clock):
    events = DjangoEventStore()
    return ParticipationManager(
        events, DjangoParticipantStore(), CapacityGuard(events), orchestrator, clock=clock
    )


@pytest.fixture
def access(db, orchestrator, clock):
    return WorkshopAccessController(
        DjangoEventStore(),
        DjangoParticipantStore(),
        DjangoArchivePurchaseStore(),
        orchestrator,
        live_room_base_url="https://live.test/rooms",
        clock=clock,
    )


@pytest.fixture
def webhook_handler(orchestrator, participation, access):
    return PaymentWebhookHandler(orchestrator, participation, access)


# ----------------------
# 🔹 Events
# ----------------------
@pytest.fixture
def make_event(catalog, organizer, clock):
    def _make(**overrides):
        creator_id = overrides.pop("creator_id", organizer.id)
        data = {
            "name": "Morning meditation",
            "starts_at": clock.now + timedelta(days=7),
            "ends_at": clock.now + timedelta(days=7, hours=2),
        }
        data.update(overrides)
        return catalog.create_event(data, creator_id)
    return _make


@pytest.fixture
def make_workshop(catalog, organizer, clock):
    def _make(**overrides):
        data = {
            "name": "Voice workshop",
            "starts_at": clock.now + timedelta(days=7),
            "ends_at": clock.now + timedelta(days=7, hours=2),
            "is_recorded": True,
            "recording_url": "https://cdn.test/recordings/voice.m4a",
            "archive_expires_at": clock.now + timedelta(days=60),
            "live_room_id": "room-voice-1",
        }
        data.update(overrides)
        return catalog.create_workshop(data, organizer.id)
    return _make
