"""Wiring of services to their Django-backed collaborators.

Views call these instead of constructing services, so tests can swap the
payment provider by patching ``get_payment_provider``.
"""

from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from events.services.access import WorkshopAccessController
from events.services.capacity import CapacityGuard
from events.services.catalog import EventCatalog
from events.services.participation import ParticipationManager
from events.services.webhooks import PaymentWebhookHandler
from events.stores.django_store import DjangoArchivePurchaseStore, DjangoEventStore, DjangoParticipantStore
from payments.providers.base import PaymentProvider
from payments.services import PaymentOrchestrator
from payments.stores.django_store import DjangoPaymentLedger


def get_payment_provider() -> PaymentProvider:
    return import_string(settings.PAYMENT_PROVIDER)()


def get_cancellation_policy():
    policy = import_string(settings.EVENTS_CANCELLATION_POLICY)
    if isinstance(policy, type):
        policy = policy(**settings.EVENTS_CANCELLATION_POLICY_OPTIONS)
    return policy


def build_payment_orchestrator() -> PaymentOrchestrator:
    return PaymentOrchestrator(get_payment_provider(), DjangoPaymentLedger())


def build_event_catalog() -> EventCatalog:
    return EventCatalog(DjangoEventStore(), clock=timezone.now)


def build_participation_manager(orchestrator: PaymentOrchestrator | None = None) -> ParticipationManager:
    events = DjangoEventStore()
    return ParticipationManager(
        events,
        DjangoParticipantStore(),
        CapacityGuard(events),
        orchestrator or build_payment_orchestrator(),
        cancellation_policy=get_cancellation_policy(),
        clock=timezone.now,
    )


def build_access_controller(orchestrator: PaymentOrchestrator | None = None) -> WorkshopAccessController:
    return WorkshopAccessController(
        DjangoEventStore(),
        DjangoParticipantStore(),
        DjangoArchivePurchaseStore(),
        orchestrator or build_payment_orchestrator(),
        live_room_base_url=settings.LIVE_ROOM_BASE_URL,
        room_preroll=timedelta(minutes=settings.EVENTS_ROOM_PREROLL_MINUTES),
        archive_default_access=timedelta(days=settings.EVENTS_ARCHIVE_DEFAULT_ACCESS_DAYS),
        clock=timezone.now,
    )


def build_webhook_handler() -> PaymentWebhookHandler:
    orchestrator = build_payment_orchestrator()
    return PaymentWebhookHandler(
        orchestrator,
        build_participation_manager(orchestrator),
        build_access_controller(orchestrator),
    )
