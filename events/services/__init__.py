from events.services.access import ArchiveAccess, ArchivePurchaseIntent, RoomAccess, WorkshopAccessController
from events.services.capacity import CapacityGuard, Reservation
from events.services.catalog import EventCatalog
from events.services.participation import (
    CancelResult,
    ConfirmResult,
    EventCancellation,
    JoinResult,
    ParticipationManager,
)
from events.services.webhooks import PaymentWebhookHandler

__all__ = [
    "EventCatalog",
    "CapacityGuard",
    "Reservation",
    "ParticipationManager",
    "JoinResult",
    "ConfirmResult",
    "CancelResult",
    "EventCancellation",
    "WorkshopAccessController",
    "RoomAccess",
    "ArchiveAccess",
    "ArchivePurchaseIntent",
    "PaymentWebhookHandler",
]
