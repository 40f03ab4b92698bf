from events.domain.models import ArchivePurchase, Event, Participant, PastPayment, WorkshopDetails
from events.domain.states import (
    AttendingFree,
    AttendingPaid,
    AttendingPending,
    Cancelled,
    Interested,
    ParticipationState,
    ParticipationStatus,
    PaymentStatus,
)
from events.domain.value_objects import Capacity, EventId, Money

__all__ = [
    "Event",
    "WorkshopDetails",
    "Participant",
    "PastPayment",
    "ArchivePurchase",
    "ParticipationState",
    "ParticipationStatus",
    "PaymentStatus",
    "Interested",
    "AttendingFree",
    "AttendingPending",
    "AttendingPaid",
    "Cancelled",
    "EventId",
    "Money",
    "Capacity",
]
