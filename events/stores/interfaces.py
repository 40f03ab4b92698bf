"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from uuid import UUID

from events.domain import ArchivePurchase, Event, Participant, ParticipationState, PastPayment


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager that commits or rolls back all writes inside it."""
        ...

    @abstractmethod
    def create_event(self, event: Event) -> Event:
        """Persist a new event (and its workshop details, if any)."""
        ...

    @abstractmethod
    def get_event(self, event_id: UUID) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def list_events(self, *, creator_id: int | None = None, include_cancelled: bool = False) -> list[Event]:
        """Return events ordered by starts_at ascending."""
        ...

    @abstractmethod
    def update_event(self, event_id: UUID, fields: dict, workshop_fields: dict | None = None) -> Event:
        """Write the given columns and return the refreshed event."""
        ...

    @abstractmethod
    def mark_cancelled(self, event_id: UUID) -> bool:
        """Flag the event cancelled. False if it already was."""
        ...

    @abstractmethod
    def try_reserve_slot(self, event_id: UUID) -> bool:
        """Take one attending slot if the event is open and below capacity.

        The check and the increment must be a single atomic step so that two
        concurrent callers can never both take the last slot.
        """
        ...

    @abstractmethod
    def release_slot(self, event_id: UUID) -> None:
        """Give back one attending slot. Never drops below zero."""
        ...


class ParticipantStore(ABC):
    """Interface for participation rows."""

    @abstractmethod
    def get(self, participant_id: UUID) -> Participant | None: ...

    @abstractmethod
    def get_for_user(self, event_id: UUID, user_id: int) -> Participant | None: ...

    @abstractmethod
    def get_by_intent(self, intent_id: str) -> Participant | None: ...

    @abstractmethod
    def list_for_event(self, event_id: UUID) -> list[Participant]: ...

    @abstractmethod
    def create(self, event_id: UUID, user_id: int, state: ParticipationState, message: str = "") -> Participant:
        """Insert a participation row. At most one row exists per (event, user)."""
        ...

    @abstractmethod
    def transition(
        self, participant: Participant, new_state: ParticipationState, message: str | None = None
    ) -> Participant | None:
        """Move ``participant`` to ``new_state`` if the row still holds ``participant.state``.

        Returns the updated participant, or None when another writer got there
        first (the row no longer matches).

        Leaving a cancelled state that holds a payment intent keeps that
        intent and its refund in the payment history.
        """
        ...

    @abstractmethod
    def get_past_payment(self, intent_id: str) -> PastPayment | None:
        """Find an intent held by an earlier participation of some row."""
        ...

    @abstractmethod
    def record_past_refund(self, past: PastPayment, refund_id: str) -> bool:
        """Mark a superseded unpaid intent as refunded; False if it was already settled."""
        ...


class ArchivePurchaseStore(ABC):
    """Interface for recording purchases."""

    @abstractmethod
    def get_for_user(self, event_id: UUID, user_id: int) -> ArchivePurchase | None: ...

    @abstractmethod
    def get_by_intent(self, intent_id: str) -> ArchivePurchase | None: ...

    @abstractmethod
    def create_pending(
        self, event_id: UUID, user_id: int, price: int, currency: str, intent_id: str | None
    ) -> ArchivePurchase:
        """Insert or reset the user's purchase row to an unpaid attempt."""
        ...

    @abstractmethod
    def attach_intent(self, purchase_id: UUID, intent_id: str) -> ArchivePurchase: ...

    @abstractmethod
    def complete(self, purchase: ArchivePurchase, purchased_at: datetime, expires_at: datetime | None) -> bool:
        """Stamp the purchase as paid. False if it was already completed."""
        ...
