"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in events/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from events.domain.states import Cancelled, ParticipationState
from events.domain.value_objects import Capacity, Money

EVENT_TYPES = ("online", "offline", "hybrid", "voice_workshop")


@dataclass(frozen=True)
class WorkshopDetails:
    """Voice-workshop specific settings attached to an Event."""

    is_recorded: bool = False
    recording_url: str | None = None
    archive_expires_at: datetime | None = None
    archive_price: int | None = None
    live_room_id: str | None = None


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event (or a voice workshop)."""

    id: UUID
    creator_id: int
    name: str
    starts_at: datetime
    ends_at: datetime
    currency: str = "JPY"
    fee: int | None = None
    max_participants: int | None = None
    attending_count: int = 0
    description: str = ""
    event_type: str = "offline"
    location: str = ""
    refund_policy: str = ""
    cancelled: bool = False
    workshop: WorkshopDetails | None = None
    created_at: datetime | None = None

    @property
    def is_workshop(self) -> bool:
        return self.workshop is not None

    @property
    def is_free(self) -> bool:
        return not self.fee

    @property
    def price(self) -> Money:
        return Money(self.fee or 0, self.currency)

    @property
    def capacity(self) -> Capacity:
        return Capacity(self.max_participants)

    @property
    def archive_price(self) -> Money:
        """Price for buying the recording without having attended."""
        amount = None
        if self.workshop is not None:
            amount = self.workshop.archive_price
        if amount is None:
            amount = self.fee or 0
        return Money(amount, self.currency)

    def archive_open(self, now: datetime) -> bool:
        """Recorded and not past its archive expiry."""
        if self.workshop is None or not self.workshop.is_recorded:
            return False
        expires = self.workshop.archive_expires_at
        return expires is None or now < expires


@dataclass(frozen=True)
class Participant:
    """One user's participation in one event."""

    id: UUID
    event_id: UUID
    user_id: int
    state: ParticipationState
    message: str = ""
    joined_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class PastPayment:
    """Payment trail of an earlier participation that a rejoin replaced."""

    participant_id: UUID
    event_id: UUID
    user_id: int
    state: Cancelled
    superseded_at: datetime | None = None


@dataclass(frozen=True)
class ArchivePurchase:
    """Paid access to a workshop recording for a non-participant.

    ``purchased_at`` stays empty until the payment is confirmed; ``expires_at``
    is copied from the workshop at that moment and never recomputed.
    """

    id: UUID
    event_id: UUID
    user_id: int
    price: int
    currency: str
    payment_intent_id: str | None = None
    purchased_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = field(default=None, compare=False)

    @property
    def completed(self) -> bool:
        return self.purchased_at is not None

    def active(self, now: datetime) -> bool:
        if not self.completed:
            return False
        return self.expires_at is None or now < self.expires_at
