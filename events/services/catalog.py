"""Event catalog - event and workshop metadata.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Return domain models or raise domain errors
"""

import logging
import uuid
from dataclasses import replace
from datetime import UTC, datetime
from typing import Callable

from events.domain import Event, Money, WorkshopDetails
from events.domain.errors import NotFoundError, UnauthorizedError, ValidationError
from events.domain.models import EVENT_TYPES
from events.services.participation import parse_event_id
from events.stores.interfaces import EventStore

logger = logging.getLogger(__name__)

WORKSHOP_DEFAULT_CAPACITY = 10
WORKSHOP_MAX_CAPACITY = 1000
WORKSHOP_DEFAULT_LOCATION = "Online"

EVENT_FIELDS = (
    "name",
    "description",
    "event_type",
    "location",
    "starts_at",
    "ends_at",
    "fee",
    "currency",
    "refund_policy",
    "max_participants",
)
WORKSHOP_FIELDS = ("is_recorded", "recording_url", "archive_expires_at", "archive_price", "live_room_id")
# Still editable after the session started, so the recording can be attached.
ARCHIVE_FIELDS = ("is_recorded", "recording_url", "archive_expires_at", "archive_price")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _non_negative_int(value, label: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} must be a non-negative integer")
    return value


def _price(fee, currency) -> Money:
    fee = _non_negative_int(fee, "Fee")
    try:
        return Money(fee or 0, currency or "JPY")
    except ValueError as e:
        raise ValidationError(str(e))


class EventCatalog:
    """Create, read and edit events and voice workshops."""

    def __init__(self, store: EventStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    def _check_schedule(self, starts_at, ends_at, *, allow_past: bool = False) -> None:
        if not allow_past and starts_at < self._clock():
            raise ValidationError("Start time must be in the future")
        if ends_at <= starts_at:
            raise ValidationError("End time must be after the start time")

    def _build(self, data: dict, creator_id: int, event_type: str, workshop: WorkshopDetails | None, **defaults):
        if not data.get("name") or not data.get("starts_at") or not data.get("ends_at"):
            raise ValidationError("Missing required fields: name, starts_at, ends_at")
        self._check_schedule(data["starts_at"], data["ends_at"])
        price = _price(data.get("fee"), data.get("currency"))

        max_participants = data.get("max_participants", defaults.get("max_participants"))
        if max_participants is not None and _non_negative_int(max_participants, "Capacity") < 1:
            raise ValidationError("Capacity must be at least 1")

        return Event(
            id=uuid.uuid4(),
            creator_id=creator_id,
            name=data["name"],
            starts_at=data["starts_at"],
            ends_at=data["ends_at"],
            currency=price.currency,
            fee=data.get("fee"),
            max_participants=max_participants,
            description=data.get("description") or "",
            event_type=event_type,
            location=data.get("location") or defaults.get("location", ""),
            refund_policy=data.get("refund_policy") or "",
            workshop=workshop,
        )

    def create_event(self, data: dict, creator_id: int) -> Event:
        event_type = data.get("event_type") or "offline"
        if event_type not in EVENT_TYPES:
            raise ValidationError(f"Unknown event type: {event_type}")
        if event_type == "voice_workshop":
            raise ValidationError("Voice workshops are created as workshops")
        event = self._store.create_event(self._build(data, creator_id, event_type, None))
        logger.info("User %s created event %s", creator_id, event.id)
        return event

    def create_workshop(self, data: dict, creator_id: int) -> Event:
        """Create a voice workshop. Capacity defaults to 10 and may be 1..1000."""
        capacity = data.get("max_participants")
        if capacity is None:
            capacity = WORKSHOP_DEFAULT_CAPACITY
        if isinstance(capacity, int) and capacity > WORKSHOP_MAX_CAPACITY:
            raise ValidationError(f"Capacity cannot exceed {WORKSHOP_MAX_CAPACITY}")

        details = WorkshopDetails(
            is_recorded=bool(data.get("is_recorded", False)),
            recording_url=data.get("recording_url") or None,
            archive_expires_at=data.get("archive_expires_at"),
            archive_price=_non_negative_int(data.get("archive_price"), "Archive price"),
            live_room_id=data.get("live_room_id") or None,
        )
        if details.archive_expires_at and data.get("ends_at") and details.archive_expires_at <= data["ends_at"]:
            raise ValidationError("Archive expiry must be after the workshop ends")

        event = self._build(
            {**data, "max_participants": capacity},
            creator_id,
            "voice_workshop",
            details,
            location=WORKSHOP_DEFAULT_LOCATION,
        )
        event = self._store.create_event(event)
        logger.info("User %s created workshop %s (capacity %s)", creator_id, event.id, capacity)
        return event

    def get_event(self, event_id) -> Event:
        event_id = parse_event_id(event_id)
        event = self._store.get_event(event_id)
        if event is None:
            raise NotFoundError("Event", str(event_id))
        return event

    def list_events(self, creator_id: int | None = None, include_cancelled: bool = False) -> list[Event]:
        return self._store.list_events(creator_id=creator_id, include_cancelled=include_cancelled)

    def update_event(self, event_id, data: dict, user_id: int) -> Event:
        """Owner-only partial update.

        Once the event has started only the recording fields stay editable.
        Price fields are locked while anyone holds a place.
        """
        event = self.get_event(event_id)
        if event.creator_id != user_id:
            raise UnauthorizedError("You are not allowed to update this event")
        if event.cancelled:
            raise ValidationError("A cancelled event cannot be edited")

        fields = {k: data[k] for k in EVENT_FIELDS if k in data}
        workshop_fields = {k: data[k] for k in WORKSHOP_FIELDS if k in data}
        if workshop_fields and not event.is_workshop:
            raise ValidationError("Recording settings only apply to workshops")
        if "event_type" in fields and fields["event_type"] != event.event_type:
            raise ValidationError("The event type cannot be changed")

        started = self._clock() >= event.starts_at
        if started and (fields or set(workshop_fields) - set(ARCHIVE_FIELDS)):
            raise ValidationError("This event has already started; only recording settings can change")

        if {"fee", "currency"} & set(fields) and event.attending_count > 0:
            if fields.get("fee", event.fee) != event.fee or fields.get("currency", event.currency) != event.currency:
                raise ValidationError("The price cannot change while participants are registered")
        if "fee" in fields or "currency" in fields:
            price = _price(fields.get("fee", event.fee), fields.get("currency", event.currency))
            if "currency" in fields:
                fields["currency"] = price.currency

        if "max_participants" in fields:
            limit = fields["max_participants"]
            if limit is None and event.is_workshop:
                raise ValidationError("Workshops need a capacity")
            if limit is not None:
                _non_negative_int(limit, "Capacity")
                if limit < 1 or (event.is_workshop and limit > WORKSHOP_MAX_CAPACITY):
                    raise ValidationError(f"Capacity must be between 1 and {WORKSHOP_MAX_CAPACITY}")
                if limit < event.attending_count:
                    raise ValidationError("Capacity cannot be lower than the number of attendees")

        if "starts_at" in fields or "ends_at" in fields:
            self._check_schedule(fields.get("starts_at", event.starts_at), fields.get("ends_at", event.ends_at))

        if event.is_workshop:
            merged = replace(event.workshop, **workshop_fields)
            ends_at = fields.get("ends_at", event.ends_at)
            if merged.archive_expires_at and merged.archive_expires_at <= ends_at:
                raise ValidationError("Archive expiry must be after the workshop ends")
            if "archive_price" in workshop_fields:
                _non_negative_int(workshop_fields["archive_price"], "Archive price")

        if not fields and not workshop_fields:
            return event
        updated = self._store.update_event(event.id, fields, workshop_fields)
        logger.info("User %s updated event %s (%s)", user_id, event.id, ", ".join(sorted({*fields, *workshop_fields})))
        return updated
