"""Workshop access - live room entry and recording (archive) access."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Callable

from events.domain import ArchivePurchase, Event
from events.domain.errors import NotFoundError, PaymentProviderError, ValidationError
from events.domain.states import AttendingPending, has_settled_attendance
from events.services.participation import parse_event_id
from events.stores.interfaces import ArchivePurchaseStore, EventStore, ParticipantStore
from payments.services import PaymentOrchestrator
from payments.types import CANCELED, SUCCEEDED

logger = logging.getLogger(__name__)

MODERATOR = "moderator"
LISTENER = "listener"


@dataclass(frozen=True)
class RoomAccess:
    has_access: bool
    room_url: str | None = None
    role: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class ArchiveAccess:
    has_access: bool
    archive_url: str | None = None
    expires_at: datetime | None = None
    can_purchase: bool = False
    price: int | None = None
    currency: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class ArchivePurchaseIntent:
    purchase_id: str
    payment_required: bool
    client_secret: str | None = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class WorkshopAccessController:
    """Decides who may enter a workshop's live room and who may replay it."""

    def __init__(
        self,
        events: EventStore,
        participants: ParticipantStore,
        purchases: ArchivePurchaseStore,
        orchestrator: PaymentOrchestrator,
        live_room_base_url: str = "",
        room_preroll: timedelta = timedelta(minutes=30),
        archive_default_access: timedelta = timedelta(days=30),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._events = events
        self._participants = participants
        self._purchases = purchases
        self._orchestrator = orchestrator
        self._live_room_base_url = live_room_base_url.rstrip("/")
        self._room_preroll = room_preroll
        self._archive_default_access = archive_default_access
        self._clock = clock

    def _get_workshop(self, workshop_id) -> Event:
        event_id = parse_event_id(workshop_id)
        event = self._events.get_event(event_id)
        if event is None or not event.is_workshop:
            raise NotFoundError("Workshop", str(event_id))
        return event

    # ==== ✅ Live room

    def get_room_access(self, workshop_id, user_id: int) -> RoomAccess:
        """Room handle and role while the session window is open.

        The room opens ``room_preroll`` before the start and closes at the end.
        The organizer enters as moderator, settled participants as listeners.
        """
        event = self._get_workshop(workshop_id)
        now = self._clock()

        if event.cancelled:
            return RoomAccess(False, reason="cancelled")
        if now < event.starts_at - self._room_preroll:
            return RoomAccess(False, reason="not_open_yet")
        if now > event.ends_at:
            return RoomAccess(False, reason="ended")

        if event.creator_id == user_id:
            role = MODERATOR
        else:
            participant = self._participants.get_for_user(event.id, user_id)
            state = participant.state if participant else None
            if isinstance(state, AttendingPending):
                return RoomAccess(False, reason="payment_required")
            if not has_settled_attendance(state):
                return RoomAccess(False, reason="not_participant")
            role = LISTENER

        room_id = event.workshop.live_room_id or str(event.id)
        room_url = f"{self._live_room_base_url}/{room_id}" if self._live_room_base_url else room_id
        return RoomAccess(True, room_url=room_url, role=role)

    # ==== ✅ Archive

    def _attendee_entitled(self, event: Event, user_id: int, now: datetime) -> bool:
        if event.creator_id == user_id:
            return True
        if not event.archive_open(now):
            return False
        participant = self._participants.get_for_user(event.id, user_id)
        return participant is not None and has_settled_attendance(participant.state)

    def get_archive_access(self, workshop_id, user_id: int) -> ArchiveAccess:
        event = self._get_workshop(workshop_id)
        now = self._clock()
        workshop = event.workshop

        expires_at = None
        entitled = self._attendee_entitled(event, user_id, now)
        if entitled:
            expires_at = workshop.archive_expires_at
        else:
            purchase = self._purchases.get_for_user(event.id, user_id)
            if purchase is not None and purchase.active(now):
                entitled = True
                expires_at = purchase.expires_at

        if entitled:
            if not workshop.recording_url:
                return ArchiveAccess(False, reason="recording_unavailable")
            return ArchiveAccess(True, archive_url=workshop.recording_url, expires_at=expires_at)

        if event.archive_open(now) and not event.cancelled:
            price = event.archive_price
            return ArchiveAccess(False, can_purchase=True, price=price.amount, currency=price.currency)
        return ArchiveAccess(False, reason="archive_closed")

    def purchase_archive_access(self, workshop_id, user_id: int) -> ArchivePurchaseIntent:
        """Start buying the recording. Free archives are granted at once.

        Asking again while a purchase is unpaid returns that purchase's intent.

        Raises:
            ValidationError: Archive closed, or the user already has access.
            PaymentProviderError: The intent could not be created.
        """
        event = self._get_workshop(workshop_id)
        now = self._clock()
        if event.cancelled or not event.archive_open(now):
            raise ValidationError("The archive of this workshop is not available")
        if self._attendee_entitled(event, user_id, now):
            raise ValidationError("You already have access to this archive")
        existing = self._purchases.get_for_user(event.id, user_id)
        if existing is not None and existing.active(now):
            raise ValidationError("You have already purchased this archive")
        if existing is not None and not existing.completed and existing.payment_intent_id:
            resumed = self._resume_purchase(existing)
            if resumed is not None:
                return resumed

        price = event.archive_price
        purchase = self._purchases.create_pending(event.id, user_id, price.amount, price.currency, None)
        if price.is_zero:
            self._complete(purchase, event)
            return ArchivePurchaseIntent(str(purchase.id), payment_required=False)

        intent = self._orchestrator.create_intent(
            price.amount,
            price.currency,
            {
                "type": "archive_purchase",
                "event_id": str(event.id),
                "user_id": str(user_id),
                "purchase_id": str(purchase.id),
            },
        )
        purchase = self._purchases.attach_intent(purchase.id, intent.intent_id)
        logger.info("Archive purchase %s for %s started with intent %s", purchase.id, event.id, intent.intent_id)
        return ArchivePurchaseIntent(str(purchase.id), payment_required=True, client_secret=intent.client_secret)

    def _resume_purchase(self, purchase: ArchivePurchase) -> ArchivePurchaseIntent | None:
        # A started purchase keeps its intent and price until the provider cancels that intent.
        try:
            intent = self._orchestrator.resume_intent(purchase.payment_intent_id)
        except NotFoundError:
            logger.info(
                "Intent %s of archive purchase %s is gone; starting over", purchase.payment_intent_id, purchase.id
            )
            return None
        if intent.status == CANCELED:
            return None
        if intent.status == SUCCEEDED:
            self.complete_archive_purchase(intent.intent_id, intent.amount)
            return ArchivePurchaseIntent(str(purchase.id), payment_required=False)
        logger.info("Resuming archive purchase %s with intent %s", purchase.id, intent.intent_id)
        return ArchivePurchaseIntent(str(purchase.id), payment_required=True, client_secret=intent.client_secret)

    def confirm_archive_purchase(self, intent_id: str, workshop_id, user_id: int) -> ArchiveAccess:
        event = self._get_workshop(workshop_id)
        purchase = self._purchases.get_for_user(event.id, user_id)
        if purchase is None or purchase.payment_intent_id != intent_id:
            raise NotFoundError("Payment intent", intent_id)

        if not purchase.completed:
            confirmation = self._orchestrator.confirm(intent_id)
            if not confirmation.succeeded:
                raise PaymentProviderError(
                    f"Payment has not completed (status: {confirmation.status})", provider_code=confirmation.status
                )
            self.complete_archive_purchase(intent_id, confirmation.amount)
        return self.get_archive_access(event.id, user_id)

    def complete_archive_purchase(self, intent_id: str, amount: int) -> bool:
        """Record a paid archive purchase. Idempotent; shared with the webhook path."""
        purchase = self._purchases.get_by_intent(intent_id)
        if purchase is None:
            raise NotFoundError("Archive purchase", intent_id)
        if purchase.completed:
            return False
        if amount != purchase.price:
            logger.error("Archive payment %s amount %s does not match price %s", intent_id, amount, purchase.price)
            raise PaymentProviderError("Payment amount does not match the archive price")
        return self._complete(purchase, self._events.get_event(purchase.event_id))

    def _complete(self, purchase: ArchivePurchase, event: Event) -> bool:
        now = self._clock()
        # Expiry is fixed here; later changes to the workshop do not move it.
        expires_at = event.workshop.archive_expires_at or now + self._archive_default_access
        if not self._purchases.complete(purchase, now, expires_at):
            return False
        logger.info("User %s bought archive access to %s until %s", purchase.user_id, event.id, expires_at)
        return True
