"""Participation service - the join / pay / cancel state machine.

Services:
- Depend only on interfaces (stores, capacity guard, payment orchestrator)
- Check capacity and input before any provider call
- Move participants only through compare-and-set transitions
- Return result objects or raise domain errors
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Callable
from uuid import UUID

from events.domain import (
    AttendingFree,
    AttendingPaid,
    AttendingPending,
    Cancelled,
    Event,
    Interested,
    Participant,
    ParticipationStatus,
    PastPayment,
    PaymentStatus,
)
from events.domain.errors import (
    CapacityExceededError,
    DomainError,
    NotFoundError,
    PaymentProviderError,
    UnauthorizedError,
    ValidationError,
)
from events.domain.states import cancel as cancelled_state
from events.domain.states import is_attending
from events.domain.value_objects import EventId
from events.services.capacity import CapacityGuard
from events.services.policies import full_refund
from events.stores.interfaces import EventStore, ParticipantStore
from payments.services import PaymentOrchestrator

logger = logging.getLogger(__name__)

RefundPolicy = Callable[[Event, Participant, datetime], int]


@dataclass(frozen=True)
class JoinResult:
    participant_id: UUID
    status: str
    payment_required: bool
    client_secret: str | None = None


@dataclass(frozen=True)
class ConfirmResult:
    success: bool
    payment_status: str


@dataclass(frozen=True)
class CancelResult:
    refunded: bool
    refund_amount: int = 0
    refund_id: str | None = None


@dataclass(frozen=True)
class EventCancellation:
    event_id: UUID
    cancelled: list[str] = field(default_factory=list)
    refunded: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)


def parse_event_id(value) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return EventId.from_string(value).value
    except (TypeError, ValueError):
        raise ValidationError("Invalid event ID format")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ParticipationManager:
    """Owns the (event, user) participation state machine."""

    def __init__(
        self,
        events: EventStore,
        participants: ParticipantStore,
        capacity: CapacityGuard,
        orchestrator: PaymentOrchestrator,
        cancellation_policy: RefundPolicy = full_refund,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._events = events
        self._participants = participants
        self._capacity = capacity
        self._orchestrator = orchestrator
        self._policy = cancellation_policy
        self._clock = clock

    def _get_event(self, event_id) -> Event:
        event_id = parse_event_id(event_id)
        event = self._events.get_event(event_id)
        if event is None:
            raise NotFoundError("Event", str(event_id))
        return event

    # ==== ✅ Join

    def join(self, event_id, user_id: int, desired_status: str = "attending", message: str = "") -> JoinResult:
        """Register interest in, or reserve a place at, an event.

        Attending a paid event reserves the slot first and only then asks the
        provider for an intent for exactly the event fee. A full event raises
        CapacityExceededError and the provider is never called.

        Raises:
            NotFoundError: Unknown event.
            ValidationError: Cancelled or started event, bad status, already attending.
            CapacityExceededError: No slot left.
            PaymentProviderError: The intent could not be created. The slot
                stays reserved; joining again retries the intent.
        """
        event = self._get_event(event_id)
        try:
            desired = ParticipationStatus(desired_status)
        except ValueError:
            raise ValidationError("Status must be 'interested' or 'attending'")
        if desired is ParticipationStatus.CANCELLED:
            raise ValidationError("Status must be 'interested' or 'attending'")
        if event.cancelled:
            raise ValidationError("This event has been cancelled")
        if self._clock() >= event.starts_at:
            raise ValidationError("This event has already started")

        existing = self._participants.get_for_user(event.id, user_id)

        if desired is ParticipationStatus.INTERESTED:
            participant = self._mark_interested(event, user_id, existing, message)
            return JoinResult(participant.id, participant.state.status.value, payment_required=False)

        if existing is not None and isinstance(existing.state, AttendingPending) and not existing.state.intent_id:
            # Slot already held from an attempt whose intent was never created.
            participant = existing
        elif existing is not None and is_attending(existing.state):
            raise ValidationError("You are already attending this event")
        else:
            participant = self._reserve(event, user_id, existing, message)

        if event.is_free:
            logger.info("User %s is attending free event %s", user_id, event.id)
            return JoinResult(participant.id, participant.state.status.value, payment_required=False)

        intent = self._orchestrator.create_intent(
            event.fee,
            event.currency,
            {
                "type": "event_participation",
                "event_id": str(event.id),
                "user_id": str(user_id),
                "participant_id": str(participant.id),
            },
        )
        updated = self._participants.transition(participant, AttendingPending(intent_id=intent.intent_id))
        if updated is None:
            logger.warning("Participant %s changed while intent %s was created", participant.id, intent.intent_id)
            raise ValidationError("Your participation changed meanwhile, please try again")

        logger.info("User %s reserved a slot on %s, awaiting payment %s", user_id, event.id, intent.intent_id)
        return JoinResult(
            updated.id, updated.state.status.value, payment_required=True, client_secret=intent.client_secret
        )

    def _mark_interested(self, event: Event, user_id: int, existing: Participant | None, message: str) -> Participant:
        if existing is None:
            return self._participants.create(event.id, user_id, Interested(), message)
        if isinstance(existing.state, Interested):
            return existing
        if is_attending(existing.state):
            raise ValidationError("You are already attending this event; cancel first")
        updated = self._participants.transition(existing, Interested(), message)
        if updated is None:
            raise ValidationError("Your participation changed meanwhile, please try again")
        return updated

    def _reserve(self, event: Event, user_id: int, existing: Participant | None, message: str) -> Participant:
        new_state = AttendingFree() if event.is_free else AttendingPending()
        with self._events.atomic():
            if not self._capacity.reserve(event.id, ParticipationStatus.ATTENDING).reserved:
                raise CapacityExceededError(str(event.id), is_workshop=event.is_workshop)
            if existing is None:
                return self._participants.create(event.id, user_id, new_state, message)
            participant = self._participants.transition(existing, new_state, message)
            if participant is None:
                raise ValidationError("Your participation changed meanwhile, please try again")
            return participant

    # ==== ✅ Payment

    def confirm_payment(self, intent_id: str, event_id, user_id: int) -> ConfirmResult:
        """Confirm the user's pending payment and mark the participation paid.

        Calling it again after success returns success without touching the
        provider. On failure the participation stays pending and keeps its slot.
        """
        event = self._get_event(event_id)
        participant = self._participants.get_for_user(event.id, user_id)
        if participant is None:
            raise NotFoundError("Participant", str(user_id))

        state = participant.state
        if isinstance(state, AttendingPaid) and state.intent_id == intent_id:
            return ConfirmResult(success=True, payment_status=PaymentStatus.PAID.value)
        if isinstance(state, Cancelled):
            raise ValidationError("This participation has been cancelled")
        if not isinstance(state, AttendingPending) or state.intent_id != intent_id:
            raise NotFoundError("Payment intent", intent_id)

        confirmation = self._orchestrator.confirm(intent_id)
        if not confirmation.succeeded:
            raise PaymentProviderError(
                f"Payment has not completed (status: {confirmation.status})", provider_code=confirmation.status
            )
        self.mark_paid(intent_id, confirmation.amount)
        return ConfirmResult(success=True, payment_status=PaymentStatus.PAID.value)

    def mark_paid(self, intent_id: str, amount: int) -> bool:
        """Apply a successful payment to the participant holding ``intent_id``.

        Shared by the direct confirm call and the provider webhook. Returns
        True when this call made the transition, False when it had already
        been applied. A payment landing on a participation cancelled before
        it was paid, or on an intent a later rejoin replaced, is refunded in full.
        """
        participant = self._participants.get_by_intent(intent_id)
        if participant is None:
            past = self._participants.get_past_payment(intent_id)
            if past is None:
                raise NotFoundError("Participant", intent_id)
            return self._refund_superseded_payment(past, amount)

        state = participant.state
        if isinstance(state, Cancelled):
            if state.payment_status is PaymentStatus.NONE:
                return self._refund_late_payment(participant, amount)
            return False
        if not isinstance(state, AttendingPending):
            return False

        event = self._events.get_event(participant.event_id)
        if amount != (event.fee or 0):
            logger.error(
                "Payment %s amount %s does not match fee %s of event %s", intent_id, amount, event.fee, event.id
            )
            raise PaymentProviderError("Payment amount does not match the event fee")

        if self._participants.transition(participant, state.paid()) is None:
            return False
        logger.info("Participant %s paid %s %s for event %s", participant.id, amount, event.currency, event.id)
        return True

    def _refund_late_payment(self, participant: Participant, amount: int) -> bool:
        state = participant.state
        refund = self._orchestrator.refund(state.intent_id, amount, "Payment received after cancellation")
        refunded = Cancelled(PaymentStatus.REFUNDED, state.intent_id, refund.refund_id)
        if self._participants.transition(participant, refunded) is None:
            logger.error("Refunded late payment %s but participant %s had moved", state.intent_id, participant.id)
            return False
        logger.info("Refunded late payment %s on cancelled participant %s", state.intent_id, participant.id)
        return True

    def _refund_superseded_payment(self, past: PastPayment, amount: int) -> bool:
        if past.state.payment_status is not PaymentStatus.NONE:
            return False
        intent_id = past.state.intent_id
        refund = self._orchestrator.refund(intent_id, amount, "Payment received for a replaced participation")
        if not self._participants.record_past_refund(past, refund.refund_id):
            logger.error("Refunded superseded payment %s but its history had moved", intent_id)
            return False
        logger.info("Refunded superseded payment %s of participant %s", intent_id, past.participant_id)
        return True

    # ==== ✅ Cancellation

    def cancel(self, event_id, participant_id, acting_user_id: int, reason: str = "") -> CancelResult:
        """Cancel a participation, refunding per the cancellation policy.

        Only the participant or the event organizer may cancel.

        Raises:
            NotFoundError: Unknown event or participant.
            UnauthorizedError: Someone else's participation.
            ValidationError: Already cancelled.
            RefundNotEligibleError / PaymentProviderError: The refund failed;
                the participation is left unchanged.
        """
        event = self._get_event(event_id)
        try:
            participant_id = UUID(str(participant_id))
        except ValueError:
            raise ValidationError("Invalid participant ID format")
        participant = self._participants.get(participant_id)
        if participant is None or participant.event_id != event.id:
            raise NotFoundError("Participant", str(participant_id))
        if acting_user_id not in (participant.user_id, event.creator_id):
            raise UnauthorizedError("You can only cancel your own participation")
        return self._cancel_participant(event, participant, reason, self._policy)

    def _cancel_participant(
        self, event: Event, participant: Participant, reason: str, policy: RefundPolicy
    ) -> CancelResult:
        state = participant.state
        if isinstance(state, Cancelled):
            raise ValidationError("This participation is already cancelled")

        refund = None
        if isinstance(state, AttendingPaid):
            amount = policy(event, participant, self._clock())
            if amount > 0:
                refund = self._orchestrator.refund(state.intent_id, amount, reason or "Participation cancelled")

        new_state = cancelled_state(state, refund.refund_id if refund else None)
        with self._events.atomic():
            if self._participants.transition(participant, new_state) is None:
                if refund is not None:
                    logger.error("Refund %s issued but participant %s had moved", refund.refund_id, participant.id)
                raise ValidationError("Your participation changed meanwhile, please try again")
            if is_attending(state):
                self._capacity.release(event.id)

        logger.info(
            "Participant %s cancelled on event %s (%s)",
            participant.id,
            event.id,
            f"refunded {refund.amount}" if refund else new_state.payment_status.value,
        )
        if refund is None:
            return CancelResult(refunded=False)
        return CancelResult(refunded=True, refund_amount=refund.amount, refund_id=refund.refund_id)

    def cancel_event(self, event_id, acting_user_id: int, reason: str = "") -> EventCancellation:
        """Organizer cancels the whole event; every paid participant gets a full refund.

        Per-participant failures are collected rather than aborting the rest.
        """
        event = self._get_event(event_id)
        if event.creator_id != acting_user_id:
            raise UnauthorizedError("Only the organizer can cancel this event")
        if not self._events.mark_cancelled(event.id):
            raise ValidationError("This event has already been cancelled")

        result = EventCancellation(event_id=event.id)
        reason = reason or "Event cancelled by organizer"
        for participant in self._participants.list_for_event(event.id):
            if isinstance(participant.state, Cancelled):
                continue
            try:
                outcome = self._cancel_participant(event, participant, reason, full_refund)
            except DomainError as e:
                logger.error("Could not cancel participant %s of event %s: %s", participant.id, event.id, e)
                result.failed.append((str(participant.id), e.message))
                continue
            result.cancelled.append(str(participant.id))
            if outcome.refunded:
                result.refunded.append(str(participant.id))

        logger.info(
            "Event %s cancelled: %d participations cancelled, %d refunded, %d failed",
            event.id,
            len(result.cancelled),
            len(result.refunded),
            len(result.failed),
        )
        return result
