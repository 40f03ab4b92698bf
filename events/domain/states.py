"""Participation state of one user for one event.

The participation status and the payment status always move together, so they
are modelled as one tagged value instead of two independently settable
fields. Each variant exposes the ``status``/``payment_status`` pair it is
persisted as; ``state_from_columns`` is the only way back from columns and it
rejects combinations no variant produces (e.g. attending + refunded).
"""

from dataclasses import dataclass
from enum import Enum


class ParticipationStatus(str, Enum):
    INTERESTED = "interested"
    ATTENDING = "attending"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class Interested:
    status = ParticipationStatus.INTERESTED
    payment_status = PaymentStatus.NONE
    intent_id = None
    refund_id = None


@dataclass(frozen=True)
class AttendingFree:
    status = ParticipationStatus.ATTENDING
    payment_status = PaymentStatus.NONE
    intent_id = None
    refund_id = None


@dataclass(frozen=True)
class AttendingPending:
    """Slot reserved, payment not captured yet.

    ``intent_id`` is empty between the reservation and the provider answering
    the intent request, and stays empty if that request failed.
    """

    intent_id: str | None = None

    status = ParticipationStatus.ATTENDING
    payment_status = PaymentStatus.PENDING
    refund_id = None

    def paid(self) -> "AttendingPaid":
        return AttendingPaid(intent_id=self.intent_id)


@dataclass(frozen=True)
class AttendingPaid:
    intent_id: str

    status = ParticipationStatus.ATTENDING
    payment_status = PaymentStatus.PAID
    refund_id = None

    def __post_init__(self) -> None:
        if not self.intent_id:
            raise ValueError("A paid participation needs a payment intent id")


@dataclass(frozen=True)
class Cancelled:
    """Logically deleted participation; keeps the payment trail.

    ``payment_status`` is NONE for never-paid rows, PAID when the policy kept
    the whole fee, and REFUNDED once a refund went through.
    """

    payment_status: PaymentStatus = PaymentStatus.NONE
    intent_id: str | None = None
    refund_id: str | None = None

    status = ParticipationStatus.CANCELLED

    def __post_init__(self) -> None:
        if self.payment_status is PaymentStatus.PENDING:
            raise ValueError("A cancelled participation cannot have a pending payment")
        if self.payment_status is PaymentStatus.REFUNDED and not (self.intent_id and self.refund_id):
            raise ValueError("A refunded participation needs both intent and refund ids")
        if self.payment_status is PaymentStatus.PAID and not self.intent_id:
            raise ValueError("A paid participation needs a payment intent id")
        if self.payment_status is not PaymentStatus.REFUNDED and self.refund_id:
            raise ValueError("Only refunded participations carry a refund id")


ParticipationState = Interested | AttendingFree | AttendingPending | AttendingPaid | Cancelled

ATTENDING_STATES = (AttendingFree, AttendingPending, AttendingPaid)


def is_attending(state: ParticipationState | None) -> bool:
    """True while the participation holds a capacity slot."""
    return isinstance(state, ATTENDING_STATES)


def has_settled_attendance(state: ParticipationState | None) -> bool:
    """Attending with the payment requirement satisfied (free or paid)."""
    return isinstance(state, (AttendingFree, AttendingPaid))


def cancel(state: ParticipationState, refund_id: str | None = None) -> Cancelled:
    """Return the cancelled state reached from ``state``."""
    if isinstance(state, Cancelled):
        raise ValueError("Participation is already cancelled")
    if isinstance(state, AttendingPaid):
        if refund_id:
            return Cancelled(PaymentStatus.REFUNDED, state.intent_id, refund_id)
        return Cancelled(PaymentStatus.PAID, state.intent_id)
    if refund_id:
        raise ValueError("Only paid participations can be refunded")
    return Cancelled(PaymentStatus.NONE, state.intent_id)


def state_from_columns(
    status: str,
    payment_status: str,
    intent_id: str | None = None,
    refund_id: str | None = None,
) -> ParticipationState:
    """Rebuild a state from its persisted columns.

    Raises:
        ValueError: If the columns describe an illegal combination.
    """
    status = ParticipationStatus(status)
    payment_status = PaymentStatus(payment_status)

    if status is ParticipationStatus.INTERESTED:
        if payment_status is not PaymentStatus.NONE:
            raise ValueError(f"Interested participation cannot have payment status {payment_status.value}")
        return Interested()

    if status is ParticipationStatus.ATTENDING:
        if payment_status is PaymentStatus.NONE:
            return AttendingFree()
        if payment_status is PaymentStatus.PENDING:
            return AttendingPending(intent_id=intent_id)
        if payment_status is PaymentStatus.PAID:
            return AttendingPaid(intent_id=intent_id)
        raise ValueError("Attending participation cannot be refunded")

    return Cancelled(payment_status=payment_status, intent_id=intent_id, refund_id=refund_id)
