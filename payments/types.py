"""Provider-neutral payment records exchanged with the orchestrator.

Amounts are integers in the currency's smallest unit.
"""

from dataclasses import dataclass, field

SUCCEEDED = "succeeded"
PENDING = "pending"
FAILED = "failed"
REFUNDED = "refunded"
# Provider status of an intent that can no longer be paid.
CANCELED = "canceled"


@dataclass(frozen=True)
class PaymentIntent:
    intent_id: str
    client_secret: str | None
    amount: int
    currency: str
    status: str = "requires_payment_method"


@dataclass(frozen=True)
class Confirmation:
    intent_id: str
    status: str
    amount: int
    currency: str

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED


@dataclass(frozen=True)
class Refund:
    refund_id: str
    intent_id: str
    amount: int
    status: str
    currency: str = ""


@dataclass(frozen=True)
class ChargeRecord:
    """Ledger view of one payment intent."""

    intent_id: str
    amount: int
    currency: str
    status: str
    refunded_amount: int = 0
    user_id: int | None = None

    @property
    def refundable_amount(self) -> int:
        return self.amount - self.refunded_amount


@dataclass(frozen=True)
class WebhookNotification:
    """A verified provider event.

    ``intent_id`` is the payment intent the event is about, when there is one.
    """

    event_id: str
    type: str
    intent_id: str | None = None
    amount: int | None = None
    currency: str | None = None
    status: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
