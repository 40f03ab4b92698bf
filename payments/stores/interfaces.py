"""Store interfaces (repository pattern) for the payments ledger."""

from abc import ABC, abstractmethod

from payments.types import ChargeRecord, Confirmation, PaymentIntent, Refund


class PaymentLedger(ABC):
    """Append-mostly record of provider objects."""

    @abstractmethod
    def record_intent(self, intent: PaymentIntent, provider: str, metadata: dict[str, str]) -> None:
        """Store a new pending charge. Recording the same intent twice is a no-op."""
        ...

    @abstractmethod
    def get_charge(self, intent_id: str) -> ChargeRecord | None:
        """Return the charge for an intent with its refunded total, or None."""
        ...

    @abstractmethod
    def record_confirmation(
        self, confirmation: Confirmation, provider: str, metadata: dict[str, str] | None = None
    ) -> None:
        """Apply a provider status to the charge.

        A succeeded or refunded charge is never moved back.
        """
        ...

    @abstractmethod
    def record_refund(self, refund: Refund, provider: str) -> None:
        """Store a refund and mark the charge refunded once fully refunded."""
        ...

    @abstractmethod
    def claim_webhook(self, event_id: str, event_type: str, provider: str) -> bool:
        """Return True the first time an event id is seen, False afterwards."""
        ...
