"""Payment provider boundary.

The orchestrator only talks to this interface; adapters translate their SDK's
exceptions into PaymentProviderError / WebhookSignatureError / NotFoundError.
"""

from abc import ABC, abstractmethod

from payments.types import Confirmation, PaymentIntent, Refund, WebhookNotification


class PaymentProvider(ABC):
    """Interface every payment provider adapter implements."""

    name = "base"

    @abstractmethod
    def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        """Create a charge attempt the client completes on its side."""
        ...

    @abstractmethod
    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        """Fetch an existing intent, client secret included, without changing it."""
        ...

    @abstractmethod
    def confirm_intent(self, intent_id: str) -> Confirmation:
        """Return the intent's current status, confirming it if it still needs it."""
        ...

    @abstractmethod
    def create_refund(self, intent_id: str, amount: int, reason: str, metadata: dict[str, str]) -> Refund:
        """Refund ``amount`` of a captured intent."""
        ...

    @abstractmethod
    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookNotification:
        """Verify the signature and parse the payload.

        Must not have side effects.
        """
        ...
