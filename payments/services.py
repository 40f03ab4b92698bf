"""Payment orchestration - wraps the provider and keeps the ledger in step.

The orchestrator:
- Depends only on interfaces (PaymentProvider, PaymentLedger)
- Validates amounts before any provider call
- Passes provider errors through unchanged
- Never retries; retrying is the caller's decision
"""

import logging

from events.domain.errors import PaymentProviderError, RefundNotEligibleError, ValidationError, WebhookSignatureError
from payments.providers.base import PaymentProvider
from payments.stores.interfaces import PaymentLedger
from payments.types import SUCCEEDED, Confirmation, PaymentIntent, Refund, WebhookNotification

logger = logging.getLogger(__name__)


def _require_minor_units(amount, label: str = "Payment amount") -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"{label} must be an integer in the currency's smallest unit")
    if amount <= 0:
        raise ValidationError(f"{label} must be greater than zero")


class PaymentOrchestrator:
    """Creates, confirms and refunds payment intents; verifies webhooks."""

    def __init__(self, provider: PaymentProvider, ledger: PaymentLedger) -> None:
        self._provider = provider
        self._ledger = ledger

    @property
    def provider_name(self) -> str:
        return self._provider.name

    def create_intent(self, amount: int, currency: str, metadata: dict | None = None) -> PaymentIntent:
        """Create a payment intent for ``amount`` minor units.

        Provider-side minimums are not adjusted here; they come back as
        PaymentProviderError with the provider's message.

        Raises:
            ValidationError: If amount is not a positive integer or currency is missing.
            PaymentProviderError: If the provider rejects the request.
        """
        _require_minor_units(amount)
        if not currency or len(currency) != 3:
            raise ValidationError("Currency must be a 3-letter ISO code")
        metadata = {str(k): str(v) for k, v in (metadata or {}).items()}

        try:
            intent = self._provider.create_intent(amount, currency.upper(), metadata)
        except PaymentProviderError as e:
            logger.warning("Payment intent creation failed (%s %s): %s", amount, currency, e.message)
            raise

        self._ledger.record_intent(intent, self._provider.name, metadata)
        logger.info("Created payment intent %s for %s %s", intent.intent_id, amount, currency.upper())
        return intent

    def confirm(self, intent_id: str) -> Confirmation:
        """Return the intent's outcome, recording a success in the ledger.

        Confirming an intent the ledger already holds as succeeded returns that
        result without calling the provider again.
        """
        if not intent_id:
            raise ValidationError("Payment intent id is required")

        charge = self._ledger.get_charge(intent_id)
        if charge is not None and charge.status == SUCCEEDED:
            return Confirmation(intent_id, SUCCEEDED, charge.amount, charge.currency)

        try:
            confirmation = self._provider.confirm_intent(intent_id)
        except PaymentProviderError as e:
            logger.warning("Payment confirmation failed for %s: %s", intent_id, e.message)
            raise

        self._ledger.record_confirmation(confirmation, self._provider.name)
        logger.info("Payment intent %s confirmed with status %s", intent_id, confirmation.status)
        return confirmation

    def resume_intent(self, intent_id: str) -> PaymentIntent:
        """Fetch an intent created earlier so the client can keep paying it.

        An intent the provider reports as succeeded is recorded in the ledger.
        """
        try:
            intent = self._provider.retrieve_intent(intent_id)
        except PaymentProviderError as e:
            logger.warning("Could not resume payment intent %s: %s", intent_id, e.message)
            raise
        if intent.status == SUCCEEDED:
            self._ledger.record_confirmation(
                Confirmation(intent.intent_id, SUCCEEDED, intent.amount, intent.currency), self._provider.name
            )
        return intent

    def refund(self, intent_id: str, amount: int, reason: str) -> Refund:
        """Refund part or all of a captured payment.

        Raises:
            RefundNotEligibleError: If the intent was never captured or is fully refunded.
            ValidationError: If amount is not positive or exceeds what is left to refund.
            PaymentProviderError: If the provider rejects the refund.
        """
        charge = self._ledger.get_charge(intent_id)
        if charge is None or charge.status != SUCCEEDED:
            raise RefundNotEligibleError()
        _require_minor_units(amount, label="Refund amount")
        if amount > charge.refundable_amount:
            raise ValidationError(
                f"Refund amount {amount} exceeds the refundable {charge.refundable_amount} {charge.currency}"
            )

        try:
            refund = self._provider.create_refund(intent_id, amount, reason, {"intent_id": intent_id})
        except PaymentProviderError as e:
            logger.warning("Refund of %s on %s failed: %s", amount, intent_id, e.message)
            raise

        self._ledger.record_refund(refund, self._provider.name)
        logger.info("Refunded %s %s on %s (%s)", refund.amount, charge.currency, intent_id, refund.refund_id)
        return refund

    def verify_webhook(self, raw_payload: bytes, signature: str) -> WebhookNotification:
        """Check a webhook's signature. Pure: nothing is written here."""
        if not signature:
            logger.warning("Rejected webhook without signature header")
            raise WebhookSignatureError("Missing webhook signature")
        try:
            return self._provider.construct_webhook_event(raw_payload, signature)
        except WebhookSignatureError as e:
            logger.warning("Rejected webhook: %s", e.message)
            raise

    def claim_webhook(self, notification: WebhookNotification) -> bool:
        """Mark a verified webhook as handled; False for redeliveries."""
        claimed = self._ledger.claim_webhook(notification.event_id, notification.type, self._provider.name)
        if not claimed:
            logger.info("Ignoring duplicate webhook %s (%s)", notification.event_id, notification.type)
        return claimed

    def record_webhook_outcome(
        self, notification: WebhookNotification, status: str | None = None
    ) -> Confirmation | None:
        """Apply a payment_intent webhook to the ledger and return it as a Confirmation.

        ``status`` overrides the status carried by the notification.
        """
        if not notification.intent_id or notification.amount is None:
            return None
        confirmation = Confirmation(
            intent_id=notification.intent_id,
            status=status or notification.status or "",
            amount=notification.amount,
            currency=notification.currency or "",
        )
        self._ledger.record_confirmation(confirmation, self._provider.name, notification.metadata)
        return confirmation
