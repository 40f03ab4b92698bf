# payments/providers/stripe_provider.py
import json
import logging

import stripe
from django.conf import settings

from events.domain.errors import NotFoundError, PaymentProviderError, WebhookSignatureError
from payments.providers.base import PaymentProvider
from payments.types import Confirmation, PaymentIntent, Refund, WebhookNotification

logger = logging.getLogger(__name__)

# Stripe only accepts these values for Refund.reason; free text goes to metadata.
STRIPE_REFUND_REASON = "requested_by_customer"


def _error_message(exc: stripe.StripeError) -> str:
    return exc.user_message or str(exc) or exc.__class__.__name__


def _intent_error(exc: stripe.StripeError, intent_id: str) -> Exception:
    code = getattr(exc, "code", None)
    if isinstance(exc, stripe.InvalidRequestError) and code == "resource_missing":
        return NotFoundError("Payment intent", intent_id)
    return PaymentProviderError(_error_message(exc), provider_code=code)


class StripePaymentProvider(PaymentProvider):
    """Stripe PaymentIntents adapter."""

    name = "stripe"

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None) -> None:
        self.api_key = api_key if api_key is not None else settings.STRIPE_API_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET

    def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        stripe.api_key = self.api_key
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency.lower(),
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            # Below-minimum amounts (e.g. < ¥50) land here as InvalidRequestError.
            raise PaymentProviderError(_error_message(e), provider_code=getattr(e, "code", None)) from e
        return PaymentIntent(
            intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency.upper(),
            status=intent.status,
        )

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        stripe.api_key = self.api_key
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
        except stripe.StripeError as e:
            raise _intent_error(e, intent_id) from e
        return PaymentIntent(
            intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency.upper(),
            status=intent.status,
        )

    def confirm_intent(self, intent_id: str) -> Confirmation:
        stripe.api_key = self.api_key
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
            if intent.status == "requires_confirmation":
                intent = stripe.PaymentIntent.confirm(intent_id)
        except stripe.StripeError as e:
            raise _intent_error(e, intent_id) from e
        return Confirmation(
            intent_id=intent.id,
            status=intent.status,
            amount=intent.amount,
            currency=intent.currency.upper(),
        )

    def create_refund(self, intent_id: str, amount: int, reason: str, metadata: dict[str, str]) -> Refund:
        stripe.api_key = self.api_key
        try:
            refund = stripe.Refund.create(
                payment_intent=intent_id,
                amount=amount,
                reason=STRIPE_REFUND_REASON,
                metadata={**metadata, "reason": reason},
            )
        except stripe.StripeError as e:
            raise PaymentProviderError(_error_message(e), provider_code=getattr(e, "code", None)) from e
        return Refund(
            refund_id=refund.id,
            intent_id=intent_id,
            amount=refund.amount,
            status=refund.status,
            currency=(refund.currency or "").upper(),
        )

    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookNotification:
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(f"Invalid Stripe signature: {e}") from e
        except ValueError as e:
            raise WebhookSignatureError("Invalid Stripe payload") from e

        # Signature verified; read plain JSON rather than SDK objects.
        event = json.loads(payload)
        obj = event.get("data", {}).get("object", {})
        if obj.get("object") == "payment_intent":
            intent_id = obj.get("id")
        else:
            intent_id = obj.get("payment_intent")
        currency = obj.get("currency")
        return WebhookNotification(
            event_id=event["id"],
            type=event.get("type", ""),
            intent_id=intent_id,
            amount=obj.get("amount_received") or obj.get("amount"),
            currency=currency.upper() if currency else None,
            status=obj.get("status"),
            metadata={k: str(v) for k, v in (obj.get("metadata") or {}).items()},
        )
