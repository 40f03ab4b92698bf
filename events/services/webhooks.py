"""Provider webhook handling.

A verified ``payment_intent.succeeded`` converges on the same idempotent
transitions as the direct confirm calls, so a webhook arriving before, after
or instead of the client's confirm applies the payment once.
"""

import logging

from events.domain.errors import NotFoundError, PaymentProviderError
from events.services.access import WorkshopAccessController
from events.services.participation import ParticipationManager
from payments.services import PaymentOrchestrator
from payments.types import FAILED, SUCCEEDED

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
HANDLED_TYPES = (PAYMENT_SUCCEEDED, PAYMENT_FAILED)

EVENT_PARTICIPATION = "event_participation"
ARCHIVE_PURCHASE = "archive_purchase"


class PaymentWebhookHandler:
    def __init__(
        self,
        orchestrator: PaymentOrchestrator,
        participation: ParticipationManager,
        access: WorkshopAccessController,
    ) -> None:
        self._orchestrator = orchestrator
        self._participation = participation
        self._access = access

    def handle(self, raw_payload: bytes, signature: str) -> str:
        """Verify and apply one delivery; returns what happened to it.

        Raises:
            WebhookSignatureError: Before anything is written.
        """
        notification = self._orchestrator.verify_webhook(raw_payload, signature)

        if notification.type not in HANDLED_TYPES:
            logger.debug("Ignoring webhook %s of type %s", notification.event_id, notification.type)
            return "ignored"
        if not self._orchestrator.claim_webhook(notification):
            return "duplicate"

        if notification.type == PAYMENT_FAILED:
            self._orchestrator.record_webhook_outcome(notification, status=FAILED)
            logger.warning(
                "Payment %s failed (%s %s)", notification.intent_id, notification.metadata.get("type"), notification.metadata
            )
            return "recorded"

        confirmation = self._orchestrator.record_webhook_outcome(notification, status=SUCCEEDED)
        if confirmation is None:
            logger.warning("Webhook %s has no payment intent", notification.event_id)
            return "ignored"

        kind = notification.metadata.get("type")
        try:
            if kind == EVENT_PARTICIPATION:
                applied = self._participation.mark_paid(confirmation.intent_id, confirmation.amount)
            elif kind == ARCHIVE_PURCHASE:
                applied = self._access.complete_archive_purchase(confirmation.intent_id, confirmation.amount)
            else:
                logger.info("Webhook %s is for a payment of type %r; nothing to apply", notification.event_id, kind)
                return "ignored"
        except NotFoundError:
            logger.warning("No %s found for payment %s", kind, confirmation.intent_id)
            return "ignored"
        except PaymentProviderError as e:
            logger.error("Rejected webhook payment %s: %s", confirmation.intent_id, e.message)
            return "rejected"

        return "applied" if applied else "already_applied"
