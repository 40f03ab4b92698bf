"""Django ORM implementation of the PaymentLedger."""

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from payments.models import PaymentTransaction, WebhookDelivery
from payments.stores.interfaces import PaymentLedger
from payments.types import CANCELED, FAILED, PENDING, REFUNDED, SUCCEEDED, ChargeRecord, Confirmation, PaymentIntent, Refund

FINAL_CHARGE_STATUSES = (SUCCEEDED, REFUNDED)


def _ledger_status(provider_status: str) -> str:
    if provider_status == SUCCEEDED:
        return SUCCEEDED
    if provider_status in (CANCELED, FAILED):
        return FAILED
    return PENDING


def _user_id(metadata: dict[str, str]) -> int | None:
    # Metadata comes back from the provider; only link users that exist here.
    value = str((metadata or {}).get("user_id", ""))
    if not value.isdigit():
        return None
    user_id = int(value)
    return user_id if get_user_model().objects.filter(pk=user_id).exists() else None


def _related_id(metadata: dict[str, str]) -> str:
    metadata = metadata or {}
    return metadata.get("participant_id") or metadata.get("purchase_id") or metadata.get("event_id", "")


class DjangoPaymentLedger(PaymentLedger):
    """PaymentTransaction-backed ledger."""

    def record_intent(self, intent: PaymentIntent, provider: str, metadata: dict[str, str]) -> None:
        PaymentTransaction.objects.get_or_create(
            kind="charge",
            provider_ref=intent.intent_id,
            defaults={
                "intent_ref": intent.intent_id,
                "provider": provider,
                "amount": intent.amount,
                "currency": intent.currency,
                "status": PENDING,
                "user_id": _user_id(metadata),
                "app_source": metadata.get("type", ""),
                "related_id": _related_id(metadata),
            },
        )

    def get_charge(self, intent_id: str) -> ChargeRecord | None:
        txn = PaymentTransaction.objects.filter(kind="charge", provider_ref=intent_id).first()
        if txn is None:
            return None
        refunded = (
            PaymentTransaction.objects.filter(kind="refund", intent_ref=intent_id)
            .exclude(status=FAILED)
            .aggregate(total=Sum("amount"))["total"]
        )
        return ChargeRecord(
            intent_id=txn.provider_ref,
            amount=txn.amount,
            currency=txn.currency,
            status=txn.status,
            refunded_amount=refunded or 0,
            user_id=txn.user_id,
        )

    def record_confirmation(
        self, confirmation: Confirmation, provider: str, metadata: dict[str, str] | None = None
    ) -> None:
        metadata = metadata or {}
        status = _ledger_status(confirmation.status)
        processed_at = timezone.now() if status != PENDING else None
        txn, created = PaymentTransaction.objects.get_or_create(
            kind="charge",
            provider_ref=confirmation.intent_id,
            defaults={
                "intent_ref": confirmation.intent_id,
                "provider": provider,
                "amount": confirmation.amount,
                "currency": confirmation.currency,
                "status": status,
                "processed_at": processed_at,
                "user_id": _user_id(metadata),
                "app_source": metadata.get("type", ""),
                "related_id": _related_id(metadata),
            },
        )
        if created or txn.status in FINAL_CHARGE_STATUSES:
            return
        txn.status = status
        txn.amount = confirmation.amount
        txn.processed_at = processed_at
        txn.save(update_fields=["status", "amount", "processed_at"])

    def record_refund(self, refund: Refund, provider: str) -> None:
        with transaction.atomic():
            charge = PaymentTransaction.objects.select_for_update().filter(
                kind="charge", provider_ref=refund.intent_id
            ).first()
            PaymentTransaction.objects.get_or_create(
                kind="refund",
                provider_ref=refund.refund_id,
                defaults={
                    "intent_ref": refund.intent_id,
                    "provider": provider,
                    "amount": refund.amount,
                    "currency": refund.currency or (charge.currency if charge else ""),
                    "status": _ledger_status(refund.status),
                    "processed_at": timezone.now(),
                    "user_id": charge.user_id if charge else None,
                    "app_source": charge.app_source if charge else "",
                    "related_id": charge.related_id if charge else "",
                },
            )
            if charge is None:
                return
            refunded = (
                PaymentTransaction.objects.filter(kind="refund", intent_ref=refund.intent_id)
                .exclude(status=FAILED)
                .aggregate(total=Sum("amount"))["total"]
                or 0
            )
            if refunded >= charge.amount and charge.status != REFUNDED:
                charge.status = REFUNDED
                charge.save(update_fields=["status"])

    def claim_webhook(self, event_id: str, event_type: str, provider: str) -> bool:
        try:
            with transaction.atomic():
                WebhookDelivery.objects.create(provider=provider, event_id=event_id, event_type=event_type)
        except IntegrityError:
            return False
        return True
