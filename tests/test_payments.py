import logging

import pytest

from events.domain.errors import (
    PaymentProviderError,
    RefundNotEligibleError,
    ValidationError,
    WebhookSignatureError,
)
from payments.models import PaymentTransaction, WebhookDelivery


def paid_intent(orchestrator, amount=5000, currency="JPY"):
    intent = orchestrator.create_intent(amount, currency, {"type": "event_participation"})
    orchestrator.confirm(intent.intent_id)
    return intent


# ----------------------
# 🔹 Intents
# ----------------------
@pytest.mark.django_db
@pytest.mark.parametrize("amount", [0, -100, 30.5, "3000", True])
def test_create_intent_rejects_bad_amounts_before_provider(orchestrator, fake_provider, amount):
    with pytest.raises(ValidationError):
        orchestrator.create_intent(amount, "JPY", {})
    assert fake_provider.calls == []


@pytest.mark.django_db
def test_create_intent_records_pending_charge(orchestrator, fake_provider, member):
    intent = orchestrator.create_intent(3000, "jpy", {"type": "event_participation", "user_id": member.id})

    assert fake_provider.calls_to("create_intent") == [
        ("create_intent", 3000, "JPY", {"type": "event_participation", "user_id": str(member.id)})
    ]
    txn = PaymentTransaction.objects.get(kind="charge", provider_ref=intent.intent_id)
    assert (txn.amount, txn.currency, txn.status, txn.provider) == (3000, "JPY", "pending", "fake")
    assert txn.app_source == "event_participation"
    assert txn.user_id == member.id


@pytest.mark.django_db
def test_unknown_user_in_webhook_metadata_is_not_linked(orchestrator, fake_provider):
    # Not recorded here first, so the webhook creates the ledger row.
    intent = fake_provider.create_intent(3000, "JPY", {"type": "event_participation", "user_id": "424242"})
    payload = fake_provider.webhook_payload(intent.intent_id, event_id="evt_unknown_user")
    notification = orchestrator.verify_webhook(payload, fake_provider.sign(payload))

    orchestrator.record_webhook_outcome(notification, status="succeeded")

    txn = PaymentTransaction.objects.get(kind="charge", provider_ref=intent.intent_id)
    assert txn.status == "succeeded"
    assert txn.user_id is None


@pytest.mark.django_db
def test_provider_error_message_passes_through(orchestrator, fake_provider):
    fake_provider.fail_with = PaymentProviderError("Amount must be at least ¥50 jpy", provider_code="amount_too_small")

    with pytest.raises(PaymentProviderError) as exc:
        orchestrator.create_intent(10, "JPY", {})

    assert exc.value.message == "Amount must be at least ¥50 jpy"
    assert exc.value.provider_code == "amount_too_small"
    assert not PaymentTransaction.objects.exists()


# ----------------------
# 🔹 Confirmation
# ----------------------
@pytest.mark.django_db
def test_confirm_is_idempotent(orchestrator, fake_provider):
    intent = orchestrator.create_intent(3000, "JPY", {})

    first = orchestrator.confirm(intent.intent_id)
    second = orchestrator.confirm(intent.intent_id)

    assert first == second
    assert first.succeeded and first.amount == 3000
    assert len(fake_provider.calls_to("confirm_intent")) == 1
    assert PaymentTransaction.objects.filter(provider_ref=intent.intent_id).count() == 1
    assert PaymentTransaction.objects.get(provider_ref=intent.intent_id).status == "succeeded"


@pytest.mark.django_db
def test_unfinished_payment_stays_pending(orchestrator, fake_provider):
    intent = orchestrator.create_intent(3000, "JPY", {})
    fake_provider.confirm_status = "requires_payment_method"

    confirmation = orchestrator.confirm(intent.intent_id)

    assert not confirmation.succeeded
    assert PaymentTransaction.objects.get(provider_ref=intent.intent_id).status == "pending"


# ----------------------
# 🔹 Refunds
# ----------------------
@pytest.mark.django_db
def test_refund_requires_captured_payment(orchestrator, fake_provider):
    intent = orchestrator.create_intent(3000, "JPY", {})

    with pytest.raises(RefundNotEligibleError):
        orchestrator.refund(intent.intent_id, 3000, "changed my mind")
    with pytest.raises(RefundNotEligibleError):
        orchestrator.refund("pi_unknown", 3000, "changed my mind")
    assert fake_provider.calls_to("create_refund") == []


@pytest.mark.django_db
def test_partial_refund_keeps_service_fee(orchestrator, fake_provider):
    intent = paid_intent(orchestrator, amount=5000)

    refund = orchestrator.refund(intent.intent_id, 5000 - 500, "cancelled by participant")

    assert refund.amount == 4500
    assert fake_provider.calls_to("create_refund") == [
        ("create_refund", intent.intent_id, 4500, "cancelled by participant")
    ]
    charge = PaymentTransaction.objects.get(kind="charge", provider_ref=intent.intent_id)
    assert charge.status == "succeeded"
    assert PaymentTransaction.objects.get(kind="refund", provider_ref=refund.refund_id).amount == 4500


@pytest.mark.django_db
def test_refunds_cannot_exceed_the_charge(orchestrator):
    intent = paid_intent(orchestrator, amount=5000)
    orchestrator.refund(intent.intent_id, 4500, "partial")

    with pytest.raises(ValidationError):
        orchestrator.refund(intent.intent_id, 1000, "too much")

    orchestrator.refund(intent.intent_id, 500, "rest")
    assert PaymentTransaction.objects.get(kind="charge", provider_ref=intent.intent_id).status == "refunded"
    with pytest.raises(RefundNotEligibleError):
        orchestrator.refund(intent.intent_id, 1, "nothing left")


# ----------------------
# 🔹 Webhooks
# ----------------------
@pytest.mark.django_db
def test_verify_webhook_rejects_bad_signature_without_side_effects(orchestrator, fake_provider, caplog):
    intent = orchestrator.create_intent(3000, "JPY", {})
    payload = fake_provider.webhook_payload(intent.intent_id)

    with caplog.at_level(logging.WARNING, logger="payments"):
        with pytest.raises(WebhookSignatureError):
            orchestrator.verify_webhook(payload, "not-the-signature")
        with pytest.raises(WebhookSignatureError):
            orchestrator.verify_webhook(payload, "")

    assert not WebhookDelivery.objects.exists()
    assert PaymentTransaction.objects.get(provider_ref=intent.intent_id).status == "pending"
    assert "Rejected webhook" in caplog.text


@pytest.mark.django_db
def test_claim_webhook_only_once(orchestrator, fake_provider):
    intent = orchestrator.create_intent(3000, "JPY", {})
    payload = fake_provider.webhook_payload(intent.intent_id, event_id="evt_dup")
    notification = orchestrator.verify_webhook(payload, fake_provider.sign(payload))

    assert orchestrator.claim_webhook(notification) is True
    assert orchestrator.claim_webhook(notification) is False
    assert WebhookDelivery.objects.filter(event_id="evt_dup").count() == 1


@pytest.mark.django_db
def test_webhook_outcome_never_downgrades_a_success(orchestrator, fake_provider):
    intent = paid_intent(orchestrator, amount=3000)
    payload = fake_provider.webhook_payload(intent.intent_id, event_type="payment_intent.payment_failed")
    notification = orchestrator.verify_webhook(payload, fake_provider.sign(payload))

    orchestrator.record_webhook_outcome(notification, status="failed")

    assert PaymentTransaction.objects.get(provider_ref=intent.intent_id).status == "succeeded"
