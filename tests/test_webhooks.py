import pytest

from events.domain import AttendingPaid, AttendingPending
from events.domain.errors import WebhookSignatureError
from events.models import ArchivePurchase as ArchivePurchaseRow, EventParticipant
from events.stores.django_store import DjangoParticipantStore
from payments.models import PaymentTransaction, WebhookDelivery


def pending_participant(participation, event, user, fake_provider, intent_id="pi_x"):
    fake_provider.next_intent_id = intent_id
    return participation.join(event.id, user.id, "attending")


def signed(fake_provider, intent_id, **kwargs):
    payload = fake_provider.webhook_payload(intent_id, **kwargs)
    return payload, fake_provider.sign(payload)


@pytest.mark.django_db
def test_succeeded_webhook_marks_participant_paid(webhook_handler, participation, make_event, member, fake_provider):
    event = make_event(fee=3000)
    pending_participant(participation, event, member, fake_provider)

    outcome = webhook_handler.handle(*signed(fake_provider, "pi_x"))

    assert outcome == "applied"
    assert DjangoParticipantStore().get_for_user(event.id, member.id).state == AttendingPaid("pi_x")
    assert PaymentTransaction.objects.get(provider_ref="pi_x").status == "succeeded"


@pytest.mark.django_db
def test_webhook_after_direct_confirm_is_a_no_op(webhook_handler, participation, make_event, member, fake_provider):
    event = make_event(fee=3000)
    pending_participant(participation, event, member, fake_provider)
    participation.confirm_payment("pi_x", event.id, member.id)
    row_before = EventParticipant.objects.get(event_id=event.id, user=member)

    outcome = webhook_handler.handle(*signed(fake_provider, "pi_x"))

    assert outcome == "already_applied"
    assert EventParticipant.objects.get(event_id=event.id, user=member).updated_at == row_before.updated_at


@pytest.mark.django_db
def test_direct_confirm_after_webhook_skips_provider(webhook_handler, participation, make_event, member, fake_provider):
    event = make_event(fee=3000)
    pending_participant(participation, event, member, fake_provider)
    webhook_handler.handle(*signed(fake_provider, "pi_x"))

    result = participation.confirm_payment("pi_x", event.id, member.id)

    assert result.success is True
    assert fake_provider.calls_to("confirm_intent") == []


@pytest.mark.django_db
def test_redelivered_webhook_is_ignored(webhook_handler, participation, make_event, member, fake_provider):
    event = make_event(fee=3000)
    pending_participant(participation, event, member, fake_provider)
    payload, signature = signed(fake_provider, "pi_x", event_id="evt_42")

    assert webhook_handler.handle(payload, signature) == "applied"
    assert webhook_handler.handle(payload, signature) == "duplicate"
    assert WebhookDelivery.objects.filter(event_id="evt_42").count() == 1


@pytest.mark.django_db
def test_invalid_signature_changes_nothing(webhook_handler, participation, make_event, member, fake_provider):
    event = make_event(fee=3000)
    pending_participant(participation, event, member, fake_provider)
    payload = fake_provider.webhook_payload("pi_x")
    participants_before = list(EventParticipant.objects.values())
    payments_before = list(PaymentTransaction.objects.values())

    with pytest.raises(WebhookSignatureError):
        webhook_handler.handle(payload, "t=1,v1=forged")

    assert list(EventParticipant.objects.values()) == participants_before
    assert list(PaymentTransaction.objects.values()) == payments_before
    assert not WebhookDelivery.objects.exists()
    assert DjangoParticipantStore().get_for_user(event.id, member.id).state == AttendingPending("pi_x")


@pytest.mark.django_db
def test_failed_payment_webhook_keeps_slot(webhook_handler, participation, make_event, member, fake_provider):
    event = make_event(fee=3000)
    pending_participant(participation, event, member, fake_provider)

    outcome = webhook_handler.handle(*signed(fake_provider, "pi_x", event_type="payment_intent.payment_failed"))

    assert outcome == "recorded"
    assert PaymentTransaction.objects.get(provider_ref="pi_x").status == "failed"
    assert DjangoParticipantStore().get_for_user(event.id, member.id).state == AttendingPending("pi_x")


@pytest.mark.django_db
def test_wrong_amount_webhook_is_rejected(webhook_handler, participation, make_event, member, fake_provider):
    event = make_event(fee=3000)
    pending_participant(participation, event, member, fake_provider)

    outcome = webhook_handler.handle(*signed(fake_provider, "pi_x", amount=30))

    assert outcome == "rejected"
    assert DjangoParticipantStore().get_for_user(event.id, member.id).state == AttendingPending("pi_x")


@pytest.mark.django_db
def test_webhook_completes_archive_purchase(webhook_handler, access, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000)
    clock.now = workshop.ends_at
    fake_provider.next_intent_id = "pi_archive"
    access.purchase_archive_access(workshop.id, member.id)

    assert webhook_handler.handle(*signed(fake_provider, "pi_archive")) == "applied"

    assert ArchivePurchaseRow.objects.get(event_id=workshop.id, user=member).purchased_at == clock.now
    assert access.get_archive_access(workshop.id, member.id).has_access is True


@pytest.mark.django_db
def test_webhook_for_replaced_intent_refunds_it(webhook_handler, participation, make_event, member, fake_provider):
    event = make_event(fee=3000)
    joined = pending_participant(participation, event, member, fake_provider, intent_id="pi_a")
    participation.cancel(event.id, joined.participant_id, member.id)
    pending_participant(participation, event, member, fake_provider, intent_id="pi_b")

    outcome = webhook_handler.handle(*signed(fake_provider, "pi_a", event_id="evt_late"))

    assert outcome == "applied"
    assert [c[1:3] for c in fake_provider.calls_to("create_refund")] == [("pi_a", 3000)]
    assert PaymentTransaction.objects.get(kind="charge", provider_ref="pi_a").status == "refunded"
    assert DjangoParticipantStore().get_for_user(event.id, member.id).state == AttendingPending("pi_b")
