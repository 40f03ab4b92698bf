from datetime import timedelta

import pytest

from events.domain.errors import NotFoundError, ValidationError
from events.models import ArchivePurchase as ArchivePurchaseRow, Workshop as WorkshopRow
from payments.models import PaymentTransaction


def pay_for_workshop(participation, workshop, user, fake_provider, intent_id="pi_ws"):
    fake_provider.next_intent_id = intent_id
    participation.join(workshop.id, user.id, "attending")
    participation.confirm_payment(intent_id, workshop.id, user.id)


# ----------------------
# 🔹 Live room
# ----------------------
@pytest.mark.django_db
def test_room_opens_thirty_minutes_before_start(access, participation, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000)
    pay_for_workshop(participation, workshop, member, fake_provider)

    clock.now = workshop.starts_at - timedelta(minutes=31)
    assert access.get_room_access(workshop.id, member.id).reason == "not_open_yet"

    clock.now = workshop.starts_at - timedelta(minutes=29)
    room = access.get_room_access(workshop.id, member.id)
    assert room.has_access is True
    assert room.role == "listener"
    assert room.room_url == "https://live.test/rooms/room-voice-1"

    clock.now = workshop.ends_at + timedelta(seconds=1)
    room = access.get_room_access(workshop.id, member.id)
    assert room.has_access is False
    assert room.reason == "ended"


@pytest.mark.django_db
def test_organizer_is_moderator(access, make_workshop, organizer, clock):
    workshop = make_workshop()
    clock.now = workshop.starts_at

    room = access.get_room_access(workshop.id, organizer.id)

    assert (room.has_access, room.role) == (True, "moderator")


@pytest.mark.django_db
def test_room_requires_settled_attendance(access, participation, make_workshop, member, other_member, clock):
    workshop = make_workshop(fee=2000)
    participation.join(workshop.id, member.id, "attending")
    clock.now = workshop.starts_at

    assert access.get_room_access(workshop.id, member.id).reason == "payment_required"
    assert access.get_room_access(workshop.id, other_member.id).reason == "not_participant"


@pytest.mark.django_db
def test_room_access_for_plain_event_is_not_found(access, make_event, member):
    event = make_event()
    with pytest.raises(NotFoundError):
        access.get_room_access(event.id, member.id)


# ----------------------
# 🔹 Archive
# ----------------------
@pytest.mark.django_db
def test_non_participant_buys_archive(access, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000, archive_price=1500)
    clock.now = workshop.ends_at + timedelta(days=1)

    before = access.get_archive_access(workshop.id, member.id)
    assert (before.has_access, before.can_purchase, before.price) == (False, True, 1500)

    fake_provider.next_intent_id = "pi_archive"
    intent = access.purchase_archive_access(workshop.id, member.id)
    assert intent.payment_required is True
    assert intent.client_secret == "pi_archive_secret_abc"
    assert fake_provider.calls_to("create_intent")[0][1] == 1500
    assert access.get_archive_access(workshop.id, member.id).has_access is False

    after = access.confirm_archive_purchase("pi_archive", workshop.id, member.id)

    assert after.has_access is True
    assert after.archive_url == "https://cdn.test/recordings/voice.m4a"
    assert after.expires_at == workshop.workshop.archive_expires_at
    assert access.get_archive_access(workshop.id, member.id) == after


@pytest.mark.django_db
def test_purchase_expiry_is_fixed_at_purchase_time(access, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000)
    clock.now = workshop.ends_at
    fake_provider.next_intent_id = "pi_archive"
    access.purchase_archive_access(workshop.id, member.id)
    access.confirm_archive_purchase("pi_archive", workshop.id, member.id)
    original_expiry = workshop.workshop.archive_expires_at

    WorkshopRow.objects.filter(event_id=workshop.id).update(archive_expires_at=original_expiry + timedelta(days=90))

    assert ArchivePurchaseRow.objects.get(event_id=workshop.id, user=member).expires_at == original_expiry


@pytest.mark.django_db
def test_purchase_without_workshop_expiry_gets_default_window(access, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000, archive_expires_at=None)
    clock.now = workshop.ends_at + timedelta(hours=1)
    fake_provider.next_intent_id = "pi_archive"
    access.purchase_archive_access(workshop.id, member.id)

    result = access.confirm_archive_purchase("pi_archive", workshop.id, member.id)

    assert result.expires_at == clock.now + timedelta(days=30)
    clock.advance(days=31)
    assert access.get_archive_access(workshop.id, member.id).has_access is False


@pytest.mark.django_db
def test_free_archive_is_granted_immediately(access, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000, archive_price=0)
    clock.now = workshop.ends_at

    intent = access.purchase_archive_access(workshop.id, member.id)

    assert intent.payment_required is False
    assert fake_provider.calls == []
    assert access.get_archive_access(workshop.id, member.id).has_access is True


@pytest.mark.django_db
def test_paid_participant_has_archive_without_purchase(access, participation, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000)
    pay_for_workshop(participation, workshop, member, fake_provider)
    clock.now = workshop.ends_at + timedelta(days=1)

    result = access.get_archive_access(workshop.id, member.id)

    assert result.has_access is True
    assert result.expires_at == workshop.workshop.archive_expires_at
    with pytest.raises(ValidationError):
        access.purchase_archive_access(workshop.id, member.id)


@pytest.mark.django_db
def test_expired_archive_cannot_be_bought(access, participation, make_workshop, member, other_member, fake_provider, clock):
    workshop = make_workshop(fee=2000)
    pay_for_workshop(participation, workshop, member, fake_provider)
    clock.now = workshop.workshop.archive_expires_at + timedelta(seconds=1)

    assert access.get_archive_access(workshop.id, member.id).has_access is False
    closed = access.get_archive_access(workshop.id, other_member.id)
    assert (closed.has_access, closed.can_purchase) == (False, False)
    with pytest.raises(ValidationError):
        access.purchase_archive_access(workshop.id, other_member.id)


@pytest.mark.django_db
def test_unrecorded_workshop_has_no_archive(access, make_workshop, member, clock):
    workshop = make_workshop(is_recorded=False, recording_url=None, archive_expires_at=None)
    clock.now = workshop.ends_at

    result = access.get_archive_access(workshop.id, member.id)

    assert (result.has_access, result.can_purchase) == (False, False)


@pytest.mark.django_db
def test_buying_twice_is_rejected(access, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000)
    clock.now = workshop.ends_at
    fake_provider.next_intent_id = "pi_archive"
    access.purchase_archive_access(workshop.id, member.id)
    access.confirm_archive_purchase("pi_archive", workshop.id, member.id)

    with pytest.raises(ValidationError):
        access.purchase_archive_access(workshop.id, member.id)
    assert access.complete_archive_purchase("pi_archive", 2000) is False


@pytest.mark.django_db
def test_second_purchase_request_reuses_unpaid_intent(
    access, webhook_handler, make_workshop, member, fake_provider, clock
):
    workshop = make_workshop(fee=2000)
    clock.now = workshop.ends_at
    fake_provider.next_intent_id = "pi_first"
    first = access.purchase_archive_access(workshop.id, member.id)

    second = access.purchase_archive_access(workshop.id, member.id)

    assert second == first
    assert len(fake_provider.calls_to("create_intent")) == 1
    payload = fake_provider.webhook_payload("pi_first", event_id="evt_first_tab")
    assert webhook_handler.handle(payload, fake_provider.sign(payload)) == "applied"
    assert access.get_archive_access(workshop.id, member.id).has_access is True


@pytest.mark.django_db
def test_purchase_request_after_payment_completes_it(access, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000)
    clock.now = workshop.ends_at
    fake_provider.next_intent_id = "pi_first"
    access.purchase_archive_access(workshop.id, member.id)
    fake_provider.intents["pi_first"]["status"] = "succeeded"

    again = access.purchase_archive_access(workshop.id, member.id)

    assert again.payment_required is False
    assert access.get_archive_access(workshop.id, member.id).has_access is True
    assert PaymentTransaction.objects.get(kind="charge", provider_ref="pi_first").status == "succeeded"


@pytest.mark.django_db
def test_cancelled_intent_is_replaced(access, make_workshop, member, fake_provider, clock):
    workshop = make_workshop(fee=2000)
    clock.now = workshop.ends_at
    fake_provider.next_intent_id = "pi_first"
    access.purchase_archive_access(workshop.id, member.id)
    fake_provider.intents["pi_first"]["status"] = "canceled"
    fake_provider.next_intent_id = "pi_second"

    again = access.purchase_archive_access(workshop.id, member.id)

    assert again.client_secret == "pi_second_secret_abc"
    assert ArchivePurchaseRow.objects.get(event_id=workshop.id, user=member).payment_intent_id == "pi_second"
