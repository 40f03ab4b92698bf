import pytest

from events.domain import AttendingFree
from events.domain.errors import CapacityExceededError, ValidationError
from events.models import Event as EventRow, EventParticipant
from events.services.capacity import CapacityGuard
from events.stores.django_store import DjangoEventStore, DjangoParticipantStore


@pytest.fixture
def guard(db):
    return CapacityGuard(DjangoEventStore())


def attending_count(event):
    return EventRow.objects.get(pk=event.id).attending_count


@pytest.mark.django_db
def test_reserve_until_full(guard, make_event):
    event = make_event(max_participants=2)
    assert guard.reserve(event.id, "attending").reserved
    assert guard.reserve(event.id, "attending").reserved
    assert not guard.reserve(event.id, "attending").reserved
    assert attending_count(event) == 2


@pytest.mark.django_db
def test_interested_does_not_consume_a_slot(guard, make_event):
    event = make_event(max_participants=1)
    for _ in range(3):
        assert guard.reserve(event.id, "interested").reserved
    assert attending_count(event) == 0


@pytest.mark.django_db
def test_unlimited_event_always_has_room(guard, make_event):
    event = make_event(max_participants=None)
    for _ in range(25):
        assert guard.reserve(event.id, "attending").reserved
    assert attending_count(event) == 25


@pytest.mark.django_db
def test_cancelled_event_cannot_be_reserved(guard, make_event):
    event = make_event()
    EventRow.objects.filter(pk=event.id).update(cancelled=True)
    assert not guard.reserve(event.id, "attending").reserved


@pytest.mark.django_db
def test_release_never_goes_below_zero(guard, make_event):
    event = make_event(max_participants=1)
    guard.reserve(event.id, "attending")
    guard.release(event.id)
    guard.release(event.id)
    assert attending_count(event) == 0
    assert guard.reserve(event.id, "attending").reserved


@pytest.mark.django_db
def test_full_workshop_rejects_join_without_creating_intent(participation, make_workshop, member, fake_provider):
    workshop = make_workshop(max_participants=10, fee=3000)
    EventRow.objects.filter(pk=workshop.id).update(attending_count=10)

    with pytest.raises(CapacityExceededError) as exc:
        participation.join(workshop.id, member.id, "attending")

    assert exc.value.message == "Workshop is full"
    assert fake_provider.calls_to("create_intent") == []
    assert not EventParticipant.objects.filter(event_id=workshop.id, user=member).exists()
    assert attending_count(workshop) == 10


@pytest.mark.django_db
def test_second_join_for_last_slot_is_refused(participation, make_event, member, other_member):
    event = make_event(max_participants=1)
    participation.join(event.id, member.id, "attending")

    with pytest.raises(CapacityExceededError) as exc:
        participation.join(event.id, other_member.id, "attending")

    assert exc.value.message == "Event is full"
    assert EventParticipant.objects.filter(event_id=event.id, status="attending").count() == 1
    assert attending_count(event) == 1


@pytest.mark.django_db
def test_reservation_is_decided_by_the_row_not_a_stale_read(guard, make_event):
    event = make_event(max_participants=1)
    stale = DjangoEventStore().get_event(event.id)
    assert stale.attending_count == 0

    assert guard.reserve(event.id, "attending").reserved is True
    # A caller still holding the stale snapshot would see a free slot.
    assert stale.attending_count < stale.max_participants
    assert guard.reserve(stale.id, "attending").reserved is False
    assert attending_count(event) == 1


@pytest.mark.django_db
def test_failed_participant_write_rolls_back_reservation(make_event, member):
    event = make_event(max_participants=5)
    EventParticipant.objects.create(event_id=event.id, user=member, status="interested", payment_status="none")
    store = DjangoEventStore()

    with pytest.raises(ValidationError):
        with store.atomic():
            assert CapacityGuard(store).reserve(event.id, "attending").reserved
            DjangoParticipantStore().create(event.id, member.id, AttendingFree())

    assert attending_count(event) == 0
