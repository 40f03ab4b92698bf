from datetime import timedelta

import pytest

from events.domain.errors import NotFoundError, UnauthorizedError, ValidationError
from events.models import Event as EventRow


@pytest.mark.django_db
def test_create_event_defaults(catalog, organizer, clock):
    event = catalog.create_event(
        {"name": "Sound bath", "starts_at": clock.now + timedelta(days=1), "ends_at": clock.now + timedelta(days=1, hours=1)},
        organizer.id,
    )

    assert event.creator_id == organizer.id
    assert (event.event_type, event.currency, event.fee, event.max_participants) == ("offline", "JPY", None, None)
    assert event.workshop is None
    assert catalog.get_event(str(event.id)) == event


@pytest.mark.django_db
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"name": ""}, "Missing required fields"),
        ({"starts_at": None}, "Missing required fields"),
        ({"starts_at_offset": -1}, "Start time must be in the future"),
        ({"ends_at_offset": 0}, "End time must be after"),
        ({"fee": -1}, "Fee"),
        ({"currency": "YEN!"}, "Currency"),
        ({"max_participants": 0}, "Capacity"),
        ({"event_type": "voice_workshop"}, "workshops"),
    ],
)
def test_create_event_validation(catalog, organizer, clock, overrides, message):
    data = {"name": "Sound bath", "starts_at": clock.now + timedelta(hours=2), "ends_at": clock.now + timedelta(hours=3)}
    if "starts_at_offset" in overrides:
        data["starts_at"] = clock.now + timedelta(hours=overrides.pop("starts_at_offset"))
    if "ends_at_offset" in overrides:
        data["ends_at"] = data["starts_at"] + timedelta(hours=overrides.pop("ends_at_offset"))
    data.update(overrides)

    with pytest.raises(ValidationError) as exc:
        catalog.create_event(data, organizer.id)
    assert message in exc.value.message


@pytest.mark.django_db
def test_create_workshop_defaults(catalog, organizer, clock):
    workshop = catalog.create_workshop(
        {"name": "Voice", "starts_at": clock.now + timedelta(days=1), "ends_at": clock.now + timedelta(days=1, hours=1)},
        organizer.id,
    )

    assert workshop.is_workshop
    assert workshop.event_type == "voice_workshop"
    assert workshop.max_participants == 10
    assert workshop.location == "Online"
    assert workshop.workshop.is_recorded is False


@pytest.mark.django_db
@pytest.mark.parametrize("capacity", [0, 1001])
def test_workshop_capacity_bounds(catalog, organizer, clock, capacity):
    with pytest.raises(ValidationError):
        catalog.create_workshop(
            {
                "name": "Voice",
                "starts_at": clock.now + timedelta(days=1),
                "ends_at": clock.now + timedelta(days=1, hours=1),
                "max_participants": capacity,
            },
            organizer.id,
        )


@pytest.mark.django_db
def test_workshop_archive_must_outlive_session(catalog, organizer, clock):
    ends_at = clock.now + timedelta(days=1, hours=1)
    with pytest.raises(ValidationError):
        catalog.create_workshop(
            {
                "name": "Voice",
                "starts_at": clock.now + timedelta(days=1),
                "ends_at": ends_at,
                "is_recorded": True,
                "archive_expires_at": ends_at - timedelta(minutes=1),
            },
            organizer.id,
        )


@pytest.mark.django_db
def test_get_event_errors(catalog):
    with pytest.raises(ValidationError):
        catalog.get_event("nope")
    with pytest.raises(NotFoundError):
        catalog.get_event("1b4e28ba-2fa1-11d2-883f-0016d3cca427")


@pytest.mark.django_db
def test_list_events_hides_cancelled(catalog, make_event, organizer, member):
    kept = make_event(name="Kept")
    gone = make_event(name="Gone")
    mine = make_event(name="Mine", creator_id=member.id)
    EventRow.objects.filter(pk=gone.id).update(cancelled=True)

    assert {e.name for e in catalog.list_events()} == {"Kept", "Mine"}
    assert [e.id for e in catalog.list_events(creator_id=member.id)] == [mine.id]
    assert len(catalog.list_events(include_cancelled=True)) == 3
    assert kept in catalog.list_events()


# ----------------------
# 🔹 Updates
# ----------------------
@pytest.mark.django_db
def test_update_is_owner_only(catalog, make_event, member):
    event = make_event()
    with pytest.raises(UnauthorizedError):
        catalog.update_event(event.id, {"name": "Mine now"}, member.id)


@pytest.mark.django_db
def test_update_fields(catalog, make_event, organizer):
    event = make_event(fee=1000)

    updated = catalog.update_event(event.id, {"name": "Renamed", "fee": 1500, "max_participants": 20}, organizer.id)

    assert (updated.name, updated.fee, updated.max_participants) == ("Renamed", 1500, 20)


@pytest.mark.django_db
def test_price_is_locked_once_someone_attends(catalog, participation, make_event, organizer, member):
    event = make_event(fee=None)
    participation.join(event.id, member.id, "attending")

    with pytest.raises(ValidationError):
        catalog.update_event(event.id, {"fee": 1000}, organizer.id)
    with pytest.raises(ValidationError):
        catalog.update_event(event.id, {"max_participants": 0}, organizer.id)
    assert catalog.update_event(event.id, {"fee": None}, organizer.id).fee is None


@pytest.mark.django_db
def test_started_workshop_only_accepts_recording_changes(catalog, make_workshop, organizer, clock):
    workshop = make_workshop(recording_url=None)
    clock.now = workshop.ends_at + timedelta(minutes=5)

    with pytest.raises(ValidationError):
        catalog.update_event(workshop.id, {"name": "Too late"}, organizer.id)

    updated = catalog.update_event(
        workshop.id, {"recording_url": "https://cdn.test/recordings/final.m4a"}, organizer.id
    )
    assert updated.workshop.recording_url == "https://cdn.test/recordings/final.m4a"
