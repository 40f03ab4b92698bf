"""Django ORM implementation of the event stores."""

from uuid import UUID

from django.core.exceptions import ObjectDoesNotExist
from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from events import models as orm
from events.domain import ArchivePurchase, Event, Participant, ParticipationState, PastPayment, WorkshopDetails
from events.domain.errors import NotFoundError, ValidationError
from events.domain.states import Cancelled, PaymentStatus, state_from_columns
from events.stores.interfaces import ArchivePurchaseStore, EventStore, ParticipantStore

EVENT_COLUMNS = (
    "name",
    "description",
    "event_type",
    "location",
    "starts_at",
    "ends_at",
    "fee",
    "currency",
    "refund_policy",
    "max_participants",
)
WORKSHOP_COLUMNS = ("is_recorded", "recording_url", "archive_expires_at", "archive_price", "live_room_id")


def _workshop_from_row(row: orm.Event) -> WorkshopDetails | None:
    try:
        ws = row.workshop
    except ObjectDoesNotExist:
        return None
    return WorkshopDetails(
        is_recorded=ws.is_recorded,
        recording_url=ws.recording_url or None,
        archive_expires_at=ws.archive_expires_at,
        archive_price=ws.archive_price,
        live_room_id=ws.live_room_id or None,
    )


def _event_from_row(row: orm.Event) -> Event:
    return Event(
        id=row.id,
        creator_id=row.creator_id,
        name=row.name,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        currency=row.currency,
        fee=row.fee,
        max_participants=row.max_participants,
        attending_count=row.attending_count,
        description=row.description,
        event_type=row.event_type,
        location=row.location,
        refund_policy=row.refund_policy,
        cancelled=row.cancelled,
        workshop=_workshop_from_row(row),
        created_at=row.created_at,
    )


def _participant_from_row(row: orm.EventParticipant) -> Participant:
    return Participant(
        id=row.id,
        event_id=row.event_id,
        user_id=row.user_id,
        state=state_from_columns(row.status, row.payment_status, row.payment_intent_id, row.refund_id),
        message=row.message,
        joined_at=row.joined_at,
        updated_at=row.updated_at,
    )


def _purchase_from_row(row: orm.ArchivePurchase) -> ArchivePurchase:
    return ArchivePurchase(
        id=row.id,
        event_id=row.event_id,
        user_id=row.user_id,
        price=row.price,
        currency=row.currency,
        payment_intent_id=row.payment_intent_id,
        purchased_at=row.purchased_at,
        expires_at=row.expires_at,
        created_at=row.created_at,
    )


def _state_columns(state: ParticipationState) -> dict:
    return {
        "status": state.status.value,
        "payment_status": state.payment_status.value,
        "payment_intent_id": state.intent_id,
        "refund_id": state.refund_id,
    }


class DjangoEventStore(EventStore):
    """Relational event store using Django ORM."""

    def atomic(self):
        return transaction.atomic()

    def create_event(self, event: Event) -> Event:
        with transaction.atomic():
            row = orm.Event.objects.create(
                id=event.id,
                creator_id=event.creator_id,
                attending_count=0,
                cancelled=False,
                **{col: getattr(event, col) for col in EVENT_COLUMNS},
            )
            if event.workshop is not None:
                details = event.workshop
                orm.Workshop.objects.create(
                    event=row,
                    is_recorded=details.is_recorded,
                    recording_url=details.recording_url,
                    archive_expires_at=details.archive_expires_at,
                    archive_price=details.archive_price,
                    live_room_id=details.live_room_id or "",
                )
        return self.get_event(row.id)

    def get_event(self, event_id: UUID) -> Event | None:
        row = orm.Event.objects.select_related("workshop").filter(pk=event_id).first()
        return _event_from_row(row) if row is not None else None

    def list_events(self, *, creator_id: int | None = None, include_cancelled: bool = False) -> list[Event]:
        qs = orm.Event.objects.select_related("workshop").order_by("starts_at")
        if creator_id is not None:
            qs = qs.filter(creator_id=creator_id)
        if not include_cancelled:
            qs = qs.filter(cancelled=False)
        return [_event_from_row(row) for row in qs]

    def update_event(self, event_id: UUID, fields: dict, workshop_fields: dict | None = None) -> Event:
        unknown = set(fields) - set(EVENT_COLUMNS)
        if unknown:
            raise ValueError(f"Not an event column: {', '.join(sorted(unknown))}")
        with transaction.atomic():
            updated = orm.Event.objects.filter(pk=event_id).update(**fields, updated_at=timezone.now())
            if not updated:
                raise NotFoundError("Event", str(event_id))
            if workshop_fields:
                if "live_room_id" in workshop_fields:
                    workshop_fields = {**workshop_fields, "live_room_id": workshop_fields["live_room_id"] or ""}
                orm.Workshop.objects.filter(event_id=event_id).update(**workshop_fields)
        return self.get_event(event_id)

    def mark_cancelled(self, event_id: UUID) -> bool:
        updated = orm.Event.objects.filter(pk=event_id, cancelled=False).update(
            cancelled=True, updated_at=timezone.now()
        )
        return updated == 1

    def try_reserve_slot(self, event_id: UUID) -> bool:
        # Single conditional UPDATE; the row lock it takes serialises concurrent joins.
        updated = (
            orm.Event.objects.filter(pk=event_id, cancelled=False)
            .filter(Q(max_participants__isnull=True) | Q(attending_count__lt=F("max_participants")))
            .update(attending_count=F("attending_count") + 1)
        )
        return updated == 1

    def release_slot(self, event_id: UUID) -> None:
        orm.Event.objects.filter(pk=event_id, attending_count__gt=0).update(
            attending_count=F("attending_count") - 1
        )


class DjangoParticipantStore(ParticipantStore):
    def get(self, participant_id: UUID) -> Participant | None:
        row = orm.EventParticipant.objects.filter(pk=participant_id).first()
        return _participant_from_row(row) if row is not None else None

    def get_for_user(self, event_id: UUID, user_id: int) -> Participant | None:
        row = orm.EventParticipant.objects.filter(event_id=event_id, user_id=user_id).first()
        return _participant_from_row(row) if row is not None else None

    def get_by_intent(self, intent_id: str) -> Participant | None:
        if not intent_id:
            return None
        row = orm.EventParticipant.objects.filter(payment_intent_id=intent_id).first()
        return _participant_from_row(row) if row is not None else None

    def list_for_event(self, event_id: UUID) -> list[Participant]:
        qs = orm.EventParticipant.objects.filter(event_id=event_id).order_by("joined_at")
        return [_participant_from_row(row) for row in qs]

    def create(self, event_id: UUID, user_id: int, state: ParticipationState, message: str = "") -> Participant:
        try:
            with transaction.atomic():
                row = orm.EventParticipant.objects.create(
                    event_id=event_id, user_id=user_id, message=message or "", **_state_columns(state)
                )
        except IntegrityError:
            raise ValidationError("You have already joined this event")
        return _participant_from_row(row)

    def transition(
        self, participant: Participant, new_state: ParticipationState, message: str | None = None
    ) -> Participant | None:
        values = _state_columns(new_state)
        if message is not None:
            values["message"] = message
        old = participant.state
        with transaction.atomic():
            # Compare-and-set: only move the row if nobody else moved it first.
            updated = orm.EventParticipant.objects.filter(pk=participant.id, **_state_columns(old)).update(
                **values, updated_at=timezone.now()
            )
            if not updated:
                return None
            if isinstance(old, Cancelled) and old.intent_id and old.intent_id != new_state.intent_id:
                orm.ParticipantPaymentHistory.objects.create(
                    participant_id=participant.id,
                    payment_status=old.payment_status.value,
                    payment_intent_id=old.intent_id,
                    refund_id=old.refund_id,
                )
        return self.get(participant.id)

    def get_past_payment(self, intent_id: str) -> PastPayment | None:
        if not intent_id:
            return None
        row = (
            orm.ParticipantPaymentHistory.objects.select_related("participant")
            .filter(payment_intent_id=intent_id)
            .first()
        )
        if row is None:
            return None
        return PastPayment(
            participant_id=row.participant_id,
            event_id=row.participant.event_id,
            user_id=row.participant.user_id,
            state=Cancelled(PaymentStatus(row.payment_status), row.payment_intent_id, row.refund_id),
            superseded_at=row.superseded_at,
        )

    def record_past_refund(self, past: PastPayment, refund_id: str) -> bool:
        updated = orm.ParticipantPaymentHistory.objects.filter(
            payment_intent_id=past.state.intent_id, payment_status=PaymentStatus.NONE.value
        ).update(payment_status=PaymentStatus.REFUNDED.value, refund_id=refund_id)
        return updated == 1


class DjangoArchivePurchaseStore(ArchivePurchaseStore):
    def get_for_user(self, event_id: UUID, user_id: int) -> ArchivePurchase | None:
        row = orm.ArchivePurchase.objects.filter(event_id=event_id, user_id=user_id).first()
        return _purchase_from_row(row) if row is not None else None

    def get_by_intent(self, intent_id: str) -> ArchivePurchase | None:
        if not intent_id:
            return None
        row = orm.ArchivePurchase.objects.filter(payment_intent_id=intent_id).first()
        return _purchase_from_row(row) if row is not None else None

    def create_pending(
        self, event_id: UUID, user_id: int, price: int, currency: str, intent_id: str | None
    ) -> ArchivePurchase:
        row, _ = orm.ArchivePurchase.objects.update_or_create(
            event_id=event_id,
            user_id=user_id,
            defaults={
                "price": price,
                "currency": currency,
                "payment_intent_id": intent_id,
                "purchased_at": None,
                "expires_at": None,
            },
        )
        return _purchase_from_row(row)

    def attach_intent(self, purchase_id: UUID, intent_id: str) -> ArchivePurchase:
        orm.ArchivePurchase.objects.filter(pk=purchase_id).update(payment_intent_id=intent_id)
        return _purchase_from_row(orm.ArchivePurchase.objects.get(pk=purchase_id))

    def complete(self, purchase: ArchivePurchase, purchased_at, expires_at) -> bool:
        updated = orm.ArchivePurchase.objects.filter(pk=purchase.id, purchased_at__isnull=True).update(
            purchased_at=purchased_at, expires_at=expires_at
        )
        return updated == 1
