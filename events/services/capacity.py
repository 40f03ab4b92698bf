"""Capacity reservation for attending participations."""

import logging
from dataclasses import dataclass
from uuid import UUID

from events.domain.states import ParticipationStatus
from events.stores.interfaces import EventStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reservation:
    reserved: bool


class CapacityGuard:
    """Reserves and releases attending slots.

    Only ``attending`` consumes a slot. The reservation is one conditional
    write in the store; callers run it in the same transaction as the
    participant row so both land or neither does.
    """

    def __init__(self, store: EventStore) -> None:
        self._store = store

    def reserve(self, event_id: UUID, requested_status: str | ParticipationStatus) -> Reservation:
        if ParticipationStatus(requested_status) is not ParticipationStatus.ATTENDING:
            return Reservation(reserved=True)
        reserved = self._store.try_reserve_slot(event_id)
        if not reserved:
            logger.info("No slot left on event %s", event_id)
        return Reservation(reserved=reserved)

    def release(self, event_id: UUID) -> None:
        self._store.release_slot(event_id)
