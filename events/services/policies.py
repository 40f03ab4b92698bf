"""Cancellation refund policies.

A policy is any callable ``(event, participant, now) -> int`` returning the
amount to refund in minor units. ``EVENTS_CANCELLATION_POLICY`` holds the
dotted path of the one in use.
"""

import re
from datetime import datetime, timedelta

from events.domain import Event, Participant


def full_refund(event: Event, participant: Participant, now: datetime) -> int:
    """Refund everything that was paid. The default."""
    return event.fee or 0


class ServiceFeeRefundPolicy:
    """Refund the fee minus a fixed service fee (never below zero)."""

    def __init__(self, service_fee: int) -> None:
        if service_fee < 0:
            raise ValueError("service_fee cannot be negative")
        self.service_fee = service_fee

    def __call__(self, event: Event, participant: Participant, now: datetime) -> int:
        return max((event.fee or 0) - self.service_fee, 0)


class RefundDeadlinePolicy:
    """Full refund up to a deadline before the start, nothing after it.

    The deadline comes from the event's refund policy text ("48 hours", "48時間前")
    and falls back to ``default_hours``.
    """

    pattern = re.compile(r"(\d+)\s*(?:時間前|hours?|h\b)", re.IGNORECASE)

    def __init__(self, default_hours: int = 24) -> None:
        self.default_hours = default_hours

    def deadline_hours(self, event: Event) -> int:
        match = self.pattern.search(event.refund_policy or "")
        return int(match.group(1)) if match else self.default_hours

    def __call__(self, event: Event, participant: Participant, now: datetime) -> int:
        if event.starts_at - now < timedelta(hours=self.deadline_hours(event)):
            return 0
        return event.fee or 0
