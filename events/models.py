"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import F, Q

User = settings.AUTH_USER_MODEL


class Event(models.Model):
    EVENT_TYPES = [
        ("online", "Online"),
        ("offline", "Offline"),
        ("hybrid", "Hybrid"),
        ("voice_workshop", "Voice Workshop"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    creator = models.ForeignKey(User, on_delete=models.CASCADE, related_name="created_events")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    event_type = models.CharField(max_length=20, choices=EVENT_TYPES, default="offline")
    location = models.CharField(max_length=512, blank=True)
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()

    # Smallest currency unit (JPY has none, so 3000 == ¥3000). Null or 0 is free.
    fee = models.PositiveIntegerField(null=True, blank=True)
    currency = models.CharField(max_length=3, default="JPY")
    refund_policy = models.TextField(blank=True)

    # Capacity: null means unlimited. attending_count is only written through
    # conditional UPDATEs (see stores/django_store.py).
    max_participants = models.PositiveIntegerField(null=True, blank=True)
    attending_count = models.PositiveIntegerField(default=0)

    cancelled = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["starts_at"]
        indexes = [
            models.Index(fields=["starts_at"], name="events_even_starts__a1c2e4_idx"),
            models.Index(fields=["creator", "-created_at"], name="events_even_creator_5b7d21_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(ends_at__gt=F("starts_at")), name="event_date_range_check"),
            models.CheckConstraint(
                condition=Q(max_participants__isnull=True) | Q(attending_count__lte=F("max_participants")),
                name="event_attending_within_capacity",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.starts_at:%Y-%m-%d})"


class Workshop(models.Model):
    """Voice workshop details; capacity lives on the parent Event."""

    event = models.OneToOneField(Event, on_delete=models.CASCADE, related_name="workshop")
    is_recorded = models.BooleanField(default=False)
    recording_url = models.URLField(max_length=500, blank=True, null=True)
    archive_expires_at = models.DateTimeField(null=True, blank=True)
    archive_price = models.PositiveIntegerField(null=True, blank=True, help_text="Defaults to the event fee when empty.")
    live_room_id = models.CharField(max_length=100, blank=True)

    def __str__(self):
        return f"Workshop: {self.event.name}"


class EventParticipant(models.Model):
    STATUS_CHOICES = [
        ("interested", "Interested"),
        ("attending", "Attending"),
        ("cancelled", "Cancelled"),
    ]
    PAYMENT_STATUS_CHOICES = [
        ("none", "None"),
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("refunded", "Refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="participants")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="event_participations")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="interested")
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default="none")
    payment_intent_id = models.CharField(max_length=255, null=True, blank=True)
    refund_id = models.CharField(max_length=255, null=True, blank=True)
    message = models.TextField(blank=True)
    joined_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-joined_at"]
        indexes = [
            models.Index(fields=["event", "status"], name="events_even_event_i_3f9a10_idx"),
            models.Index(fields=["payment_intent_id"], name="events_even_payment_8c4e77_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="uniq_event_participant"),
            # Mirrors events.domain.states: no other status pairs are reachable.
            models.CheckConstraint(
                condition=(
                    Q(status="interested", payment_status="none")
                    | Q(status="attending", payment_status__in=["none", "pending", "paid"])
                    | Q(status="cancelled", payment_status__in=["none", "paid", "refunded"])
                ),
                name="participant_status_pair_check",
            ),
            models.CheckConstraint(
                condition=~Q(payment_status__in=["paid", "refunded"]) | Q(payment_intent_id__isnull=False),
                name="participant_paid_has_intent",
            ),
            models.CheckConstraint(
                condition=Q(payment_status="refunded") | Q(refund_id__isnull=True),
                name="participant_refund_id_only_when_refunded",
            ),
        ]

    def __str__(self):
        return f"{self.user} → {self.event.name} ({self.status}/{self.payment_status})"


class ParticipantPaymentHistory(models.Model):
    """Payment trail of an earlier, cancelled participation.

    Written when a cancelled participant joins again and the row takes a new
    state, so the old intent and refund stay on record.
    """

    PAYMENT_STATUS_CHOICES = [
        ("none", "None"),
        ("paid", "Paid"),
        ("refunded", "Refunded"),
    ]

    participant = models.ForeignKey(EventParticipant, on_delete=models.CASCADE, related_name="payment_history")
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES)
    payment_intent_id = models.CharField(max_length=255, unique=True)
    refund_id = models.CharField(max_length=255, null=True, blank=True)
    superseded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-superseded_at"]
        verbose_name_plural = "participant payment history"
        constraints = [
            models.CheckConstraint(
                condition=Q(payment_status="refunded") | Q(refund_id__isnull=True),
                name="payment_history_refund_id_only_when_refunded",
            ),
        ]

    def __str__(self):
        return f"{self.payment_intent_id} ({self.payment_status})"


class ArchivePurchase(models.Model):
    """Recording access bought by a non-participant. purchased_at is null while pending."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="archive_purchases")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="archive_purchases")
    price = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, default="JPY")
    payment_intent_id = models.CharField(max_length=255, null=True, blank=True)
    purchased_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["payment_intent_id"], name="events_arch_payment_2d6b90_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="uniq_event_archive_purchase"),
        ]

    def __str__(self):
        state = "purchased" if self.purchased_at else "pending"
        return f"{self.user} archive {self.event.name} ({state})"
