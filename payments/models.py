from django.conf import settings
from django.db import models
import uuid

User = settings.AUTH_USER_MODEL


class PaymentTransaction(models.Model):
    """Ledger row per provider object: one per payment intent, one per refund."""

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("succeeded", "Succeeded"),
        ("failed", "Failed"),
        ("refunded", "Refunded"),
    ]
    KIND_CHOICES = [
        ("charge", "Charge"),
        ("refund", "Refund"),
    ]
    PROVIDER_CHOICES = [
        ("stripe", "Stripe"),
        ("fake", "Fake"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name="payment_transactions")
    app_source = models.CharField(max_length=50, blank=True)  # 'event_participation' | 'archive_purchase'
    related_id = models.CharField(max_length=100, blank=True)
    kind = models.CharField(max_length=10, choices=KIND_CHOICES, default="charge")
    provider = models.CharField(max_length=20, choices=PROVIDER_CHOICES, default="stripe")
    provider_ref = models.CharField(max_length=255)  # intent id for charges, refund id for refunds
    intent_ref = models.CharField(max_length=255)    # always the payment intent id
    amount = models.PositiveIntegerField()           # smallest currency unit
    currency = models.CharField(max_length=3, default="JPY")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["intent_ref", "kind"], name="payments_pa_intent__4e1b0c_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["kind", "provider_ref"], name="uniq_payment_provider_ref"),
        ]

    def __str__(self):
        return f"{self.kind} {self.provider_ref} {self.amount} {self.currency} ({self.status})"


class WebhookDelivery(models.Model):
    """Provider event ids already handled; webhooks are delivered at least once."""

    provider = models.CharField(max_length=20, default="stripe")
    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-received_at"]

    def __str__(self):
        return f"{self.provider} {self.event_type} {self.event_id}"
