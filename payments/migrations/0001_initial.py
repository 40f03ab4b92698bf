import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("app_source", models.CharField(blank=True, max_length=50)),
                ("related_id", models.CharField(blank=True, max_length=100)),
                (
                    "kind",
                    models.CharField(choices=[("charge", "Charge"), ("refund", "Refund")], default="charge", max_length=10),
                ),
                (
                    "provider",
                    models.CharField(choices=[("stripe", "Stripe"), ("fake", "Fake")], default="stripe", max_length=20),
                ),
                ("provider_ref", models.CharField(max_length=255)),
                ("intent_ref", models.CharField(max_length=255)),
                ("amount", models.PositiveIntegerField()),
                ("currency", models.CharField(default="JPY", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("succeeded", "Succeeded"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payment_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["intent_ref", "kind"], name="payments_pa_intent__4e1b0c_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("kind", "provider_ref"), name="uniq_payment_provider_ref"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookDelivery",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("provider", models.CharField(default="stripe", max_length=20)),
                ("event_id", models.CharField(max_length=255, unique=True)),
                ("event_type", models.CharField(max_length=100)),
                ("received_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-received_at"],
            },
        ),
    ]
