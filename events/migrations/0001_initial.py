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
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("online", "Online"),
                            ("offline", "Offline"),
                            ("hybrid", "Hybrid"),
                            ("voice_workshop", "Voice Workshop"),
                        ],
                        default="offline",
                        max_length=20,
                    ),
                ),
                ("location", models.CharField(blank=True, max_length=512)),
                ("starts_at", models.DateTimeField()),
                ("ends_at", models.DateTimeField()),
                ("fee", models.PositiveIntegerField(blank=True, null=True)),
                ("currency", models.CharField(default="JPY", max_length=3)),
                ("refund_policy", models.TextField(blank=True)),
                ("max_participants", models.PositiveIntegerField(blank=True, null=True)),
                ("attending_count", models.PositiveIntegerField(default=0)),
                ("cancelled", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="created_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["starts_at"],
                "indexes": [
                    models.Index(fields=["starts_at"], name="events_even_starts__a1c2e4_idx"),
                    models.Index(fields=["creator", "-created_at"], name="events_even_creator_5b7d21_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("ends_at__gt", models.F("starts_at"))),
                        name="event_date_range_check",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("max_participants__isnull", True),
                            ("attending_count__lte", models.F("max_participants")),
                            _connector="OR",
                        ),
                        name="event_attending_within_capacity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Workshop",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_recorded", models.BooleanField(default=False)),
                ("recording_url", models.URLField(blank=True, max_length=500, null=True)),
                ("archive_expires_at", models.DateTimeField(blank=True, null=True)),
                (
                    "archive_price",
                    models.PositiveIntegerField(
                        blank=True, help_text="Defaults to the event fee when empty.", null=True
                    ),
                ),
                ("live_room_id", models.CharField(blank=True, max_length=100)),
                (
                    "event",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="workshop",
                        to="events.event",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="EventParticipant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "status",
                    models.CharField(
                        choices=[("interested", "Interested"), ("attending", "Attending"), ("cancelled", "Cancelled")],
                        default="interested",
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("none", "None"), ("pending", "Pending"), ("paid", "Paid"), ("refunded", "Refunded")],
                        default="none",
                        max_length=20,
                    ),
                ),
                ("payment_intent_id", models.CharField(blank=True, max_length=255, null=True)),
                ("refund_id", models.CharField(blank=True, max_length=255, null=True)),
                ("message", models.TextField(blank=True)),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="event_participations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-joined_at"],
                "indexes": [
                    models.Index(fields=["event", "status"], name="events_even_event_i_3f9a10_idx"),
                    models.Index(fields=["payment_intent_id"], name="events_even_payment_8c4e77_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "user"), name="uniq_event_participant"),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("payment_status", "none"), ("status", "interested")),
                            models.Q(("payment_status__in", ["none", "pending", "paid"]), ("status", "attending")),
                            models.Q(("payment_status__in", ["none", "paid", "refunded"]), ("status", "cancelled")),
                            _connector="OR",
                        ),
                        name="participant_status_pair_check",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("payment_status__in", ["paid", "refunded"]), _negated=True),
                            ("payment_intent_id__isnull", False),
                            _connector="OR",
                        ),
                        name="participant_paid_has_intent",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("payment_status", "refunded"),
                            ("refund_id__isnull", True),
                            _connector="OR",
                        ),
                        name="participant_refund_id_only_when_refunded",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ArchivePurchase",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("price", models.PositiveIntegerField()),
                ("currency", models.CharField(default="JPY", max_length=3)),
                ("payment_intent_id", models.CharField(blank=True, max_length=255, null=True)),
                ("purchased_at", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="archive_purchases",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="archive_purchases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["payment_intent_id"], name="events_arch_payment_2d6b90_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "user"), name="uniq_event_archive_purchase"),
                ],
            },
        ),
    ]
