import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("events", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ParticipantPaymentHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("none", "None"), ("paid", "Paid"), ("refunded", "Refunded")], max_length=20
                    ),
                ),
                ("payment_intent_id", models.CharField(max_length=255, unique=True)),
                ("refund_id", models.CharField(blank=True, max_length=255, null=True)),
                ("superseded_at", models.DateTimeField(auto_now_add=True)),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment_history",
                        to="events.eventparticipant",
                    ),
                ),
            ],
            options={
                "ordering": ["-superseded_at"],
                "verbose_name_plural": "participant payment history",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("payment_status", "refunded"), ("refund_id__isnull", True), _connector="OR"),
                        name="payment_history_refund_id_only_when_refunded",
                    ),
                ],
            },
        ),
    ]
