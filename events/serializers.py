from rest_framework import serializers


# ============================================================
# ✅ Input Serializers
# ============================================================

class EventCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    event_type = serializers.ChoiceField(choices=["online", "offline", "hybrid"], required=False)
    location = serializers.CharField(max_length=512, required=False, allow_blank=True)
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    fee = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    currency = serializers.CharField(min_length=3, max_length=3, required=False)
    refund_policy = serializers.CharField(required=False, allow_blank=True)
    max_participants = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def validate(self, attrs):
        if attrs["ends_at"] <= attrs["starts_at"]:
            raise serializers.ValidationError({"ends_at": "End time must be after the start time."})
        return attrs


class WorkshopCreateSerializer(EventCreateSerializer):
    event_type = None
    max_participants = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=1000)
    is_recorded = serializers.BooleanField(required=False, default=False)
    recording_url = serializers.URLField(max_length=500, required=False, allow_null=True, allow_blank=True)
    archive_expires_at = serializers.DateTimeField(required=False, allow_null=True)
    archive_price = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    live_room_id = serializers.CharField(max_length=100, required=False, allow_blank=True)


class EventUpdateSerializer(serializers.Serializer):
    """Partial update; only the keys sent are applied."""

    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=512, required=False, allow_blank=True)
    starts_at = serializers.DateTimeField(required=False)
    ends_at = serializers.DateTimeField(required=False)
    fee = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    currency = serializers.CharField(min_length=3, max_length=3, required=False)
    refund_policy = serializers.CharField(required=False, allow_blank=True)
    max_participants = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    is_recorded = serializers.BooleanField(required=False)
    recording_url = serializers.URLField(max_length=500, required=False, allow_null=True, allow_blank=True)
    archive_expires_at = serializers.DateTimeField(required=False, allow_null=True)
    archive_price = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    live_room_id = serializers.CharField(max_length=100, required=False, allow_blank=True)


class JoinSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=["interested", "attending"], default="attending")
    message = serializers.CharField(required=False, allow_blank=True, default="")


class ConfirmPaymentSerializer(serializers.Serializer):
    payment_intent_id = serializers.CharField(max_length=255)


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


# ============================================================
# ✅ Output Serializers (domain objects)
# ============================================================

class WorkshopDetailsSerializer(serializers.Serializer):
    is_recorded = serializers.BooleanField()
    recording_url = serializers.CharField(allow_null=True)
    archive_expires_at = serializers.DateTimeField(allow_null=True)
    archive_price = serializers.IntegerField(allow_null=True)
    live_room_id = serializers.CharField(allow_null=True)


class EventSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    creator_id = serializers.IntegerField()
    name = serializers.CharField()
    description = serializers.CharField()
    event_type = serializers.CharField()
    location = serializers.CharField()
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    fee = serializers.IntegerField(allow_null=True)
    currency = serializers.CharField()
    refund_policy = serializers.CharField()
    max_participants = serializers.IntegerField(allow_null=True)
    attending_count = serializers.IntegerField()
    cancelled = serializers.BooleanField()
    workshop = WorkshopDetailsSerializer(allow_null=True)
    created_at = serializers.DateTimeField(allow_null=True)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # Recording links are for entitled users only (see archive-access).
        if data.get("workshop"):
            data["workshop"].pop("recording_url", None)
        return data


class JoinResultSerializer(serializers.Serializer):
    participant_id = serializers.UUIDField()
    status = serializers.CharField()
    payment_required = serializers.BooleanField()
    client_secret = serializers.CharField(allow_null=True)


class CancelResultSerializer(serializers.Serializer):
    refunded = serializers.BooleanField()
    refund_amount = serializers.IntegerField()
    refund_id = serializers.CharField(allow_null=True)


class EventCancellationSerializer(serializers.Serializer):
    event_id = serializers.UUIDField()
    cancelled = serializers.ListField(child=serializers.CharField())
    refunded = serializers.ListField(child=serializers.CharField())
    failed = serializers.SerializerMethodField()

    def get_failed(self, obj):
        return [{"participant_id": pid, "detail": detail} for pid, detail in obj.failed]


class RoomAccessSerializer(serializers.Serializer):
    has_access = serializers.BooleanField()
    room_url = serializers.CharField(allow_null=True)
    role = serializers.CharField(allow_null=True)
    reason = serializers.CharField(allow_null=True)


class ArchiveAccessSerializer(serializers.Serializer):
    has_access = serializers.BooleanField()
    archive_url = serializers.CharField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    can_purchase = serializers.BooleanField()
    price = serializers.IntegerField(allow_null=True)
    currency = serializers.CharField(allow_null=True)
    reason = serializers.CharField(allow_null=True)


class ArchivePurchaseIntentSerializer(serializers.Serializer):
    purchase_id = serializers.CharField()
    payment_required = serializers.BooleanField()
    client_secret = serializers.CharField(allow_null=True)
