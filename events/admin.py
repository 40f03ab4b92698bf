from django.contrib import admin
from .models import Event, Workshop, EventParticipant, ParticipantPaymentHistory, ArchivePurchase


class WorkshopInline(admin.StackedInline):
    model = Workshop
    extra = 0


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ("name", "creator", "event_type", "starts_at", "fee", "currency", "attending_count", "max_participants", "cancelled")
    search_fields = ("name", "description", "location")
    list_filter = ("event_type", "cancelled", "starts_at")
    ordering = ("-starts_at",)
    # Written only through conditional updates.
    readonly_fields = ("attending_count",)
    inlines = [WorkshopInline]


class PaymentHistoryInline(admin.TabularInline):
    model = ParticipantPaymentHistory
    extra = 0
    can_delete = False
    readonly_fields = ("payment_status", "payment_intent_id", "refund_id", "superseded_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(EventParticipant)
class EventParticipantAdmin(admin.ModelAdmin):
    list_display = ("user", "event", "status", "payment_status", "payment_intent_id", "joined_at")
    list_filter = ("status", "payment_status", "joined_at")
    search_fields = ("user__email", "event__name", "payment_intent_id")
    # State changes go through ParticipationManager.
    readonly_fields = ("status", "payment_status", "payment_intent_id", "refund_id", "joined_at", "updated_at")
    inlines = [PaymentHistoryInline]


@admin.register(ArchivePurchase)
class ArchivePurchaseAdmin(admin.ModelAdmin):
    list_display = ("user", "event", "price", "currency", "purchased_at", "expires_at")
    list_filter = ("purchased_at",)
    search_fields = ("user__email", "event__name", "payment_intent_id")
    readonly_fields = ("purchased_at", "expires_at", "created_at")
