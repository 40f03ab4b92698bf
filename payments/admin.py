from django.contrib import admin
from .models import PaymentTransaction, WebhookDelivery


# ============================================================
# ✅ Payment Transaction Admin
# ============================================================
@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ("provider_ref", "kind", "user", "app_source", "amount", "currency", "status", "created_at")
    list_filter = ("kind", "provider", "status", "currency")
    search_fields = ("provider_ref", "intent_ref", "related_id", "user__email")
    readonly_fields = ("created_at", "processed_at")
    ordering = ("-created_at",)


# ============================================================
# ✅ Webhook Delivery Admin
# ============================================================
@admin.register(WebhookDelivery)
class WebhookDeliveryAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "provider", "received_at")
    list_filter = ("provider", "event_type")
    search_fields = ("event_id",)
    readonly_fields = ("received_at",)
