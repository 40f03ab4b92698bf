# payments/views_webhooks.py
from django.db import transaction
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny

from events.services.factory import build_webhook_handler


# 🔹 Stripe Webhook
class StripeWebhookView(APIView):
    """Verified deliveries only; a bad signature is a 400 and nothing is written."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")

        handler = build_webhook_handler()
        with transaction.atomic():
            outcome = handler.handle(payload, sig_header)

        return Response({"received": True, "outcome": outcome})
