from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny

from .serializers import (
    EventCreateSerializer,
    WorkshopCreateSerializer,
    EventUpdateSerializer,
    JoinSerializer,
    ConfirmPaymentSerializer,
    ReasonSerializer,
    EventSerializer,
    JoinResultSerializer,
    CancelResultSerializer,
    EventCancellationSerializer,
    RoomAccessSerializer,
    ArchiveAccessSerializer,
    ArchivePurchaseIntentSerializer,
)
from .services.factory import (
    build_event_catalog,
    build_participation_manager,
    build_access_controller,
)


# ============================================================
# ✅ Events
# ============================================================

class EventViewSet(viewsets.ViewSet):
    """Event catalog plus the join / pay / cancel flow of one event."""

    def get_permissions(self):
        if self.action in ["list", "retrieve"]:
            return [AllowAny()]
        return [IsAuthenticated()]

    def list(self, request):
        mine = request.query_params.get("mine") in ("1", "true")
        if mine and not request.user.is_authenticated:
            return Response({"detail": "Authentication required for mine=true."}, status=401)
        events = build_event_catalog().list_events(creator_id=request.user.id if mine else None)
        return Response(EventSerializer(events, many=True).data)

    def retrieve(self, request, pk=None):
        event = build_event_catalog().get_event(pk)
        return Response(EventSerializer(event).data)

    def create(self, request):
        serializer = EventCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = build_event_catalog().create_event(serializer.validated_data, request.user.id)
        return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def workshops(self, request):
        serializer = WorkshopCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = build_event_catalog().create_workshop(serializer.validated_data, request.user.id)
        return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = EventUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        event = build_event_catalog().update_event(pk, serializer.validated_data, request.user.id)
        return Response(EventSerializer(event).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        """Organizer cancels the event; paid participants are refunded in full."""
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = build_participation_manager().cancel_event(pk, request.user.id, serializer.validated_data["reason"])
        return Response(EventCancellationSerializer(result).data)

    @action(detail=True, methods=["post"])
    def join(self, request, pk=None):
        serializer = JoinSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = build_participation_manager().join(
            pk,
            request.user.id,
            desired_status=serializer.validated_data["status"],
            message=serializer.validated_data["message"],
        )
        return Response(JoinResultSerializer(result).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request, pk=None):
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = build_participation_manager().confirm_payment(
            serializer.validated_data["payment_intent_id"], pk, request.user.id
        )
        return Response({"success": result.success, "payment_status": result.payment_status})

    @action(detail=True, methods=["post"], url_path=r"participants/(?P<participant_id>[^/.]+)/cancel")
    def cancel_participation(self, request, pk=None, participant_id=None):
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = build_participation_manager().cancel(
            pk, participant_id, request.user.id, serializer.validated_data["reason"]
        )
        return Response(CancelResultSerializer(result).data)


# ============================================================
# ✅ Workshop access
# ============================================================

class WorkshopViewSet(viewsets.ViewSet):
    """Live room entry and recording access for voice workshops."""

    permission_classes = [IsAuthenticated]

    @action(detail=True, methods=["get"], url_path="room-access")
    def room_access(self, request, pk=None):
        access = build_access_controller().get_room_access(pk, request.user.id)
        return Response(RoomAccessSerializer(access).data)

    @action(detail=True, methods=["get"], url_path="archive-access")
    def archive_access(self, request, pk=None):
        access = build_access_controller().get_archive_access(pk, request.user.id)
        return Response(ArchiveAccessSerializer(access).data)

    @action(detail=True, methods=["post"], url_path="archive-purchase")
    def archive_purchase(self, request, pk=None):
        intent = build_access_controller().purchase_archive_access(pk, request.user.id)
        return Response(ArchivePurchaseIntentSerializer(intent).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="archive-purchase/confirm")
    def confirm_archive_purchase(self, request, pk=None):
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        access = build_access_controller().confirm_archive_purchase(
            serializer.validated_data["payment_intent_id"], pk, request.user.id
        )
        return Response(ArchiveAccessSerializer(access).data)
