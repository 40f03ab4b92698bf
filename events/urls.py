from rest_framework.routers import DefaultRouter
from .views import EventViewSet, WorkshopViewSet

router = DefaultRouter()
router.register(r"events", EventViewSet, basename="events")
router.register(r"workshops", WorkshopViewSet, basename="workshops")

urlpatterns = router.urls
