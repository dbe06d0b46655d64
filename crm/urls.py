from rest_framework.routers import DefaultRouter
from .views import WebhookLogViewSet

router = DefaultRouter()
router.register(r'webhook-logs', WebhookLogViewSet, basename='webhook-log')

urlpatterns = router.urls
