from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import WebhookLog
from .serializers import WebhookLogSerializer
from .services.webhook_forwarder import get_crm_forwarder


class WebhookLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    CRM webhook delivery log, filterable by ?event= and ?status=.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = WebhookLogSerializer

    def get_queryset(self):
        queryset = WebhookLog.objects.all()

        event = self.request.query_params.get('event')
        if event:
            queryset = queryset.filter(event=event)

        status_param = self.request.query_params.get('status')
        if status_param:
            queryset = queryset.filter(status=status_param)

        return queryset

    @action(detail=False, methods=['post'])
    def test_connection(self, request):
        """Check that the configured CRM endpoint answers."""
        forwarder = get_crm_forwarder()
        return Response({
            'enabled': forwarder.enabled,
            'connected': forwarder.test_connection(),
        })
