from django_filters import rest_framework as django_filters
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .filters import InvoiceFilter, SubscriptionFilter
from .models import Invoice, Subscription
from .serializers import InvoiceSerializer, SubscriptionSerializer
from .services.reminders import ReminderService


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Invoices with payment and reminder actions.

    Provides:
    - list / retrieve, filterable by ?subscription= and ?status=
    - mark_as_paid: record payment and confirm it to the client
    - send_reminder: send the payment reminder now
    - pending_reminders: invoices the daily reminder scan would pick
    """
    queryset = Invoice.objects.select_related('subscription')
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = InvoiceFilter
    filter_backends = [django_filters.DjangoFilterBackend]

    def get_service(self):
        return ReminderService()

    @action(detail=True, methods=['post'])
    def mark_as_paid(self, request, pk=None):
        invoice = self.get_service().mark_as_paid(pk)
        return Response(InvoiceSerializer(invoice).data)

    @action(detail=True, methods=['post'])
    def send_reminder(self, request, pk=None):
        result = self.get_service().send_reminder(pk)
        return Response(result)

    @action(detail=False, methods=['get'])
    def pending_reminders(self, request):
        invoices = self.get_service().get_pending_reminders()
        return Response(InvoiceSerializer(invoices, many=True).data)


class SubscriptionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Subscription.objects.select_related('contract')
    serializer_class = SubscriptionSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = SubscriptionFilter
    filter_backends = [django_filters.DjangoFilterBackend]

    @action(detail=True, methods=['post'])
    def sync_invoices(self, request, pk=None):
        """Pull this subscription's invoices from the billing provider."""
        created = ReminderService().sync_invoices(pk)
        return Response({'created': created})
