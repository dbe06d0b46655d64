from django.db.models import Q
from django_filters import rest_framework as django_filters
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.services.risk import analyze_client_risk
from .models import Client
from .serializers import ClientSerializer


class ClientFilter(django_filters.FilterSet):
    """Filter for Client model."""

    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Client
        fields = []

    def filter_search(self, queryset, name, value):
        """Substring search on name, email and tax id."""
        return queryset.filter(
            Q(name__icontains=value) |
            Q(email__icontains=value) |
            Q(tax_id__icontains=value)
        )


class ClientViewSet(mixins.ListModelMixin,
                    mixins.RetrieveModelMixin,
                    mixins.CreateModelMixin,
                    mixins.UpdateModelMixin,
                    viewsets.GenericViewSet):
    """
    List, retrieve, create and update clients.

    There is no destroy: clients are referenced by contracts and audit logs.
    """
    queryset = Client.objects.all()
    serializer_class = ClientSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = ClientFilter
    filter_backends = [django_filters.DjangoFilterBackend]

    @action(detail=True, methods=['get'])
    def payment_risk(self, request, pk=None):
        """Late-payment risk from the client's invoices that are already due."""
        client = self.get_object()
        return Response(analyze_client_risk(client.pk).as_dict())
