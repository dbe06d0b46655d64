from django_filters import rest_framework as django_filters
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from api.exceptions import ValidationError
from billing.serializers import SubscriptionSerializer
from .filters import ContractFilter
from .models import Contract
from .serializers import (
    CancelContractSerializer,
    ContractCreateSerializer,
    ContractSerializer,
    ContractUpdateSerializer,
    SendForSignatureSerializer,
    SignatureSerializer,
)
from .services.contract_text import render_contract_text
from .services.lifecycle import ContractLifecycleService

IDEMPOTENCY_HEADER = 'Idempotency-Key'


class ContractViewSet(mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      viewsets.GenericViewSet):
    """
    Contracts and their lifecycle.

    Provides:
    - list / retrieve, filterable by ?status= and ?client=
    - create: new draft contract
    - partial_update: description / pdf_url while draft
    - send_for_signature, activate, cancel: lifecycle transitions; each
      accepts an optional Idempotency-Key header
    - draft_text: agreement text built from the contract terms
    """
    queryset = Contract.objects.select_related('client', 'signature', 'subscription')
    serializer_class = ContractSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = ContractFilter
    filter_backends = [django_filters.DjangoFilterBackend]

    def get_service(self):
        return ContractLifecycleService()

    def _idempotency_key(self, request):
        return request.headers.get(IDEMPOTENCY_HEADER) or None

    def create(self, request, *args, **kwargs):
        serializer = ContractCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        contract = self.get_service().create_contract(
            client_id=data['client'],
            description=data['description'],
            value=data['value'],
            periodicity=data['periodicity'],
            duration_months=data['duration_months'],
            start_date=data.get('start_date'),
        )
        return Response(ContractSerializer(contract).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        if 'status' in request.data:
            raise ValidationError('Status can only change through lifecycle actions')
        unknown = set(request.data) - set(ContractUpdateSerializer().fields)
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

        serializer = ContractUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        contract = self.get_service().update_contract(kwargs['pk'], **serializer.validated_data)
        return Response(ContractSerializer(contract).data)

    @action(detail=True, methods=['post'])
    def send_for_signature(self, request, pk=None):
        """Send the draft contract to the client for e-signature."""
        serializer = SendForSignatureSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_service().send_for_signature(
            pk,
            serializer.validated_data['pdf_url'],
            idempotency_key=self._idempotency_key(request)
        )
        return Response({
            'signature': SignatureSerializer(result['signature']).data,
            'sign_url': result['sign_url'],
        })

    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        """Activate a signed contract and start recurring billing."""
        result = self.get_service().activate(pk, idempotency_key=self._idempotency_key(request))
        return Response({
            'contract': ContractSerializer(result['contract']).data,
            'subscription': SubscriptionSerializer(result['subscription']).data,
        })

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        serializer = CancelContractSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        contract = self.get_service().cancel(
            pk,
            reason=serializer.validated_data.get('reason') or None,
            idempotency_key=self._idempotency_key(request)
        )
        return Response(ContractSerializer(contract).data)

    @action(detail=True, methods=['get'])
    def draft_text(self, request, pk=None):
        """Agreement text filled with this contract's terms."""
        contract = self.get_object()
        return Response({'contract': contract.pk, 'text': render_contract_text(contract)})
