from rest_framework import serializers

from billing.serializers import SubscriptionSerializer
from .models import Contract, Signature


class SignatureSerializer(serializers.ModelSerializer):

    class Meta:
        model = Signature
        fields = [
            'id', 'contract', 'external_envelope_id', 'external_document_id',
            'sign_url', 'status', 'signed_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ContractSerializer(serializers.ModelSerializer):
    """Contract detail with its signature and subscription, when they exist."""

    client_name = serializers.CharField(source='client.name', read_only=True)
    signature = serializers.SerializerMethodField()
    subscription = serializers.SerializerMethodField()

    class Meta:
        model = Contract
        fields = [
            'id', 'client', 'client_name', 'description', 'value', 'periodicity',
            'duration_months', 'start_date', 'end_date', 'status', 'pdf_url',
            'signature', 'subscription', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_signature(self, obj):
        signature = getattr(obj, 'signature', None)
        return SignatureSerializer(signature).data if signature else None

    def get_subscription(self, obj):
        subscription = getattr(obj, 'subscription', None)
        return SubscriptionSerializer(subscription).data if subscription else None


class ContractCreateSerializer(serializers.Serializer):
    """Input for contract creation; business rules are enforced by the lifecycle service."""

    client = serializers.IntegerField()
    description = serializers.CharField()
    value = serializers.IntegerField(min_value=1, help_text="Minor currency units")
    periodicity = serializers.ChoiceField(choices=Contract.PERIODICITY_CHOICES)
    duration_months = serializers.IntegerField(min_value=1)
    start_date = serializers.DateTimeField(required=False)


class ContractUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(required=False)
    pdf_url = serializers.URLField(required=False, allow_null=True, max_length=500)


class SendForSignatureSerializer(serializers.Serializer):
    pdf_url = serializers.URLField(max_length=500)


class CancelContractSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)
