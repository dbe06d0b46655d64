from rest_framework import serializers
from .models import Invoice, Subscription


class SubscriptionSerializer(serializers.ModelSerializer):

    class Meta:
        model = Subscription
        fields = [
            'id', 'contract', 'external_subscription_id', 'external_customer_id',
            'status', 'next_due_date', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    """Read-only invoice representation; invoices change through actions only."""

    contract = serializers.IntegerField(source='subscription.contract_id', read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id', 'subscription', 'contract', 'external_invoice_id', 'value',
            'due_date', 'paid_at', 'status', 'reminder_sent', 'created_at', 'updated_at',
        ]
        read_only_fields = fields
