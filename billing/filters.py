from django_filters import rest_framework as django_filters

from .models import Invoice, Subscription


class InvoiceFilter(django_filters.FilterSet):
    """Filter invoices by ?subscription= and ?status=."""

    subscription = django_filters.NumberFilter(field_name='subscription_id')
    status = django_filters.ChoiceFilter(choices=Invoice.STATUS_CHOICES)

    class Meta:
        model = Invoice
        fields = ['subscription', 'status']


class SubscriptionFilter(django_filters.FilterSet):
    contract = django_filters.NumberFilter(field_name='contract_id')
    status = django_filters.ChoiceFilter(choices=Subscription.STATUS_CHOICES)

    class Meta:
        model = Subscription
        fields = ['contract', 'status']
