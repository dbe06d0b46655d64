from django_filters import rest_framework as django_filters

from .models import Contract


class ContractFilter(django_filters.FilterSet):
    """Filter contracts by ?status= and ?client=."""

    status = django_filters.ChoiceFilter(choices=Contract.STATUS_CHOICES)
    client = django_filters.NumberFilter(field_name='client_id')

    class Meta:
        model = Contract
        fields = ['status', 'client']
