"""
Recurring billing provider integration (Asaas-style REST API).

Values are kept in minor units (cents) everywhere in the project and only
converted to decimal major units on the wire.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

import requests
from dateutil import parser as date_parser
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from api.exceptions import ExternalServiceError
from api.providers import ProviderMode, simulated_id

logger = logging.getLogger(__name__)

PROVIDER_NAME = 'billing'

CYCLE_MAP = {
    'monthly': 'MONTHLY',
    'quarterly': 'QUARTERLY',
    'semiannual': 'SEMIANNUALLY',
    'annual': 'YEARLY',
}

PAYMENT_STATUS_MAP = {
    'PENDING': 'pending',
    'RECEIVED': 'paid',
    'CONFIRMED': 'paid',
    'RECEIVED_IN_CASH': 'paid',
    'OVERDUE': 'overdue',
}


def to_major_units(value: int) -> Decimal:
    return (Decimal(value) / 100).quantize(Decimal('0.01'))


def to_minor_units(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def map_payment_status(provider_status: Optional[str]) -> str:
    """Provider payment status -> local invoice status. Unknown statuses count as cancelled."""
    return PAYMENT_STATUS_MAP.get((provider_status or '').upper(), 'cancelled')


def parse_due_date(value) -> datetime:
    """Provider dates are plain YYYY-MM-DD; store them as aware midnight datetimes."""
    parsed = date_parser.isoparse(value)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(datetime.combine(parsed.date(), time.min))
    return parsed


@dataclass(frozen=True)
class BillingProviderConfig:
    api_key: str = ''
    base_url: str = 'https://api.asaas.com/v3'
    timeout: int = 10
    billing_type: str = 'CREDIT_CARD'
    mode: ProviderMode = ProviderMode.SIMULATED

    @classmethod
    def from_settings(cls):
        api_key = getattr(settings, 'BILLING_PROVIDER_API_KEY', '')
        return cls(
            api_key=api_key,
            base_url=getattr(settings, 'BILLING_PROVIDER_BASE_URL', cls.base_url),
            timeout=getattr(settings, 'BILLING_PROVIDER_TIMEOUT', cls.timeout),
            billing_type=getattr(settings, 'BILLING_TYPE', cls.billing_type),
            mode=ProviderMode.resolve(
                getattr(settings, 'BILLING_PROVIDER_MODE', ''),
                has_credentials=bool(api_key)
            ),
        )


@dataclass(frozen=True)
class ProviderSubscription:
    subscription_id: str
    customer_id: str
    next_due_date: datetime


@dataclass(frozen=True)
class ProviderInvoice:
    invoice_id: str
    value: int
    due_date: datetime
    status: str
    payment_url: str


class BillingProvider:
    """
    Customers, recurring subscriptions and invoices at the billing provider.

    In SIMULATED mode no request leaves the process.
    """

    def __init__(self, config: Optional[BillingProviderConfig] = None, session=None):
        self.config = config or BillingProviderConfig.from_settings()
        self.session = None

        if self.mode is ProviderMode.LIVE:
            if not self.config.api_key:
                raise ImproperlyConfigured('BILLING_PROVIDER_API_KEY is required in live mode')
            self.session = session or requests.Session()
            self.session.headers.update({
                'access_token': self.config.api_key,
                'Content-Type': 'application/json',
            })

    @property
    def mode(self) -> ProviderMode:
        return self.config.mode

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, timeout=self.config.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Billing provider {method} {path} failed: {e}")
            raise ExternalServiceError(f'Billing provider error: {e}', provider=PROVIDER_NAME)

        if not response.content:
            return {}
        return response.json()

    def _to_invoice(self, data: dict) -> ProviderInvoice:
        return ProviderInvoice(
            invoice_id=data['id'],
            value=to_minor_units(data.get('value', 0)),
            due_date=parse_due_date(data['dueDate']),
            status=map_payment_status(data.get('status')),
            payment_url=data.get('invoiceUrl') or '',
        )

    def create_customer(self, name: str, email: str, tax_id: Optional[str] = None,
                        phone: Optional[str] = None) -> str:
        """
        Create a customer at the billing provider.

        Returns:
            Provider customer id
        """
        if self.mode is ProviderMode.SIMULATED:
            logger.warning("Billing provider not configured, returning simulated customer")
            return simulated_id('cus', name, email, tax_id)

        payload = {'name': name, 'email': email}
        if tax_id:
            payload['cpfCnpj'] = tax_id
        if phone:
            payload['mobilePhone'] = phone

        data = self._request('POST', '/customers', json=payload)
        customer_id = data['id']
        logger.info(f"Billing customer created: {customer_id}")
        return customer_id

    def create_subscription(self, customer_id: str, value: int, periodicity: str,
                            description: str, first_due_date: datetime) -> ProviderSubscription:
        """
        Create a recurring subscription whose first invoice is due on first_due_date.

        Args:
            customer_id: Provider customer id
            value: Amount per cycle in minor units
            periodicity: monthly, quarterly, semiannual or annual
            description: Shown on the provider invoices
            first_due_date: Due date of the first invoice
        """
        if periodicity not in CYCLE_MAP:
            raise ValueError(f"Unknown periodicity: {periodicity}")

        if self.mode is ProviderMode.SIMULATED:
            logger.warning("Billing provider not configured, returning simulated subscription")
            return ProviderSubscription(
                subscription_id=simulated_id('sub', customer_id, value, periodicity, first_due_date.isoformat()),
                customer_id=customer_id,
                next_due_date=first_due_date,
            )

        payload = {
            'customer': customer_id,
            'billingType': self.config.billing_type,
            'value': float(to_major_units(value)),
            'cycle': CYCLE_MAP[periodicity],
            'description': description,
            'nextDueDate': first_due_date.date().isoformat(),
        }

        data = self._request('POST', '/subscriptions', json=payload)
        next_due_date = parse_due_date(data['nextDueDate']) if data.get('nextDueDate') else first_due_date

        logger.info(f"Billing subscription created: {data['id']}")

        return ProviderSubscription(
            subscription_id=data['id'],
            customer_id=data.get('customer', customer_id),
            next_due_date=next_due_date,
        )

    def cancel_subscription(self, subscription_id: str) -> None:
        if self.mode is ProviderMode.SIMULATED:
            logger.warning(f"Billing provider not configured, skipping cancellation of {subscription_id}")
            return

        self._request('DELETE', f'/subscriptions/{subscription_id}')
        logger.info(f"Billing subscription {subscription_id} cancelled")

    def get_invoice(self, invoice_id: str) -> ProviderInvoice:
        if self.mode is ProviderMode.SIMULATED:
            return ProviderInvoice(
                invoice_id=invoice_id,
                value=0,
                due_date=timezone.now(),
                status='pending',
                payment_url=f"https://billing.invalid/pay/{invoice_id}",
            )

        return self._to_invoice(self._request('GET', f'/payments/{invoice_id}'))

    def list_invoices(self, subscription_id: str) -> List[ProviderInvoice]:
        """All provider invoices generated for a subscription."""
        if self.mode is ProviderMode.SIMULATED:
            return []

        data = self._request('GET', f'/subscriptions/{subscription_id}/payments')
        return [self._to_invoice(item) for item in data.get('data', [])]


def get_billing_provider() -> BillingProvider:
    return BillingProvider(BillingProviderConfig.from_settings())
