"""
Best-effort forwarding of contract and payment events to the external CRM.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import requests
from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from crm.models import WebhookLog

logger = logging.getLogger(__name__)

USER_AGENT = 'ContractBilling-Webhook/1.0'

SERVICE_KEYWORDS = [
    'Google Ads',
    'Meta Ads',
    'Facebook Ads',
    'Instagram Ads',
    'TikTok Ads',
    'LinkedIn Ads',
    'SEO',
    'Social Media Management',
    'Content Creation',
    'Graphic Design',
    'Web Development',
    'Consulting',
    'Reports',
    'Analytics',
]

DEFAULT_SERVICES = ['General services']


def extract_services(description: str) -> List[str]:
    """Services named in a contract description, matched by keyword (case-insensitive)."""
    lower_description = (description or '').lower()
    found = [keyword for keyword in SERVICE_KEYWORDS if keyword.lower() in lower_description]
    return found or list(DEFAULT_SERVICES)


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class CRMWebhookConfig:
    url: str = ''
    secret: str = ''
    timeout: int = 10

    @classmethod
    def from_settings(cls):
        return cls(
            url=getattr(settings, 'CRM_WEBHOOK_URL', ''),
            secret=getattr(settings, 'CRM_WEBHOOK_SECRET', ''),
            timeout=getattr(settings, 'CRM_WEBHOOK_TIMEOUT', cls.timeout),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.url)


class CRMWebhookForwarder:
    """
    POSTs JSON events to CRM_WEBHOOK_URL.

    Every attempt is recorded in WebhookLog. Delivery failures are logged and
    reported as False; nothing here raises into the calling operation.
    """

    def __init__(self, config: Optional[CRMWebhookConfig] = None, session=None):
        self.config = config or CRMWebhookConfig.from_settings()
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def _headers(self, event: Optional[str] = None) -> dict:
        headers = {
            'Content-Type': 'application/json',
            'X-Webhook-Secret': self.config.secret,
            'User-Agent': USER_AGENT,
        }
        if event:
            headers['X-Webhook-Event'] = event
        return headers

    def _log(self, event, payload, status, response=None, error=None):
        try:
            WebhookLog.objects.create(
                event=event,
                payload=payload,
                status=status,
                response=response,
                error=error,
            )
        except DatabaseError as e:
            logger.error(f"Could not record webhook log for {event}: {e}")

    def _post(self, event: str, payload: dict) -> bool:
        if not self.enabled:
            logger.warning(f"CRM webhook URL not configured, skipping {event}")
            return False

        try:
            response = self.session.post(
                self.config.url,
                json=payload,
                headers=self._headers(event),
                timeout=self.config.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error sending {event} webhook to CRM: {e}")
            self._log(event, payload, 'error', error=str(e))
            return False

        logger.info(f"Webhook {event} delivered to CRM")
        self._log(event, payload, 'success', response=response.text)
        return True

    def send_contract_signed(self, contract, client, signature=None) -> bool:
        """
        Forward a newly signed contract with client, contract and signature sections.
        """
        now = timezone.now()
        payload = {
            'event': 'contract_signed',
            'client': {
                'id': client.pk,
                'name': client.name,
                'email': client.email,
                'phone': client.phone,
                'tax_id': client.tax_id,
            },
            'contract': {
                'id': contract.pk,
                'description': contract.description,
                'value': contract.value,
                'periodicity': contract.periodicity,
                'duration_months': contract.duration_months,
                'start_date': _isoformat(contract.start_date),
                'end_date': _isoformat(contract.end_date),
                'services': extract_services(contract.description),
            },
            'signature': {
                'document_url': contract.pdf_url or '',
                'signed_at': _isoformat(getattr(signature, 'signed_at', None) or now),
                'envelope_id': getattr(signature, 'external_envelope_id', None),
            },
            'timestamp': now.isoformat(),
        }
        return self._post('contract_signed', payload)

    def send_payment_confirmed(self, invoice, client, paid_at) -> bool:
        payload = {
            'event': 'payment_confirmed',
            'invoice_id': invoice.pk,
            'client_id': client.pk,
            'value': invoice.value,
            'paid_at': _isoformat(paid_at),
            'timestamp': timezone.now().isoformat(),
        }
        return self._post('payment_confirmed', payload)

    def send_contract_cancelled(self, contract, reason: Optional[str] = None) -> bool:
        payload = {
            'event': 'contract_cancelled',
            'contract_id': contract.pk,
            'client_id': contract.client_id,
            'reason': reason or 'Not specified',
            'timestamp': timezone.now().isoformat(),
        }
        return self._post('contract_cancelled', payload)

    def test_connection(self) -> bool:
        """GET the webhook URL with the shared secret; True on a 2xx answer."""
        if not self.enabled:
            logger.warning("CRM webhook URL not configured, connection test skipped")
            return False

        try:
            response = self.session.get(
                self.config.url,
                headers=self._headers(),
                timeout=self.config.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Error testing CRM connection: {e}")
            return False

        return response.ok


def get_crm_forwarder() -> CRMWebhookForwarder:
    return CRMWebhookForwarder(CRMWebhookConfig.from_settings())
