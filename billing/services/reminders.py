"""
Invoice reminders, payment confirmation and invoice sync.
"""
import logging
import math
from datetime import timedelta
from typing import List

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from api.exceptions import NotFoundError, ValidationError
from crm.services.webhook_forwarder import get_crm_forwarder
from notifications.services.dispatcher import format_currency, get_notification_dispatcher

from ..models import Invoice, Subscription
from .billing_provider import get_billing_provider

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def days_until(due_date, now) -> int:
    """Whole days until due_date, rounded up: 3 days and 1 minute counts as 4."""
    return math.ceil((due_date - now).total_seconds() / SECONDS_PER_DAY)


class ReminderService:
    """
    Finds invoices due soon, sends reminders and records payments.
    """

    def __init__(self, billing_provider=None, dispatcher=None, crm_forwarder=None):
        self.billing_provider = billing_provider or get_billing_provider()
        self.dispatcher = dispatcher or get_notification_dispatcher()
        self.crm_forwarder = crm_forwarder or get_crm_forwarder()
        self.days_before_due = getattr(settings, 'REMINDER_DAYS_BEFORE_DUE', 4)

    def _lock_invoice(self, invoice_id) -> Invoice:
        try:
            return Invoice.objects.select_for_update().get(pk=invoice_id)
        except (Invoice.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Invoice {invoice_id} not found")

    def _resolve_client(self, invoice):
        """Invoice -> Subscription -> Contract -> Client."""
        try:
            subscription = invoice.subscription
        except Subscription.DoesNotExist:
            raise NotFoundError(f"Subscription for invoice {invoice.pk} not found")

        from contracts.models import Contract
        try:
            contract = subscription.contract
        except Contract.DoesNotExist:
            raise NotFoundError(f"Contract for subscription {subscription.pk} not found")

        from clients.models import Client
        try:
            return contract.client
        except Client.DoesNotExist:
            raise NotFoundError(f"Client for contract {contract.pk} not found")

    def get_pending_reminders(self, now=None) -> List[Invoice]:
        """
        Pending invoices due in exactly REMINDER_DAYS_BEFORE_DUE days (rounded up)
        that have not been reminded yet.
        """
        now = now or timezone.now()
        window_start = now + timedelta(days=self.days_before_due - 1)
        window_end = now + timedelta(days=self.days_before_due)

        candidates = Invoice.objects.filter(
            status='pending',
            reminder_sent=False,
            due_date__gt=window_start,
            due_date__lte=window_end,
        )
        return [
            invoice for invoice in candidates
            if days_until(invoice.due_date, now) == self.days_before_due
        ]

    def send_reminder(self, invoice_id) -> dict:
        """
        Send the payment reminder for one invoice.

        An invoice that was already reminded is left alone and reported with
        already_sent=True, so repeated calls notify the client once.

        Returns:
            dict with success, already_sent and per-channel results
        """
        with transaction.atomic():
            invoice = self._lock_invoice(invoice_id)

            if invoice.reminder_sent:
                logger.info(f"Reminder for invoice {invoice.pk} already sent, skipping")
                return {'success': True, 'already_sent': True, 'channels': {}}

            if invoice.status in ('paid', 'cancelled'):
                raise ValidationError(f"Invoice {invoice.pk} is {invoice.status}, no reminder needed")

            client = self._resolve_client(invoice)

            payment_url = '#'
            if invoice.external_invoice_id:
                payment_url = self.billing_provider.get_invoice(invoice.external_invoice_id).payment_url or '#'

            # Committed before any message goes out so a later failure can not re-send
            invoice.reminder_sent = True
            invoice.save(update_fields=['reminder_sent', 'updated_at'])

        result = self.dispatcher.send_reminder(
            client_name=client.name,
            client_email=client.email,
            client_phone=client.phone,
            value=invoice.value,
            due_date=invoice.due_date,
            payment_url=payment_url,
        )

        try:
            self.dispatcher.record(
                client=client,
                invoice=invoice,
                purpose='reminder',
                channel='email',
                message=f"Payment reminder sent for {format_currency(invoice.value)}",
                status='sent' if result['email'] else 'failed',
            )
        except DatabaseError as e:
            logger.error(f"Could not record reminder for invoice {invoice.pk}: {e}")

        logger.info(f"Reminder sent for invoice {invoice.pk}")
        return {'success': True, 'already_sent': False, 'channels': dict(result.channels)}

    def mark_as_paid(self, invoice_id) -> Invoice:
        """
        Record payment of an invoice and confirm it to the client and the CRM.

        Marking an already paid invoice is a no-op.
        """
        with transaction.atomic():
            invoice = self._lock_invoice(invoice_id)

            if invoice.status == 'cancelled':
                raise ValidationError(f"Invoice {invoice.pk} is cancelled and can not be paid")
            if invoice.status == 'paid':
                logger.info(f"Invoice {invoice.pk} already paid")
                return invoice

            client = self._resolve_client(invoice)

            invoice.status = 'paid'
            invoice.paid_at = timezone.now()
            invoice.save(update_fields=['status', 'paid_at', 'updated_at'])

        logger.info(f"Invoice {invoice.pk} marked as paid")

        result = self.dispatcher.send_confirmation(
            client_name=client.name,
            client_email=client.email,
            client_phone=client.phone,
            value=invoice.value,
            paid_at=invoice.paid_at,
        )
        try:
            self.dispatcher.record(
                client=client,
                invoice=invoice,
                purpose='confirmation',
                channel='email',
                message=f"Payment of {format_currency(invoice.value)} confirmed",
                status='sent' if result['email'] else 'failed',
            )
        except DatabaseError as e:
            logger.error(f"Could not record payment confirmation for invoice {invoice.pk}: {e}")

        self.crm_forwarder.send_payment_confirmed(invoice, client, invoice.paid_at)
        return invoice

    def sync_invoices(self, subscription_id) -> int:
        """
        Pull the provider's invoices for a subscription into local Invoice rows.

        Rows are matched by external_invoice_id. A locally paid invoice keeps
        its paid status.

        Returns:
            Number of invoices created
        """
        try:
            subscription = Subscription.objects.get(pk=subscription_id)
        except (Subscription.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Subscription {subscription_id} not found")

        if not subscription.external_subscription_id:
            logger.warning(f"Subscription {subscription.pk} has no provider id, nothing to sync")
            return 0

        provider_invoices = self.billing_provider.list_invoices(subscription.external_subscription_id)

        created_count = 0
        with transaction.atomic():
            for provider_invoice in provider_invoices:
                invoice, created = Invoice.objects.select_for_update().get_or_create(
                    external_invoice_id=provider_invoice.invoice_id,
                    defaults={
                        'subscription': subscription,
                        'value': provider_invoice.value,
                        'due_date': provider_invoice.due_date,
                        'status': provider_invoice.status,
                    }
                )
                if created:
                    created_count += 1
                    continue

                invoice.value = provider_invoice.value
                invoice.due_date = provider_invoice.due_date
                if invoice.status != 'paid':
                    invoice.status = provider_invoice.status
                invoice.save(update_fields=['value', 'due_date', 'status', 'updated_at'])

        logger.info(
            f"Synced {len(provider_invoices)} invoices for subscription {subscription.pk} "
            f"({created_count} new)"
        )
        return created_count
