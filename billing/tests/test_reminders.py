"""
Tests for invoice reminders, payment confirmation and invoice sync.
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import Mock

from django.core import mail
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from api.exceptions import ExternalServiceError, NotFoundError, ValidationError
from billing.models import Invoice, Subscription
from billing.services.billing_provider import BillingProvider, BillingProviderConfig, ProviderInvoice
from billing.services.reminders import ReminderService, days_until
from billing.tasks import send_due_reminders, sync_all_invoices
from clients.models import Client
from contracts.models import Contract
from notifications.models import Notification
from notifications.services.dispatcher import DispatchResult, NotificationConfig, NotificationDispatcher

NOW = datetime(2026, 5, 1, 9, 0, tzinfo=dt_timezone.utc)


def build_service(**overrides):
    adapters = {
        'billing_provider': BillingProvider(BillingProviderConfig()),
        'dispatcher': NotificationDispatcher(NotificationConfig()),
        'crm_forwarder': Mock(),
    }
    adapters.update(overrides)
    return ReminderService(**adapters)


class ReminderTestCase(TestCase):

    def setUp(self):
        self.client_obj = Client.objects.create(name='Ana', email='ana@example.com')
        self.contract = Contract.objects.create(
            client=self.client_obj,
            description='SEO',
            value=100000,
            periodicity='monthly',
            duration_months=12,
            start_date=NOW,
            end_date=Contract.calculate_end_date(NOW, 12),
            status='active',
        )
        self.subscription = Subscription.objects.create(
            contract=self.contract,
            external_subscription_id='sub_1',
            status='active',
            next_due_date=NOW,
        )
        self.service = build_service()

    def create_invoice(self, due_in, **kwargs):
        params = {
            'subscription': self.subscription,
            'value': 100000,
            'due_date': NOW + due_in,
            'status': 'pending',
        }
        params.update(kwargs)
        return Invoice.objects.create(**params)


class DaysUntilTest(TestCase):

    def test_rounds_up_partial_days(self):
        self.assertEqual(days_until(NOW + timedelta(days=3, minutes=1), NOW), 4)
        self.assertEqual(days_until(NOW + timedelta(days=4), NOW), 4)
        self.assertEqual(days_until(NOW + timedelta(days=4, minutes=1), NOW), 5)


class GetPendingRemindersTest(ReminderTestCase):

    def test_returns_only_invoice_due_in_four_days(self):
        due_in_four = self.create_invoice(timedelta(days=4))
        self.create_invoice(timedelta(days=2))
        self.create_invoice(timedelta(days=7))

        self.assertEqual(self.service.get_pending_reminders(now=NOW), [due_in_four])

    def test_excludes_already_reminded(self):
        self.create_invoice(timedelta(days=4), reminder_sent=True)
        self.assertEqual(self.service.get_pending_reminders(now=NOW), [])

    def test_excludes_non_pending(self):
        self.create_invoice(timedelta(days=4), status='paid')
        self.create_invoice(timedelta(days=3, hours=12), status='overdue')
        self.assertEqual(self.service.get_pending_reminders(now=NOW), [])

    def test_partial_day_counts_as_four(self):
        invoice = self.create_invoice(timedelta(days=3, hours=6))
        self.assertEqual(self.service.get_pending_reminders(now=NOW), [invoice])


class SendReminderTest(ReminderTestCase):

    def test_send_reminder_marks_invoice_and_records_notification(self):
        invoice = self.create_invoice(timedelta(days=4))

        result = self.service.send_reminder(invoice.pk)

        invoice.refresh_from_db()
        self.assertTrue(invoice.reminder_sent)
        self.assertFalse(result['already_sent'])
        self.assertTrue(result['channels']['email'])
        notification = Notification.objects.get(invoice=invoice)
        self.assertEqual(notification.purpose, 'reminder')
        self.assertEqual(notification.channel, 'email')
        self.assertEqual(notification.status, 'sent')

    def test_second_call_is_a_no_op(self):
        invoice = self.create_invoice(timedelta(days=4))

        self.service.send_reminder(invoice.pk)
        result = self.service.send_reminder(invoice.pk)

        self.assertTrue(result['already_sent'])
        invoice.refresh_from_db()
        self.assertTrue(invoice.reminder_sent)
        self.assertEqual(Notification.objects.filter(invoice=invoice).count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_payment_url_defaults_to_hash_without_provider_invoice(self):
        dispatcher = Mock()
        dispatcher.send_reminder.return_value = DispatchResult({'email': True})
        service = build_service(dispatcher=dispatcher)
        invoice = self.create_invoice(timedelta(days=4))

        service.send_reminder(invoice.pk)

        self.assertEqual(dispatcher.send_reminder.call_args.kwargs['payment_url'], '#')

    def test_payment_url_comes_from_billing_provider(self):
        billing_provider = Mock()
        billing_provider.get_invoice.return_value = ProviderInvoice(
            'pay_1', 100000, NOW, 'pending', 'https://billing.test/i/pay_1'
        )
        service = build_service(billing_provider=billing_provider)
        invoice = self.create_invoice(timedelta(days=4), external_invoice_id='pay_1')

        service.send_reminder(invoice.pk)

        billing_provider.get_invoice.assert_called_once_with('pay_1')
        self.assertIn('https://billing.test/i/pay_1', mail.outbox[0].body)

    def test_provider_failure_leaves_invoice_unreminded(self):
        billing_provider = Mock()
        billing_provider.get_invoice.side_effect = ExternalServiceError('timeout', provider='billing')
        service = build_service(billing_provider=billing_provider)
        invoice = self.create_invoice(timedelta(days=4), external_invoice_id='pay_1')

        with self.assertRaises(ExternalServiceError):
            service.send_reminder(invoice.pk)

        invoice.refresh_from_db()
        self.assertFalse(invoice.reminder_sent)
        self.assertFalse(Notification.objects.exists())

    def test_record_failure_keeps_invoice_reminded(self):
        dispatcher = Mock()
        dispatcher.send_reminder.return_value = DispatchResult({'email': True})
        dispatcher.record.side_effect = DatabaseError('disk full')
        service = build_service(dispatcher=dispatcher)
        invoice = self.create_invoice(timedelta(days=4))

        result = service.send_reminder(invoice.pk)
        second = service.send_reminder(invoice.pk)

        self.assertTrue(result['success'])
        self.assertTrue(second['already_sent'])
        invoice.refresh_from_db()
        self.assertTrue(invoice.reminder_sent)
        dispatcher.send_reminder.assert_called_once()

    def test_unknown_invoice(self):
        with self.assertRaises(NotFoundError):
            self.service.send_reminder(99999)

    def test_paid_invoice_is_rejected(self):
        invoice = self.create_invoice(timedelta(days=4), status='paid')
        with self.assertRaises(ValidationError):
            self.service.send_reminder(invoice.pk)


class MarkAsPaidTest(ReminderTestCase):

    def test_mark_as_paid_confirms_payment(self):
        invoice = self.create_invoice(timedelta(days=4))

        result = self.service.mark_as_paid(invoice.pk)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, 'paid')
        self.assertIsNotNone(invoice.paid_at)
        self.assertEqual(result.pk, invoice.pk)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(Notification.objects.get(invoice=invoice).purpose, 'confirmation')
        self.service.crm_forwarder.send_payment_confirmed.assert_called_once()

    def test_already_paid_is_a_no_op(self):
        invoice = self.create_invoice(timedelta(days=4))
        self.service.mark_as_paid(invoice.pk)
        paid_at = Invoice.objects.get(pk=invoice.pk).paid_at

        self.service.mark_as_paid(invoice.pk)

        self.assertEqual(Invoice.objects.get(pk=invoice.pk).paid_at, paid_at)
        self.assertEqual(Notification.objects.filter(invoice=invoice).count(), 1)

    def test_cancelled_invoice_can_not_be_paid(self):
        invoice = self.create_invoice(timedelta(days=4), status='cancelled')

        with self.assertRaises(ValidationError):
            self.service.mark_as_paid(invoice.pk)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, 'cancelled')


class SyncInvoicesTest(ReminderTestCase):

    def test_sync_creates_and_updates_invoices(self):
        existing = self.create_invoice(timedelta(days=4), external_invoice_id='pay_1')
        billing_provider = Mock()
        billing_provider.list_invoices.return_value = [
            ProviderInvoice('pay_1', 120000, NOW + timedelta(days=4), 'overdue', ''),
            ProviderInvoice('pay_2', 100000, NOW + timedelta(days=34), 'pending', ''),
        ]
        service = build_service(billing_provider=billing_provider)

        created = service.sync_invoices(self.subscription.pk)

        self.assertEqual(created, 1)
        billing_provider.list_invoices.assert_called_once_with('sub_1')
        existing.refresh_from_db()
        self.assertEqual(existing.value, 120000)
        self.assertEqual(existing.status, 'overdue')
        self.assertTrue(Invoice.objects.filter(external_invoice_id='pay_2', subscription=self.subscription).exists())

    def test_sync_keeps_local_paid_status(self):
        paid = self.create_invoice(timedelta(days=4), external_invoice_id='pay_1', status='paid')
        billing_provider = Mock()
        billing_provider.list_invoices.return_value = [
            ProviderInvoice('pay_1', 100000, NOW + timedelta(days=4), 'pending', ''),
        ]

        build_service(billing_provider=billing_provider).sync_invoices(self.subscription.pk)

        paid.refresh_from_db()
        self.assertEqual(paid.status, 'paid')

    def test_unknown_subscription(self):
        with self.assertRaises(NotFoundError):
            self.service.sync_invoices(99999)


class ReminderTasksTest(ReminderTestCase):

    def test_send_due_reminders_task(self):
        now = timezone.now()
        invoice = self.create_invoice(timedelta(), due_date=now + timedelta(days=3, hours=23))
        self.create_invoice(timedelta(), due_date=now + timedelta(days=10))

        result = send_due_reminders()

        self.assertEqual(result, {'sent': 1, 'skipped': 0, 'failed': 0})
        invoice.refresh_from_db()
        self.assertTrue(invoice.reminder_sent)

    def test_sync_all_invoices_task_in_simulated_mode(self):
        result = sync_all_invoices()
        self.assertEqual(result, {'synced': 1, 'created': 0, 'failed': 0})
