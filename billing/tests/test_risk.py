"""
Tests for the late-payment risk analysis.
"""
from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from api.exceptions import NotFoundError
from billing.models import Invoice, Subscription
from billing.services.risk import PaymentRecord, analyze_client_risk, analyze_payment_history
from clients.models import Client
from contracts.models import Contract

User = get_user_model()

DUE = datetime(2026, 1, 10, 12, 0, tzinfo=dt_timezone.utc)
NOW = datetime(2026, 6, 1, 12, 0, tzinfo=dt_timezone.utc)


def on_time():
    return PaymentRecord(DUE, DUE - timedelta(days=1))


def late():
    return PaymentRecord(DUE, DUE + timedelta(days=3))


def unpaid():
    return PaymentRecord(DUE)


class AnalyzePaymentHistoryTest(SimpleTestCase):

    def test_empty_history_is_low_risk(self):
        analysis = analyze_payment_history([])

        self.assertEqual(analysis.risk, 'low')
        self.assertEqual(analysis.score, 100)
        self.assertEqual(analysis.total, 0)

    def test_mostly_unpaid_is_high_risk(self):
        analysis = analyze_payment_history([unpaid(), unpaid(), on_time(), on_time()])

        self.assertEqual((analysis.risk, analysis.score), ('high', 30))
        self.assertEqual(analysis.unpaid, 2)
        self.assertEqual(analysis.reasons, ['50% of invoices unpaid'])

    def test_frequent_late_payments_are_medium_risk(self):
        analysis = analyze_payment_history([late(), late(), on_time(), on_time(), on_time()])

        self.assertEqual((analysis.risk, analysis.score), ('medium', 60))
        self.assertEqual(analysis.late, 2)
        self.assertEqual(analysis.reasons, ['40% of payments late'])

    def test_some_unpaid_is_medium_risk(self):
        history = [unpaid()] + [on_time()] * 6
        analysis = analyze_payment_history(history)

        self.assertEqual(analysis.risk, 'medium')
        self.assertEqual(analysis.reasons, ['14% of invoices unpaid'])

    def test_occasional_late_payment_is_low_risk(self):
        analysis = analyze_payment_history([late()] + [on_time()] * 9)

        self.assertEqual((analysis.risk, analysis.score), ('low', 100))
        self.assertEqual(analysis.reasons, ['Positive payment history', 'Only 10% of payments late'])


class ClientRiskTest(TestCase):

    def setUp(self):
        self.client_obj = Client.objects.create(name='Ana', email='ana@example.com')
        contract = Contract.objects.create(
            client=self.client_obj,
            description='SEO',
            value=100000,
            periodicity='monthly',
            duration_months=12,
            start_date=DUE,
            end_date=Contract.calculate_end_date(DUE, 12),
            status='active',
        )
        self.subscription = Subscription.objects.create(contract=contract, status='active')

    def create_invoice(self, due_date, paid_at=None, status='pending'):
        return Invoice.objects.create(
            subscription=self.subscription,
            value=100000,
            due_date=due_date,
            paid_at=paid_at,
            status='paid' if paid_at else status,
        )

    def test_counts_only_due_and_not_cancelled_invoices(self):
        self.create_invoice(DUE, paid_at=DUE + timedelta(days=5))
        self.create_invoice(DUE + timedelta(days=31), paid_at=DUE + timedelta(days=30))
        self.create_invoice(DUE + timedelta(days=59), status='cancelled')
        self.create_invoice(NOW + timedelta(days=10))

        analysis = analyze_client_risk(self.client_obj.pk, now=NOW)

        self.assertEqual(analysis.total, 2)
        self.assertEqual(analysis.late, 1)
        self.assertEqual(analysis.unpaid, 0)
        self.assertEqual(analysis.risk, 'medium')

    def test_unknown_client(self):
        with self.assertRaises(NotFoundError):
            analyze_client_risk(99999)

    def test_payment_risk_endpoint(self):
        api = APIClient()
        api.force_authenticate(user=User.objects.create_user(username='staff', password='testpass123'))
        self.create_invoice(DUE)

        response = api.get(f'/api/v1/clients/{self.client_obj.pk}/payment_risk/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['risk'], 'high')
        self.assertEqual(response.data['unpaid'], 1)

        response = api.get('/api/v1/clients/99999/payment_risk/')
        self.assertEqual(response.status_code, 404)
