"""
Tests for the billing provider adapter.
"""
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import Mock

import requests
from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, override_settings

from api.exceptions import ExternalServiceError
from api.providers import ProviderMode
from billing.services.billing_provider import (
    BillingProvider,
    BillingProviderConfig,
    get_billing_provider,
    map_payment_status,
    to_major_units,
    to_minor_units,
)

FIRST_DUE = datetime(2026, 3, 10, 12, 0, tzinfo=dt_timezone.utc)


def json_response(data, status_code=200):
    response = Mock(status_code=status_code, content=b'{}')
    response.json.return_value = data
    response.raise_for_status.return_value = None
    return response


class ConversionTest(SimpleTestCase):

    def test_minor_to_major_units(self):
        self.assertEqual(to_major_units(100000), Decimal('1000.00'))
        self.assertEqual(to_major_units(1), Decimal('0.01'))

    def test_major_to_minor_units(self):
        self.assertEqual(to_minor_units(1000.0), 100000)
        self.assertEqual(to_minor_units('19.99'), 1999)

    def test_payment_status_mapping(self):
        self.assertEqual(map_payment_status('PENDING'), 'pending')
        self.assertEqual(map_payment_status('RECEIVED'), 'paid')
        self.assertEqual(map_payment_status('CONFIRMED'), 'paid')
        self.assertEqual(map_payment_status('RECEIVED_IN_CASH'), 'paid')
        self.assertEqual(map_payment_status('OVERDUE'), 'overdue')
        self.assertEqual(map_payment_status('REFUNDED'), 'cancelled')
        self.assertEqual(map_payment_status(None), 'cancelled')


class SimulatedBillingProviderTest(SimpleTestCase):

    def setUp(self):
        self.provider = BillingProvider(BillingProviderConfig())

    @override_settings(BILLING_PROVIDER_API_KEY='', BILLING_PROVIDER_MODE='')
    def test_factory_is_simulated_without_api_key(self):
        self.assertIs(get_billing_provider().mode, ProviderMode.SIMULATED)

    def test_subscription_next_due_date_is_first_due_date(self):
        customer_id = self.provider.create_customer('Ana', 'ana@example.com')
        subscription = self.provider.create_subscription(customer_id, 100000, 'monthly', 'SEO', FIRST_DUE)

        self.assertTrue(customer_id.startswith('sim_cus_'))
        self.assertTrue(subscription.subscription_id.startswith('sim_sub_'))
        self.assertEqual(subscription.customer_id, customer_id)
        self.assertEqual(subscription.next_due_date, FIRST_DUE)

    def test_unknown_periodicity(self):
        with self.assertRaises(ValueError):
            self.provider.create_subscription('cus_1', 100, 'weekly', 'SEO', FIRST_DUE)

    def test_invoices(self):
        self.assertEqual(self.provider.list_invoices('sub_1'), [])
        self.assertEqual(self.provider.get_invoice('pay_1').status, 'pending')


class LiveBillingProviderTest(SimpleTestCase):

    def setUp(self):
        self.session = Mock(headers={})
        config = BillingProviderConfig(
            api_key='token',
            base_url='https://billing.test/v3',
            timeout=7,
            mode=ProviderMode.LIVE,
        )
        self.provider = BillingProvider(config, session=self.session)

    def test_live_mode_requires_api_key(self):
        with self.assertRaises(ImproperlyConfigured):
            BillingProvider(BillingProviderConfig(mode=ProviderMode.LIVE))

    def test_session_carries_access_token(self):
        self.assertEqual(self.session.headers['access_token'], 'token')

    def test_create_customer(self):
        self.session.request.return_value = json_response({'id': 'cus_1'})

        customer_id = self.provider.create_customer('Ana', 'ana@example.com', tax_id='12345678900')

        self.assertEqual(customer_id, 'cus_1')
        method, url = self.session.request.call_args.args
        self.assertEqual((method, url), ('POST', 'https://billing.test/v3/customers'))
        self.assertEqual(self.session.request.call_args.kwargs['timeout'], 7)
        self.assertEqual(self.session.request.call_args.kwargs['json']['cpfCnpj'], '12345678900')

    def test_create_subscription_maps_cycle_and_value(self):
        self.session.request.return_value = json_response({
            'id': 'sub_1', 'customer': 'cus_1', 'nextDueDate': '2026-03-10',
        })

        subscription = self.provider.create_subscription('cus_1', 100000, 'semiannual', 'SEO', FIRST_DUE)

        payload = self.session.request.call_args.kwargs['json']
        self.assertEqual(payload['cycle'], 'SEMIANNUALLY')
        self.assertEqual(payload['value'], 1000.0)
        self.assertEqual(payload['nextDueDate'], '2026-03-10')
        self.assertEqual(subscription.subscription_id, 'sub_1')
        self.assertEqual(subscription.next_due_date.date(), FIRST_DUE.date())

    def test_cancel_subscription(self):
        self.session.request.return_value = json_response({'deleted': True})

        self.provider.cancel_subscription('sub_1')

        self.session.request.assert_called_once()
        method, url = self.session.request.call_args.args
        self.assertEqual((method, url), ('DELETE', 'https://billing.test/v3/subscriptions/sub_1'))

    def test_list_invoices(self):
        self.session.request.return_value = json_response({'data': [
            {'id': 'pay_1', 'value': 1000.0, 'dueDate': '2026-03-10', 'status': 'RECEIVED',
             'invoiceUrl': 'https://billing.test/i/pay_1'},
            {'id': 'pay_2', 'value': 1000.0, 'dueDate': '2026-04-10', 'status': 'PENDING'},
        ]})

        invoices = self.provider.list_invoices('sub_1')

        self.assertEqual([invoice.invoice_id for invoice in invoices], ['pay_1', 'pay_2'])
        self.assertEqual(invoices[0].value, 100000)
        self.assertEqual(invoices[0].status, 'paid')
        self.assertEqual(invoices[0].payment_url, 'https://billing.test/i/pay_1')
        self.assertEqual(invoices[1].status, 'pending')

    def test_http_error_becomes_external_service_error(self):
        response = json_response({})
        response.raise_for_status.side_effect = requests.HTTPError('400 Client Error')
        self.session.request.return_value = response

        with self.assertRaises(ExternalServiceError) as cm:
            self.provider.get_invoice('pay_1')
        self.assertEqual(cm.exception.provider, 'billing')

    def test_network_error_becomes_external_service_error(self):
        self.session.request.side_effect = requests.ConnectionError('refused')

        with self.assertRaises(ExternalServiceError):
            self.provider.cancel_subscription('sub_1')
