"""
Tests for the contract status state machine.
"""
from unittest.mock import Mock

from django.test import SimpleTestCase

from api.exceptions import InvalidTransitionError
from contracts.transitions import (
    VALID_TRANSITIONS,
    calculate_operation_key,
    ensure_transition,
    validate_status_transition,
)


class ValidateStatusTransitionTest(SimpleTestCase):

    def test_allowed_transitions(self):
        for current, new in [
            ('draft', 'pending_signature'),
            ('draft', 'cancelled'),
            ('pending_signature', 'active'),
            ('pending_signature', 'cancelled'),
            ('active', 'cancelled'),
            ('active', 'expired'),
        ]:
            is_valid, error = validate_status_transition(current, new)
            self.assertTrue(is_valid, f"{current} -> {new}")
            self.assertIsNone(error)

    def test_rejected_transitions(self):
        for current, new in [
            ('draft', 'active'),
            ('draft', 'expired'),
            ('pending_signature', 'pending_signature'),
            ('active', 'active'),
            ('active', 'pending_signature'),
            ('cancelled', 'active'),
            ('expired', 'active'),
            ('cancelled', 'cancelled'),
        ]:
            is_valid, error = validate_status_transition(current, new)
            self.assertFalse(is_valid, f"{current} -> {new}")
            self.assertIn(current, error)

    def test_terminal_states_have_no_exits(self):
        self.assertEqual(VALID_TRANSITIONS['cancelled'], [])
        self.assertEqual(VALID_TRANSITIONS['expired'], [])

    def test_unknown_status_is_rejected(self):
        is_valid, _ = validate_status_transition('archived', 'active')
        self.assertFalse(is_valid)


class EnsureTransitionTest(SimpleTestCase):

    def test_raises_invalid_transition(self):
        contract = Mock(pk=7, status='draft')
        with self.assertRaises(InvalidTransitionError) as cm:
            ensure_transition(contract, 'active')
        self.assertIn('Contract 7', str(cm.exception))

    def test_allows_valid_transition(self):
        ensure_transition(Mock(pk=7, status='draft'), 'pending_signature')


class OperationKeyTest(SimpleTestCase):

    def test_key_is_scoped_by_operation_and_contract(self):
        key = calculate_operation_key('cancel', 1, 'abc')
        self.assertEqual(len(key), 64)
        self.assertEqual(key, calculate_operation_key('cancel', 1, 'abc'))
        self.assertNotEqual(key, calculate_operation_key('activate', 1, 'abc'))
        self.assertNotEqual(key, calculate_operation_key('cancel', 2, 'abc'))
