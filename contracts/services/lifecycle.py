"""
Contract lifecycle orchestration.

Every state-changing operation locks the contract row, validates the transition
against contracts.transitions, calls the external providers and persists the
result in one transaction. Cancel commits per sub-entity so local rows follow
what the providers already did. Client notifications and CRM events go out
after the transaction commits and never undo it.
"""
import logging
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from api.exceptions import (
    DuplicateOperationError,
    InvalidTransitionError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from billing.models import Subscription
from billing.services.billing_provider import get_billing_provider
from clients.models import Client
from crm.services.webhook_forwarder import get_crm_forwarder
from notifications.services.dispatcher import get_notification_dispatcher

from ..models import Contract, LifecycleOperation, Signature
from ..transitions import calculate_operation_key, ensure_transition
from .signature_provider import get_signature_provider

logger = logging.getLogger(__name__)

PERIODICITIES = {choice for choice, _ in Contract.PERIODICITY_CHOICES}
EDITABLE_FIELDS = {'description', 'pdf_url'}


def _validate_url(value, field_name='pdf_url'):
    try:
        URLValidator()(value or '')
    except DjangoValidationError:
        raise ValidationError(f"Invalid {field_name}: {value!r}")


class ContractLifecycleService:
    """
    Orchestrates contracts from draft to active and on to a terminal state.

    Adapters default to the ones built from settings; tests pass mocks.
    """

    def __init__(self, signature_provider=None, billing_provider=None, dispatcher=None, crm_forwarder=None):
        self.signature_provider = signature_provider or get_signature_provider()
        self.billing_provider = billing_provider or get_billing_provider()
        self.dispatcher = dispatcher or get_notification_dispatcher()
        self.crm_forwarder = crm_forwarder or get_crm_forwarder()

    # Lookups

    def _lock_contract(self, contract_id) -> Contract:
        try:
            return Contract.objects.select_for_update().get(pk=contract_id)
        except (Contract.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Contract {contract_id} not found")

    def _get_client(self, client_id) -> Client:
        try:
            return Client.objects.get(pk=client_id)
        except (Client.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Client {client_id} not found")

    def _ensure_unclaimed(self, contract, operation, idempotency_key):
        if not idempotency_key:
            return

        key = calculate_operation_key(operation, contract.pk, idempotency_key)
        if LifecycleOperation.objects.filter(idempotency_key=key).exists():
            raise DuplicateOperationError(
                f"Operation {operation} on contract {contract.pk} was already accepted for this idempotency key"
            )

    def _claim_operation(self, contract, operation, idempotency_key):
        """
        Record a keyed invocation, rejecting a replay of the same key.

        Runs inside the operation's transaction, so a failed operation
        releases its key.
        """
        if not idempotency_key:
            return

        self._ensure_unclaimed(contract, operation, idempotency_key)
        key = calculate_operation_key(operation, contract.pk, idempotency_key)
        try:
            with transaction.atomic():
                LifecycleOperation.objects.create(contract=contract, operation=operation, idempotency_key=key)
        except IntegrityError:
            raise DuplicateOperationError(
                f"Operation {operation} on contract {contract.pk} was already accepted for this idempotency key"
            )

    def _compensate(self, description, func, *args):
        """Undo a provider side effect after a failed write. The original error wins."""
        try:
            func(*args)
            logger.info(f"Compensation succeeded: {description}")
        except ServiceError as e:
            logger.error(f"Compensation failed ({description}): {e}")

    # Operations

    def create_contract(self, client_id, description, value, periodicity, duration_months, start_date=None) -> Contract:
        """
        Create a draft contract.

        Args:
            client_id: Existing client id
            description: Services covered, non-empty
            value: Amount per cycle in minor units, > 0
            periodicity: monthly, quarterly, semiannual or annual
            duration_months: >= 1
            start_date: First due date (default: now)

        Returns:
            Contract in status draft
        """
        description = (description or '').strip()
        if not description:
            raise ValidationError("Description is required")
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError("Value must be a positive integer amount in minor units")
        if isinstance(duration_months, bool) or not isinstance(duration_months, int) or duration_months < 1:
            raise ValidationError("Duration must be at least 1 month")
        if periodicity not in PERIODICITIES:
            raise ValidationError(f"Unknown periodicity: {periodicity}")

        start_date = start_date or timezone.now()
        try:
            end_date = Contract.calculate_end_date(start_date, duration_months)
        except (ValueError, OverflowError):
            raise ValidationError(f"Duration of {duration_months} months ends past the supported date range")

        client = self._get_client(client_id)

        contract = Contract.objects.create(
            client=client,
            description=description,
            value=value,
            periodicity=periodicity,
            duration_months=duration_months,
            start_date=start_date,
            end_date=end_date,
            status='draft',
        )
        logger.info(f"Contract {contract.pk} created for client {client.pk}")
        return contract

    def update_contract(self, contract_id, **fields) -> Contract:
        """Edit description or pdf_url of a draft contract."""
        if 'status' in fields:
            raise ValidationError("Status can only change through lifecycle operations")
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

        if 'description' in fields:
            fields['description'] = (fields['description'] or '').strip()
            if not fields['description']:
                raise ValidationError("Description is required")
        if fields.get('pdf_url'):
            _validate_url(fields['pdf_url'])

        with transaction.atomic():
            contract = self._lock_contract(contract_id)
            if contract.status != 'draft':
                raise InvalidTransitionError(
                    f"Contract {contract.pk} can only be edited while draft (current: {contract.status})"
                )
            for name, value in fields.items():
                setattr(contract, name, value)
            contract.save(update_fields=list(fields) + ['updated_at'])

        return contract

    def send_for_signature(self, contract_id, pdf_url, idempotency_key: Optional[str] = None) -> dict:
        """
        Send a draft contract to the client for signature.

        Returns:
            dict with the pending Signature and the provider sign_url
        """
        _validate_url(pdf_url)

        with transaction.atomic():
            contract = self._lock_contract(contract_id)
            client = self._get_client(contract.client_id)
            self._claim_operation(contract, 'send_for_signature', idempotency_key)
            ensure_transition(contract, 'pending_signature')

            envelope = self.signature_provider.create_envelope(
                pdf_location=pdf_url,
                signer_name=client.name,
                signer_email=client.email,
                signer_tax_id=client.tax_id,
                title=contract.description[:200],
            )

            try:
                signature = Signature.objects.create(
                    contract=contract,
                    external_envelope_id=envelope.envelope_id,
                    external_document_id=envelope.document_id,
                    sign_url=envelope.sign_url or None,
                    status='pending',
                )
                contract.status = 'pending_signature'
                contract.pdf_url = pdf_url
                contract.save(update_fields=['status', 'pdf_url', 'updated_at'])
            except DatabaseError:
                self._compensate(
                    f"cancel envelope {envelope.document_id}",
                    self.signature_provider.cancel_envelope,
                    envelope.document_id
                )
                raise

        logger.info(f"Contract {contract.pk} sent for signature (document {envelope.document_id})")
        return {'signature': signature, 'sign_url': envelope.sign_url}

    def activate(self, contract_id, idempotency_key: Optional[str] = None) -> dict:
        """
        Activate a signed contract and start recurring billing.

        The first invoice is due on the contract start date.

        Returns:
            dict with the updated Contract and its Subscription
        """
        with transaction.atomic():
            contract = self._lock_contract(contract_id)
            client = self._get_client(contract.client_id)
            self._claim_operation(contract, 'activate', idempotency_key)
            ensure_transition(contract, 'active')

            customer_id = self.billing_provider.create_customer(
                name=client.name,
                email=client.email,
                tax_id=client.tax_id,
                phone=client.phone,
            )
            provider_subscription = self.billing_provider.create_subscription(
                customer_id=customer_id,
                value=contract.value,
                periodicity=contract.periodicity,
                description=contract.description,
                first_due_date=contract.start_date,
            )

            try:
                subscription = Subscription.objects.create(
                    contract=contract,
                    external_subscription_id=provider_subscription.subscription_id,
                    external_customer_id=customer_id,
                    status='active',
                    next_due_date=provider_subscription.next_due_date,
                )
                contract.status = 'active'
                contract.save(update_fields=['status', 'updated_at'])

                signature = Signature.objects.filter(contract=contract).first()
                if signature:
                    signature.status = 'signed'
                    signature.signed_at = timezone.now()
                    signature.save(update_fields=['status', 'signed_at', 'updated_at'])
            except DatabaseError:
                self._compensate(
                    f"cancel subscription {provider_subscription.subscription_id}",
                    self.billing_provider.cancel_subscription,
                    provider_subscription.subscription_id
                )
                raise

        logger.info(f"Contract {contract.pk} activated (subscription {subscription.external_subscription_id})")

        self._announce_signed(contract, client, signature)
        return {'contract': contract, 'subscription': subscription}

    def _announce_signed(self, contract, client, signature):
        result = self.dispatcher.send_contract_signed(
            client_name=client.name,
            client_email=client.email,
            contract_description=contract.description,
            pdf_url=contract.pdf_url or '',
        )
        try:
            self.dispatcher.record(
                client=client,
                purpose='confirmation',
                channel='email',
                message=f"Contract #{contract.pk} signed: {contract.description}",
                status='sent' if result['email'] else 'failed',
            )
        except DatabaseError as e:
            logger.error(f"Could not record signed notification for contract {contract.pk}: {e}")

        self.crm_forwarder.send_contract_signed(contract, client, signature)

    def cancel(self, contract_id, reason: Optional[str] = None, idempotency_key: Optional[str] = None) -> Contract:
        """
        Cancel a contract together with its subscription and signature.

        Each provider cancellation commits its own entity as soon as it
        succeeds, so a retry after a later failure skips what the provider
        already cancelled. The contract only becomes cancelled once every
        step has succeeded.
        """
        self._cancel_subscription_step(contract_id, idempotency_key)
        self._cancel_signature_step(contract_id, idempotency_key)

        with transaction.atomic():
            contract = self._lock_contract(contract_id)
            self._claim_operation(contract, 'cancel', idempotency_key)
            ensure_transition(contract, 'cancelled')

            contract.status = 'cancelled'
            contract.save(update_fields=['status', 'updated_at'])

        logger.info(f"Contract {contract.pk} cancelled" + (f": {reason}" if reason else ""))

        self.crm_forwarder.send_contract_cancelled(contract, reason)
        return contract

    def _cancel_subscription_step(self, contract_id, idempotency_key):
        with transaction.atomic():
            contract = self._lock_contract(contract_id)
            self._ensure_unclaimed(contract, 'cancel', idempotency_key)
            ensure_transition(contract, 'cancelled')

            subscription = Subscription.objects.select_for_update().filter(contract=contract).first()
            if not subscription or subscription.status == 'cancelled':
                return

            if subscription.external_subscription_id:
                self.billing_provider.cancel_subscription(subscription.external_subscription_id)
            subscription.status = 'cancelled'
            subscription.save(update_fields=['status', 'updated_at'])

        logger.info(f"Subscription {subscription.pk} of contract {contract_id} cancelled")

    def _cancel_signature_step(self, contract_id, idempotency_key):
        with transaction.atomic():
            contract = self._lock_contract(contract_id)
            self._ensure_unclaimed(contract, 'cancel', idempotency_key)
            ensure_transition(contract, 'cancelled')

            signature = Signature.objects.select_for_update().filter(contract=contract).first()
            if not signature or signature.status == 'cancelled':
                return

            if signature.external_document_id:
                self.signature_provider.cancel_envelope(signature.external_document_id)
            signature.status = 'cancelled'
            signature.save(update_fields=['status', 'updated_at'])

        logger.info(f"Signature {signature.pk} of contract {contract_id} cancelled")

    def expire_contracts(self, now=None) -> int:
        """
        Move every active contract past its end_date to expired.

        The subscription is cancelled at the billing provider. A failure on
        one contract is logged and the sweep continues.

        Returns:
            Number of contracts expired
        """
        now = now or timezone.now()
        contract_ids = list(
            Contract.objects.filter(status='active', end_date__lt=now).values_list('pk', flat=True)
        )

        expired = 0
        for contract_id in contract_ids:
            try:
                with transaction.atomic():
                    contract = self._lock_contract(contract_id)
                    # Re-check under the lock; a concurrent cancel may have won
                    if contract.status != 'active' or contract.end_date >= now:
                        continue
                    ensure_transition(contract, 'expired')

                    subscription = Subscription.objects.select_for_update().filter(contract=contract).first()
                    if subscription and subscription.status == 'active':
                        if subscription.external_subscription_id:
                            self.billing_provider.cancel_subscription(subscription.external_subscription_id)
                        subscription.status = 'cancelled'
                        subscription.save(update_fields=['status', 'updated_at'])

                    contract.status = 'expired'
                    contract.save(update_fields=['status', 'updated_at'])
            except (ServiceError, DatabaseError) as e:
                logger.error(f"Failed to expire contract {contract_id}: {e}")
                continue

            expired += 1
            logger.info(f"Contract {contract_id} expired")

        return expired
