from dateutil.relativedelta import relativedelta
from django.core.validators import MinValueValidator
from django.db import models

from clients.models import Client


class Contract(models.Model):
    """
    Recurring service contract between the company and a client.

    Moves through draft -> pending_signature -> active and ends cancelled or
    expired. Status changes go through contracts.services.lifecycle only.
    """
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending_signature', 'Pending Signature'),
        ('active', 'Active'),
        ('cancelled', 'Cancelled'),
        ('expired', 'Expired'),
    ]

    PERIODICITY_CHOICES = [
        ('monthly', 'Monthly'),
        ('quarterly', 'Quarterly'),
        ('semiannual', 'Semiannual'),
        ('annual', 'Annual'),
    ]

    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        related_name='contracts'
    )

    description = models.TextField(help_text="Description of the contracted services")

    # Financial terms
    value = models.PositiveBigIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Value per billing cycle in minor currency units (cents)"
    )
    periodicity = models.CharField(max_length=20, choices=PERIODICITY_CHOICES)

    # Contract term
    duration_months = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Contract duration in months"
    )
    start_date = models.DateTimeField(help_text="Contract start, also the first billing due date")
    end_date = models.DateTimeField(help_text="start_date + duration_months")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)

    pdf_url = models.URLField(
        max_length=500,
        blank=True,
        null=True,
        help_text="Location of the PDF sent for signature"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['client', 'status'], name='contract_client_status_idx'),
            models.Index(fields=['status', 'end_date'], name='contract_status_end_idx'),
        ]

    def __str__(self):
        return f"Contract #{self.pk} - {self.client.name} ({self.status})"

    @staticmethod
    def calculate_end_date(start_date, duration_months):
        """Calendar-month arithmetic: Jan 31 + 1 month is Feb 28/29."""
        return start_date + relativedelta(months=duration_months)


class Signature(models.Model):
    """
    E-signature envelope for a contract.

    Created when the contract is sent for signature; one per contract.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('signed', 'Signed'),
        ('cancelled', 'Cancelled'),
    ]

    contract = models.OneToOneField(Contract, on_delete=models.PROTECT, related_name='signature')

    # Signature provider data
    external_envelope_id = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        help_text="Provider envelope / signer identifier"
    )
    external_document_id = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        db_index=True,
        help_text="Provider document / signature request identifier"
    )
    sign_url = models.URLField(max_length=500, blank=True, null=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    signed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Signature for contract #{self.contract_id} ({self.status})"


class LifecycleOperation(models.Model):
    """
    Accepted lifecycle invocations that carried an idempotency key.

    A replay of the same key for the same operation and contract is rejected.
    """
    OPERATION_CHOICES = [
        ('send_for_signature', 'Send for signature'),
        ('activate', 'Activate'),
        ('cancel', 'Cancel'),
    ]

    contract = models.ForeignKey(Contract, on_delete=models.CASCADE, related_name='operations')
    operation = models.CharField(max_length=30, choices=OPERATION_CHOICES)
    idempotency_key = models.CharField(
        max_length=64,
        unique=True,
        help_text="SHA256 of operation, contract and client-supplied key"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.operation} on contract #{self.contract_id}"
