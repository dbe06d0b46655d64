from django.db import models


class Subscription(models.Model):
    """
    Recurring billing subscription at the billing provider.

    Created when its contract becomes active; one per contract.
    """
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('cancelled', 'Cancelled'),
        ('suspended', 'Suspended'),
    ]

    contract = models.OneToOneField(
        'contracts.Contract',
        on_delete=models.PROTECT,
        related_name='subscription'
    )

    # Billing provider data
    external_subscription_id = models.CharField(max_length=255, blank=True, null=True, db_index=True)
    external_customer_id = models.CharField(max_length=255, blank=True, null=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    next_due_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Subscription for contract #{self.contract_id} ({self.status})"


class Invoice(models.Model):
    """
    One billing cycle of a subscription.

    reminder_sent flips from False to True once per due cycle.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('overdue', 'Overdue'),
        ('cancelled', 'Cancelled'),
    ]

    subscription = models.ForeignKey(
        Subscription,
        on_delete=models.PROTECT,
        related_name='invoices'
    )

    external_invoice_id = models.CharField(
        max_length=255,
        unique=True,
        blank=True,
        null=True,
        help_text="Provider payment identifier"
    )

    value = models.PositiveBigIntegerField(help_text="Amount in minor currency units (cents)")
    due_date = models.DateTimeField(db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    reminder_sent = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['due_date']
        indexes = [
            models.Index(fields=['status', 'reminder_sent'], name='invoice_status_reminder_idx'),
        ]

    def __str__(self):
        return f"Invoice #{self.pk} - {self.value} due {self.due_date:%Y-%m-%d} ({self.status})"
