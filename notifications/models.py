from django.db import models


class Notification(models.Model):
    """
    Audit log of messages sent to clients.

    Rows are appended by the lifecycle and reminder services and never
    modified afterwards.
    """

    CHANNEL_CHOICES = [
        ('email', 'Email'),
        ('sms', 'SMS'),
        ('chat', 'Chat'),
    ]

    PURPOSE_CHOICES = [
        ('reminder', 'Payment Reminder'),
        ('confirmation', 'Confirmation'),
        ('alert', 'Alert'),
    ]

    STATUS_CHOICES = [
        ('sent', 'Sent'),
        ('failed', 'Failed'),
    ]

    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.PROTECT,
        related_name='notifications',
        help_text="Client who received this notification",
        db_index=True
    )
    invoice = models.ForeignKey(
        'billing.Invoice',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='notifications',
        help_text="Invoice this notification refers to, if any"
    )

    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES, default='email')
    purpose = models.CharField(max_length=20, choices=PURPOSE_CHOICES, db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='sent')

    message = models.TextField(help_text="Notification message text")
    sent_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['client', 'purpose'], name='notif_client_purpose_idx'),
        ]

    def __str__(self):
        return f"{self.purpose} via {self.channel} to {self.client.email} ({self.status})"
