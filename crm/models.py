from django.db import models


class WebhookLog(models.Model):
    """
    Append-only record of every webhook delivery attempt to the CRM.
    """

    EVENT_CHOICES = [
        ('contract_signed', 'Contract Signed'),
        ('payment_confirmed', 'Payment Confirmed'),
        ('contract_cancelled', 'Contract Cancelled'),
    ]

    STATUS_CHOICES = [
        ('success', 'Success'),
        ('error', 'Error'),
    ]

    event = models.CharField(max_length=50, choices=EVENT_CHOICES, db_index=True)
    payload = models.JSONField(default=dict, blank=True, help_text="Body sent (or a reference to it on error)")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, db_index=True)
    response = models.TextField(blank=True, null=True, help_text="Response body on success")
    error = models.TextField(blank=True, null=True, help_text="Error message on failure")

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.event} ({self.status}) at {self.created_at}"
