from django.apps import AppConfig


class BillingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'billing'

    def ready(self):
        """Register models with django-auditlog for automatic audit trail."""
        from auditlog.registry import auditlog
        from .models import Invoice, Subscription

        auditlog.register(Subscription, include_fields=['status', 'next_due_date'])
        auditlog.register(Invoice, include_fields=['status', 'paid_at', 'reminder_sent'])
