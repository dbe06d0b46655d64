from django.apps import AppConfig


class ContractsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'contracts'

    def ready(self):
        """Register models with django-auditlog for automatic audit trail."""
        from auditlog.registry import auditlog
        from .models import Contract, Signature

        # Register Contract with specific fields to track
        auditlog.register(
            Contract,
            include_fields=['status', 'pdf_url', 'description']
        )

        # Register Signature with specific fields to track
        auditlog.register(
            Signature,
            include_fields=['status', 'signed_at']
        )
