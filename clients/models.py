from django.db import models


class Client(models.Model):
    """
    A customer billed through recurring contracts.

    Clients are never deleted; contracts reference them with PROTECT.
    """

    name = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Full name or company name"
    )

    email = models.EmailField(
        max_length=255,
        help_text="Primary email address, used for every notification"
    )

    phone = models.CharField(
        max_length=20,
        blank=True,
        null=True,
        help_text="Phone number in E.164 format, enables SMS and chat notifications"
    )

    tax_id = models.CharField(
        max_length=18,
        blank=True,
        null=True,
        help_text="Tax identifier (CPF/CNPJ) sent to signature and billing providers"
    )

    address = models.TextField(
        blank=True,
        null=True,
        help_text="Full address"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Client"
        verbose_name_plural = "Clients"

    def __str__(self):
        return f"{self.name} <{self.email}>"
