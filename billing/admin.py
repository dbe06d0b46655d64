from django.contrib import admin
from .models import Invoice, Subscription


class InvoiceInline(admin.TabularInline):
    model = Invoice
    extra = 0
    fields = ['external_invoice_id', 'value', 'due_date', 'status', 'paid_at', 'reminder_sent']
    readonly_fields = fields
    can_delete = False


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ['id', 'contract', 'external_subscription_id', 'status', 'next_due_date']
    list_filter = ['status']
    search_fields = ['external_subscription_id', 'external_customer_id', 'contract__client__name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [InvoiceInline]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['id', 'subscription', 'value', 'due_date', 'status', 'reminder_sent', 'paid_at']
    list_filter = ['status', 'reminder_sent']
    search_fields = ['external_invoice_id', 'subscription__contract__client__email']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'due_date'
