from django.contrib import admin
from .models import WebhookLog


@admin.register(WebhookLog)
class WebhookLogAdmin(admin.ModelAdmin):
    list_display = ['id', 'event', 'status', 'created_at']
    list_filter = ['event', 'status']
    search_fields = ['error', 'response']
    readonly_fields = ['event', 'payload', 'status', 'response', 'error', 'created_at']
    date_hierarchy = 'created_at'
