from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['id', 'client', 'purpose', 'channel', 'status', 'message_preview', 'sent_at']
    list_filter = ['purpose', 'channel', 'status', 'created_at']
    search_fields = ['client__email', 'client__name', 'message']
    readonly_fields = ['client', 'invoice', 'channel', 'purpose', 'status', 'message', 'sent_at', 'created_at']
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def message_preview(self, obj):
        """Show truncated message preview"""
        return obj.message[:100] + '...' if len(obj.message) > 100 else obj.message
    message_preview.short_description = 'Message'
