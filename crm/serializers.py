from rest_framework import serializers
from .models import WebhookLog


class WebhookLogSerializer(serializers.ModelSerializer):

    class Meta:
        model = WebhookLog
        fields = ['id', 'event', 'payload', 'status', 'response', 'error', 'created_at']
        read_only_fields = fields
