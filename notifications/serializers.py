from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Read-only serializer for the notification audit log"""

    client_email = serializers.EmailField(source='client.email', read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id',
            'client',
            'client_email',
            'invoice',
            'channel',
            'purpose',
            'status',
            'message',
            'sent_at',
            'created_at',
        ]
        read_only_fields = fields
