from rest_framework import serializers
from .models import Client


class ClientSerializer(serializers.ModelSerializer):
    """Serializer for Client create/update and detail."""

    class Meta:
        model = Client
        fields = ['id', 'name', 'email', 'phone', 'tax_id', 'address', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate_email(self, value):
        value = value.strip().lower()
        if not value:
            raise serializers.ValidationError("Email is required")
        return value

    def validate_phone(self, value):
        # Empty strings from forms are stored as NULL so "has phone" stays a simple truthiness check
        if value is not None and not value.strip():
            return None
        return value
