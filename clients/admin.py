from django.contrib import admin
from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'phone', 'tax_id', 'created_at']
    search_fields = ['name', 'email', 'tax_id']
    readonly_fields = ['created_at', 'updated_at']
