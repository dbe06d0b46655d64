from django.contrib import admin
from .models import Contract, LifecycleOperation, Signature


class SignatureInline(admin.StackedInline):
    model = Signature
    extra = 0
    can_delete = False
    readonly_fields = ['external_envelope_id', 'external_document_id', 'sign_url', 'status', 'signed_at']


@admin.register(Contract)
class ContractAdmin(admin.ModelAdmin):
    list_display = ['id', 'client', 'value', 'periodicity', 'status', 'start_date', 'end_date']
    list_filter = ['status', 'periodicity']
    search_fields = ['description', 'client__name', 'client__email']
    # Status changes go through the lifecycle service
    readonly_fields = ['status', 'end_date', 'created_at', 'updated_at']
    inlines = [SignatureInline]


@admin.register(Signature)
class SignatureAdmin(admin.ModelAdmin):
    list_display = ['id', 'contract', 'external_document_id', 'status', 'signed_at']
    list_filter = ['status']
    search_fields = ['external_document_id', 'external_envelope_id']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(LifecycleOperation)
class LifecycleOperationAdmin(admin.ModelAdmin):
    list_display = ['id', 'contract', 'operation', 'created_at']
    list_filter = ['operation']
    readonly_fields = ['contract', 'operation', 'idempotency_key', 'created_at']
