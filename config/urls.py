"""
URL configuration for the contract billing project.

Every API route lives under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # Clients API
    path('api/v1/', include('clients.urls')),

    # Contracts API (lifecycle actions)
    path('api/v1/', include('contracts.urls')),

    # Billing API (subscriptions, invoices, reminders)
    path('api/v1/', include('billing.urls')),

    # Notification audit log
    path('api/v1/', include('notifications.urls')),

    # CRM webhook log
    path('api/v1/', include('crm.urls')),
]
