"""
Celery configuration for async task processing.
"""
import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# Create Celery app
app = Celery('contract_billing')

# Load config from Django settings with CELERY_ prefix
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()


# Periodic task schedule
app.conf.beat_schedule = {
    # Pull new invoices from the billing provider before the reminder scan (6:00 AM)
    'sync-all-invoices': {
        'task': 'billing.sync_all_invoices',
        'schedule': crontab(hour=6, minute=0),
    },

    # Payment reminders for invoices due in 4 days (9:00 AM daily)
    'send-due-reminders': {
        'task': 'billing.send_due_reminders',
        'schedule': crontab(hour=9, minute=0),
    },

    # Expire active contracts past their end date (1:00 AM daily)
    'expire-contracts': {
        'task': 'contracts.expire_contracts',
        'schedule': crontab(hour=1, minute=0),
    },
}
