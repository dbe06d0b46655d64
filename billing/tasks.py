"""
Celery tasks for invoice reminders and provider sync.
"""
import logging
from celery import shared_task
from django.db import DatabaseError

from api.exceptions import ServiceError

logger = logging.getLogger(__name__)


@shared_task(name='billing.send_due_reminders')
def send_due_reminders():
    """
    Periodic task: send reminders for invoices due in REMINDER_DAYS_BEFORE_DUE days.

    Runs daily via Celery Beat. A failure on one invoice does not stop the run.

    Returns:
        dict: Counts of sent, skipped and failed reminders
    """
    from .services.reminders import ReminderService

    service = ReminderService()
    invoices = service.get_pending_reminders()
    logger.info(f"Found {len(invoices)} invoices due for a reminder")

    sent = skipped = failed = 0
    for invoice in invoices:
        try:
            result = service.send_reminder(invoice.pk)
        except (ServiceError, DatabaseError) as e:
            logger.error(f"Failed to send reminder for invoice {invoice.pk}: {e}")
            failed += 1
            continue

        if result['already_sent']:
            skipped += 1
        else:
            sent += 1

    logger.info(f"Reminder run finished: {sent} sent, {skipped} skipped, {failed} failed")
    return {'sent': sent, 'skipped': skipped, 'failed': failed}


@shared_task(name='billing.sync_all_invoices')
def sync_all_invoices():
    """
    Periodic task: pull provider invoices for every active subscription.

    Returns:
        dict: Number of subscriptions synced, invoices created and failures
    """
    from .models import Subscription
    from .services.reminders import ReminderService

    service = ReminderService()
    subscription_ids = list(
        Subscription.objects.filter(status='active').values_list('pk', flat=True)
    )

    synced = created = failed = 0
    for subscription_id in subscription_ids:
        try:
            created += service.sync_invoices(subscription_id)
            synced += 1
        except (ServiceError, DatabaseError) as e:
            logger.error(f"Failed to sync invoices for subscription {subscription_id}: {e}")
            failed += 1

    logger.info(f"Invoice sync finished: {synced} subscriptions, {created} new invoices, {failed} failed")
    return {'synced': synced, 'created': created, 'failed': failed}
