"""
Celery tasks for contract maintenance.
"""
import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name='contracts.expire_contracts')
def expire_contracts():
    """
    Periodic task: expire active contracts whose end date has passed.

    Runs daily via Celery Beat.

    Returns:
        dict: Number of contracts expired
    """
    from .services.lifecycle import ContractLifecycleService

    logger.info("Starting contract expiry sweep")
    expired = ContractLifecycleService().expire_contracts()
    logger.info(f"Contract expiry sweep finished: {expired} expired")

    return {'expired': expired}
