"""
Celery worker and beat schedule for the periodic maintenance jobs.
"""
from celery import Celery
from celery.schedules import crontab
import logging

from .config import settings
from .deps import get_scheduler_context
from .scheduler import (
    run_low_stock_alerts,
    run_maintenance_reminders,
    run_notification_cleanup,
    run_recurring_generation,
)
from .services.maintenance_rules import now_utc

logger = logging.getLogger(__name__)

celery_app = Celery(
    "maintrack",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
)


def _run(job_name: str, job) -> dict:
    try:
        result = job(get_scheduler_context(), now_utc())
    except Exception as e:
        logger.error(f"❌ {job_name} failed: {e}", exc_info=True)
        raise
    logger.info(f"✅ {job_name}: {result}")
    return result


@celery_app.task(name="maintenance_reminders")
def maintenance_reminders_task():
    return _run("maintenance_reminders", run_maintenance_reminders)


@celery_app.task(name="low_stock_alerts")
def low_stock_alerts_task():
    return _run("low_stock_alerts", run_low_stock_alerts)


@celery_app.task(name="recurring_generation")
def recurring_generation_task():
    return _run("recurring_generation", run_recurring_generation)


@celery_app.task(name="notification_cleanup")
def notification_cleanup_task():
    return _run("notification_cleanup", run_notification_cleanup)


celery_app.conf.beat_schedule = {
    'maintenance-reminders-daily': {
        'task': 'maintenance_reminders',
        'schedule': crontab(hour=settings.REMINDERS_HOUR, minute=0),
    },
    'low-stock-alerts-daily': {
        'task': 'low_stock_alerts',
        'schedule': crontab(hour=settings.LOW_STOCK_HOUR, minute=0),
    },
    'recurring-generation-daily': {
        'task': 'recurring_generation',
        'schedule': crontab(hour=settings.RECURRING_GENERATION_HOUR, minute=0),
    },
    'notification-cleanup-weekly': {
        'task': 'notification_cleanup',
        'schedule': crontab(
            hour=settings.NOTIFICATION_CLEANUP_HOUR,
            minute=0,
            day_of_week=settings.NOTIFICATION_CLEANUP_DAY_OF_WEEK,
        ),
    },
}
