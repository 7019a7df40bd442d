"""
Scheduler job entry points.

Jobs receive an explicit SchedulerContext instead of reaching for module
globals; the Celery worker builds one context per process. Every job opens
its own session and is safe to re-run.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator
import logging

from sqlalchemy.orm import Session

from .config import Settings
from .services.emailer import Emailer
from .services.maintenance_rules import now_utc
from .services.notifier import Notifier
from .use_cases.occurrences import generate_due_occurrences
from .use_cases.reminders import cleanup_notifications, send_low_stock_alerts, send_maintenance_reminders

logger = logging.getLogger(__name__)


@dataclass
class SchedulerContext:
    session_factory: Callable[[], Session]
    notifier: Notifier
    emailer: Emailer
    settings: Settings

    @classmethod
    def build(cls, settings: Settings, session_factory: Callable[[], Session]) -> "SchedulerContext":
        return cls(
            session_factory=session_factory,
            notifier=Notifier(session_factory),
            emailer=Emailer(settings),
            settings=settings,
        )

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()


def run_maintenance_reminders(ctx: SchedulerContext, now: datetime | None = None) -> dict:
    logger.info("⏰ Running maintenance reminders check...")
    with ctx.session() as db:
        reminded = send_maintenance_reminders(
            db,
            now=now or now_utc(),
            notifier=ctx.notifier,
            emailer=ctx.emailer,
            recipient_roles=ctx.settings.recipient_roles,
            lookahead_days=ctx.settings.REMINDER_LOOKAHEAD_DAYS,
        )
    return {"reminded": reminded}


def run_low_stock_alerts(ctx: SchedulerContext, now: datetime | None = None) -> dict:
    logger.info("⏰ Running low stock alerts check...")
    with ctx.session() as db:
        low_stock = send_low_stock_alerts(
            db,
            notifier=ctx.notifier,
            emailer=ctx.emailer,
            recipient_roles=ctx.settings.recipient_roles,
        )
    return {"low_stock_items": low_stock}


def run_recurring_generation(ctx: SchedulerContext, now: datetime | None = None) -> dict:
    logger.info("⏰ Running recurring maintenance generation...")
    with ctx.session() as db:
        result = generate_due_occurrences(
            db,
            as_of=now or now_utc(),
            notifier=ctx.notifier,
            due_window_days=ctx.settings.OCCURRENCE_DUE_WINDOW_DAYS,
        )
    return {
        "created": [str(created_id) for created_id in result.created_ids],
        "not_due": result.not_due,
        "duplicates": result.duplicates,
        "exhausted": result.exhausted,
        "errors": result.errors,
    }


def run_notification_cleanup(ctx: SchedulerContext, now: datetime | None = None) -> dict:
    logger.info("⏰ Running notification cleanup...")
    with ctx.session() as db:
        deleted = cleanup_notifications(
            db,
            now=now or now_utc(),
            retention_days=ctx.settings.NOTIFICATION_RETENTION_DAYS,
        )
    return {"deleted": deleted}


JOBS: dict[str, Callable[[SchedulerContext, datetime | None], dict]] = {
    "maintenance_reminders": run_maintenance_reminders,
    "low_stock_alerts": run_low_stock_alerts,
    "recurring_generation": run_recurring_generation,
    "notification_cleanup": run_notification_cleanup,
}


@dataclass
class ScanCounts:
    reminders: int = 0
    low_stock_items: int = 0
    notifications_deleted: int = 0
    errors: dict[str, str] = field(default_factory=dict)


def scan_and_notify(ctx: SchedulerContext, now: datetime | None = None) -> ScanCounts:
    """Run the three scans; a failing scan is logged and never blocks the others."""
    ts = now or now_utc()
    counts = ScanCounts()

    try:
        counts.reminders = run_maintenance_reminders(ctx, ts)["reminded"]
    except Exception as e:
        logger.error(f"❌ Error in maintenance reminders: {e}", exc_info=True)
        counts.errors["maintenance_reminders"] = str(e)

    try:
        counts.low_stock_items = run_low_stock_alerts(ctx, ts)["low_stock_items"]
    except Exception as e:
        logger.error(f"❌ Error in low stock alerts: {e}", exc_info=True)
        counts.errors["low_stock_alerts"] = str(e)

    try:
        counts.notifications_deleted = run_notification_cleanup(ctx, ts)["deleted"]
    except Exception as e:
        logger.error(f"❌ Error in notification cleanup: {e}", exc_info=True)
        counts.errors["notification_cleanup"] = str(e)

    return counts
