"""Periodic reminder, low-stock and retention scans."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable
import logging

from sqlalchemy.orm import Session

from ..models import InventoryItem, MaintenanceRecord, Notification
from ..services.emailer import Emailer, days_until
from ..services.maintenance_rules import OPEN_STATUSES
from ..services.notifier import NotificationPayload, Notifier, active_recipients

logger = logging.getLogger(__name__)


def upcoming_maintenance(db: Session, *, now: datetime, lookahead_days: int) -> list[MaintenanceRecord]:
    horizon = now + timedelta(days=lookahead_days)
    return (
        db.query(MaintenanceRecord)
        .filter(
            MaintenanceRecord.status.in_(OPEN_STATUSES),
            MaintenanceRecord.is_template.is_(False),
            MaintenanceRecord.scheduled_date >= now,
            MaintenanceRecord.scheduled_date <= horizon,
        )
        .all()
    )


def low_stock_items(db: Session) -> list[InventoryItem]:
    # Boundary inclusive: an item sitting exactly at min_stock needs reordering.
    return (
        db.query(InventoryItem)
        .filter(
            InventoryItem.is_active.is_(True),
            InventoryItem.current_stock <= InventoryItem.min_stock,
        )
        .order_by(InventoryItem.name)
        .all()
    )


def send_maintenance_reminders(
    db: Session,
    *,
    now: datetime,
    notifier: Notifier,
    emailer: Emailer,
    recipient_roles: Iterable[str],
    lookahead_days: int = 3,
) -> int:
    """Notify admins/managers about open work scheduled within the lookahead window."""
    records = upcoming_maintenance(db, now=now, lookahead_days=lookahead_days)
    if not records:
        logger.info("📭 No upcoming maintenance to remind about")
        return 0

    recipients = active_recipients(db, recipient_roles)
    if not recipients:
        logger.warning(f"⚠️ {len(records)} upcoming maintenance record(s) but no active recipients")
        return 0

    user_ids = [user.id for user in recipients]
    for record in records:
        days = days_until(record.scheduled_date, now=now)
        machine_name = record.machine.name if record.machine else "Unknown Machine"
        notifier.notify_users(
            user_ids,
            NotificationPayload(
                title="Upcoming Maintenance",
                message=f'"{record.title}" is scheduled in {days} day(s) for {machine_name}',
                type="reminder",
                priority=record.priority,
                related_model="Maintenance",
                related_id=record.id,
                action_url="/maintenance",
            ),
        )
        for user in recipients:
            emailer.send_maintenance_reminder(user.email, record, now=now)

    logger.info(f"✅ Sent {len(records)} maintenance reminders to {len(recipients)} recipient(s)")
    return len(records)


def send_low_stock_alerts(
    db: Session,
    *,
    notifier: Notifier,
    emailer: Emailer,
    recipient_roles: Iterable[str],
) -> int:
    """One summary alert per recipient, not one per item."""
    items = low_stock_items(db)
    if not items:
        logger.info("📦 Stock levels OK")
        return 0

    recipients = active_recipients(db, recipient_roles)
    if recipients:
        notifier.notify_users(
            [user.id for user in recipients],
            NotificationPayload(
                title="Low Stock Alert",
                message=f"{len(items)} item(s) are running low on stock",
                type="inventory",
                priority="high",
                related_model="Inventory",
                action_url="/inventory",
            ),
        )
        for user in recipients:
            emailer.send_low_stock_alert(user.email, items)

    logger.info(f"✅ Sent low stock alerts for {len(items)} items")
    return len(items)


def cleanup_notifications(db: Session, *, now: datetime, retention_days: int = 30) -> int:
    """Delete read notifications older than the retention window."""
    cutoff = now - timedelta(days=retention_days)
    deleted = (
        db.query(Notification)
        .filter(
            Notification.is_read.is_(True),
            Notification.created_at < cutoff,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info(f"🧹 Cleaned up {deleted} old notifications")
    return deleted
