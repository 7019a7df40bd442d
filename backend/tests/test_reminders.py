from __future__ import annotations

from datetime import datetime, timedelta

from maintrack.models import Notification
from maintrack.scheduler import JOBS, scan_and_notify
from maintrack.use_cases import reminders as use_case
from maintrack.use_cases.reminders import (
    cleanup_notifications,
    low_stock_items,
    send_low_stock_alerts,
    send_maintenance_reminders,
)


NOW = datetime(2025, 1, 6, 8, 0)
ROLES = ["admin", "manager"]


def _recipients(make_user):
    admin = make_user(name="Alex", role="admin")
    manager = make_user(name="Morgan", role="manager")
    make_user(name="Sam", role="operator")
    make_user(name="Gone", role="manager", is_active=False)
    return admin, manager


def test_reminder_goes_to_each_admin_and_manager(db, make_user, make_record, machine, notifier, emailer) -> None:
    admin, manager = _recipients(make_user)
    record = make_record(
        title="Replace belts",
        machine_id=machine.id,
        priority="high",
        scheduled_date=NOW + timedelta(days=2),
    )

    reminded = send_maintenance_reminders(
        db, now=NOW, notifier=notifier, emailer=emailer, recipient_roles=ROLES
    )

    assert reminded == 1
    notifications = db.query(Notification).all()
    assert sorted(n.user_id for n in notifications) == sorted([admin.id, manager.id])
    for notification in notifications:
        assert notification.title == "Upcoming Maintenance"
        assert notification.type == "reminder"
        assert notification.priority == "high"
        assert notification.related_id == record.id
        assert notification.message == '"Replace belts" is scheduled in 2 day(s) for Compressor #1'
    assert sorted(to for to, _ in emailer.reminders) == ["alex@example.com", "morgan@example.com"]


def test_reminder_window_is_bounded(db, make_user, make_record, notifier, emailer) -> None:
    _recipients(make_user)
    make_record(title="Too far", scheduled_date=NOW + timedelta(days=10))
    make_record(title="Past", scheduled_date=NOW - timedelta(hours=1))
    make_record(title="Done", status="completed", scheduled_date=NOW + timedelta(days=1))
    make_record(
        title="Template",
        scheduled_date=NOW + timedelta(days=1),
        is_template=True,
        is_recurring=True,
        recurrence_pattern="weekly",
    )

    reminded = send_maintenance_reminders(
        db, now=NOW, notifier=notifier, emailer=emailer, recipient_roles=ROLES
    )

    assert reminded == 0
    assert db.query(Notification).count() == 0
    assert emailer.reminders == []


def test_reminder_without_recipients_sends_nothing(db, make_record, notifier, emailer) -> None:
    make_record(scheduled_date=NOW + timedelta(days=1))

    assert send_maintenance_reminders(db, now=NOW, notifier=notifier, emailer=emailer, recipient_roles=ROLES) == 0
    assert db.query(Notification).count() == 0


def test_low_stock_boundary_is_inclusive(db, make_item) -> None:
    make_item(name="Below", current_stock=4, min_stock=5)
    make_item(name="At", current_stock=5, min_stock=5)
    make_item(name="Above", current_stock=6, min_stock=5)
    make_item(name="Retired", current_stock=0, min_stock=5, is_active=False)

    assert [item.name for item in low_stock_items(db)] == ["At", "Below"]


def test_low_stock_alert_is_one_summary_per_recipient(db, make_user, make_item, notifier, emailer) -> None:
    admin, manager = _recipients(make_user)
    make_item(name="Oil", current_stock=0, min_stock=2)
    make_item(name="Belt", current_stock=1, min_stock=1)
    make_item(name="Filter", current_stock=9, min_stock=1)

    count = send_low_stock_alerts(db, notifier=notifier, emailer=emailer, recipient_roles=ROLES)

    assert count == 2
    notifications = db.query(Notification).all()
    assert sorted(n.user_id for n in notifications) == sorted([admin.id, manager.id])
    assert {n.message for n in notifications} == {"2 item(s) are running low on stock"}
    assert {(n.type, n.priority) for n in notifications} == {("inventory", "high")}
    assert sorted(emailer.low_stock) == [
        ("alex@example.com", ["Belt", "Oil"]),
        ("morgan@example.com", ["Belt", "Oil"]),
    ]


def _notification(db, user, *, is_read: bool, created_at: datetime) -> Notification:
    notification = Notification(
        user_id=user.id,
        title="t",
        message="m",
        is_read=is_read,
        created_at=created_at,
    )
    db.add(notification)
    db.commit()
    return notification


def test_cleanup_only_removes_old_read_notifications(db, make_user) -> None:
    user = make_user(name="Alex", role="admin")
    _notification(db, user, is_read=True, created_at=NOW - timedelta(days=31))
    _notification(db, user, is_read=True, created_at=NOW - timedelta(days=29))
    _notification(db, user, is_read=False, created_at=NOW - timedelta(days=60))

    deleted = cleanup_notifications(db, now=NOW, retention_days=30)

    assert deleted == 1
    remaining = db.query(Notification).all()
    assert len(remaining) == 2
    assert all(n.created_at >= NOW - timedelta(days=30) or not n.is_read for n in remaining)


def test_scan_isolates_failing_sub_scan(db, make_user, make_item, scheduler_ctx, monkeypatch) -> None:
    _recipients(make_user)
    make_item(name="Oil", current_stock=0, min_stock=2)

    def _broken(*_args, **_kwargs):
        raise RuntimeError("smtp exploded")

    monkeypatch.setattr("maintrack.scheduler.send_maintenance_reminders", _broken)

    counts = scan_and_notify(scheduler_ctx, NOW)

    assert counts.reminders == 0
    assert counts.low_stock_items == 1
    assert counts.notifications_deleted == 0
    assert counts.errors == {"maintenance_reminders": "smtp exploded"}


def test_jobs_run_against_context(db, make_record, scheduler_ctx) -> None:
    template = make_record(
        title="Daily lube",
        scheduled_date=datetime(2025, 1, 5, 7, 0),
        is_template=True,
        is_recurring=True,
        recurrence_pattern="daily",
    )

    result = JOBS["recurring_generation"](scheduler_ctx, NOW)

    assert len(result["created"]) == 1
    assert result["errors"] == []
    assert JOBS["notification_cleanup"](scheduler_ctx, NOW) == {"deleted": 0}
    assert JOBS["low_stock_alerts"](scheduler_ctx, NOW) == {"low_stock_items": 0}
    assert JOBS["maintenance_reminders"](scheduler_ctx, NOW) == {"reminded": 0}
    assert len(use_case.upcoming_maintenance(db, now=NOW, lookahead_days=3)) == 0
    db.refresh(template)
    assert template.scheduled_date == datetime(2025, 1, 6, 7, 0)
