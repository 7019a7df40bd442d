from __future__ import annotations

from datetime import date, datetime

from maintrack.models import MaintenanceRecord, Notification
from maintrack.services.notifier import Notifier
from maintrack.use_cases import occurrences as use_case
from maintrack.use_cases.occurrences import generate_due_occurrences, schedule_next_occurrence


AS_OF = datetime(2025, 1, 13, 0, 5)


def _template(make_record, **overrides) -> MaintenanceRecord:
    fields = {
        "title": "Weekly compressor check",
        "scheduled_date": datetime(2025, 1, 6, 9, 0),
        "is_recurring": True,
        "recurrence_pattern": "weekly",
        "is_template": True,
    }
    fields.update(overrides)
    return make_record(**fields)


def _occurrences(db, root_id) -> list[MaintenanceRecord]:
    db.expire_all()
    return (
        db.query(MaintenanceRecord)
        .filter(MaintenanceRecord.parent_maintenance_id == root_id)
        .order_by(MaintenanceRecord.scheduled_date)
        .all()
    )


def test_due_template_spawns_one_occurrence(db, make_record, notifier) -> None:
    template = _template(make_record, priority="high", assigned_to="Sam", cost=40.0)

    result = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    assert len(result.created_ids) == 1
    [occurrence] = _occurrences(db, template.id)
    assert occurrence.id == result.created_ids[0]
    assert occurrence.scheduled_date == datetime(2025, 1, 13, 9, 0)
    assert occurrence.scheduled_day == date(2025, 1, 13)
    assert occurrence.due_date == datetime(2025, 1, 20, 9, 0)
    assert occurrence.status == "pending"
    assert occurrence.priority == "high"
    assert occurrence.assigned_to == "Sam"
    assert occurrence.cost == 40.0
    assert occurrence.is_template is False
    assert occurrence.is_recurring is False
    assert template.scheduled_date == datetime(2025, 1, 13, 9, 0)


def test_generation_is_idempotent_for_the_same_day(db, make_record, notifier) -> None:
    template = _template(make_record)

    first = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)
    second = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    assert len(first.created_ids) == 1
    assert second.created_ids == []
    assert second.not_due == 1
    assert len(_occurrences(db, template.id)) == 1


def test_lagging_template_catches_up_one_occurrence_per_run(db, make_record, notifier) -> None:
    template = _template(make_record, scheduled_date=datetime(2024, 12, 16, 9, 0))

    first = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)
    second = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    assert len(first.created_ids) == 1
    assert len(second.created_ids) == 1
    assert [o.scheduled_date for o in _occurrences(db, template.id)] == [
        datetime(2024, 12, 23, 9, 0),
        datetime(2024, 12, 30, 9, 0),
    ]
    assert template.scheduled_date == datetime(2024, 12, 30, 9, 0)


def test_existing_occurrence_for_the_day_is_not_duplicated(db, make_record, notifier) -> None:
    template = _template(make_record)
    make_record(
        title="Weekly compressor check",
        scheduled_date=datetime(2025, 1, 13, 15, 0),
        parent_maintenance_id=template.id,
    )

    result = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    assert result.created_ids == []
    assert result.duplicates == 1
    assert len(_occurrences(db, template.id)) == 1
    db.refresh(template)
    assert template.scheduled_date == datetime(2025, 1, 13, 9, 0)


def test_future_occurrence_is_not_materialized(db, make_record, notifier) -> None:
    template = _template(make_record, scheduled_date=datetime(2025, 1, 10, 9, 0))

    result = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    assert result.created_ids == []
    assert result.not_due == 1
    assert _occurrences(db, template.id) == []


def test_finished_and_inactive_templates_are_skipped(db, make_record, notifier) -> None:
    exhausted = _template(make_record, recurrence_end_date=datetime(2025, 1, 20))
    exhausted.scheduled_date = datetime(2025, 1, 15, 9, 0)
    db.commit()
    _template(make_record, title="Old", recurrence_end_date=datetime(2025, 1, 1))
    _template(make_record, title="Cancelled", status="cancelled")
    make_record(title="Plain recurring", is_recurring=True, recurrence_pattern="weekly")

    result = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    assert result.created_ids == []
    assert result.exhausted == 1
    assert result.processed == 1


def test_assignee_is_notified(db, make_record, make_user, notifier) -> None:
    tech = make_user(name="Sam", role="operator")
    _template(make_record, assigned_to="Sam")

    result = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    notifications = db.query(Notification).filter(Notification.user_id == tech.id).all()
    assert len(notifications) == 1
    assert notifications[0].title == "New Maintenance Task"
    assert notifications[0].message == 'Recurring task "Weekly compressor check" has been scheduled'
    assert notifications[0].related_id == result.created_ids[0]


class _BrokenSession:
    def add_all(self, _rows) -> None:
        raise RuntimeError("notification store down")

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        pass


def test_notification_failure_does_not_undo_occurrence(db, make_record, make_user) -> None:
    make_user(name="Sam", role="operator")
    template = _template(make_record, assigned_to="Sam")

    result = generate_due_occurrences(db, as_of=AS_OF, notifier=Notifier(_BrokenSession))

    assert len(result.created_ids) == 1
    assert result.errors == []
    assert len(_occurrences(db, template.id)) == 1
    assert db.query(Notification).count() == 0


def test_failing_template_does_not_block_the_batch(db, make_record, notifier, monkeypatch) -> None:
    broken = _template(make_record, title="Broken")
    healthy = _template(make_record, title="Healthy")
    original = use_case._generate_for_template

    def _flaky(session, template, **kwargs):
        if template.title == "Broken":
            raise RuntimeError("boom")
        return original(session, template, **kwargs)

    monkeypatch.setattr(use_case, "_generate_for_template", _flaky)

    result = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    assert len(result.created_ids) == 1
    assert result.errors == [f"Template {broken.id}: boom"]
    assert len(_occurrences(db, healthy.id)) == 1
    assert _occurrences(db, broken.id) == []


def test_concurrent_insert_is_treated_as_duplicate(db, session_factory, make_record, notifier, monkeypatch) -> None:
    template = _template(make_record)

    # Simulate another worker winning the race after our existence check.
    def _racing_find(session, *, root_id, day):
        other = session_factory()
        try:
            other.add(
                MaintenanceRecord(
                    title="Weekly compressor check",
                    scheduled_date=datetime(2025, 1, 13, 9, 0),
                    parent_maintenance_id=root_id,
                )
            )
            other.commit()
        finally:
            other.close()
        return None

    monkeypatch.setattr(use_case, "find_existing_occurrence", _racing_find)

    result = generate_due_occurrences(db, as_of=AS_OF, notifier=notifier)

    assert result.created_ids == []
    assert result.duplicates == 1
    assert result.errors == []
    assert len(_occurrences(db, template.id)) == 1


def test_successor_keeps_recurrence_and_points_at_root(db, make_record, notifier) -> None:
    record = make_record(
        scheduled_date=datetime(2025, 1, 6, 9, 0),
        status="completed",
        completed_date=datetime(2025, 1, 6, 11, 0),
        is_recurring=True,
        recurrence_pattern="weekly",
    )

    successor = schedule_next_occurrence(db, record, notifier=notifier, now=datetime(2025, 1, 6, 11, 0))

    assert successor is not None
    assert successor.parent_maintenance_id == record.id
    assert successor.scheduled_date == datetime(2025, 1, 13, 9, 0)
    assert successor.due_date == datetime(2025, 1, 20, 9, 0)
    assert successor.is_recurring is True
    assert successor.recurrence_pattern == "weekly"

    # Completing the successor continues the same chain.
    successor.status = "completed"
    db.commit()
    third = schedule_next_occurrence(db, successor, notifier=notifier, now=datetime(2025, 1, 13, 10, 0))
    assert third.parent_maintenance_id == record.id
    assert third.scheduled_date == datetime(2025, 1, 20, 9, 0)


def test_successor_seeds_from_completion_when_unscheduled(db, make_record, notifier) -> None:
    record = make_record(
        scheduled_date=None,
        status="completed",
        completed_date=datetime(2025, 3, 1, 8, 0),
        is_recurring=True,
        recurrence_pattern="monthly",
    )

    successor = schedule_next_occurrence(db, record, notifier=notifier, now=datetime(2025, 3, 2))

    assert successor.scheduled_date == datetime(2025, 4, 1, 8, 0)


def test_successor_respects_end_date_and_dedup(db, make_record, notifier) -> None:
    ended = make_record(
        is_recurring=True,
        recurrence_pattern="weekly",
        recurrence_end_date=datetime(2025, 1, 10),
    )
    assert schedule_next_occurrence(db, ended, notifier=notifier, now=datetime(2025, 1, 6)) is None

    record = make_record(title="Dup", is_recurring=True, recurrence_pattern="daily")
    make_record(title="Dup", scheduled_date=datetime(2025, 1, 7, 12, 0), parent_maintenance_id=record.id)
    assert schedule_next_occurrence(db, record, notifier=notifier, now=datetime(2025, 1, 6)) is None
    assert len(_occurrences(db, record.id)) == 1
