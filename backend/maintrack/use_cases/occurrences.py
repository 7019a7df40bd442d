"""Recurring maintenance occurrence generation."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import MaintenanceRecord
from ..services.maintenance_rules import chain_root_id, occurrence_due_date, start_of_day
from ..services.notifier import NotificationPayload, Notifier, find_user_by_name
from ..services.recurrence import next_occurrence, normalize_interval

logger = logging.getLogger(__name__)

DEFAULT_DUE_WINDOW_DAYS = 7


@dataclass
class GenerationResult:
    created_ids: list[UUID] = field(default_factory=list)
    not_due: int = 0
    duplicates: int = 0
    exhausted: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.created_ids) + self.not_due + self.duplicates + self.exhausted + len(self.errors)


def find_existing_occurrence(db: Session, *, root_id: UUID, day: date) -> MaintenanceRecord | None:
    return (
        db.query(MaintenanceRecord)
        .filter(
            MaintenanceRecord.parent_maintenance_id == root_id,
            MaintenanceRecord.scheduled_day == day,
        )
        .first()
    )


def active_templates_query(db: Session, *, as_of: datetime):
    today = start_of_day(as_of)
    return db.query(MaintenanceRecord).filter(
        MaintenanceRecord.is_template.is_(True),
        MaintenanceRecord.is_recurring.is_(True),
        MaintenanceRecord.status != "cancelled",
        or_(
            MaintenanceRecord.recurrence_end_date.is_(None),
            MaintenanceRecord.recurrence_end_date >= today,
        ),
    )


def _build_occurrence(
    source: MaintenanceRecord,
    *,
    scheduled_date: datetime,
    due_window_days: int,
    keep_recurrence: bool,
) -> MaintenanceRecord:
    occurrence = MaintenanceRecord(
        title=source.title,
        description=source.description,
        machine_id=source.machine_id,
        site_id=source.site_id,
        status="pending",
        priority=source.priority,
        scheduled_date=scheduled_date,
        due_date=occurrence_due_date(scheduled_date, window_days=due_window_days),
        assigned_to=source.assigned_to,
        cost=source.cost,
        notes=source.notes,
        is_recurring=False,
        is_template=False,
        parent_maintenance_id=chain_root_id(source),
    )
    if keep_recurrence:
        occurrence.is_recurring = True
        occurrence.recurrence_pattern = source.recurrence_pattern
        occurrence.recurrence_interval = normalize_interval(source.recurrence_interval)
        occurrence.recurrence_end_date = source.recurrence_end_date
    return occurrence


def _notify_assignee(db: Session, notifier: Notifier, occurrence: MaintenanceRecord, *, title: str) -> None:
    try:
        user = find_user_by_name(db, occurrence.assigned_to)
    except SQLAlchemyError as e:
        logger.warning(f"⚠️ Could not resolve assignee '{occurrence.assigned_to}': {e}")
        return
    if user is None:
        return
    notifier.notify_user(
        user.id,
        NotificationPayload(
            title="New Maintenance Task",
            message=f'Recurring task "{title}" has been scheduled',
            type="maintenance",
            priority=occurrence.priority,
            related_model="Maintenance",
            related_id=occurrence.id,
            action_url="/maintenance",
        ),
    )


def _generate_for_template(
    db: Session,
    template: MaintenanceRecord,
    *,
    as_of: datetime,
    notifier: Notifier,
    due_window_days: int,
    result: GenerationResult,
) -> None:
    seed = template.scheduled_date or as_of
    next_date = next_occurrence(
        template.recurrence_pattern,
        template.recurrence_interval,
        seed,
        template.recurrence_end_date,
    )
    if next_date is None:
        logger.info(f"✅ Recurrence finished for template {template.id} ({template.title})")
        result.exhausted += 1
        return

    # Only due-or-past dates are materialized.
    if next_date.date() > as_of.date():
        result.not_due += 1
        return

    root_id = chain_root_id(template)
    if find_existing_occurrence(db, root_id=root_id, day=next_date.date()) is not None:
        logger.info(f"⏭️ Occurrence already exists for {root_id} on {next_date.date()}")
        template.scheduled_date = next_date
        db.commit()
        result.duplicates += 1
        return

    occurrence = _build_occurrence(
        template,
        scheduled_date=next_date,
        due_window_days=due_window_days,
        keep_recurrence=False,
    )
    db.add(occurrence)
    template.scheduled_date = next_date
    try:
        db.commit()
    except IntegrityError:
        # A concurrent run created the same (root, day) occurrence first.
        db.rollback()
        logger.info(f"⏭️ Occurrence for {root_id} on {next_date.date()} created concurrently, skipping")
        result.duplicates += 1
        return

    result.created_ids.append(occurrence.id)
    logger.info(f"🔁 Created recurring task: {occurrence.title} for {next_date.date()}")
    _notify_assignee(db, notifier, occurrence, title=template.title)


def generate_due_occurrences(
    db: Session,
    *,
    as_of: datetime,
    notifier: Notifier,
    due_window_days: int = DEFAULT_DUE_WINDOW_DAYS,
) -> GenerationResult:
    """
    Spawn the next due occurrence for every active recurring template.

    Each template runs in its own transaction; a failure is rolled back,
    collected in the result and the batch moves on. The template's
    scheduled_date advances to the generated date so the next run seeds
    from the latest occurrence. A template lagging several periods behind
    catches up one occurrence per run, not all missed dates at once.
    """
    result = GenerationResult()
    templates = active_templates_query(db, as_of=as_of).all()

    for template in templates:
        template_id = template.id
        try:
            _generate_for_template(
                db,
                template,
                as_of=as_of,
                notifier=notifier,
                due_window_days=due_window_days,
                result=result,
            )
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Recurring generation failed for template {template_id}: {e}", exc_info=True)
            result.errors.append(f"Template {template_id}: {e}")

    logger.info(
        f"✅ Processed {len(templates)} recurring templates: "
        f"{len(result.created_ids)} created, {result.duplicates} duplicates, {len(result.errors)} errors"
    )
    return result


def schedule_next_occurrence(
    db: Session,
    record: MaintenanceRecord,
    *,
    notifier: Notifier,
    now: datetime,
    due_window_days: int = DEFAULT_DUE_WINDOW_DAYS,
) -> MaintenanceRecord | None:
    """
    Create the successor of a just-completed recurring record.

    The successor keeps the recurrence rule so completing it continues the
    chain. Returns None when the chain is finished or the day is already taken.
    """
    if not record.is_recurring or not record.recurrence_pattern:
        return None

    seed = record.scheduled_date or record.completed_date or now
    next_date = next_occurrence(
        record.recurrence_pattern,
        record.recurrence_interval,
        seed,
        record.recurrence_end_date,
    )
    if next_date is None:
        logger.info(f"✅ Recurrence ended for maintenance: {record.title}")
        return None

    root_id = chain_root_id(record)
    if find_existing_occurrence(db, root_id=root_id, day=next_date.date()) is not None:
        logger.info(f"⏭️ Next occurrence for {root_id} on {next_date.date()} already exists")
        return None

    successor = _build_occurrence(
        record,
        scheduled_date=next_date,
        due_window_days=due_window_days,
        keep_recurrence=True,
    )
    db.add(successor)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"⏭️ Next occurrence for {root_id} on {next_date.date()} created concurrently")
        return None

    logger.info(f"🔁 Created next maintenance: {successor.title} for {next_date.date()}")
    _notify_assignee(db, notifier, successor, title=record.title)
    return successor
