"""Maintenance update use-case with completion side effects."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable
from uuid import UUID
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain_errors import DomainError, not_found
from ..models import InventoryItem, MaintenanceRecord, MaterialUsage
from ..schemas import MaintenanceUpdate, MaterialUsageIn
from ..services.maintenance_rules import (
    StatusTransitionError,
    ensure_recurrence_consistent,
    is_completion_transition,
    is_terminal_status,
    now_utc,
    validate_status_transition,
)
from ..services.notifier import Notifier
from .inventory_deduction import DeductionSuccess, MaterialRequest, deduct_materials
from .occurrences import DEFAULT_DUE_WINDOW_DAYS, schedule_next_occurrence

logger = logging.getLogger(__name__)

# An explicit null clears nullable columns; for these it means "leave as is".
_NOT_NULL_FIELDS = frozenset(
    {"title", "description", "status", "priority", "cost", "is_recurring", "recurrence_interval", "materials_used"}
)


@dataclass
class CompletionOutcome:
    record: MaintenanceRecord
    completed_now: bool = False
    inventory_deducted: list[DeductionSuccess] | None = None
    inventory_errors: list[str] = field(default_factory=list)
    next_maintenance: MaintenanceRecord | None = None


def get_maintenance_or_404(db: Session, record_id: UUID) -> MaintenanceRecord:
    record = db.query(MaintenanceRecord).filter(MaintenanceRecord.id == record_id).first()
    if not record:
        raise not_found("maintenance")
    return record


def _existing_item_ids(db: Session, item_ids: Iterable[UUID]) -> set[UUID]:
    ids = tuple(set(item_ids))
    if not ids:
        return set()
    rows = db.query(InventoryItem.id).filter(InventoryItem.id.in_(ids)).all()
    return {row[0] for row in rows}


def _material_rows(
    db: Session,
    materials: list[MaterialUsageIn],
    *,
    deducted: bool,
) -> list[MaterialUsage]:
    known = _existing_item_ids(db, (m.inventory_item_id for m in materials))
    return [
        MaterialUsage(
            inventory_item_id=m.inventory_item_id,
            quantity_used=m.quantity_used,
            deducted_from_inventory=deducted,
        )
        for m in materials
        if m.inventory_item_id in known
    ]


def complete_or_update(
    *,
    db: Session,
    record_id: UUID,
    patch: MaintenanceUpdate,
    notifier: Notifier,
    now: datetime | None = None,
    due_window_days: int = DEFAULT_DUE_WINDOW_DAYS,
) -> CompletionOutcome:
    """
    Apply a partial update to a maintenance record.

    Only the transition into ``completed`` from another status has side
    effects: completed_date is stamped, consumed materials are deducted from
    stock and a recurring record schedules its successor. Deductions that
    already succeeded are not rolled back when others fail; every material row
    is flagged as deducted only when the whole batch succeeded.
    """
    record = get_maintenance_or_404(db, record_id)
    ts = now or now_utc()
    data = {
        key: value
        for key, value in patch.model_dump(exclude_unset=True).items()
        if value is not None or key not in _NOT_NULL_FIELDS
    }

    previous_status = record.status
    try:
        status = validate_status_transition(current_status=previous_status, next_status=data.pop("status", None))
    except StatusTransitionError as e:
        raise DomainError(
            code="MAINTENANCE_STATUS_TRANSITION_FORBIDDEN",
            http_status=409,
            message=str(e),
            details={"from": previous_status, "to": patch.status},
        ) from e

    completing = is_completion_transition(current_status=previous_status, next_status=status)
    was_terminal = is_terminal_status(previous_status)
    materials = patch.materials_used
    data.pop("materials_used", None)
    completed_date = data.pop("completed_date", None)

    # Validate the resulting recurrence rule before any stock is touched.
    is_recurring = data.get("is_recurring", record.is_recurring)
    pattern = data.get("recurrence_pattern", record.recurrence_pattern) if is_recurring else None
    try:
        ensure_recurrence_consistent(is_recurring=is_recurring, pattern=pattern, is_template=record.is_template)
    except ValueError as e:
        raise DomainError(
            code="MAINTENANCE_RECURRENCE_INVALID",
            http_status=400,
            message=str(e),
        ) from e

    outcome = CompletionOutcome(record=record, completed_now=completing)
    deducted_flag = False
    if completing and materials:
        deduction = deduct_materials(
            db,
            [MaterialRequest(item_id=m.inventory_item_id, quantity=m.quantity_used) for m in materials],
        )
        outcome.inventory_deducted = deduction.successes
        outcome.inventory_errors = deduction.errors
        deducted_flag = deduction.ok

    for key, value in data.items():
        setattr(record, key, value)
    record.status = status
    record.recurrence_pattern = pattern

    if completing:
        record.completed_date = completed_date or ts
    elif status == "completed" and completed_date is not None:
        record.completed_date = completed_date

    if materials is not None:
        if was_terminal:
            logger.info(f"⏭️ Ignoring materials change on {previous_status} maintenance {record_id}")
        else:
            record.materials_used = _material_rows(db, materials, deducted=deducted_flag)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to update maintenance {record_id}: {e}", exc_info=True)
        raise DomainError(
            code="MAINTENANCE_UPDATE_FAILED",
            http_status=500,
            message="Could not update maintenance record",
            details={
                "inventory_deducted": len(outcome.inventory_deducted or []),
                "inventory_errors": outcome.inventory_errors,
            },
        ) from e
    db.refresh(record)
    logger.info(f"✅ Maintenance updated: {record.title} ({previous_status} -> {record.status})")

    if completing and record.is_recurring:
        try:
            outcome.next_maintenance = schedule_next_occurrence(
                db,
                record,
                notifier=notifier,
                now=ts,
                due_window_days=due_window_days,
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to schedule next occurrence of {record_id}: {e}", exc_info=True)

    return outcome
