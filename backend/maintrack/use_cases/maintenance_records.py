"""Maintenance record create/delete use-cases."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from ..domain_errors import DomainError, not_found
from ..models import Machine, MaintenanceRecord, MaterialUsage
from ..schemas import MaintenanceCreate
from ..services.maintenance_rules import ensure_recurrence_consistent, normalize_status, now_utc
from .maintenance_completion import get_maintenance_or_404

logger = logging.getLogger(__name__)


def create_maintenance_use_case(
    *,
    db: Session,
    payload: MaintenanceCreate,
    now: datetime | None = None,
) -> MaintenanceRecord:
    """Create a manual record or a recurring template."""
    try:
        ensure_recurrence_consistent(
            is_recurring=payload.is_recurring,
            pattern=payload.recurrence_pattern,
            is_template=payload.is_template,
        )
    except ValueError as e:
        raise DomainError(
            code="MAINTENANCE_RECURRENCE_INVALID",
            http_status=400,
            message=str(e),
        ) from e

    if payload.machine_id is not None:
        machine = db.query(Machine).filter(Machine.id == payload.machine_id).first()
        if not machine:
            raise not_found("machine")

    status = normalize_status(payload.status)
    record = MaintenanceRecord(
        title=payload.title,
        description=payload.description,
        machine_id=payload.machine_id,
        site_id=payload.site_id,
        status=status,
        priority=payload.priority,
        scheduled_date=payload.scheduled_date,
        due_date=payload.due_date,
        assigned_to=payload.assigned_to,
        cost=payload.cost,
        notes=payload.notes,
        is_recurring=payload.is_recurring,
        recurrence_pattern=payload.recurrence_pattern if payload.is_recurring else None,
        recurrence_interval=payload.recurrence_interval,
        recurrence_end_date=payload.recurrence_end_date,
        is_template=payload.is_template,
    )
    if status == "completed":
        record.completed_date = now or now_utc()
    record.materials_used = [
        MaterialUsage(inventory_item_id=m.inventory_item_id, quantity_used=m.quantity_used)
        for m in payload.materials_used
    ]

    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"✅ Maintenance created: {record.title}{' (template)' if record.is_template else ''}")
    return record


def delete_maintenance_use_case(*, db: Session, record_id: UUID) -> None:
    """
    Delete a record.

    Occurrences spawned from it are kept; their parent_maintenance_id simply
    stops resolving.
    """
    record = get_maintenance_or_404(db, record_id)
    db.delete(record)
    db.commit()
    logger.info(f"🗑️ Maintenance deleted: {record_id}")


def list_occurrences(db: Session, *, root_id: UUID) -> list[MaintenanceRecord]:
    return (
        db.query(MaintenanceRecord)
        .filter(MaintenanceRecord.parent_maintenance_id == root_id)
        .order_by(MaintenanceRecord.scheduled_date.asc())
        .all()
    )
