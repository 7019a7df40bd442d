"""Maintenance record endpoints."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import settings
from ..database import get_db
from ..deps import get_notifier
from ..models import MaintenanceRecord, User
from ..schemas import (
    InventoryDeductionOut,
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceUpdate,
    MaintenanceUpdateResponse,
)
from ..services.notifier import Notifier
from ..use_cases.maintenance_completion import CompletionOutcome, complete_or_update, get_maintenance_or_404
from ..use_cases.maintenance_records import (
    create_maintenance_use_case,
    delete_maintenance_use_case,
    list_occurrences,
)

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def _to_update_response(outcome: CompletionOutcome) -> MaintenanceUpdateResponse:
    response = MaintenanceUpdateResponse.model_validate(outcome.record)
    response.inventory_errors = list(outcome.inventory_errors)
    if outcome.inventory_deducted is not None:
        response.inventory_deducted = [
            InventoryDeductionOut.model_validate(item) for item in outcome.inventory_deducted
        ]
    if outcome.next_maintenance is not None:
        response.next_maintenance_scheduled = True
        response.next_maintenance_id = outcome.next_maintenance.id
        response.next_maintenance_date = outcome.next_maintenance.scheduled_date
    return response


@router.get("", response_model=list[MaintenanceResponse])
def list_maintenance(
    status: Optional[str] = Query(default=None),
    machine_id: Optional[UUID] = Query(default=None),
    is_template: Optional[bool] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List maintenance records, newest first."""
    query = db.query(MaintenanceRecord)
    if status:
        query = query.filter(MaintenanceRecord.status == status)
    if machine_id:
        query = query.filter(MaintenanceRecord.machine_id == machine_id)
    if is_template is not None:
        query = query.filter(MaintenanceRecord.is_template.is_(is_template))
    return query.order_by(MaintenanceRecord.created_at.desc()).all()


@router.post("", response_model=MaintenanceResponse, status_code=201)
def create_maintenance(
    payload: MaintenanceCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return create_maintenance_use_case(db=db, payload=payload)


@router.get("/{record_id}", response_model=MaintenanceResponse)
def get_maintenance(
    record_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_maintenance_or_404(db, record_id)


@router.get("/{record_id}/occurrences", response_model=list[MaintenanceResponse])
def get_maintenance_occurrences(
    record_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Occurrences spawned from a template or chain head."""
    get_maintenance_or_404(db, record_id)
    return list_occurrences(db, root_id=record_id)


def _update(record_id: UUID, payload: MaintenanceUpdate, db: Session, notifier: Notifier):
    outcome = complete_or_update(
        db=db,
        record_id=record_id,
        patch=payload,
        notifier=notifier,
        due_window_days=settings.OCCURRENCE_DUE_WINDOW_DAYS,
    )
    return _to_update_response(outcome)


@router.put("/{record_id}", response_model=MaintenanceUpdateResponse)
def replace_maintenance(
    record_id: UUID,
    payload: MaintenanceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    return _update(record_id, payload, db, notifier)


@router.patch("/{record_id}", response_model=MaintenanceUpdateResponse)
def patch_maintenance(
    record_id: UUID,
    payload: MaintenanceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    return _update(record_id, payload, db, notifier)


@router.delete("/{record_id}")
def delete_maintenance(
    record_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    delete_maintenance_use_case(db=db, record_id=record_id)
    return {"message": "Record deleted"}
