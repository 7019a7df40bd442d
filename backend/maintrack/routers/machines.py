"""Machine endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..domain_errors import not_found
from ..models import Machine, MaintenanceRecord, User
from ..schemas import MachineResponse, MaintenanceResponse

router = APIRouter(prefix="/machines", tags=["machines"])


def _machine_or_404(db: Session, machine_id: UUID) -> Machine:
    machine = db.query(Machine).filter(Machine.id == machine_id).first()
    if not machine:
        raise not_found("machine")
    return machine


@router.get("", response_model=list[MachineResponse])
def list_machines(
    site_id: Optional[UUID] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Machine).filter(Machine.is_active.is_(True))
    if site_id:
        query = query.filter(Machine.site_id == site_id)
    return query.order_by(Machine.name).all()


@router.get("/{machine_id}", response_model=MachineResponse)
def get_machine(
    machine_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _machine_or_404(db, machine_id)


@router.get("/{machine_id}/maintenance", response_model=list[MaintenanceResponse])
def machine_maintenance_history(
    machine_id: UUID,
    include_templates: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Maintenance performed or planned on one machine, latest schedule first."""
    _machine_or_404(db, machine_id)
    query = db.query(MaintenanceRecord).filter(MaintenanceRecord.machine_id == machine_id)
    if not include_templates:
        query = query.filter(MaintenanceRecord.is_template.is_(False))
    return query.order_by(MaintenanceRecord.scheduled_date.desc()).all()
