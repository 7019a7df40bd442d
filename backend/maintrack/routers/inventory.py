"""Inventory endpoints."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user, require_manager
from ..database import get_db
from ..models import InventoryItem, User
from ..schemas import InventoryItemCreate, InventoryItemResponse, StockAdjustmentRequest
from ..use_cases.inventory_stock import adjust_stock_use_case, create_item_use_case
from ..use_cases.reminders import low_stock_items

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=list[InventoryItemResponse])
def list_inventory(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(InventoryItem)
        .filter(InventoryItem.is_active.is_(True))
        .order_by(InventoryItem.name)
        .all()
    )


@router.get("/low-stock", response_model=list[InventoryItemResponse])
def list_low_stock(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Items at or below their reorder threshold."""
    return low_stock_items(db)


@router.post("", response_model=InventoryItemResponse, status_code=201)
def create_inventory_item(
    payload: InventoryItemCreate,
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return create_item_use_case(db=db, payload=payload)


@router.post("/{item_id}/adjust", response_model=InventoryItemResponse)
def adjust_inventory_stock(
    item_id: UUID,
    payload: StockAdjustmentRequest,
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return adjust_stock_use_case(db=db, item_id=item_id, payload=payload)
