"""Manual inventory stock adjustments."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from ..domain_errors import DomainError, not_found
from ..models import InventoryItem
from ..schemas import InventoryItemCreate, StockAdjustmentRequest
from ..services.maintenance_rules import now_utc

logger = logging.getLogger(__name__)


def get_item_or_404(db: Session, item_id: UUID) -> InventoryItem:
    item = db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
    if not item:
        raise not_found("inventory_item")
    return item


def create_item_use_case(*, db: Session, payload: InventoryItemCreate) -> InventoryItem:
    item = InventoryItem(**payload.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def adjust_stock_use_case(
    *,
    db: Session,
    item_id: UUID,
    payload: StockAdjustmentRequest,
    now: datetime | None = None,
) -> InventoryItem:
    """Apply a signed stock delta; stock may never go below zero."""
    if payload.delta == 0:
        raise DomainError(
            code="INVENTORY_ADJUSTMENT_EMPTY",
            http_status=400,
            message="delta must not be 0",
        )

    item = get_item_or_404(db, item_id)
    if item.current_stock + payload.delta < 0:
        raise DomainError(
            code="INVENTORY_INSUFFICIENT_STOCK",
            http_status=409,
            message=f"Not enough {item.name} in stock. Available: {item.current_stock}, Need: {-payload.delta}",
            details={"available": item.current_stock, "requested": -payload.delta},
        )

    item.current_stock += payload.delta
    if payload.delta > 0:
        item.last_restocked = now or now_utc()
    db.commit()
    db.refresh(item)
    logger.info(
        f"📦 Stock adjusted for {item.name}: {payload.delta:+d} -> {item.current_stock}"
        f"{f' ({payload.reason})' if payload.reason else ''}"
    )
    return item
