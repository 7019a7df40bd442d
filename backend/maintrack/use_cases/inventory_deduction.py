"""Inventory deduction for materials consumed by maintenance work."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import InventoryItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialRequest:
    item_id: UUID | str
    quantity: int


@dataclass(frozen=True)
class DeductionSuccess:
    item_id: UUID
    item_name: str
    deducted: int
    remaining_stock: int


@dataclass
class DeductionResult:
    successes: list[DeductionSuccess] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _coerce_uuid(value: UUID | str) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def _deduct_one(db: Session, material: MaterialRequest) -> DeductionSuccess | str:
    item_id = _coerce_uuid(material.item_id)
    item = db.query(InventoryItem).filter(InventoryItem.id == item_id).first() if item_id else None
    if item is None:
        return f"Can't find inventory item {material.item_id}"

    quantity = int(material.quantity or 0)
    if quantity == 0:
        return DeductionSuccess(item_id=item.id, item_name=item.name, deducted=0, remaining_stock=item.current_stock)
    if quantity < 0:
        return f"Invalid quantity for {item.name}: {material.quantity}"

    if item.current_stock < quantity:
        return f"Not enough {item.name} in stock. Available: {item.current_stock}, Need: {quantity}"

    # Conditional decrement: a concurrent deduction can never push stock below zero.
    updated = (
        db.query(InventoryItem)
        .filter(InventoryItem.id == item.id, InventoryItem.current_stock >= quantity)
        .update(
            {InventoryItem.current_stock: InventoryItem.current_stock - quantity},
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        db.refresh(item)
        return f"Not enough {item.name} in stock. Available: {item.current_stock}, Need: {quantity}"

    db.commit()
    db.refresh(item)
    return DeductionSuccess(
        item_id=item.id,
        item_name=item.name,
        deducted=quantity,
        remaining_stock=item.current_stock,
    )


def deduct_materials(db: Session, materials: Iterable[MaterialRequest]) -> DeductionResult:
    """
    Deduct each material independently.

    Every input entry lands in exactly one of successes/errors. There is no
    cross-item rollback: a failure on item B leaves item A's decrement applied.
    A zero quantity is a successful no-op; stock is not touched.
    """
    result = DeductionResult()
    for material in materials:
        try:
            outcome = _deduct_one(db, material)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Inventory deduction failed for {material.item_id}: {e}", exc_info=True)
            result.errors.append(f"Problem with {material.item_id}: {e}")
            continue

        if isinstance(outcome, DeductionSuccess):
            result.successes.append(outcome)
            logger.info(f"📦 Deducted {outcome.deducted} x {outcome.item_name}, remaining {outcome.remaining_stock}")
        else:
            result.errors.append(outcome)
            logger.warning(f"⚠️ {outcome}")
    return result
