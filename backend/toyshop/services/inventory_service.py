# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

"""
Inventory Ledger invariants (authoritative)

- One InventoryRecord per product holds the on-hand quantity.
- Only sales (decrement), returns (increment) and administrative adjustment
  change it; every change touches updated_at.
- decrement() does not re-check sufficiency. The sale engine checks stock for
  the whole sale inside the same write transaction before calling it, which
  is what keeps quantity >= 0.
- decrement()/increment() never commit: they are steps of a caller's
  transaction. set_or_adjust() is a standalone operation and commits itself.
"""

from __future__ import annotations

from enum import Enum

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import InventoryRecord, Product
from ..models.catalog import PRODUCT_STATUS_AVAILABLE
from toyshop.time_utils import utcnow
from .concurrency import lock_for_update, write_transaction


class AdjustmentMode(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"

    @classmethod
    def parse(cls, value) -> "AdjustmentMode":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"adjustment_type must be one of: {', '.join(m.value for m in cls)}"
            ) from None


def _require_quantity(qty) -> int:
    if isinstance(qty, bool) or not isinstance(qty, int):
        raise ValidationError("quantity must be an integer")
    if qty < 0:
        raise ValidationError("quantity must not be negative")
    return qty


def find_inventory(product_id: int, *, lock: bool = False) -> InventoryRecord | None:
    query = db.session.query(InventoryRecord).filter_by(product_id=product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def _get_record(product_id: int, *, lock: bool = False) -> InventoryRecord:
    record = find_inventory(product_id, lock=lock)
    if record is None:
        raise NotFoundError(f"Product {product_id} not found in inventory", details={"product_id": product_id})
    return record


def get_quantity(product_id: int) -> int:
    return int(_get_record(product_id).quantity)


def decrement(product_id: int, qty: int) -> InventoryRecord:
    """Subtract qty from on-hand. Caller has already verified availability."""
    qty = _require_quantity(qty)
    record = _get_record(product_id)
    record.quantity = record.quantity - qty
    record.updated_at = utcnow()
    return record


def increment(product_id: int, qty: int) -> InventoryRecord:
    qty = _require_quantity(qty)
    record = _get_record(product_id)
    record.quantity = record.quantity + qty
    record.updated_at = utcnow()
    return record


def set_or_adjust(product_id: int, qty: int, mode) -> InventoryRecord:
    """
    Administrative stock adjustment.

    add: on-hand + qty
    subtract: max(on-hand - qty, 0)
    set: qty
    """
    qty = _require_quantity(qty)
    mode = AdjustmentMode.parse(mode)

    with write_transaction():
        record = _get_record(product_id, lock=True)
        if mode is AdjustmentMode.ADD:
            record.quantity = record.quantity + qty
        elif mode is AdjustmentMode.SUBTRACT:
            record.quantity = max(record.quantity - qty, 0)
        else:
            record.quantity = qty
        record.updated_at = utcnow()
    return record


def list_inventory() -> list[InventoryRecord]:
    return (
        db.session.query(InventoryRecord)
        .join(Product, InventoryRecord.product_id == Product.id)
        .order_by(Product.name.asc())
        .all()
    )


def low_stock() -> list[InventoryRecord]:
    """Available products at or below their minimum stock, emptiest first."""
    return (
        db.session.query(InventoryRecord)
        .join(Product, InventoryRecord.product_id == Product.id)
        .filter(
            InventoryRecord.quantity <= Product.min_stock,
            Product.status == PRODUCT_STATUS_AVAILABLE,
        )
        .order_by(InventoryRecord.quantity.asc(), Product.name.asc())
        .all()
    )
