# Overview: Return transaction engine; reverses part or all of a prior sale and restores inventory.

"""
Return Processing Service

A return references the original Sale and, per line, the SaleItem it
reverses. The refund for a line is quantity * the unit price captured on the
SaleItem, never the current product price.

RETURNABLE QUANTITY:
  returnable(sale_item) = sale_item.quantity - sum(ReturnItem.quantity)
The sum is recomputed inside the write transaction that records the return,
so two returns against the same line cannot both pass the check. There is no
stored "returned" flag: a line's state (unreturned, partially returned, fully
returned) is always derived from its ReturnItems.

AUTHORIZATION: admins may return any sale; cashiers only sales they rang up.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func

from ..errors import NotFoundError, OverReturnError, ValidationError
from ..extensions import db
from ..models import Return, ReturnItem, Sale, SaleItem
from ..models.returns import REFUND_METHODS
from toyshop.time_utils import day_bounds, utcnow
from . import inventory_service
from .authorization import Action, Actor, require
from .concurrency import lock_for_update, write_transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReturnResult:
    return_id: int
    return_number: str
    total_refund_cents: int

    def to_dict(self) -> dict:
        return {
            "return_id": self.return_id,
            "return_number": self.return_number,
            "total_refund_cents": self.total_refund_cents,
        }


def _parse_return_lines(items: Iterable | None) -> dict[int, int]:
    """sale_item_id -> quantity, summing repeated lines, in request order."""
    requested: dict[int, int] = {}
    for item in items or []:
        if not isinstance(item, Mapping):
            raise ValidationError("Each item must be an object")
        sale_item_id = item.get("sale_item_id")
        quantity = item.get("quantity")
        if isinstance(sale_item_id, bool) or not isinstance(sale_item_id, int) or sale_item_id <= 0:
            raise ValidationError("sale_item_id must be a positive integer", details={"item": dict(item)})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Return quantity must be a positive integer", details={"item": dict(item)})
        requested[sale_item_id] = requested.get(sale_item_id, 0) + quantity
    return requested


def returned_quantity(sale_item_id: int) -> int:
    """Total quantity already returned against one sale line."""
    total = (
        db.session.query(func.coalesce(func.sum(ReturnItem.quantity), 0))
        .filter(ReturnItem.sale_item_id == sale_item_id)
        .scalar()
    )
    return int(total or 0)


def next_return_number() -> str:
    """RET-<epoch milliseconds>, bumped forward until unused."""
    stamp = int(time.time() * 1000)
    while True:
        candidate = f"RET-{stamp}"
        taken = db.session.query(Return.id).filter_by(return_number=candidate).first()
        if not taken:
            return candidate
        stamp += 1


class ReturnEngine:
    """Records returns against prior sales."""

    def create_return(
        self,
        actor: Actor,
        sale_id: int | None,
        items,
        refund_method: str = "cash",
        reason: str | None = "",
    ) -> ReturnResult:
        requested = _parse_return_lines(items)
        if not sale_id or not requested:
            raise ValidationError("Sale ID and items are required")
        if refund_method not in REFUND_METHODS:
            raise ValidationError(
                f"refund_method must be one of: {', '.join(sorted(REFUND_METHODS))}"
            )

        with write_transaction():
            sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
            if sale is None:
                raise NotFoundError("Sale not found", details={"sale_id": sale_id})

            require(
                actor,
                Action.RETURN_SALE,
                sale.cashier_id,
                message="Unauthorized: You can only return your own sales",
            )

            lines: list[tuple[SaleItem, int]] = []
            for sale_item_id, qty in requested.items():
                sale_item = lock_for_update(
                    db.session.query(SaleItem).filter_by(id=sale_item_id)
                ).first()
                if sale_item is None or sale_item.sale_id != sale.id:
                    raise NotFoundError(
                        f"Sale item {sale_item_id} not found on this sale",
                        details={"sale_item_id": sale_item_id, "sale_id": sale.id},
                    )

                available = sale_item.quantity - returned_quantity(sale_item_id)
                if qty > available:
                    raise OverReturnError(
                        sale_item_id=sale_item_id,
                        available_to_return=available,
                        requested=qty,
                    )
                lines.append((sale_item, qty))

            total_refund = sum(sale_item.unit_price_cents * qty for sale_item, qty in lines)

            return_doc = Return(
                return_number=next_return_number(),
                sale_id=sale.id,
                cashier_id=actor.id,
                total_refund_cents=total_refund,
                refund_method=refund_method,
                reason=reason or None,
                return_date=utcnow(),
            )
            for sale_item, qty in lines:
                return_doc.items.append(ReturnItem(
                    sale_item_id=sale_item.id,
                    product_id=sale_item.product_id,
                    quantity=qty,
                    unit_price_cents=sale_item.unit_price_cents,
                    item_refund_cents=sale_item.unit_price_cents * qty,
                ))
            db.session.add(return_doc)
            db.session.flush()

            for sale_item, qty in lines:
                inventory_service.increment(sale_item.product_id, qty)

            result = ReturnResult(
                return_id=return_doc.id,
                return_number=return_doc.return_number,
                total_refund_cents=total_refund,
            )

        logger.info(
            "Return %s recorded against sale %s by user %s: refund=%s",
            result.return_number, sale_id, actor.id, result.total_refund_cents,
        )
        return result

    def returnable_items(self, actor: Actor, sale_id: int) -> dict:
        """Sale plus its lines with returned quantity and derived return status."""
        sale = db.session.get(Sale, sale_id)
        if sale is None:
            raise NotFoundError("Sale not found", details={"sale_id": sale_id})
        require(actor, Action.RETURN_SALE, sale.cashier_id)
        return {
            "sale": sale.to_dict(),
            "items": [item.to_dict() for item in sale.items],
        }

    def get_return(self, actor: Actor, return_id: int) -> Return:
        return_doc = db.session.get(Return, return_id)
        if return_doc is None:
            raise NotFoundError("Return not found", details={"return_id": return_id})
        # the cashier who processed the return may reopen it too
        owner_id = return_doc.sale.cashier_id
        if return_doc.cashier_id == actor.id:
            owner_id = actor.id
        require(actor, Action.VIEW_SALE, owner_id)
        return return_doc

    def list_returns(
        self,
        actor: Actor,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Return]:
        require(actor, Action.LIST_RETURNS)
        query = db.session.query(Return)
        lower, upper = day_bounds(start_date, end_date)
        if lower is not None:
            query = query.filter(Return.return_date >= lower)
        if upper is not None:
            query = query.filter(Return.return_date < upper)
        return query.order_by(Return.return_date.desc(), Return.id.desc()).all()
