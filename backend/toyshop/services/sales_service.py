# Overview: Sale transaction engine; validates stock, computes totals, records the sale and decrements inventory.

"""
Sale Service

A sale is recorded in one write transaction:
  stock check for every line -> bill number -> totals -> Sale + SaleItems
  -> inventory decrement -> commit.
Any failure rolls the whole thing back, so a rejected sale leaves no rows and
no inventory change behind.

PRICING: the unit price on each line is taken from the caller as-is and
captured on the SaleItem. It is never re-read from Product, which keeps
historical sales accurate and allows deliberate price overrides at the till.

MONEY: all amounts are integer cents. Tax is subtotal * tax% / 100, rounded
half-up to the cent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from ..errors import InsufficientStockError, NotFoundError, PaymentError, ValidationError
from ..extensions import db
from ..models import Product, Sale, SaleItem
from ..models.sales import PAYMENT_METHODS
from toyshop.time_utils import day_bounds, utcnow
from . import inventory_service
from .authorization import Action, Actor, require
from .concurrency import write_transaction
from .settings_service import DatabaseSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleLineRequest:
    product_id: int
    quantity: int
    unit_price_cents: int


@dataclass(frozen=True)
class SaleTotals:
    subtotal_cents: int
    tax_cents: int
    discount_cents: int
    total_cents: int
    paid_amount_cents: int
    change_cents: int


@dataclass(frozen=True)
class SaleResult:
    sale_id: int
    bill_number: str
    total_cents: int
    change_cents: int

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale_id,
            "bill_number": self.bill_number,
            "total_cents": self.total_cents,
            "change_cents": self.change_cents,
        }


def _int_field(item: Mapping, field: str, *, positive: bool) -> int:
    value = item.get(field)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", details={"item": dict(item)})
    if positive and value <= 0:
        raise ValidationError(f"{field} must be positive", details={"item": dict(item)})
    if value < 0:
        raise ValidationError(f"{field} must not be negative", details={"item": dict(item)})
    return value


def parse_sale_lines(items: Iterable | None) -> list[SaleLineRequest]:
    """Normalize request items (mappings or SaleLineRequest) and validate them."""
    lines: list[SaleLineRequest] = []
    for item in items or []:
        if isinstance(item, SaleLineRequest):
            item = {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price_cents": item.unit_price_cents,
            }
        if not isinstance(item, Mapping):
            raise ValidationError("Each item must be an object")
        lines.append(SaleLineRequest(
            product_id=_int_field(item, "product_id", positive=True),
            quantity=_int_field(item, "quantity", positive=True),
            unit_price_cents=_int_field(item, "unit_price_cents", positive=False),
        ))
    if not lines:
        raise ValidationError("No items in sale")
    return lines


def compute_totals(
    lines: list[SaleLineRequest],
    tax_percentage: Decimal,
    discount_cents: int,
    paid_amount_cents: int,
) -> SaleTotals:
    """
    subtotal = sum(unit_price * quantity)
    tax      = subtotal * tax% / 100 (half-up to the cent)
    total    = subtotal + tax - discount
    change   = paid - total   (may be negative; the caller rejects that)
    """
    subtotal = sum(line.unit_price_cents * line.quantity for line in lines)
    tax = int(
        (Decimal(subtotal) * Decimal(tax_percentage) / Decimal(100)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
    )
    total = subtotal + tax - discount_cents
    return SaleTotals(
        subtotal_cents=subtotal,
        tax_cents=tax,
        discount_cents=discount_cents,
        total_cents=total,
        paid_amount_cents=paid_amount_cents,
        change_cents=paid_amount_cents - total,
    )


def next_bill_number() -> str:
    """
    Highest numeric bill number + 1, as a string ("1" for an empty history).

    Bill numbers that are not plain digits are ignored.
    """
    highest = 0
    for (bill_number,) in db.session.query(Sale.bill_number):
        if bill_number and bill_number.isdigit():
            highest = max(highest, int(bill_number))
    return str(highest + 1)


def _check_stock(lines: list[SaleLineRequest]) -> None:
    """Verify every product has enough on hand for the whole sale before any write."""
    requested: dict[int, int] = {}
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    for product_id, qty in requested.items():
        product = db.session.get(Product, product_id)
        record = inventory_service.find_inventory(product_id, lock=True)
        if product is None or record is None:
            raise NotFoundError(
                f"Product {product_id} not found in inventory",
                details={"product_id": product_id},
            )
        if not product.is_available:
            raise ValidationError(
                f"{product.name} is discontinued",
                details={"product_id": product_id},
            )
        if qty > record.quantity:
            raise InsufficientStockError(
                product_id=product_id,
                product_name=product.name,
                available=record.quantity,
                requested=qty,
            )


class SaleEngine:
    """
    Records sales.

    `settings` supplies tax_percentage() and cashier_discount_allowed();
    defaults to the settings table.
    """

    def __init__(self, settings=None):
        self.settings = settings if settings is not None else DatabaseSettings()

    def get_tax_percentage(self) -> Decimal:
        return self.settings.tax_percentage()

    def create_sale(
        self,
        actor: Actor,
        items,
        payment_method: str = "cash",
        paid_amount_cents: int = 0,
        discount_cents: int = 0,
        customer_name: str | None = None,
        customer_phone: str | None = None,
        notes: str | None = "",
    ) -> SaleResult:
        lines = parse_sale_lines(items)

        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"payment_method must be one of: {', '.join(sorted(PAYMENT_METHODS))}"
            )
        for field, value in (("discount_cents", discount_cents), ("paid_amount_cents", paid_amount_cents)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"{field} must be a non-negative integer")

        if discount_cents > 0:
            require(
                actor,
                Action.APPLY_DISCOUNT,
                discount_allowed=self.settings.cashier_discount_allowed(),
                message=(
                    "You do not have permission to apply discounts. "
                    "Only administrators can apply discounts."
                ),
            )

        with write_transaction():
            _check_stock(lines)

            bill_number = next_bill_number()

            totals = compute_totals(lines, self.settings.tax_percentage(), discount_cents, paid_amount_cents)
            if discount_cents > totals.subtotal_cents + totals.tax_cents:
                raise ValidationError(
                    "Discount cannot exceed the bill amount",
                    details={"discount_cents": discount_cents},
                )
            if totals.change_cents < 0:
                raise PaymentError(total_cents=totals.total_cents, paid_amount_cents=paid_amount_cents)

            sale = Sale(
                bill_number=bill_number,
                cashier_id=actor.id,
                customer_name=customer_name or None,
                customer_phone=customer_phone or None,
                subtotal_cents=totals.subtotal_cents,
                tax_cents=totals.tax_cents,
                discount_cents=totals.discount_cents,
                total_cents=totals.total_cents,
                payment_method=payment_method,
                paid_amount_cents=totals.paid_amount_cents,
                change_cents=totals.change_cents,
                sale_date=utcnow(),
                notes=notes or None,
            )
            for line in lines:
                sale.items.append(SaleItem(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price_cents=line.unit_price_cents,
                    item_total_cents=line.unit_price_cents * line.quantity,
                ))
            db.session.add(sale)
            db.session.flush()

            for line in lines:
                inventory_service.decrement(line.product_id, line.quantity)

            result = SaleResult(
                sale_id=sale.id,
                bill_number=bill_number,
                total_cents=totals.total_cents,
                change_cents=totals.change_cents,
            )

        logger.info(
            "Sale %s recorded by user %s: total=%s change=%s",
            result.bill_number, actor.id, result.total_cents, result.change_cents,
        )
        return result

    def get_sale(self, actor: Actor, sale_id: int) -> Sale:
        """Sale with its lines. Cashiers may only open their own sales."""
        sale = db.session.get(Sale, sale_id)
        if sale is None:
            raise NotFoundError("Sale not found", details={"sale_id": sale_id})
        require(actor, Action.VIEW_SALE, sale.cashier_id)
        return sale

    def list_sales(
        self,
        actor: Actor,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Sale]:
        """Newest first; cashiers only see their own sales."""
        query = db.session.query(Sale)
        if not actor.is_admin:
            query = query.filter(Sale.cashier_id == actor.id)
        lower, upper = day_bounds(start_date, end_date)
        if lower is not None:
            query = query.filter(Sale.sale_date >= lower)
        if upper is not None:
            query = query.filter(Sale.sale_date < upper)
        return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()
