from __future__ import annotations

from enum import Enum

from ..extensions import db
from toyshop.time_utils import to_utc_z, utcnow

PAYMENT_METHODS = {"cash", "card"}


class ReturnStatus(str, Enum):
    """Derived return state of a sale line; only ever moves forward."""
    UNRETURNED = "unreturned"
    PARTIALLY_RETURNED = "partially_returned"
    FULLY_RETURNED = "fully_returned"


class Sale(db.Model):
    """
    Completed sale (bill).

    Immutable after creation; returns are recorded against it, never by
    editing it. Amounts are integer cents and satisfy
    total = subtotal + tax - discount and change = paid - total.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_cashier_date", "cashier_id", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable sequential number ("1", "2", ...), independent of id
    bill_number = db.Column(db.String(32), nullable=False, unique=True)

    cashier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    paid_amount_cents = db.Column(db.Integer, nullable=False)
    change_cents = db.Column(db.Integer, nullable=False, default=0)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    notes = db.Column(db.Text, nullable=True)

    cashier = db.relationship("User", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        lazy=True,
        order_by="SaleItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "bill_number": self.bill_number,
            "cashier_id": self.cashier_id,
            "cashier_name": self.cashier.username if self.cashier else None,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "paid_amount_cents": self.paid_amount_cents,
            "change_cents": self.change_cents,
            "sale_date": to_utc_z(self.sale_date),
            "notes": self.notes,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """One line of a sale; fixes product, quantity and price at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    item_total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    @property
    def returned_quantity(self) -> int:
        return sum(ri.quantity for ri in self.return_items)

    @property
    def returnable_quantity(self) -> int:
        return self.quantity - self.returned_quantity

    @property
    def return_status(self) -> ReturnStatus:
        returned = self.returned_quantity
        if returned <= 0:
            return ReturnStatus.UNRETURNED
        if returned < self.quantity:
            return ReturnStatus.PARTIALLY_RETURNED
        return ReturnStatus.FULLY_RETURNED

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": product.name if product else None,
            "barcode": product.barcode if product else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "item_total_cents": self.item_total_cents,
            "returned_quantity": self.returned_quantity,
            "return_status": self.return_status.value,
        }
