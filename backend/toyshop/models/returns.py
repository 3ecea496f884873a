from __future__ import annotations

from ..extensions import db
from toyshop.time_utils import to_utc_z, utcnow

REFUND_METHODS = {"cash", "card"}


class Return(db.Model):
    """
    Customer return recorded against a prior sale.

    total_refund_cents always equals the sum of its items' item_refund_cents.
    Immutable once created.
    """
    __tablename__ = "returns"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    # e.g. "RET-1735689600123"
    return_number = db.Column(db.String(32), nullable=False, unique=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    total_refund_cents = db.Column(db.Integer, nullable=False)
    refund_method = db.Column(db.String(16), nullable=False, default="cash")
    reason = db.Column(db.Text, nullable=True)

    return_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    sale = db.relationship("Sale", backref=db.backref("returns", lazy=True))
    cashier = db.relationship("User")
    items = db.relationship(
        "ReturnItem",
        back_populates="return_doc",
        cascade="all, delete-orphan",
        lazy=True,
        order_by="ReturnItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "return_number": self.return_number,
            "sale_id": self.sale_id,
            "bill_number": self.sale.bill_number if self.sale else None,
            "cashier_id": self.cashier_id,
            "cashier_name": self.cashier.username if self.cashier else None,
            "total_refund_cents": self.total_refund_cents,
            "refund_method": self.refund_method,
            "reason": self.reason,
            "return_date": to_utc_z(self.return_date),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class ReturnItem(db.Model):
    """One returned line, pointing at the sale line it reverses."""
    __tablename__ = "return_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    return_id = db.Column(db.Integer, db.ForeignKey("returns.id", ondelete="CASCADE"), nullable=False, index=True)
    sale_item_id = db.Column(db.Integer, db.ForeignKey("sale_items.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    # Copied from the sale line, never from the current product price
    unit_price_cents = db.Column(db.Integer, nullable=False)
    item_refund_cents = db.Column(db.Integer, nullable=False)

    return_doc = db.relationship("Return", back_populates="items")
    sale_item = db.relationship("SaleItem", backref=db.backref("return_items", lazy=True))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "return_id": self.return_id,
            "sale_item_id": self.sale_item_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "item_refund_cents": self.item_refund_cents,
        }
