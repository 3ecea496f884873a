from __future__ import annotations

from ..extensions import db
from toyshop.time_utils import to_utc_z, utcnow


class InventoryRecord(db.Model):
    """
    On-hand quantity for one product (1:1 with Product).

    Mutated only by sales (decrement), returns (increment) and administrative
    adjustment. The non-negative floor is enforced by those operations, not by
    a table constraint.
    """
    __tablename__ = "inventory"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    quantity = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", back_populates="inventory")

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": product.name if product else None,
            "barcode": product.barcode if product else None,
            "min_stock": product.min_stock if product else None,
            "quantity": self.quantity,
            "updated_at": to_utc_z(self.updated_at),
        }
