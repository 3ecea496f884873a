from __future__ import annotations

from ..extensions import db
from toyshop.time_utils import to_utc_z

PRODUCT_STATUS_AVAILABLE = "available"
PRODUCT_STATUS_DISCONTINUED = "discontinued"
PRODUCT_STATUSES = {PRODUCT_STATUS_AVAILABLE, PRODUCT_STATUS_DISCONTINUED}


class Category(db.Model):
    """Product grouping used by the catalog and category reports."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data.

    Referenced (never owned) by sale and return lines. Prices here are the
    current list prices; a sale line captures its own unit price, so editing a
    product never rewrites history.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_category_status", "category_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Scannable code; optional but unique when present
    barcode = db.Column(db.String(64), nullable=True, unique=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)
    purchase_price_cents = db.Column(db.Integer, nullable=False, default=0)

    # Low-stock threshold
    min_stock = db.Column(db.Integer, nullable=False, default=10)

    status = db.Column(db.String(16), nullable=False, default=PRODUCT_STATUS_AVAILABLE, index=True)
    age_group = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    inventory = db.relationship(
        "InventoryRecord",
        back_populates="product",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def is_available(self) -> bool:
        return self.status == PRODUCT_STATUS_AVAILABLE

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "name": self.name,
            "description": self.description,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "price_cents": self.price_cents,
            "purchase_price_cents": self.purchase_price_cents,
            "min_stock": self.min_stock,
            "status": self.status,
            "age_group": self.age_group,
            "quantity": self.inventory.quantity if self.inventory else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
