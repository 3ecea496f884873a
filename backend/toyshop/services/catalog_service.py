# Overview: Service-layer operations for products and categories.

from __future__ import annotations

from sqlalchemy import or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, InventoryRecord, Product, SaleItem
from ..models.catalog import PRODUCT_STATUSES, PRODUCT_STATUS_AVAILABLE
from toyshop.time_utils import utcnow
from .concurrency import write_transaction

# Maximum price: 9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

PRODUCT_FIELDS = {
    "barcode",
    "name",
    "description",
    "category_id",
    "price_cents",
    "purchase_price_cents",
    "min_stock",
    "age_group",
    "status",
}


def _non_negative_int(field: str, value, *, maximum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value < 0:
        raise ValidationError(f"{field} must not be negative")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field} exceeds maximum of {maximum}")
    return value


def _clean_text(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


# =============================================================================
# CATEGORIES
# =============================================================================

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def _ensure_category_name_free(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError("Category name already exists")


def create_category(name: str, description: str | None = None) -> Category:
    name = _clean_text(name)
    if not name:
        raise ValidationError("Category name is required")

    with write_transaction():
        _ensure_category_name_free(name)
        category = Category(name=name, description=_clean_text(description))
        db.session.add(category)
    return category


def update_category(category_id: int, name: str | None = None, description: str | None = None) -> Category:
    with write_transaction():
        category = get_category(category_id)
        if name is not None:
            name = _clean_text(name)
            if not name:
                raise ValidationError("Category name is required")
            _ensure_category_name_free(name, exclude_id=category_id)
            category.name = name
        if description is not None:
            category.description = _clean_text(description)
    return category


def delete_category(category_id: int) -> None:
    with write_transaction():
        category = get_category(category_id)
        in_use = db.session.query(Product.id).filter_by(category_id=category_id).first()
        if in_use:
            raise ConflictError("Category has products; move or delete them first")
        db.session.delete(category)


# =============================================================================
# PRODUCTS
# =============================================================================

def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
    return product


def find_inventory(product_id: int) -> dict:
    """On-hand quantity and low-stock threshold for one product."""
    product = get_product(product_id)
    record = product.inventory
    if record is None:
        raise NotFoundError(f"Product {product_id} not found in inventory", details={"product_id": product_id})
    return {"quantity": record.quantity, "min_stock": product.min_stock}


def list_products(category_id: int | None = None) -> list[Product]:
    query = db.session.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name.asc()).all()


def search_products(term: str, limit: int = 10) -> list[Product]:
    """Substring match on name or barcode."""
    term = (term or "").strip()
    if not term:
        return []
    pattern = f"%{term}%"
    return (
        db.session.query(Product)
        .filter(or_(Product.name.ilike(pattern), Product.barcode.ilike(pattern)))
        .order_by(Product.name.asc())
        .limit(limit)
        .all()
    )


def _apply_product_fields(product: Product, fields: dict) -> None:
    unknown = set(fields) - PRODUCT_FIELDS
    if unknown:
        raise ValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")

    if "name" in fields:
        name = _clean_text(fields["name"])
        if not name:
            raise ValidationError("Product name is required")
        product.name = name

    if "category_id" in fields:
        get_category(fields["category_id"])
        product.category_id = fields["category_id"]

    if "price_cents" in fields:
        product.price_cents = _non_negative_int("price_cents", fields["price_cents"], maximum=MAX_PRICE_CENTS)

    if "purchase_price_cents" in fields:
        value = fields["purchase_price_cents"]
        product.purchase_price_cents = 0 if value is None else _non_negative_int(
            "purchase_price_cents", value, maximum=MAX_PRICE_CENTS
        )

    if "min_stock" in fields:
        product.min_stock = _non_negative_int("min_stock", fields["min_stock"])

    if "status" in fields:
        if fields["status"] not in PRODUCT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(sorted(PRODUCT_STATUSES))}")
        product.status = fields["status"]

    if "barcode" in fields:
        barcode = _clean_text(fields["barcode"])
        if barcode:
            clash = db.session.query(Product.id).filter(Product.barcode == barcode)
            if product.id is not None:
                clash = clash.filter(Product.id != product.id)
            if clash.first():
                raise ConflictError("Barcode already in use", details={"barcode": barcode})
        product.barcode = barcode

    for text_field in ("description", "age_group"):
        if text_field in fields:
            setattr(product, text_field, _clean_text(fields[text_field]))


def create_product(initial_quantity: int = 0, **fields) -> Product:
    """Create a product together with its inventory record."""
    missing = [f for f in ("name", "category_id", "price_cents") if fields.get(f) in (None, "")]
    if missing:
        raise ValidationError("Missing required fields", details={"missing": missing})
    initial_quantity = _non_negative_int("initial_quantity", initial_quantity)

    with write_transaction():
        product = Product(status=PRODUCT_STATUS_AVAILABLE, purchase_price_cents=0, min_stock=10)
        _apply_product_fields(product, fields)
        product.inventory = InventoryRecord(quantity=initial_quantity, updated_at=utcnow())
        db.session.add(product)
    return product


def update_product(product_id: int, **fields) -> Product:
    with write_transaction():
        product = get_product(product_id)
        _apply_product_fields(product, fields)
    return product


def delete_product(product_id: int) -> None:
    """
    Delete a product and its inventory record.

    Products that appear on any sale line are kept for history; discontinue
    them instead.
    """
    with write_transaction():
        product = get_product(product_id)
        sold = db.session.query(SaleItem.id).filter_by(product_id=product_id).first()
        if sold:
            raise ConflictError("Product has sales history; mark it discontinued instead")
        db.session.delete(product)
