# Overview: Read-only report projections over sales and returns.

"""
Reporting Service

The period reports take an optional inclusive [start_date, end_date] range of
calendar dates (UTC) and are built with bound parameters only. hourly_sales()
covers a single day and inventory_valuation() is a snapshot of stock on hand.

Profit is sale subtotal (before tax and discount) minus quantity * the
product's current purchase price. Returns are reported separately and not
netted out of sales or profit.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func

from ..extensions import db
from ..models import Category, InventoryRecord, Product, Return, Sale, SaleItem, User
from ..models.catalog import PRODUCT_STATUS_AVAILABLE
from toyshop.time_utils import day_bounds, utcnow

STOCK_IN = "in_stock"
STOCK_LOW = "low_stock"
STOCK_OUT = "out_of_stock"


def _in_range(query, column, start_date: date | None, end_date: date | None):
    lower, upper = day_bounds(start_date, end_date)
    if lower is not None:
        query = query.filter(column >= lower)
    if upper is not None:
        query = query.filter(column < upper)
    return query


def _day(value) -> str:
    # func.date() yields a str on SQLite and a date elsewhere
    return value.isoformat() if isinstance(value, date) else str(value)


def sales_by_day(start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    day = func.date(Sale.sale_date).label("day")
    query = db.session.query(
        day,
        func.coalesce(func.sum(Sale.total_cents), 0).label("total_sales_cents"),
        func.count(Sale.id).label("transaction_count"),
    )
    query = _in_range(query, Sale.sale_date, start_date, end_date)
    rows = query.group_by(day).order_by(day.asc()).all()
    return [
        {
            "date": _day(row.day),
            "total_sales_cents": int(row.total_sales_cents),
            "transaction_count": int(row.transaction_count),
        }
        for row in rows
    ]


def profit_by_day(start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    """Revenue, tax, discount and gross profit per day."""
    day = func.date(Sale.sale_date).label("day")
    totals_query = db.session.query(
        day,
        func.coalesce(func.sum(Sale.subtotal_cents), 0).label("revenue"),
        func.coalesce(func.sum(Sale.tax_cents), 0).label("tax"),
        func.coalesce(func.sum(Sale.discount_cents), 0).label("discount"),
        func.coalesce(func.sum(Sale.total_cents), 0).label("total"),
        func.count(Sale.id).label("transactions"),
    )
    totals_query = _in_range(totals_query, Sale.sale_date, start_date, end_date)
    totals = totals_query.group_by(day).order_by(day.asc()).all()

    cost_query = (
        db.session.query(
            day,
            func.coalesce(func.sum(SaleItem.quantity * Product.purchase_price_cents), 0).label("cost"),
        )
        .select_from(SaleItem)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .join(Product, SaleItem.product_id == Product.id)
    )
    cost_query = _in_range(cost_query, Sale.sale_date, start_date, end_date)
    cost_by_day = {_day(row.day): int(row.cost) for row in cost_query.group_by(day).all()}

    report = []
    for row in totals:
        key = _day(row.day)
        revenue = int(row.revenue)
        cost = cost_by_day.get(key, 0)
        report.append({
            "date": key,
            "total_revenue_cents": revenue,
            "total_tax_cents": int(row.tax),
            "total_discount_cents": int(row.discount),
            "total_sales_cents": int(row.total),
            "transaction_count": int(row.transactions),
            "total_cost_cents": cost,
            "profit_cents": revenue - cost,
        })
    return report


def product_sales(start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    revenue = func.coalesce(func.sum(SaleItem.item_total_cents), 0).label("revenue")
    query = (
        db.session.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            func.coalesce(func.sum(SaleItem.quantity), 0).label("quantity"),
            revenue,
        )
        .select_from(SaleItem)
        .join(Product, SaleItem.product_id == Product.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
    )
    query = _in_range(query, Sale.sale_date, start_date, end_date)
    rows = query.group_by(Product.id, Product.name).order_by(revenue.desc(), Product.name.asc()).all()
    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "total_quantity_sold": int(row.quantity),
            "total_revenue_cents": int(row.revenue),
        }
        for row in rows
    ]


def category_sales(start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    revenue = func.coalesce(func.sum(SaleItem.item_total_cents), 0).label("revenue")
    query = (
        db.session.query(
            Category.id.label("category_id"),
            Category.name.label("category_name"),
            func.coalesce(func.sum(SaleItem.quantity), 0).label("quantity"),
            revenue,
        )
        .select_from(SaleItem)
        .join(Product, SaleItem.product_id == Product.id)
        .join(Category, Product.category_id == Category.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
    )
    query = _in_range(query, Sale.sale_date, start_date, end_date)
    rows = query.group_by(Category.id, Category.name).order_by(revenue.desc(), Category.name.asc()).all()
    return [
        {
            "category_id": row.category_id,
            "category_name": row.category_name,
            "total_quantity_sold": int(row.quantity),
            "total_revenue_cents": int(row.revenue),
        }
        for row in rows
    ]


def returns_summary(start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    day = func.date(Return.return_date).label("day")
    query = db.session.query(
        day,
        func.coalesce(func.sum(Return.total_refund_cents), 0).label("refunds"),
        func.count(Return.id).label("count"),
    )
    query = _in_range(query, Return.return_date, start_date, end_date)
    rows = query.group_by(day).order_by(day.asc()).all()
    return [
        {
            "date": _day(row.day),
            "total_refund_cents": int(row.refunds),
            "return_count": int(row.count),
        }
        for row in rows
    ]


def cashier_sales(start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    """Per-cashier totals, highest takings first. Average is half-up to the cent."""
    total = func.coalesce(func.sum(Sale.total_cents), 0).label("total")
    query = (
        db.session.query(
            User.id.label("cashier_id"),
            User.username.label("username"),
            func.count(Sale.id).label("count"),
            total,
        )
        .select_from(Sale)
        .join(User, Sale.cashier_id == User.id)
    )
    query = _in_range(query, Sale.sale_date, start_date, end_date)
    rows = query.group_by(User.id, User.username).order_by(total.desc(), User.username.asc()).all()
    report = []
    for row in rows:
        count = int(row.count)
        takings = int(row.total)
        average = (Decimal(takings) / count).quantize(Decimal("1"), rounding=ROUND_HALF_UP) if count else 0
        report.append({
            "cashier_id": row.cashier_id,
            "username": row.username,
            "transaction_count": count,
            "total_sales_cents": takings,
            "average_transaction_cents": int(average),
        })
    return report


def hourly_sales(day: date | None = None) -> list[dict]:
    """Sales of one calendar day (default: today) bucketed by hour of sale_date."""
    day = day or utcnow().date()
    lower, upper = day_bounds(day, day)
    sales = (
        db.session.query(Sale)
        .filter(Sale.sale_date >= lower, Sale.sale_date < upper)
        .order_by(Sale.sale_date.asc())
        .all()
    )

    buckets: dict[int, dict] = {}
    for sale in sales:
        bucket = buckets.setdefault(sale.sale_date.hour, {
            "hour": f"{sale.sale_date.hour:02d}:00",
            "transaction_count": 0,
            "total_sales_cents": 0,
            "subtotal_cents": 0,
            "total_tax_cents": 0,
            "total_discount_cents": 0,
        })
        bucket["transaction_count"] += 1
        bucket["total_sales_cents"] += sale.total_cents
        bucket["subtotal_cents"] += sale.subtotal_cents
        bucket["total_tax_cents"] += sale.tax_cents
        bucket["total_discount_cents"] += sale.discount_cents
    return [buckets[hour] for hour in sorted(buckets)]


def _stock_status(quantity: int, min_stock: int) -> str:
    if quantity <= 0:
        return STOCK_OUT
    if quantity <= min_stock:
        return STOCK_LOW
    return STOCK_IN


def inventory_valuation() -> dict:
    """
    Stock on hand for available products, valued at list price and at cost.

    Low stock means at or below min_stock, matching inventory_service.low_stock().
    """
    rows = (
        db.session.query(Product, InventoryRecord.quantity, Category.name)
        .join(InventoryRecord, InventoryRecord.product_id == Product.id)
        .outerjoin(Category, Product.category_id == Category.id)
        .filter(Product.status == PRODUCT_STATUS_AVAILABLE)
        .order_by(Category.name.asc(), Product.name.asc())
        .all()
    )

    items = []
    for product, quantity, category_name in rows:
        items.append({
            "product_id": product.id,
            "name": product.name,
            "barcode": product.barcode,
            "category_name": category_name,
            "current_stock": quantity,
            "min_stock": product.min_stock,
            "unit_price_cents": product.price_cents,
            "cost_price_cents": product.purchase_price_cents,
            "stock_value_cents": quantity * product.price_cents,
            "stock_cost_cents": quantity * product.purchase_price_cents,
            "stock_status": _stock_status(quantity, product.min_stock),
        })

    summary = {
        "total_products": len(items),
        "total_stock_value_cents": sum(item["stock_value_cents"] for item in items),
        "total_stock_cost_cents": sum(item["stock_cost_cents"] for item in items),
        "low_stock_count": sum(1 for item in items if item["stock_status"] == STOCK_LOW),
        "out_of_stock_count": sum(1 for item in items if item["stock_status"] == STOCK_OUT),
    }
    return {"items": items, "summary": summary}
