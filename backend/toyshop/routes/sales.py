# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/toyshop/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import PosError
from ..services.sales_service import SaleEngine
from ..decorators import require_auth
from . import get_json_object
from toyshop.time_utils import parse_date_range


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("/tax")
@require_auth
def get_tax_route():
    """Current tax percentage, for the billing screen preview."""
    try:
        tax_percentage = SaleEngine().get_tax_percentage()
        return jsonify({"tax_percentage": str(tax_percentage)}), 200
    except Exception:
        current_app.logger.exception("Failed to read tax setting")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Ring up a sale.

    Available to: admin, cashier

    Request body:
    {
        "items": [
            {"product_id": 1, "quantity": 2, "unit_price_cents": 1000}
        ],
        "payment_method": "cash" | "card",
        "paid_amount_cents": 3000,
        "discount_cents": 0,         (optional; cashiers need cashier_discount_allowed)
        "customer_name": "...",      (optional)
        "customer_phone": "...",     (optional)
        "notes": "..."               (optional)
    }

    Returns:
        201: {"sale_id", "bill_number", "total_cents", "change_cents"}
        400: Invalid input or insufficient payment
        403: Discount not permitted
        404: Unknown product
        409: Insufficient stock
    """
    try:
        data = get_json_object()

        result = SaleEngine().create_sale(
            g.actor,
            data.get("items"),
            payment_method=data.get("payment_method", "cash"),
            paid_amount_cents=data.get("paid_amount_cents", 0),
            discount_cents=data.get("discount_cents", 0),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            notes=data.get("notes", ""),
        )

        return jsonify({"message": "Sale created", **result.to_dict()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales newest first, optionally within ?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD.

    Cashiers only see their own sales.
    """
    try:
        start_date, end_date = parse_date_range(
            request.args.get("start_date"), request.args.get("end_date")
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        sales = SaleEngine().list_sales(g.actor, start_date, end_date)
        return jsonify({"sales": [s.to_dict() for s in sales]}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = SaleEngine().get_sale(g.actor, sale_id)
        return jsonify({"sale": sale.to_dict(include_items=True)}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load sale")
        return jsonify({"error": "Internal server error"}), 500
