# backend/toyshop/routes/inventory.py
"""
Inventory routes.

SECURITY: All routes require authentication.
- Full listing and adjustment are admin only
- Low-stock list is visible to cashiers (shown on the billing screen)
"""
from flask import Blueprint, jsonify, current_app

from ..errors import PosError
from ..services import inventory_service
from ..services.authorization import Action
from ..decorators import require_auth, require_permission
from . import get_json_object


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
@require_permission(Action.VIEW_INVENTORY)
def list_inventory_route():
    try:
        records = inventory_service.list_inventory()
        return jsonify({"inventory": [r.to_dict() for r in records]}), 200

    except Exception:
        current_app.logger.exception("Failed to list inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/low-stock")
@require_auth
def low_stock_route():
    try:
        records = inventory_service.low_stock()
        return jsonify({"inventory": [r.to_dict() for r in records]}), 200

    except Exception:
        current_app.logger.exception("Failed to list low stock")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.put("/<int:product_id>")
@require_auth
@require_permission(Action.ADJUST_INVENTORY)
def adjust_inventory_route(product_id: int):
    """
    Administrative stock adjustment.

    Request body:
    {
        "quantity": 5,
        "adjustment_type": "add" | "subtract" | "set"
    }

    subtract never takes stock below zero.
    """
    try:
        data = get_json_object()
        if "quantity" not in data or "adjustment_type" not in data:
            return jsonify({"error": "quantity and adjustment_type required"}), 400

        record = inventory_service.set_or_adjust(
            product_id,
            data.get("quantity"),
            data.get("adjustment_type"),
        )
        return jsonify({"inventory": record.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust inventory")
        return jsonify({"error": "Internal server error"}), 500
