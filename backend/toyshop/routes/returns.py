# Overview: Flask API routes for returns operations; parses input and returns JSON responses.

# backend/toyshop/routes/returns.py
"""
Return Processing API Routes

SECURITY:
- Any authenticated user may return items from sales they rang up
- Admins may return any sale and list all returns
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import PosError
from ..services.return_service import ReturnEngine
from ..decorators import require_auth
from . import get_json_object
from toyshop.time_utils import parse_date_range


returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


@returns_bp.post("")
@require_auth
def create_return_route():
    """
    Record a return against a prior sale.

    Request body:
    {
        "sale_id": 123,
        "items": [{"sale_item_id": 456, "quantity": 2}],
        "refund_method": "cash" | "card",
        "reason": "Damaged box"   (optional)
    }

    Returns:
        201: {"return_id", "return_number", "total_refund_cents"}
        400: Invalid input
        403: Not the admin or the original cashier
        404: Sale or sale item not found
        409: Quantity exceeds what is left to return
    """
    try:
        data = get_json_object()

        result = ReturnEngine().create_return(
            g.actor,
            data.get("sale_id"),
            data.get("items"),
            refund_method=data.get("refund_method", "cash"),
            reason=data.get("reason", ""),
        )

        return jsonify({"message": "Return processed successfully", **result.to_dict()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create return")
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.get("")
@require_auth
def list_returns_route():
    """All returns, newest first (admin only); optional start_date/end_date."""
    try:
        start_date, end_date = parse_date_range(
            request.args.get("start_date"), request.args.get("end_date")
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        returns = ReturnEngine().list_returns(g.actor, start_date, end_date)
        return jsonify({"returns": [r.to_dict() for r in returns]}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list returns")
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.get("/<int:return_id>")
@require_auth
def get_return_route(return_id: int):
    try:
        return_doc = ReturnEngine().get_return(g.actor, return_id)
        return jsonify({"return": return_doc.to_dict(include_items=True)}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load return")
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.get("/sale/<int:sale_id>/items")
@require_auth
def returnable_items_route(sale_id: int):
    """Lines of a sale with returned quantity and return status, for the returns screen."""
    try:
        summary = ReturnEngine().returnable_items(g.actor, sale_id)
        return jsonify(summary), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load sale items for return")
        return jsonify({"error": "Internal server error"}), 500
