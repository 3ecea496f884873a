# backend/toyshop/routes/reports.py
"""
Report routes.

Sales totals and today's hourly breakdown are open to any signed-in user;
everything else is admin only.
"""
from flask import Blueprint, jsonify, request, current_app

from ..decorators import require_auth, require_permission
from ..services import reporting_service
from ..services.authorization import Action
from toyshop.time_utils import parse_date_range, parse_iso_date


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _date_range():
    return parse_date_range(request.args.get("start_date"), request.args.get("end_date"))


def _period_report(build, description: str):
    try:
        start_date, end_date = _date_range()
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        return jsonify({"report": build(start_date, end_date)}), 200
    except Exception:
        current_app.logger.exception("Failed to build %s report", description)
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/sales")
@require_auth
@require_permission(Action.VIEW_REPORTS)
def sales_report():
    return _period_report(reporting_service.sales_by_day, "sales")


@reports_bp.get("/daily")
@require_auth
@require_permission(Action.VIEW_REPORTS)
def hourly_sales_report():
    """Sales per hour for ?date=YYYY-MM-DD (default: today, UTC)."""
    try:
        day = parse_iso_date(request.args.get("date"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        return jsonify({"report": reporting_service.hourly_sales(day)}), 200
    except Exception:
        current_app.logger.exception("Failed to build hourly sales report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/profit")
@require_auth
@require_permission(Action.VIEW_PROFIT)
def profit_report():
    return _period_report(reporting_service.profit_by_day, "profit")


@reports_bp.get("/products")
@require_auth
@require_permission(Action.VIEW_STORE_REPORTS)
def product_sales_report():
    return _period_report(reporting_service.product_sales, "product sales")


@reports_bp.get("/categories")
@require_auth
@require_permission(Action.VIEW_STORE_REPORTS)
def category_sales_report():
    return _period_report(reporting_service.category_sales, "category sales")


@reports_bp.get("/returns")
@require_auth
@require_permission(Action.VIEW_STORE_REPORTS)
def returns_report():
    return _period_report(reporting_service.returns_summary, "returns")


@reports_bp.get("/cashiers")
@require_auth
@require_permission(Action.VIEW_STORE_REPORTS)
def cashier_sales_report():
    return _period_report(reporting_service.cashier_sales, "cashier sales")


@reports_bp.get("/inventory")
@require_auth
@require_permission(Action.VIEW_STORE_REPORTS)
def inventory_report():
    """Per-product stock value and cost plus a summary (items, summary)."""
    try:
        return jsonify(reporting_service.inventory_valuation()), 200
    except Exception:
        current_app.logger.exception("Failed to build inventory report")
        return jsonify({"error": "Internal server error"}), 500
