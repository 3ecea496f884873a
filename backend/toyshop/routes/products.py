# Overview: Flask API routes for the product/category catalog; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import PosError
from ..services import catalog_service
from ..services.authorization import Action
from ..decorators import require_auth, require_permission
from . import get_json_object


products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


# =============================================================================
# PRODUCTS
# =============================================================================

@products_bp.get("")
@require_auth
def list_products_route():
    try:
        category_id = request.args.get("category_id", type=int)
        products = catalog_service.list_products(category_id=category_id)
        return jsonify({"products": [p.to_dict() for p in products]}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/search")
@require_auth
def search_products_route():
    """Name or barcode substring search (?q=robot), at most 10 results."""
    try:
        products = catalog_service.search_products(request.args.get("q", ""))
        return jsonify({"products": [p.to_dict() for p in products]}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to search products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
        return jsonify({"product": product.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("")
@require_auth
@require_permission(Action.MANAGE_CATALOG)
def create_product_route():
    """
    Request body:
    {
        "name": "Robot Hero",
        "category_id": 1,
        "price_cents": 2999,
        "purchase_price_cents": 1800,   (optional, default: 0)
        "barcode": "PROD001",           (optional)
        "min_stock": 10,                (optional, default: 10)
        "age_group": "5-10",            (optional)
        "description": "...",           (optional)
        "initial_quantity": 50          (optional, default: 0)
    }
    """
    try:
        data = dict(get_json_object())
        initial_quantity = data.pop("initial_quantity", 0)
        product = catalog_service.create_product(initial_quantity=initial_quantity, **data)
        return jsonify({"product": product.to_dict()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission(Action.MANAGE_CATALOG)
def update_product_route(product_id: int):
    try:
        data = get_json_object()
        product = catalog_service.update_product(product_id, **data)
        return jsonify({"product": product.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission(Action.MANAGE_CATALOG)
def delete_product_route(product_id: int):
    try:
        catalog_service.delete_product(product_id)
        return jsonify({"message": "Product deleted"}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CATEGORIES
# =============================================================================

@categories_bp.get("")
@require_auth
def list_categories_route():
    try:
        categories = catalog_service.list_categories()
        return jsonify({"categories": [c.to_dict() for c in categories]}), 200

    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category_route(category_id: int):
    try:
        category = catalog_service.get_category(category_id)
        return jsonify({"category": category.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.post("")
@require_auth
@require_permission(Action.MANAGE_CATALOG)
def create_category_route():
    try:
        data = get_json_object()
        category = catalog_service.create_category(data.get("name"), data.get("description"))
        return jsonify({"category": category.to_dict()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission(Action.MANAGE_CATALOG)
def update_category_route(category_id: int):
    try:
        data = get_json_object()
        category = catalog_service.update_category(
            category_id,
            name=data.get("name"),
            description=data.get("description"),
        )
        return jsonify({"category": category.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission(Action.MANAGE_CATALOG)
def delete_category_route(category_id: int):
    try:
        catalog_service.delete_category(category_id)
        return jsonify({"message": "Category deleted"}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Internal server error"}), 500
