# Overview: Flask API routes for staff accounts (admin only).

from flask import Blueprint, jsonify, current_app

from ..extensions import db
from ..errors import PosError
from ..models import User
from ..services import auth_service
from ..services.authorization import Action
from ..decorators import require_auth, require_permission
from . import get_json_object


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission(Action.MANAGE_USERS)
def list_users_route():
    try:
        users = db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
        return jsonify({"users": [u.to_dict() for u in users]}), 200

    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("")
@require_auth
@require_permission(Action.MANAGE_USERS)
def create_user_route():
    """
    Request body:
    {
        "username": "cashier2",
        "password": "secret1",
        "email": "c2@toyshop.local",   (optional)
        "role": "cashier"
    }
    """
    try:
        data = get_json_object()
        if not all([data.get("username"), data.get("password"), data.get("role")]):
            return jsonify({"error": "Missing required fields"}), 400

        user = auth_service.create_user(
            username=data["username"],
            password=data["password"],
            role=data["role"],
            email=data.get("email"),
        )
        return jsonify({"user": user.to_dict()}), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission(Action.MANAGE_USERS)
def update_user_route(user_id: int):
    """
    Edit a staff account. Every field is optional.

    Request body:
    {
        "username": "cashier2",
        "password": "newsecret",
        "email": "c2@toyshop.local",   ("" clears it)
        "role": "admin" | "cashier",
        "status": "active" | "inactive"
    }

    Returns:
        200: {"message": "User updated", "user": {...}}
        400: Invalid field
        404: Unknown user
        409: Username already exists
    """
    try:
        data = get_json_object()
        user = auth_service.update_user(user_id, **data)
        current_app.logger.info("User %s updated", user_id)
        return jsonify({"message": "User updated", "user": user.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.patch("/<int:user_id>/status")
@require_auth
@require_permission(Action.MANAGE_USERS)
def set_user_status_route(user_id: int):
    try:
        data = get_json_object()
        active = data.get("active")
        if not isinstance(active, bool):
            return jsonify({"error": "active must be true or false"}), 400

        user = auth_service.set_user_status(user_id, active)
        return jsonify({"user": user.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update user status")
        return jsonify({"error": "Internal server error"}), 500
