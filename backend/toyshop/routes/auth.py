# Overview: Flask API routes for login/logout; parses input and returns JSON responses.

from flask import Blueprint, jsonify, g, current_app

from ..errors import PosError
from ..services import auth_service, session_service
from ..decorators import require_auth
from . import get_json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Exchange username/password for a bearer token.

    Request body:
    {
        "username": "cashier1",
        "password": "secret"
    }
    """
    try:
        data = get_json_object()
        user = auth_service.authenticate(data.get("username"), data.get("password"))
        token = session_service.create_session(user)
        return jsonify({"token": token, "user": user.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.token)
        return jsonify({"message": "Logged out"}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
