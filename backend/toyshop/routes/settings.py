# backend/toyshop/routes/settings.py
"""
Store settings routes.

Reading a single key is open to any signed-in user (the billing screen needs
the tax rate); listing and writing are admin only.
"""
from flask import Blueprint, jsonify, current_app

from ..errors import PosError
from ..services import settings_service
from ..services.authorization import Action
from ..decorators import require_auth, require_permission
from . import get_json_object


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
@require_permission(Action.MANAGE_SETTINGS)
def list_settings_route():
    try:
        return jsonify({"settings": settings_service.get_all()}), 200

    except Exception:
        current_app.logger.exception("Failed to list settings")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.get("/<key>")
@require_auth
def get_setting_route(key: str):
    try:
        setting = settings_service.get_setting(key)
        if setting is None:
            return jsonify({"error": "Setting not found"}), 404
        return jsonify({"setting": setting.to_dict()}), 200

    except Exception:
        current_app.logger.exception("Failed to load setting")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.put("/<key>")
@require_auth
@require_permission(Action.MANAGE_SETTINGS)
def update_setting_route(key: str):
    """
    Create or overwrite a setting.

    Request body:
    {
        "value": "8.25"
    }
    """
    try:
        data = get_json_object()
        if "value" not in data:
            return jsonify({"error": "value required"}), 400

        setting = settings_service.set_value(key, data["value"])
        current_app.logger.info("Setting %s updated", key)
        return jsonify({"setting": setting.to_dict()}), 200

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update setting")
        return jsonify({"error": "Internal server error"}), 500
