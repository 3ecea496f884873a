# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service
from .services.authorization import Action, Actor, authorize


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'actor')


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.actor: Actor(id, role) handed to the services
    - g.token: The plaintext bearer token (for logout)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "No token provided"}), 401

        user = session_service.validate_session(token)
        if user is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.actor = Actor.from_user(user)
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(action: Action):
    """
    Require that the signed-in actor may perform `action`.

    Must be applied after @require_auth. Ownership-scoped actions are checked
    inside the services, where the owning record is loaded.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not authorize(g.actor, action):
                current_app.logger.info(
                    "Permission denied: user %s lacks %s", g.actor.id, action.value
                )
                return jsonify({
                    "error": "Unauthorized access",
                    "required_permission": action.value,
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
