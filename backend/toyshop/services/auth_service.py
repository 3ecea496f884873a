# Overview: Service-layer operations for staff accounts; password hashing and credential checks.

"""
Authentication Service

Passwords hashed with bcrypt (cost factor 12). The sale and return engines
never see credentials: routes authenticate, then hand the engines an Actor.
"""

import bcrypt

from ..errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from ..models.auth import USER_STATUS_ACTIVE, USER_STATUS_INACTIVE
from toyshop.time_utils import utcnow
from .authorization import Role
from .concurrency import write_transaction

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12."""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Returns True if password matches hash, False otherwise."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # malformed hash in the database
        return False


def create_user(username: str, password: str, role="cashier", email: str | None = None) -> User:
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required")
    role = Role.parse(role)
    password_hash = hash_password(password)

    with write_transaction():
        if db.session.query(User.id).filter_by(username=username).first():
            raise ConflictError("Username already exists")
        user = User(
            username=username,
            email=(email or "").strip() or None,
            password_hash=password_hash,
            role=role.value,
            status=USER_STATUS_ACTIVE,
        )
        db.session.add(user)
    return user


USER_FIELDS = {"username", "password", "email", "role", "status"}
USER_STATUSES = {USER_STATUS_ACTIVE, USER_STATUS_INACTIVE}


def update_user(user_id: int, **fields) -> User:
    """
    Edit a staff account. Only the given fields change.

    A new password is re-hashed; an empty email clears it.
    """
    unknown = set(fields) - USER_FIELDS
    if unknown:
        raise ValidationError(f"Unknown user fields: {', '.join(sorted(unknown))}")

    password_hash = hash_password(fields["password"]) if fields.get("password") else None

    with write_transaction():
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        if "username" in fields:
            username = (fields["username"] or "").strip()
            if not username:
                raise ValidationError("Username is required")
            clash = db.session.query(User.id).filter(User.username == username, User.id != user_id).first()
            if clash:
                raise ConflictError("Username already exists")
            user.username = username

        if password_hash:
            user.password_hash = password_hash

        if "email" in fields:
            user.email = (fields["email"] or "").strip() or None

        if fields.get("role"):
            user.role = Role.parse(fields["role"]).value

        if fields.get("status"):
            if fields["status"] not in USER_STATUSES:
                raise ValidationError(f"status must be one of: {', '.join(sorted(USER_STATUSES))}")
            user.status = fields["status"]
    return user


def set_user_status(user_id: int, active: bool) -> User:
    with write_transaction():
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        user.status = USER_STATUS_ACTIVE if active else USER_STATUS_INACTIVE
    return user


def authenticate(username: str, password: str) -> User:
    """
    Check credentials for an active user.

    The same message is used for unknown users and wrong passwords.
    """
    if not username or not password:
        raise ValidationError("Username and password required")

    user = db.session.query(User).filter_by(username=username.strip()).first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")

    with write_transaction():
        user.last_login_at = utcnow()
    return user
