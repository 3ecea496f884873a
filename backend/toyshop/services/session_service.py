# Overview: Service-layer operations for session tokens.

"""
Session Token Management Service

- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout from SESSION_TTL_HOURS
- Revocable on logout
"""

import secrets
import hashlib
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from toyshop.time_utils import utcnow
from .concurrency import write_transaction


def generate_token() -> str:
    """64-character hex string; the plaintext token sent to the client (never stored)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Hash token for database storage using SHA-256."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(user: User) -> str:
    """Issue a session for user; returns the plaintext token."""
    plaintext_token = generate_token()
    now = utcnow()
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))

    with write_transaction():
        db.session.add(SessionToken(
            user_id=user.id,
            token_hash=hash_token(plaintext_token),
            created_at=now,
            expires_at=now + ttl,
        ))
    return plaintext_token


def validate_session(token: str) -> User | None:
    """
    Resolve a bearer token to its user.

    Returns None for unknown, revoked or expired tokens and for inactive users.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if session is None or session.is_revoked:
        return None
    if session.expires_at <= utcnow():
        return None

    user = session.user
    if user is None or not user.is_active:
        return None
    return user


def revoke_session(token: str) -> bool:
    """Revoke a session; returns False if the token was unknown or already revoked."""
    with write_transaction():
        session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
        if session is None or session.is_revoked:
            return False
        session.revoked_at = utcnow()
    return True
