# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every log and every void must be attributable. Uses bcrypt for
password hashing and signed tokens (see token_service.py) for sessions.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Verification is timing-safe (bcrypt.checkpw)
- Unknown user, inactive user, missing password and wrong password all
  produce the same UnauthorizedError
- Refresh re-reads the user so deactivation takes effect at the next refresh
"""

from __future__ import annotations

import bcrypt
from flask import current_app

from ..errors import ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from ..extensions import db
from ..models import User
from layup.time_utils import utcnow
from . import token_service
from .token_service import Tokens, TOKEN_TYPE_REFRESH


BCRYPT_ROUNDS = 12


def validate_new_password(password: str | None) -> str:
    """Reject empty or whitespace-only passwords."""
    if password is None or not password.strip():
        raise ValidationError("Password must not be empty")
    return password


def hash_password(password: str, rounds: int | None = None) -> str:
    """
    Hash password using bcrypt.

    WHY: Cost factor 12 provides good security/performance balance.
    BCRYPT_ROUNDS in app config lowers it for test runs.
    """
    validate_new_password(password)
    if rounds is None:
        rounds = current_app.config.get("BCRYPT_ROUNDS", BCRYPT_ROUNDS)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str | None, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for accounts without a password and for malformed hashes.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Not a bcrypt hash
        return False


def login(name: str, password: str) -> tuple[Tokens, User]:
    """
    Authenticate by unique user name and issue a token pair.

    Raises:
        UnauthorizedError: unknown name, inactive account, no password set,
            or wrong password
    """
    user = db.session.query(User).filter_by(name=(name or "").strip()).first()

    if user is None or not user.is_active:
        raise UnauthorizedError("Invalid credentials")

    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")

    user.last_login_at = utcnow()
    db.session.commit()

    return token_service.issue_tokens(user), user


def refresh(refresh_token: str) -> Tokens:
    """
    Exchange a valid refresh token for a new token pair.

    The user is re-read: a deleted or deactivated user cannot refresh, and
    the new tokens carry the user's current role.
    """
    claims = token_service.parse_token(refresh_token, expected_type=TOKEN_TYPE_REFRESH)

    user = db.session.get(User, claims.user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError("Invalid or expired token")

    return token_service.issue_tokens(user)


def change_password(user_id: int, old_password: str, new_password: str) -> User:
    """Self-service password change. Requires the current password."""
    validate_new_password(new_password)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")

    if not verify_password(old_password, user.password_hash):
        raise UnauthorizedError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return user


def set_initial_password(user_id: int, new_password: str) -> User:
    """
    Administrative password set/reset. No old-password check.

    Inactive accounts are refused so a reset cannot quietly revive them.
    """
    validate_new_password(new_password)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    if not user.is_active:
        raise ForbiddenError("User is not active")

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return user
