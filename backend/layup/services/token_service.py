# Overview: Signed session tokens (access + refresh) for stateless authentication.

"""
Session Token Service

Tokens are compact three-part signed envelopes (JWT, HS256) carrying the
caller's identity so that every request can be authorized without a session
table lookup.

PAYLOAD:
- user_id, name, role, is_active: identity and authorization facts
- iat, exp: validity window (seconds since epoch, UTC)
- token_type: "access" or "refresh"

SECURITY NOTES:
- Symmetric key from SECRET_KEY
- token_type is checked on every parse so a long-lived refresh token can
  never be presented where an access token is expected (and vice versa)
- Any structural, signature, type or expiry failure is UnauthorizedError
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app
from jose import JWTError, jwt

from ..errors import UnauthorizedError
from ..models import User
from layup.time_utils import from_timestamp, to_timestamp, to_utc_z, utcnow


ALGORITHM = "HS256"

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"
TOKEN_TYPES = {TOKEN_TYPE_ACCESS, TOKEN_TYPE_REFRESH}

DEFAULT_ACCESS_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TTL = timedelta(days=7)


@dataclass(frozen=True)
class Claims:
    """Verified identity facts extracted from a token."""
    user_id: int
    name: str
    role: str
    is_active: bool
    issued_at: datetime
    expires_at: datetime
    token_type: str = TOKEN_TYPE_ACCESS

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "issued_at": to_utc_z(self.issued_at),
            "expires_at": to_utc_z(self.expires_at),
        }


@dataclass(frozen=True)
class Tokens:
    access_token: str
    refresh_token: str
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": to_utc_z(self.expires_at),
            "token_type": "Bearer",
        }


def _secret() -> str:
    return current_app.config["SECRET_KEY"]


def sign_claims(claims: Claims, secret: str | None = None) -> str:
    """Encode and sign a Claims object."""
    if claims.token_type not in TOKEN_TYPES:
        raise ValueError(f"Unknown token_type '{claims.token_type}'")
    payload = {
        "user_id": claims.user_id,
        "name": claims.name,
        "role": claims.role,
        "is_active": claims.is_active,
        "iat": to_timestamp(claims.issued_at),
        "exp": to_timestamp(claims.expires_at),
        "token_type": claims.token_type,
    }
    return jwt.encode(payload, secret or _secret(), algorithm=ALGORITHM)


def issue_tokens(
    user: User,
    *,
    access_ttl: timedelta | None = None,
    refresh_ttl: timedelta | None = None,
) -> Tokens:
    """
    Create a fresh access/refresh token pair for a user.

    TTLs default to ACCESS_TOKEN_TTL / REFRESH_TOKEN_TTL from app config.
    Both tokens share the same issued-at instant.
    """
    config = current_app.config
    access_ttl = access_ttl if access_ttl is not None else config.get("ACCESS_TOKEN_TTL", DEFAULT_ACCESS_TTL)
    refresh_ttl = refresh_ttl if refresh_ttl is not None else config.get("REFRESH_TOKEN_TTL", DEFAULT_REFRESH_TTL)

    # Whole seconds: the payload carries integer timestamps
    now = utcnow().replace(microsecond=0)
    access_exp = now + access_ttl
    refresh_exp = now + refresh_ttl

    def _claims(expires_at: datetime, token_type: str) -> Claims:
        return Claims(
            user_id=user.id,
            name=user.name,
            role=user.role,
            is_active=user.is_active,
            issued_at=now,
            expires_at=expires_at,
            token_type=token_type,
        )

    return Tokens(
        access_token=sign_claims(_claims(access_exp, TOKEN_TYPE_ACCESS)),
        refresh_token=sign_claims(_claims(refresh_exp, TOKEN_TYPE_REFRESH)),
        expires_at=access_exp,
    )


def parse_token(token: str | None, expected_type: str = TOKEN_TYPE_ACCESS) -> Claims:
    """
    Verify signature, structure, expiry and token_type; return the claims.

    Raises UnauthorizedError on any failure. The caller never learns which
    check failed.
    """
    if not token or token.count(".") != 2:
        raise UnauthorizedError("Invalid token")

    try:
        payload = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except JWTError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc

    try:
        claims = Claims(
            user_id=int(payload["user_id"]),
            name=str(payload["name"]),
            role=str(payload["role"]),
            is_active=bool(payload["is_active"]),
            issued_at=from_timestamp(payload["iat"]),
            expires_at=from_timestamp(payload["exp"]),
            token_type=str(payload["token_type"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise UnauthorizedError("Invalid token") from exc

    if claims.token_type != expected_type:
        raise UnauthorizedError("Invalid token")

    # jose checks exp too; keep the window explicit for our own clock
    if utcnow() >= claims.expires_at:
        raise UnauthorizedError("Invalid or expired token")

    return claims
