# backend/layup/config.py
from __future__ import annotations
import os
from datetime import timedelta


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Token signing key; override in every deployed environment
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///layup.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    ACCESS_TOKEN_TTL = timedelta(minutes=_env_int("ACCESS_TOKEN_TTL_MINUTES", 15))
    REFRESH_TOKEN_TTL = timedelta(days=_env_int("REFRESH_TOKEN_TTL_DAYS", 7))

    # Worker self-service voiding limits
    WORKER_VOID_LIMIT = _env_int("WORKER_VOID_LIMIT", 3)
    WORKER_VOID_WINDOW = timedelta(hours=_env_int("WORKER_VOID_WINDOW_HOURS", 24))
    WORKER_VOID_MAX_LOG_AGE = timedelta(hours=_env_int("WORKER_VOID_MAX_LOG_AGE_HOURS", 24))

    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # None means the built-in LoggingObserver
    EVENT_OBSERVER = None

    # None means the built-in table in layup.permissions.roles
    ROLE_PERMISSIONS = None
