# Overview: Transaction helpers for workflow writes; row locks and atomic commit/rollback.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from ..errors import UnavailableError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Take the write lock up front on SQLite.

    SQLite has no row locks; BEGIN IMMEDIATE makes the precondition read and
    the write below it one serialized unit. Other dialects rely on
    lock_for_update() instead.
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection.driver_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def atomic():
    """
    Run a block as one transaction: commit on success, roll back on any error.

    Store-level failures (lock timeouts, lost connections) surface as
    UnavailableError. Nothing is retried here: lifecycle gates depend on the
    state that was just read, so the caller must re-read and decide.
    """
    try:
        begin_write()
        yield db.session
        db.session.commit()
    except OperationalError as exc:
        db.session.rollback()
        raise UnavailableError("Database unavailable", details={"reason": str(exc.orig)}) from exc
    except Exception:
        db.session.rollback()
        raise
