# Overview: Self-service voiding rules; who may void which log, and how often.

"""
Void Policy Service

WHY: Workers can undo their own mistakes without waiting for a supervisor,
but only recent, own logs and only a few times a day. Admins and managers
void anything.

WORKER RULES (checked in this order, before anything is written):
1. The log is the worker's own: worker_id matches, or worker_name matches
   the worker's name
2. The log is younger than WORKER_VOID_MAX_LOG_AGE (log_time based)
3. The worker performed fewer than WORKER_VOID_LIMIT voids in the trailing
   WORKER_VOID_WINDOW (voided_by + voided_at based)

Every rule failure is ForbiddenError. The checks and the void share one
write transaction, so two concurrent voids cannot both see "2 of 3 used".
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..errors import ForbiddenError
from ..models import ProductionLog
from ..permissions import ROLE_WORKER, normalize_code
from layup.time_utils import utcnow
from .concurrency import atomic
from .event_service import EventObserver
from .log_service import apply_void, count_voids_by_worker, emit_void_events, locked_log
from .permission_service import get_access_policy
from .token_service import Claims


DEFAULT_VOID_LIMIT = 3
DEFAULT_VOID_WINDOW = timedelta(hours=24)
DEFAULT_MAX_LOG_AGE = timedelta(hours=24)


def _limits() -> tuple[int, timedelta, timedelta]:
    config = current_app.config
    return (
        config.get("WORKER_VOID_LIMIT", DEFAULT_VOID_LIMIT),
        config.get("WORKER_VOID_WINDOW", DEFAULT_VOID_WINDOW),
        config.get("WORKER_VOID_MAX_LOG_AGE", DEFAULT_MAX_LOG_AGE),
    )


def is_own_log(claims: Claims, log: ProductionLog) -> bool:
    if log.worker_id is not None and log.worker_id == claims.user_id:
        return True
    return bool(log.worker_name) and log.worker_name == claims.name


def check_worker_void(claims: Claims, log: ProductionLog) -> None:
    """
    Apply the worker rules to one log.

    Raises:
        ForbiddenError: not own log, too old, or daily limit reached
    """
    limit, window, max_age = _limits()
    now = utcnow()

    if not is_own_log(claims, log):
        raise ForbiddenError(
            "Workers can only void their own logs",
            details={"log_id": log.id},
        )

    age = now - log.log_time
    if age < timedelta(0) or age >= max_age:
        raise ForbiddenError(
            f"Logs older than {int(max_age.total_seconds() // 3600)}h cannot be voided by workers",
            details={"log_id": log.id},
        )

    used = count_voids_by_worker(claims.user_id, window, now=now)
    if used >= limit:
        raise ForbiddenError(
            f"Void limit reached ({limit} per {int(window.total_seconds() // 3600)}h)",
            details={"limit": limit, "used": used},
        )


def void_log_as(
    claims: Claims,
    log_id: int,
    *,
    reason: str | None = None,
    observer: EventObserver | None = None,
) -> ProductionLog:
    """
    Void a log on behalf of an authenticated caller.

    Raises:
        ForbiddenError: missing log:void, or a worker rule failed
        NotFoundError: log does not exist
        ConflictError: log is already voided
    """
    get_access_policy().require_permission(claims.role, "log:void")

    with atomic() as session:
        log = locked_log(session, log_id)
        if normalize_code(claims.role) == ROLE_WORKER:
            check_worker_void(claims, log)
        plan_id, plan_event = apply_void(session, log, reason=reason, voided_by=claims.user_id)
        task_id = log.task_id

    emit_void_events(log_id, task_id, claims.user_id, plan_id, plan_event, observer=observer)
    return log
