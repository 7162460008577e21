# Overview: Service-layer operations for production logs; append, void and audit queries.

"""
Production Log Service

================================================================================
PURPOSE: Append-only record of layers laid up, and the only writer of progress
================================================================================

RULES (NON-NEGOTIABLE):
1. Logs are never edited or deleted one by one; mistakes are voided
2. Voiding is one-way: a voided log is never un-voided
3. A log already voided cannot be voided again (no double decrement)
4. Every append and every void re-sums the task from the non-voided logs and
   re-derives the plan status in the same transaction
5. Logs are accepted only while the plan is in_progress and the task is not
   yet completed; a single log may overshoot the planned layers

Who may void what is decided in void_policy_service.py; this module applies
the void once the caller is allowed to.
================================================================================
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func, or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Layout, Plan, ProductionLog, Task, User
from layup.time_utils import coerce_datetime, utcnow
from .concurrency import atomic, lock_for_update
from .event_service import EventObserver, emit
from .lifecycle_service import TASK_COMPLETED, require_plan_accepting_logs
from .progress_service import recompute_task, sync_plan_status


DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def _clean_text(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def _require_user(session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def _locked_task_and_plan(session, task_id: int) -> tuple[Task, Plan]:
    task = lock_for_update(session.query(Task).filter(Task.id == task_id)).first()
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    plan = lock_for_update(
        session.query(Plan)
        .join(Layout, Layout.plan_id == Plan.id)
        .filter(Layout.id == task.layout_id)
    ).one()
    return task, plan


def locked_log(session, log_id: int) -> ProductionLog:
    log = lock_for_update(session.query(ProductionLog).filter(ProductionLog.id == log_id)).first()
    if log is None:
        raise NotFoundError(f"Log {log_id} not found")
    return log


# ================================================================================
# WRITES
# ================================================================================

def create_log(
    task_id: int,
    layers_completed: int,
    *,
    worker_id: int | None = None,
    worker_name: str | None = None,
    note: str | None = None,
    log_time: datetime | str | None = None,
    observer: EventObserver | None = None,
) -> ProductionLog:
    """
    Record layers laid up on a task.

    Args:
        task_id: Task worked on
        layers_completed: Positive integer
        worker_id: Account of the worker (optional if worker_name is given)
        worker_name: Display name; filled from the account when empty
        log_time: When the work happened (defaults to now)

    Returns:
        The new log; its task and plan are already recomputed

    Raises:
        ValidationError: layers not positive, no worker given, bad or future log_time
        NotFoundError: task or worker_id does not exist
        ConflictError: plan is not in_progress, or the task is already completed
    """
    if isinstance(layers_completed, bool) or not isinstance(layers_completed, int) or layers_completed <= 0:
        raise ValidationError("layers_completed must be a positive integer")

    worker_name = _clean_text(worker_name)
    if worker_id is None and worker_name is None:
        raise ValidationError("worker_id or worker_name is required")

    now = utcnow()
    try:
        logged_at = coerce_datetime(log_time) or now
    except ValueError as exc:
        raise ValidationError("Invalid log_time format") from exc
    if logged_at > now:
        raise ValidationError("log_time cannot be in the future")

    with atomic() as session:
        task, plan = _locked_task_and_plan(session, task_id)
        require_plan_accepting_logs(plan)

        if task.status == TASK_COMPLETED:
            raise ConflictError(
                f"Task {task.id} is already completed",
                details={"task_id": task.id, "status": task.status},
            )

        if worker_id is not None:
            worker = _require_user(session, worker_id)
            worker_name = worker_name or worker.name

        log = ProductionLog(
            task_id=task.id,
            worker_id=worker_id,
            worker_name=worker_name,
            layers_completed=layers_completed,
            log_time=logged_at,
            note=note,
            voided=False,
        )
        session.add(log)

        recompute_task(task)
        plan_event = sync_plan_status(plan)
        plan_id = plan.id

    emit(
        "log_created",
        observer=observer,
        log_id=log.id,
        task_id=task_id,
        worker_id=worker_id,
        layers=layers_completed,
    )
    if plan_event:
        emit(plan_event, observer=observer, plan_id=plan_id)
    return log


def apply_void(
    session,
    log: ProductionLog,
    *,
    reason: str | None = None,
    voided_by: int | None = None,
) -> tuple[int, str | None]:
    """
    Void a locked log and recompute its task and plan.

    Must run inside an atomic() block. Returns (plan_id, plan_event).

    Raises:
        ConflictError: log is already voided
        NotFoundError: voided_by does not exist
    """
    if log.voided:
        raise ConflictError(
            f"Log {log.id} is already voided",
            details={"log_id": log.id},
        )

    actor_name = _require_user(session, voided_by).name if voided_by is not None else None

    log.voided = True
    log.void_reason = _clean_text(reason)
    log.voided_by = voided_by
    log.voided_by_name = actor_name
    log.voided_at = utcnow()

    task, plan = _locked_task_and_plan(session, log.task_id)
    recompute_task(task)
    # Frozen plans keep their status; only the task changes
    return plan.id, sync_plan_status(plan)


def void_log(
    log_id: int,
    *,
    reason: str | None = None,
    voided_by: int | None = None,
    observer: EventObserver | None = None,
) -> ProductionLog:
    """
    Void a log without ownership checks (administrative path).

    Raises:
        NotFoundError: log or voided_by does not exist
        ConflictError: log is already voided
    """
    with atomic() as session:
        log = locked_log(session, log_id)
        plan_id, plan_event = apply_void(session, log, reason=reason, voided_by=voided_by)
        task_id = log.task_id

    emit_void_events(log_id, task_id, voided_by, plan_id, plan_event, observer=observer)
    return log


def emit_void_events(
    log_id: int,
    task_id: int,
    voided_by: int | None,
    plan_id: int,
    plan_event: str | None,
    *,
    observer: EventObserver | None = None,
) -> None:
    emit("log_voided", observer=observer, log_id=log_id, task_id=task_id, voided_by=voided_by)
    if plan_event:
        emit(plan_event, observer=observer, plan_id=plan_id)


def amend_void(
    log_id: int,
    *,
    reason: str | None = None,
    voided_by: int | None = None,
) -> ProductionLog:
    """
    Correct the reason and/or actor of an already voided log.

    Aggregation is untouched: the log stays voided. None leaves a field as is.

    Raises:
        NotFoundError: log or voided_by does not exist
        ConflictError: log is not voided
    """
    with atomic() as session:
        log = locked_log(session, log_id)
        if not log.voided:
            raise ConflictError(
                f"Log {log.id} is not voided",
                details={"log_id": log.id},
            )

        if voided_by is not None:
            log.voided_by = voided_by
            log.voided_by_name = _require_user(session, voided_by).name
        if reason is not None:
            log.void_reason = _clean_text(reason)

    return log


# ================================================================================
# READS
# ================================================================================

def get_log(log_id: int) -> ProductionLog:
    log = db.session.get(ProductionLog, log_id)
    if log is None:
        raise NotFoundError(f"Log {log_id} not found")
    return log


def _newest_first(q):
    return q.order_by(ProductionLog.log_time.desc(), ProductionLog.id.desc())


def list_participants(task_id: int) -> list[str]:
    """Distinct worker names over the task's non-voided logs, ascending."""
    name = func.coalesce(ProductionLog.worker_name, User.name)
    rows = (
        db.session.query(name)
        .select_from(ProductionLog)
        .outerjoin(User, User.id == ProductionLog.worker_id)
        .filter(
            ProductionLog.task_id == task_id,
            ProductionLog.voided.is_(False),
            name.isnot(None),
        )
        .distinct()
        .order_by(name.asc())
        .all()
    )
    return [row[0] for row in rows]


def list_logs_by_task(task_id: int) -> list[ProductionLog]:
    return _newest_first(db.session.query(ProductionLog).filter(ProductionLog.task_id == task_id)).all()


def list_logs_by_layout(layout_id: int) -> list[ProductionLog]:
    q = (
        db.session.query(ProductionLog)
        .join(Task, Task.id == ProductionLog.task_id)
        .filter(Task.layout_id == layout_id)
    )
    return _newest_first(q).all()


def list_logs_by_plan(plan_id: int) -> list[ProductionLog]:
    q = (
        db.session.query(ProductionLog)
        .join(Task, Task.id == ProductionLog.task_id)
        .join(Layout, Layout.id == Task.layout_id)
        .filter(Layout.plan_id == plan_id)
    )
    return _newest_first(q).all()


def list_logs_by_worker(
    worker_id: int | None = None,
    worker_name: str | None = None,
) -> list[ProductionLog]:
    """Logs attributed to a worker by account id or by name (either matches)."""
    worker_name = _clean_text(worker_name)
    if worker_id is None and worker_name is None:
        raise ValidationError("worker_id or worker_name is required")

    conditions = []
    if worker_id is not None:
        conditions.append(ProductionLog.worker_id == worker_id)
    if worker_name is not None:
        conditions.append(ProductionLog.worker_name == worker_name)

    return _newest_first(db.session.query(ProductionLog).filter(or_(*conditions))).all()


def list_logs(
    *,
    task_id: int | None = None,
    worker_id: int | None = None,
    voided: bool | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> tuple[list[ProductionLog], int]:
    """
    Filtered, paginated log listing.

    Returns (rows, total) where total ignores limit/offset. limit is capped
    at MAX_PAGE_SIZE.
    """
    if limit is None or limit < 1:
        raise ValidationError("limit must be a positive integer")
    if offset is None or offset < 0:
        raise ValidationError("offset must not be negative")
    limit = min(limit, MAX_PAGE_SIZE)

    q = db.session.query(ProductionLog)
    if task_id is not None:
        q = q.filter(ProductionLog.task_id == task_id)
    if worker_id is not None:
        q = q.filter(ProductionLog.worker_id == worker_id)
    if voided is not None:
        q = q.filter(ProductionLog.voided.is_(voided))

    total = q.count()
    rows = _newest_first(q).limit(limit).offset(offset).all()
    return rows, total


def count_voids_by_worker(
    worker_id: int,
    window: timedelta = timedelta(hours=24),
    *,
    now: datetime | None = None,
) -> int:
    """Voids performed by worker_id whose voided_at falls inside the trailing window."""
    cutoff = (now or utcnow()) - window
    return (
        db.session.query(func.count(ProductionLog.id))
        .filter(
            ProductionLog.voided.is_(True),
            ProductionLog.voided_by == worker_id,
            ProductionLog.voided_at >= cutoff,
        )
        .scalar()
    ) or 0


def list_recent_voided(limit: int = DEFAULT_PAGE_SIZE) -> list[ProductionLog]:
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    return (
        db.session.query(ProductionLog)
        .filter(ProductionLog.voided.is_(True))
        .order_by(ProductionLog.voided_at.desc(), ProductionLog.id.desc())
        .limit(limit)
        .all()
    )
