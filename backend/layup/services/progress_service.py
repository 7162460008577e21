# Overview: Derived progress; recomputes task layers/status and plan completion from logs.

"""
Progress Recomputation

WHY: completed_layers is never incremented or decremented in place. It is
re-summed from the non-voided logs every time a log is added or voided, so
the stored value can always be rebuilt from the audit trail alone.

Both functions only stage changes on the session. Callers run them inside
the same atomic() block as the log write so the log and the derived state
commit together.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Layout, Plan, ProductionLog, Task
from layup.time_utils import utcnow
from .lifecycle_service import (
    PLAN_COMPLETED,
    PLAN_IN_PROGRESS,
    TASK_COMPLETED,
    derive_task_status,
)


def sum_completed_layers(task_id: int) -> int:
    """Sum of layers_completed over the task's non-voided logs."""
    total = (
        db.session.query(func.coalesce(func.sum(ProductionLog.layers_completed), 0))
        .filter(ProductionLog.task_id == task_id, ProductionLog.voided.is_(False))
        .scalar()
    )
    return int(total or 0)


def recompute_task(task: Task) -> Task:
    """Rebuild completed_layers and status for one task."""
    db.session.flush()
    task.completed_layers = sum_completed_layers(task.id)
    task.status = derive_task_status(task.completed_layers, task.planned_layers)
    return task


def sync_plan_status(plan: Plan) -> str | None:
    """
    Move a published plan between in_progress and completed.

    Returns the event name ("plan_completed" / "plan_reopened") when the
    status changed, else None. Pending and frozen plans are left alone.
    """
    if plan.status not in (PLAN_IN_PROGRESS, PLAN_COMPLETED):
        return None

    db.session.flush()
    statuses = [
        row[0]
        for row in db.session.query(Task.status)
        .join(Layout, Layout.id == Task.layout_id)
        .filter(Layout.plan_id == plan.id)
        .all()
    ]
    all_done = bool(statuses) and all(status == TASK_COMPLETED for status in statuses)

    if plan.status == PLAN_IN_PROGRESS and all_done:
        plan.status = PLAN_COMPLETED
        plan.completed_at = utcnow()
        return "plan_completed"

    if plan.status == PLAN_COMPLETED and not all_done:
        plan.status = PLAN_IN_PROGRESS
        plan.completed_at = None
        return "plan_reopened"

    return None


def plan_progress(plan_id: int) -> dict:
    """Planned vs completed layers across a plan's tasks."""
    planned, completed, task_count = (
        db.session.query(
            func.coalesce(func.sum(Task.planned_layers), 0),
            func.coalesce(func.sum(Task.completed_layers), 0),
            func.count(Task.id),
        )
        .join(Layout, Layout.id == Task.layout_id)
        .filter(Layout.plan_id == plan_id)
        .one()
    )
    done = (
        db.session.query(func.count(Task.id))
        .join(Layout, Layout.id == Task.layout_id)
        .filter(Layout.plan_id == plan_id, Task.status == TASK_COMPLETED)
        .scalar()
    )
    return {
        "plan_id": plan_id,
        "task_count": int(task_count),
        "completed_tasks": int(done or 0),
        "planned_layers": int(planned),
        "completed_layers": int(completed),
    }
