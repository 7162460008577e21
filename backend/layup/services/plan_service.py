# Overview: Service-layer operations for plans; encapsulates business logic and database work.

"""
Plan Service

Creation, publishing, freezing and deletion of plans. Completion and
reopening are not here: they are derived from logs in progress_service.py.

See lifecycle_service.py for the state machine.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Layout, Order, Plan, Task
from layup.time_utils import coerce_datetime, utcnow
from .concurrency import atomic, lock_for_update
from .event_service import EventObserver, emit
from .lifecycle_service import (
    PLAN_FROZEN,
    PLAN_IN_PROGRESS,
    PLAN_PENDING,
    require_transition,
    validate_plan_status,
)


def _parse_date(value, field: str) -> datetime | None:
    try:
        return coerce_datetime(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field} format") from exc


def _locked_plan(session, plan_id: int) -> Plan:
    plan = lock_for_update(session.query(Plan).filter(Plan.id == plan_id)).first()
    if plan is None:
        raise NotFoundError(f"Plan {plan_id} not found")
    return plan


def count_plan_tasks(plan_id: int) -> int:
    return (
        db.session.query(func.count(Task.id))
        .join(Layout, Layout.id == Task.layout_id)
        .filter(Layout.plan_id == plan_id)
        .scalar()
    ) or 0


def create_plan(
    order_id: int,
    plan_name: str,
    *,
    note: str | None = None,
    planned_publish_date: datetime | str | None = None,
    planned_finish_date: datetime | str | None = None,
    observer: EventObserver | None = None,
) -> Plan:
    """
    Create a pending plan under an order.

    Raises:
        ValidationError: empty plan_name or malformed dates
        NotFoundError: order does not exist
    """
    plan_name = (plan_name or "").strip()
    if not plan_name:
        raise ValidationError("plan_name is required")

    publish_date = _parse_date(planned_publish_date, "planned_publish_date")
    finish_date = _parse_date(planned_finish_date, "planned_finish_date")

    with atomic() as session:
        if session.get(Order, order_id) is None:
            raise NotFoundError(f"Order {order_id} not found")

        plan = Plan(
            order_id=order_id,
            plan_name=plan_name,
            note=note,
            planned_publish_date=publish_date,
            planned_finish_date=finish_date,
            status=PLAN_PENDING,
        )
        session.add(plan)

    emit("plan_created", observer=observer, plan_id=plan.id, order_id=order_id)
    return plan


def get_plan(plan_id: int) -> Plan:
    plan = db.session.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError(f"Plan {plan_id} not found")
    return plan


def list_plans(*, status: str | None = None) -> list[Plan]:
    q = db.session.query(Plan)
    if status:
        validate_plan_status(status)
        q = q.filter(Plan.status == status)
    return q.order_by(Plan.id.desc()).all()


def list_plans_by_order(order_id: int) -> list[Plan]:
    return (
        db.session.query(Plan)
        .filter(Plan.order_id == order_id)
        .order_by(Plan.id.asc())
        .all()
    )


def update_plan_note(plan_id: int, note: str | None) -> Plan:
    """The note stays editable in every status."""
    plan = get_plan(plan_id)
    plan.note = note
    db.session.commit()
    return plan


def publish_plan(plan_id: int, *, observer: EventObserver | None = None) -> Plan:
    """
    Publish a pending plan (pending -> in_progress).

    Raises:
        NotFoundError: plan does not exist
        ConflictError: plan is not pending, or has no tasks yet

    DESIGN NOTES:
    - The task count is read inside the same write transaction as the
      status change, so a concurrent delete_task cannot empty the plan
      between the check and the publish.
    - published_at is stamped here and never cleared.
    """
    with atomic() as session:
        plan = _locked_plan(session, plan_id)
        require_transition(plan, PLAN_IN_PROGRESS, "publish")

        if count_plan_tasks(plan.id) == 0:
            raise ConflictError(
                f"Cannot publish plan {plan.id}: it has no tasks",
                details={"plan_id": plan.id, "status": plan.status},
            )

        plan.status = PLAN_IN_PROGRESS
        plan.published_at = utcnow()

    emit("plan_published", observer=observer, plan_id=plan.id)
    return plan


def freeze_plan(plan_id: int, *, observer: EventObserver | None = None) -> Plan:
    """
    Freeze a completed plan (completed -> frozen). Frozen is terminal.

    Raises:
        NotFoundError: plan does not exist
        ConflictError: plan is not completed
    """
    with atomic() as session:
        plan = _locked_plan(session, plan_id)
        require_transition(plan, PLAN_FROZEN, "freeze")

        plan.status = PLAN_FROZEN
        plan.frozen_at = utcnow()

    emit("plan_frozen", observer=observer, plan_id=plan.id)
    return plan


def delete_plan(plan_id: int, *, observer: EventObserver | None = None) -> None:
    """Delete a plan in any status, cascading to layouts, tasks and logs."""
    with atomic() as session:
        plan = _locked_plan(session, plan_id)
        order_id = plan.order_id
        session.delete(plan)

    emit("plan_deleted", observer=observer, plan_id=plan_id, order_id=order_id)
