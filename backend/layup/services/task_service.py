# Overview: Service-layer operations for tasks; encapsulates business logic and database work.

"""
Task Service

A task is one color laid up on a layout for a planned number of layers.

RULES:
- create/delete only while the owning plan is pending
- the color must be one of the colors on the ancestor order's items
- planned_layers is a positive integer
- completed_layers/status are never written here (see progress_service.py)
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Layout, OrderItem, Plan, Task
from .concurrency import atomic, lock_for_update
from .event_service import EventObserver, emit
from .lifecycle_service import TASK_PENDING, TASK_STATUSES, require_plan_pending


def _locked_plan_for_layout(session, layout: Layout) -> Plan:
    return lock_for_update(session.query(Plan).filter(Plan.id == layout.plan_id)).one()


def create_task(
    layout_id: int,
    color: str,
    planned_layers: int,
    *,
    observer: EventObserver | None = None,
) -> Task:
    """
    Create a pending task on a layout.

    Raises:
        ValidationError: planned_layers not a positive integer, empty color,
            or color not on the order
        NotFoundError: layout does not exist
        ConflictError: plan is not pending
    """
    color = (color or "").strip()
    if not color:
        raise ValidationError("color is required")
    if isinstance(planned_layers, bool) or not isinstance(planned_layers, int) or planned_layers <= 0:
        raise ValidationError("planned_layers must be a positive integer")

    with atomic() as session:
        layout = session.get(Layout, layout_id)
        if layout is None:
            raise NotFoundError(f"Layout {layout_id} not found")
        plan = _locked_plan_for_layout(session, layout)
        require_plan_pending(plan, "create task")

        color_exists = (
            session.query(OrderItem.id)
            .filter(OrderItem.order_id == plan.order_id, OrderItem.color == color)
            .first()
        )
        if color_exists is None:
            raise ValidationError(
                f"Color '{color}' is not on order {plan.order_id}",
                details={"order_id": plan.order_id, "color": color},
            )

        task = Task(
            layout_id=layout.id,
            color=color,
            planned_layers=planned_layers,
            completed_layers=0,
            status=TASK_PENDING,
        )
        session.add(task)

    emit("task_created", observer=observer, task_id=task.id, layout_id=layout_id, color=color)
    return task


def get_task(task_id: int) -> Task:
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    return task


def list_tasks(*, status: str | None = None) -> list[Task]:
    q = db.session.query(Task)
    if status:
        if status not in TASK_STATUSES:
            raise ValidationError(
                f"Invalid task status '{status}'. Must be one of: {', '.join(sorted(TASK_STATUSES))}"
            )
        q = q.filter(Task.status == status)
    return q.order_by(Task.id.asc()).all()


def list_tasks_by_layout(layout_id: int) -> list[Task]:
    return (
        db.session.query(Task)
        .filter(Task.layout_id == layout_id)
        .order_by(Task.id.asc())
        .all()
    )


def delete_task(task_id: int, *, observer: EventObserver | None = None) -> None:
    with atomic() as session:
        task = lock_for_update(session.query(Task).filter(Task.id == task_id)).first()
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        plan = _locked_plan_for_layout(session, task.layout)
        require_plan_pending(plan, "delete task")
        layout_id = task.layout_id
        session.delete(task)

    emit("task_deleted", observer=observer, task_id=task_id, layout_id=layout_id)
