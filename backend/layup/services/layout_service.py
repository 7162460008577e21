# Overview: Service-layer operations for layouts and size ratios; pending-plan gated.

"""
Layout Service

A layout is one cutting marker under a plan: a name, a note, a set of size
ratios and the tasks (one per color) laid up on it.

GATES:
- create / delete / rename / ratio replacement: owning plan must be pending
- note: editable in every status
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Layout, LayoutSizeRatio, Plan
from .concurrency import atomic, lock_for_update
from .event_service import EventObserver, emit
from .lifecycle_service import require_plan_pending


def _validate_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("layout_name is required")
    return name


def _locked_layout_and_plan(session, layout_id: int) -> tuple[Layout, Plan]:
    layout = lock_for_update(session.query(Layout).filter(Layout.id == layout_id)).first()
    if layout is None:
        raise NotFoundError(f"Layout {layout_id} not found")
    plan = lock_for_update(session.query(Plan).filter(Plan.id == layout.plan_id)).one()
    return layout, plan


def _validate_ratios(ratios) -> dict[str, int]:
    """
    {size: ratio}; sizes non-empty after trimming and unique, ratios positive ints.
    """
    if not isinstance(ratios, dict):
        raise ValidationError("ratios must be an object of size -> ratio")

    cleaned: dict[str, int] = {}
    for size, ratio in ratios.items():
        size = str(size or "").strip()
        if not size:
            raise ValidationError("Ratio size must not be empty")
        if size in cleaned:
            raise ValidationError(f"Duplicate size '{size}'", details={"size": size})
        if isinstance(ratio, bool) or not isinstance(ratio, int) or ratio <= 0:
            raise ValidationError(
                f"Ratio for size '{size}' must be a positive integer",
                details={"size": size},
            )
        cleaned[size] = ratio
    return cleaned


def create_layout(
    plan_id: int,
    layout_name: str,
    note: str | None = None,
    *,
    observer: EventObserver | None = None,
) -> Layout:
    """
    Raises:
        ValidationError: empty name
        NotFoundError: plan does not exist
        ConflictError: plan is not pending
    """
    layout_name = _validate_name(layout_name)

    with atomic() as session:
        plan = lock_for_update(session.query(Plan).filter(Plan.id == plan_id)).first()
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        require_plan_pending(plan, "create layout")

        layout = Layout(plan_id=plan.id, layout_name=layout_name, note=note)
        session.add(layout)

    emit("layout_created", observer=observer, layout_id=layout.id, plan_id=plan_id)
    return layout


def get_layout(layout_id: int) -> Layout:
    layout = db.session.get(Layout, layout_id)
    if layout is None:
        raise NotFoundError(f"Layout {layout_id} not found")
    return layout


def list_layouts() -> list[Layout]:
    return db.session.query(Layout).order_by(Layout.id.asc()).all()


def list_layouts_by_plan(plan_id: int) -> list[Layout]:
    return (
        db.session.query(Layout)
        .filter(Layout.plan_id == plan_id)
        .order_by(Layout.id.asc())
        .all()
    )


def update_layout_name(layout_id: int, layout_name: str) -> Layout:
    layout_name = _validate_name(layout_name)

    with atomic() as session:
        layout, plan = _locked_layout_and_plan(session, layout_id)
        require_plan_pending(plan, "rename layout")
        layout.layout_name = layout_name

    return layout


def update_layout_note(layout_id: int, note: str | None) -> Layout:
    """Notes stay editable after publish."""
    layout = get_layout(layout_id)
    layout.note = note
    db.session.commit()
    return layout


def delete_layout(layout_id: int, *, observer: EventObserver | None = None) -> None:
    """Delete a layout with its ratios and tasks. Pending plans only."""
    with atomic() as session:
        layout, plan = _locked_layout_and_plan(session, layout_id)
        require_plan_pending(plan, "delete layout")
        plan_id = plan.id
        session.delete(layout)

    emit("layout_deleted", observer=observer, layout_id=layout_id, plan_id=plan_id)


def set_layout_ratios(layout_id: int, ratios: dict[str, int]) -> list[LayoutSizeRatio]:
    """
    Replace the layout's whole ratio set.

    The old rows are removed and the new ones written in one transaction;
    a failure leaves the previous set untouched. An empty mapping clears it.
    """
    cleaned = _validate_ratios(ratios)

    with atomic() as session:
        layout, plan = _locked_layout_and_plan(session, layout_id)
        require_plan_pending(plan, "change layout ratios")

        session.query(LayoutSizeRatio).filter(
            LayoutSizeRatio.layout_id == layout.id
        ).delete(synchronize_session=False)
        # Old rows must be gone before the unique (layout_id, size) inserts
        session.flush()

        for size, ratio in cleaned.items():
            session.add(LayoutSizeRatio(layout_id=layout.id, size=size, ratio=ratio))

    return get_layout_ratios(layout_id)


def get_layout_ratios(layout_id: int) -> list[LayoutSizeRatio]:
    get_layout(layout_id)
    return (
        db.session.query(LayoutSizeRatio)
        .filter(LayoutSizeRatio.layout_id == layout_id)
        .order_by(LayoutSizeRatio.id.asc())
        .all()
    )
