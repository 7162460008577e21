# Overview: Service-layer operations for lifecycle; plan/task state machine and edit gates.

"""
Layup Plan Lifecycle Service

================================================================================
PURPOSE: Enforce pending -> in_progress -> completed -> frozen for plans
================================================================================

WHY THIS EXISTS:
- Structure (layouts, ratios, tasks) must stop changing once cutting starts
- Completion must follow the floor, not a button: it is derived from logs
- A frozen plan is the archived record and never moves again

STATE MACHINE:
    pending -> in_progress -> completed -> frozen
                    ^------------'

    pending:     structure editable, no logs accepted
    in_progress: published; logs accepted, structure locked
    completed:   every task reached its planned layers (derived)
    frozen:      archived; terminal

RULES (NON-NEGOTIABLE):
1. pending -> in_progress only by publish_plan(), with at least one task
2. in_progress <-> completed only by progress_service (log or void)
3. completed -> frozen only by freeze_plan()
4. Nothing leaves frozen
5. Layout/task/ratio structure changes require a pending plan

Task status has no transitions of its own; it is a pure function of
completed_layers vs planned_layers (see derive_task_status()).
================================================================================
"""

from __future__ import annotations
from typing import Literal

from ..errors import ConflictError, ValidationError


PLAN_PENDING = "pending"
PLAN_IN_PROGRESS = "in_progress"
PLAN_COMPLETED = "completed"
PLAN_FROZEN = "frozen"

PLAN_STATUSES = {PLAN_PENDING, PLAN_IN_PROGRESS, PLAN_COMPLETED, PLAN_FROZEN}
PlanStatus = Literal["pending", "in_progress", "completed", "frozen"]

TASK_PENDING = "pending"
TASK_IN_PROGRESS = "in_progress"
TASK_COMPLETED = "completed"

TASK_STATUSES = {TASK_PENDING, TASK_IN_PROGRESS, TASK_COMPLETED}

# The only legal plan moves
PLAN_TRANSITIONS = {
    (PLAN_PENDING, PLAN_IN_PROGRESS),
    (PLAN_IN_PROGRESS, PLAN_COMPLETED),
    (PLAN_COMPLETED, PLAN_IN_PROGRESS),
    (PLAN_COMPLETED, PLAN_FROZEN),
}


def validate_plan_status(status: str) -> None:
    """
    Raises:
        ValidationError: If status is not in PLAN_STATUSES
    """
    if status not in PLAN_STATUSES:
        raise ValidationError(
            f"Invalid plan status '{status}'. Must be one of: {', '.join(sorted(PLAN_STATUSES))}"
        )


def can_transition(from_status: str, to_status: str) -> bool:
    """
    Check if a plan status change is allowed.

    Same-state moves are not transitions and return False; callers decide
    whether a no-op is acceptable.
    """
    validate_plan_status(from_status)
    validate_plan_status(to_status)
    return (from_status, to_status) in PLAN_TRANSITIONS


def require_transition(plan, to_status: str, action: str) -> None:
    """Raise ConflictError unless plan.status -> to_status is legal."""
    if not can_transition(plan.status, to_status):
        raise ConflictError(
            f"Cannot {action} plan {plan.id}: current status is '{plan.status}'",
            details={"plan_id": plan.id, "status": plan.status},
        )


def require_plan_pending(plan, action: str) -> None:
    """
    Gate for structural edits below a plan.

    Args:
        plan: Plan owning the layout/task/ratio being changed
        action: Short verb phrase for the message ("create layout", ...)

    Raises:
        ConflictError: plan is not pending; details carry the current status
    """
    if plan.status != PLAN_PENDING:
        raise ConflictError(
            f"Cannot {action}: plan {plan.id} is '{plan.status}', must be '{PLAN_PENDING}'",
            details={"plan_id": plan.id, "status": plan.status},
        )


def require_plan_accepting_logs(plan) -> None:
    """Logs are only accepted while the plan is in progress."""
    if plan.status != PLAN_IN_PROGRESS:
        raise ConflictError(
            f"Plan {plan.id} is '{plan.status}'; logs are accepted only while '{PLAN_IN_PROGRESS}'",
            details={"plan_id": plan.id, "status": plan.status},
        )


def derive_task_status(completed_layers: int, planned_layers: int) -> str:
    """
    0 -> pending, between -> in_progress, at or above plan -> completed.

    Overshoot (completed > planned) is still just completed.
    """
    if completed_layers <= 0:
        return TASK_PENDING
    if completed_layers >= planned_layers:
        return TASK_COMPLETED
    return TASK_IN_PROGRESS
