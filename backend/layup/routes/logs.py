# Overview: Flask API routes for production logs; parses input and returns JSON responses.

"""
Production Log Routes

SECURITY:
- POST /logs requires log:create; workers always log as themselves,
  at server time
- PATCH /logs/<id> (void) requires log:update, then void_policy_service
  applies the worker self-service rules
- Audit listings (per task/layout/plan, participants, all logs) are
  admin/manager only
"""

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_permission, require_roles
from ..errors import ForbiddenError, ValidationError
from ..permissions import ROLE_ADMIN, ROLE_MANAGER, ROLE_WORKER, normalize_code
from ..services import layout_service, log_service, plan_service, task_service, void_policy_service
from ..validation import bool_arg, coerce_bool, coerce_int, int_arg, json_body, require_fields


logs_bp = Blueprint("logs", __name__, url_prefix="/api/v1")


def _items(logs) -> dict:
    return {"items": [log.to_dict() for log in logs], "count": len(logs)}


@logs_bp.post("/logs")
@require_auth
@require_permission("log:create")
def create_log_route():
    """
    Request body:
    {
        "task_id": 1,              // required
        "layers_completed": 5,     // required, > 0
        "worker_id": 3,            // optional; workers default to themselves
        "worker_name": "anna",     // optional
        "note": "...",             // optional
        "log_time": "...Z"         // optional, not in the future; workers always get now
    }
    """
    data = json_body()
    require_fields(data, "task_id", "layers_completed")

    claims = g.claims
    worker_id = coerce_int("worker_id", data.get("worker_id"))
    worker_name = data.get("worker_name")
    if worker_name is not None and not isinstance(worker_name, str):
        raise ValidationError("worker_name must be a string")
    log_time = data.get("log_time")

    if normalize_code(claims.role) == ROLE_WORKER:
        if worker_id is not None and worker_id != claims.user_id:
            raise ForbiddenError("Workers can only log their own work")
        if worker_name and worker_name.strip() != claims.name:
            raise ForbiddenError("Workers can only log their own work")
        worker_id = claims.user_id
        # Workers log at server time
        log_time = None

    log = log_service.create_log(
        coerce_int("task_id", data["task_id"]),
        coerce_int("layers_completed", data["layers_completed"]),
        worker_id=worker_id,
        worker_name=worker_name,
        note=data.get("note"),
        log_time=log_time,
    )
    return jsonify(log.to_dict()), 201


@logs_bp.patch("/logs/<int:log_id>")
@require_auth
@require_permission("log:update")
def void_log_route(log_id: int):
    """
    Void a log.

    Request body:
    {
        "voided": true,          // optional; false is rejected (one-way)
        "void_reason": "..."     // optional
    }
    """
    data = json_body()
    if coerce_bool("voided", data.get("voided", True)) is not True:
        raise ValidationError("Voiding is one-way; a voided log cannot be restored")

    log = void_policy_service.void_log_as(g.claims, log_id, reason=data.get("void_reason"))
    return jsonify(log.to_dict())


@logs_bp.put("/logs/<int:log_id>/void")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def amend_void_route(log_id: int):
    """Correct reason/actor of a voided log. Body: {void_reason?, voided_by?}."""
    data = json_body()
    log = log_service.amend_void(
        log_id,
        reason=data.get("void_reason"),
        voided_by=coerce_int("voided_by", data.get("voided_by")),
    )
    return jsonify(log.to_dict())


@logs_bp.get("/logs/my")
@require_auth
def list_my_logs_route():
    """Logs attributed to the caller, by account or by name."""
    logs = log_service.list_logs_by_worker(g.claims.user_id, g.claims.name)
    return jsonify(_items(logs))


@logs_bp.get("/logs")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def list_logs_route():
    """
    Query parameters:
    - task_id, worker_id: optional filters
    - voided: true/false
    - limit (default 50, max 500), offset (default 0)

    Returns:
        {items, count, limit, offset}
    """
    limit = int_arg("limit", log_service.DEFAULT_PAGE_SIZE)
    offset = int_arg("offset", 0)

    rows, total = log_service.list_logs(
        task_id=int_arg("task_id"),
        worker_id=int_arg("worker_id"),
        voided=bool_arg("voided"),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [log.to_dict() for log in rows],
        "count": total,
        "limit": min(limit, log_service.MAX_PAGE_SIZE),
        "offset": offset,
    })


@logs_bp.get("/logs/voided")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def list_recent_voided_route():
    logs = log_service.list_recent_voided(int_arg("limit", log_service.DEFAULT_PAGE_SIZE))
    return jsonify(_items(logs))


@logs_bp.get("/logs/<int:log_id>")
@require_auth
@require_permission("log:read")
def get_log_route(log_id: int):
    return jsonify(log_service.get_log(log_id).to_dict())


@logs_bp.get("/tasks/<int:task_id>/participants")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def list_participants_route(task_id: int):
    task_service.get_task(task_id)
    return jsonify({"participants": log_service.list_participants(task_id)})


@logs_bp.get("/tasks/<int:task_id>/logs")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def list_task_logs_route(task_id: int):
    task_service.get_task(task_id)
    return jsonify(_items(log_service.list_logs_by_task(task_id)))


@logs_bp.get("/layouts/<int:layout_id>/logs")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def list_layout_logs_route(layout_id: int):
    layout_service.get_layout(layout_id)
    return jsonify(_items(log_service.list_logs_by_layout(layout_id)))


@logs_bp.get("/plans/<int:plan_id>/logs")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def list_plan_logs_route(plan_id: int):
    plan_service.get_plan(plan_id)
    return jsonify(_items(log_service.list_logs_by_plan(plan_id)))
