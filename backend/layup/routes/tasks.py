# Overview: Flask API routes for tasks; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import task_service
from ..validation import coerce_int, json_body, require_fields


tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/v1/tasks")


@tasks_bp.get("")
@require_auth
@require_permission("task:read")
def list_tasks_route():
    """Query parameters: status (optional)."""
    tasks = task_service.list_tasks(status=request.args.get("status"))
    return jsonify({"items": [t.to_dict() for t in tasks], "count": len(tasks)})


@tasks_bp.post("")
@require_auth
@require_permission("task:create")
def create_task_route():
    """
    Request body:
    {
        "layout_id": 1,          // required
        "color": "red",          // required, must be an order item color
        "planned_layers": 40     // required, > 0
    }
    """
    data = json_body()
    require_fields(data, "layout_id", "color", "planned_layers")

    task = task_service.create_task(
        coerce_int("layout_id", data["layout_id"]),
        data["color"],
        coerce_int("planned_layers", data["planned_layers"]),
    )
    return jsonify(task.to_dict()), 201


@tasks_bp.get("/<int:task_id>")
@require_auth
@require_permission("task:read")
def get_task_route(task_id: int):
    return jsonify(task_service.get_task(task_id).to_dict())


@tasks_bp.delete("/<int:task_id>")
@require_auth
@require_permission("task:delete")
def delete_task_route(task_id: int):
    task_service.delete_task(task_id)
    return "", 204
