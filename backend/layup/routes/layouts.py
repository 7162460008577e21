# Overview: Flask API routes for layouts and size ratios; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_permission
from ..errors import ValidationError
from ..services import layout_service, task_service
from ..validation import coerce_int, json_body, require_fields


layouts_bp = Blueprint("layouts", __name__, url_prefix="/api/v1/layouts")


@layouts_bp.get("")
@require_auth
@require_permission("layout:read")
def list_layouts_route():
    layouts = layout_service.list_layouts()
    return jsonify({"items": [l.to_dict() for l in layouts], "count": len(layouts)})


@layouts_bp.post("")
@require_auth
@require_permission("layout:create")
def create_layout_route():
    """Body: {plan_id, layout_name, note?}. Plan must be pending."""
    data = json_body()
    require_fields(data, "plan_id", "layout_name")

    layout = layout_service.create_layout(
        coerce_int("plan_id", data["plan_id"]),
        data["layout_name"],
        data.get("note"),
    )
    return jsonify(layout.to_dict()), 201


@layouts_bp.get("/<int:layout_id>")
@require_auth
@require_permission("layout:read")
def get_layout_route(layout_id: int):
    layout = layout_service.get_layout(layout_id)
    body = layout.to_dict()
    body["ratios"] = [r.to_dict() for r in layout_service.get_layout_ratios(layout_id)]
    return jsonify(body)


@layouts_bp.get("/<int:layout_id>/tasks")
@require_auth
@require_permission("task:read")
def list_layout_tasks_route(layout_id: int):
    layout_service.get_layout(layout_id)
    tasks = task_service.list_tasks_by_layout(layout_id)
    return jsonify({"items": [t.to_dict() for t in tasks], "count": len(tasks)})


@layouts_bp.patch("/<int:layout_id>/name")
@require_auth
@require_permission("layout:update")
def update_layout_name_route(layout_id: int):
    data = json_body()
    require_fields(data, "layout_name")
    layout = layout_service.update_layout_name(layout_id, data["layout_name"])
    return jsonify(layout.to_dict())


@layouts_bp.patch("/<int:layout_id>/note")
@require_auth
@require_permission("layout:update")
def update_layout_note_route(layout_id: int):
    data = json_body()
    layout = layout_service.update_layout_note(layout_id, data.get("note"))
    return jsonify(layout.to_dict())


@layouts_bp.post("/<int:layout_id>/ratios")
@require_auth
@require_permission("layout_ratios:update")
def set_layout_ratios_route(layout_id: int):
    """
    Replace the whole ratio set.

    Request body:
    {
        "ratios": {"S": 1, "M": 2, "L": 1}
    }
    """
    data = json_body()
    ratios = data.get("ratios")
    if not isinstance(ratios, dict):
        raise ValidationError("ratios must be an object of size -> ratio")

    rows = layout_service.set_layout_ratios(layout_id, ratios)
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)})


@layouts_bp.get("/<int:layout_id>/ratios")
@require_auth
@require_permission("layout_ratios:read")
def get_layout_ratios_route(layout_id: int):
    rows = layout_service.get_layout_ratios(layout_id)
    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)})


@layouts_bp.delete("/<int:layout_id>")
@require_auth
@require_permission("layout:delete")
def delete_layout_route(layout_id: int):
    layout_service.delete_layout(layout_id)
    return "", 204
