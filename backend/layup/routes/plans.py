# Overview: Flask API routes for plans; parses input and returns JSON responses.

"""
Plan Routes

Lifecycle actions (publish, freeze) are separate POSTs; there is no
generic status update. Completion is derived from logs.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import layout_service, plan_service, progress_service
from ..validation import coerce_int, json_body, require_fields


plans_bp = Blueprint("plans", __name__, url_prefix="/api/v1/plans")


@plans_bp.get("")
@require_auth
@require_permission("plan:read")
def list_plans_route():
    """Query parameters: status (optional)."""
    plans = plan_service.list_plans(status=request.args.get("status"))
    return jsonify({"items": [p.to_dict() for p in plans], "count": len(plans)})


@plans_bp.post("")
@require_auth
@require_permission("plan:create")
def create_plan_route():
    """
    Request body:
    {
        "order_id": 1,                    // required
        "plan_name": "Cut 1",             // required
        "note": "...",                    // optional
        "planned_publish_date": "...Z",   // optional
        "planned_finish_date": "...Z"     // optional
    }
    """
    data = json_body()
    require_fields(data, "order_id", "plan_name")

    plan = plan_service.create_plan(
        coerce_int("order_id", data["order_id"]),
        data["plan_name"],
        note=data.get("note"),
        planned_publish_date=data.get("planned_publish_date"),
        planned_finish_date=data.get("planned_finish_date"),
    )
    return jsonify(plan.to_dict()), 201


@plans_bp.get("/<int:plan_id>")
@require_auth
@require_permission("plan:read")
def get_plan_route(plan_id: int):
    plan = plan_service.get_plan(plan_id)
    body = plan.to_dict()
    body["progress"] = progress_service.plan_progress(plan.id)
    return jsonify(body)


@plans_bp.get("/<int:plan_id>/layouts")
@require_auth
@require_permission("layout:read")
def list_plan_layouts_route(plan_id: int):
    plan_service.get_plan(plan_id)
    layouts = layout_service.list_layouts_by_plan(plan_id)
    return jsonify({"items": [l.to_dict() for l in layouts], "count": len(layouts)})


@plans_bp.patch("/<int:plan_id>/note")
@require_auth
@require_permission("plan:update")
def update_plan_note_route(plan_id: int):
    data = json_body()
    plan = plan_service.update_plan_note(plan_id, data.get("note"))
    return jsonify(plan.to_dict())


@plans_bp.post("/<int:plan_id>/publish")
@require_auth
@require_permission("plan:publish")
def publish_plan_route(plan_id: int):
    return jsonify(plan_service.publish_plan(plan_id).to_dict())


@plans_bp.post("/<int:plan_id>/freeze")
@require_auth
@require_permission("plan:freeze")
def freeze_plan_route(plan_id: int):
    return jsonify(plan_service.freeze_plan(plan_id).to_dict())


@plans_bp.delete("/<int:plan_id>")
@require_auth
@require_permission("plan:delete")
def delete_plan_route(plan_id: int):
    plan_service.delete_plan(plan_id)
    return "", 204
