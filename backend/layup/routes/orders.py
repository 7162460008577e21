# Overview: Flask API routes for orders; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_permission
from ..services import order_service, plan_service
from ..validation import json_body, require_fields


orders_bp = Blueprint("orders", __name__, url_prefix="/api/v1/orders")


@orders_bp.get("")
@require_auth
@require_permission("order:read")
def list_orders_route():
    orders = order_service.list_orders()
    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)})


@orders_bp.post("")
@require_auth
@require_permission("order:create")
def create_order_route():
    """
    Request body:
    {
        "order_number": "PO-1001",     // required, unique
        "style_number": "ST-77",       // required
        "customer_name": "...",        // optional
        "order_start_date": "...Z",    // optional ISO-8601
        "order_finish_date": "...Z",   // optional ISO-8601
        "note": "...",                 // optional
        "items": [{"color": "red", "size": "M", "quantity": 100}]  // at least one
    }
    """
    data = json_body()
    require_fields(data, "order_number", "style_number")

    order = order_service.create_order(
        data["order_number"],
        data["style_number"],
        data.get("items") or [],
        customer_name=data.get("customer_name"),
        order_start_date=data.get("order_start_date"),
        order_finish_date=data.get("order_finish_date"),
        note=data.get("note"),
    )
    return jsonify(order.to_dict(include_items=True)), 201


@orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("order:read")
def get_order_route(order_id: int):
    return jsonify(order_service.get_order_with_items(order_id))


@orders_bp.get("/by-number/<order_number>")
@require_auth
@require_permission("order:read")
def get_order_by_number_route(order_number: str):
    return jsonify(order_service.get_order_by_number(order_number).to_dict(include_items=True))


@orders_bp.get("/<int:order_id>/colors")
@require_auth
@require_permission("order:read")
def list_order_colors_route(order_id: int):
    order_service.get_order(order_id)
    return jsonify({"colors": order_service.list_order_colors(order_id)})


@orders_bp.get("/<int:order_id>/plans")
@require_auth
@require_permission("plan:read")
def list_order_plans_route(order_id: int):
    order_service.get_order(order_id)
    plans = plan_service.list_plans_by_order(order_id)
    return jsonify({"items": [p.to_dict() for p in plans], "count": len(plans)})


@orders_bp.patch("/<int:order_id>/note")
@require_auth
@require_permission("order:update")
def update_order_note_route(order_id: int):
    data = json_body()
    order = order_service.update_order_note(order_id, data.get("note"))
    return jsonify(order.to_dict())


@orders_bp.patch("/<int:order_id>/finish-date")
@require_auth
@require_permission("order:update")
def update_order_finish_date_route(order_id: int):
    data = json_body()
    order = order_service.update_order_finish_date(order_id, data.get("order_finish_date"))
    return jsonify(order.to_dict())


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("order:delete")
def delete_order_route(order_id: int):
    order_service.delete_order(order_id)
    return "", 204
