# Overview: Flask API routes for user administration; parses input and returns JSON responses.

"""
User Routes

SECURITY: admin and manager only. Managers are further restricted by
user_service (cannot create super roles, cannot touch the admin).
"""

from flask import Blueprint, jsonify, g, request

from ..decorators import require_auth, require_roles
from ..permissions import ROLE_ADMIN, ROLE_MANAGER
from ..services import auth_service, user_service
from ..validation import bool_arg, coerce_bool, json_body, require_fields


users_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@users_bp.get("")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def list_users_route():
    """
    Query parameters:
    - q: substring of name or note
    - role, group: exact filters
    - active: true/false
    """
    users = user_service.list_users(
        query=request.args.get("q"),
        role=request.args.get("role"),
        active=bool_arg("active"),
        user_group=request.args.get("group"),
    )
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)})


@users_bp.get("/<int:user_id>")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def get_user_route(user_id: int):
    return jsonify(user_service.get_user(user_id).to_dict())


@users_bp.post("")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def create_user_route():
    """
    Request body:
    {
        "name": "anna",          // required
        "role": "worker",        // required
        "password": "...",       // optional
        "user_group": "line-1",  // optional
        "note": "..."            // optional
    }
    """
    data = json_body()
    require_fields(data, "name", "role")

    user = user_service.create_user(
        g.claims.role,
        data["name"],
        data["role"],
        password=data.get("password"),
        user_group=data.get("user_group"),
        note=data.get("note"),
    )
    return jsonify(user.to_dict()), 201


@users_bp.patch("/<int:user_id>/profile")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def update_profile_route(user_id: int):
    data = json_body()
    user = user_service.update_profile(
        user_id,
        name=data.get("name"),
        user_group=data.get("user_group"),
        note=data.get("note"),
    )
    return jsonify(user.to_dict())


@users_bp.put("/<int:user_id>/role")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def assign_role_route(user_id: int):
    data = json_body()
    require_fields(data, "role")

    user = user_service.assign_role(g.claims.user_id, g.claims.role, user_id, data["role"])
    return jsonify(user.to_dict())


@users_bp.put("/<int:user_id>/active")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def set_active_route(user_id: int):
    data = json_body()
    require_fields(data, "is_active")

    user = user_service.set_active(
        g.claims.user_id,
        g.claims.role,
        user_id,
        coerce_bool("is_active", data["is_active"]),
    )
    return jsonify(user.to_dict())


@users_bp.put("/<int:user_id>/password")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def set_password_route(user_id: int):
    """Administrative password reset. Body: {password}."""
    data = json_body()
    require_fields(data, "password")

    target = user_service.get_user(user_id)
    if g.claims.role == ROLE_MANAGER and target.role == ROLE_ADMIN:
        return jsonify({"error": "Managers cannot modify the admin account"}), 403

    user = auth_service.set_initial_password(user_id, data["password"])
    return jsonify(user.to_dict())


@users_bp.delete("/<int:user_id>")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def delete_user_route(user_id: int):
    user_service.delete_user(g.claims.user_id, g.claims.role, user_id)
    return "", 204
