# Overview: Flask API routes for authentication; parses input and returns JSON responses.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth
from ..services import auth_service, user_service
from ..validation import json_body, require_fields


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@auth_bp.post("/login")
def login_route():
    """
    Login with name and password.

    Request body:
    {
        "name": "anna",
        "password": "..."
    }

    Returns:
        {access_token, refresh_token, expires_at, token_type, user}
    """
    data = json_body()
    require_fields(data, "name", "password")

    tokens, user = auth_service.login(data["name"], data["password"])

    body = tokens.to_dict()
    body["user"] = user.to_dict()
    return jsonify(body)


@auth_bp.post("/refresh")
def refresh_route():
    """Exchange a refresh token for a new token pair."""
    data = json_body()
    require_fields(data, "refresh_token")

    tokens = auth_service.refresh(data["refresh_token"])
    return jsonify(tokens.to_dict())


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current caller: token claims plus the stored account."""
    user = user_service.get_user(g.claims.user_id)
    return jsonify({"claims": g.claims.to_dict(), "user": user.to_dict()})


@auth_bp.put("/password")
@require_auth
def change_password_route():
    """Change own password. Body: {old_password, new_password}."""
    data = json_body()
    require_fields(data, "old_password", "new_password")

    auth_service.change_password(g.claims.user_id, data["old_password"], data["new_password"])
    return jsonify({"status": "ok"})
