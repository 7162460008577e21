# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import UnauthorizedError
from .permissions import normalize_code
from .services import permission_service, token_service


def _is_authenticated() -> bool:
    return hasattr(g, 'claims')


def require_auth(f):
    """
    Require a valid access token.

    Sets g.claims (token_service.Claims) for the route.

    SECURITY: Returns 401 if:
    - No Authorization header, or not a Bearer token
    - Invalid, expired or non-access token
    Returns 403 if the token says the account is inactive.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            claims = token_service.parse_token(token)
        except UnauthorizedError as e:
            return jsonify(e.to_dict()), 401

        if not claims.is_active:
            return jsonify({"error": "Account is inactive"}), 403

        g.claims = claims
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission (admin/manager always pass)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not permission_service.has_permission(g.claims.role, permission_code):
                return jsonify({
                    "error": "Permission denied",
                    "details": {"required_permission": permission_code},
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_roles(*roles: str):
    """Require one of the listed roles (exact role match, no permission table)."""
    allowed = {normalize_code(role) for role in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if normalize_code(g.claims.role) not in allowed:
                return jsonify({
                    "error": "Permission denied",
                    "details": {"required_roles": sorted(allowed)},
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
