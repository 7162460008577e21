# Overview: Service-layer permission evaluation against the injected role table.

"""
Role-based permission checks.

DESIGN PRINCIPLES:
- Fail closed: a role with no matching entry is denied.
- admin and manager are super roles and satisfy every permission.
- The role -> permission table is data: built once at startup, frozen, and
  installed on the Flask app. Nothing here mutates it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from flask import current_app

from ..errors import ForbiddenError
from ..permissions import DEFAULT_ROLE_PERMISSIONS, SUPER_ROLES, freeze_role_map, grant_covers, normalize_code


EXTENSION_KEY = "layup.access_policy"


class AccessPolicy:
    """
    Answers "may role R do P?" for a fixed role -> permission-set table.

    Usage:
        policy = AccessPolicy({"worker": {"log:create", "task:read"}})
        policy.has_permission("worker", "log:create")   # True
        policy.require_permission("worker", "plan:publish")  # raises ForbiddenError
    """

    def __init__(
        self,
        role_permissions: Mapping[str, Iterable[str]] | None = None,
        super_roles: Iterable[str] = SUPER_ROLES,
    ):
        if role_permissions is None:
            role_permissions = DEFAULT_ROLE_PERMISSIONS
        self._role_permissions = freeze_role_map(role_permissions)
        self._super_roles = frozenset(normalize_code(r) for r in super_roles)

    @property
    def role_permissions(self) -> Mapping[str, frozenset[str]]:
        return self._role_permissions

    def is_super_role(self, role: str | None) -> bool:
        return normalize_code(role) in self._super_roles

    def permissions_for(self, role: str | None) -> frozenset[str]:
        return self._role_permissions.get(normalize_code(role), frozenset())

    def has_permission(self, role: str | None, required: str) -> bool:
        role = normalize_code(role)
        if not role:
            return False
        if role in self._super_roles:
            return True
        if not normalize_code(required):
            return False
        return any(grant_covers(granted, required) for granted in self.permissions_for(role))

    def has_any_permission(self, role: str | None, *required: str) -> bool:
        # No specific permission required
        if not required:
            return bool(normalize_code(role))
        return any(self.has_permission(role, code) for code in required)

    def require_permission(self, role: str | None, required: str) -> None:
        """Raise ForbiddenError unless role satisfies required."""
        if not self.has_permission(role, required):
            raise ForbiddenError(
                f"Permission denied: {required}",
                details={"role": role, "required_permission": required},
            )


def install_access_policy(app, role_permissions: Mapping[str, Iterable[str]] | None = None) -> AccessPolicy:
    """Build the app's AccessPolicy from config (or the built-in table) and register it."""
    policy = AccessPolicy(role_permissions)
    app.extensions[EXTENSION_KEY] = policy
    return policy


def get_access_policy() -> AccessPolicy:
    """The AccessPolicy of the current Flask app."""
    return current_app.extensions[EXTENSION_KEY]


def has_permission(role: str | None, required: str) -> bool:
    return get_access_policy().has_permission(role, required)


def require_permission(role: str | None, required: str) -> None:
    get_access_policy().require_permission(role, required)
