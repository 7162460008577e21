# Overview: Permission system package.
# Re-exports all public APIs for imports.

from .categories import PermissionModule
from .definitions import (
    PERMISSION_DEFINITIONS,
    ORDER_PERMISSIONS,
    PLAN_PERMISSIONS,
    LAYOUT_PERMISSIONS,
    LAYOUT_RATIO_PERMISSIONS,
    TASK_PERMISSIONS,
    LOG_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import (
    DEFAULT_ROLE_PERMISSIONS,
    KNOWN_ROLES,
    SUPER_ROLES,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_PATTERN_MAKER,
    ROLE_WORKER,
)
from .helpers import (
    normalize_code,
    get_all_permission_codes,
    get_permissions_by_module,
    get_permission_definition,
    validate_permission_code,
    grant_covers,
    freeze_role_map,
)

__all__ = [
    "PermissionModule",
    "PERMISSION_DEFINITIONS",
    "ORDER_PERMISSIONS",
    "PLAN_PERMISSIONS",
    "LAYOUT_PERMISSIONS",
    "LAYOUT_RATIO_PERMISSIONS",
    "TASK_PERMISSIONS",
    "LOG_PERMISSIONS",
    "USER_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "KNOWN_ROLES",
    "SUPER_ROLES",
    "ROLE_ADMIN",
    "ROLE_MANAGER",
    "ROLE_PATTERN_MAKER",
    "ROLE_WORKER",
    "normalize_code",
    "get_all_permission_codes",
    "get_permissions_by_module",
    "get_permission_definition",
    "validate_permission_code",
    "grant_covers",
    "freeze_role_map",
]
