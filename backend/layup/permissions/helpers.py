# Overview: Utility functions for permission lookups, wildcard matching and validation.

from types import MappingProxyType

from .definitions import PERMISSION_DEFINITIONS


def normalize_code(code):
    """Lower-case and trim a role name or permission code."""
    return (code or "").strip().lower()


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_module(module):
    """Get all permissions in a module."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == module]


def get_permission_definition(code):
    """Get full definition for a permission code."""
    code = normalize_code(code)
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "module": perm[3],
            }
    return None


def validate_permission_code(code):
    """
    Check if a permission code is valid.

    Wildcards are valid when their module has at least one defined action.
    """
    code = normalize_code(code)
    if code.endswith(":*"):
        module = code[:-2]
        return bool(get_permissions_by_module(module))
    return code in get_all_permission_codes()


def grant_covers(granted, required):
    """
    True if a single granted entry satisfies the required code.

    "log:create" covers "log:create"; "log:*" covers any "log:<action>".
    """
    granted = normalize_code(granted)
    required = normalize_code(required)
    if not granted or not required:
        return False
    if granted == required:
        return True
    module, sep, action = granted.partition(":")
    if sep and action == "*":
        return required.partition(":")[0] == module
    return False


def freeze_role_map(role_permissions):
    """Copy a role -> iterable-of-codes mapping into an immutable, normalized one."""
    return MappingProxyType({
        normalize_code(role): frozenset(normalize_code(code) for code in codes)
        for role, codes in role_permissions.items()
    })
