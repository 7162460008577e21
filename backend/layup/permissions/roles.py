# Overview: Built-in role table. Loaded once at startup and injected as data.

from types import MappingProxyType


ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_PATTERN_MAKER = "pattern_maker"
ROLE_WORKER = "worker"

KNOWN_ROLES = frozenset({ROLE_ADMIN, ROLE_MANAGER, ROLE_PATTERN_MAKER, ROLE_WORKER})

# Super roles satisfy every permission without a table lookup
SUPER_ROLES = frozenset({ROLE_ADMIN, ROLE_MANAGER})


DEFAULT_ROLE_PERMISSIONS = MappingProxyType({
    # worker: submit/void own logs, read the plans, layouts and tasks they work on
    ROLE_WORKER: frozenset({
        "log:create",
        "log:update",
        "log:void",
        "task:read",
        "plan:read",
        "layout:read",
    }),
    # pattern_maker: builds plans, layouts, ratios and tasks
    ROLE_PATTERN_MAKER: frozenset({
        "plan:*",
        "layout:*",
        "layout_ratios:*",
        "task:*",
    }),
})
