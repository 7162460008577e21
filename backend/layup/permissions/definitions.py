# Overview: All permission definitions organized by module.
# Each permission is defined as: (code, name, description, module)
# Codes follow "module:action"; a role entry "module:*" grants every action of a module.

from .categories import PermissionModule


ORDER_PERMISSIONS = [
    ("order:read", "View Orders", "View orders and their items", PermissionModule.ORDER),
    ("order:create", "Create Orders", "Create an order together with its items", PermissionModule.ORDER),
    ("order:update", "Update Orders", "Edit order note and finish date", PermissionModule.ORDER),
    ("order:delete", "Delete Orders", "Delete an order and everything below it", PermissionModule.ORDER),
]

PLAN_PERMISSIONS = [
    ("plan:read", "View Plans", "View production plans", PermissionModule.PLAN),
    ("plan:create", "Create Plans", "Create a pending plan under an order", PermissionModule.PLAN),
    ("plan:update", "Update Plans", "Edit plan note", PermissionModule.PLAN),
    ("plan:delete", "Delete Plans", "Delete a plan and everything below it", PermissionModule.PLAN),
    ("plan:publish", "Publish Plans", "Move a pending plan to in_progress", PermissionModule.PLAN),
    ("plan:freeze", "Freeze Plans", "Freeze a completed plan", PermissionModule.PLAN),
]

LAYOUT_PERMISSIONS = [
    ("layout:read", "View Layouts", "View cutting layouts", PermissionModule.LAYOUT),
    ("layout:create", "Create Layouts", "Create layouts on pending plans", PermissionModule.LAYOUT),
    ("layout:update", "Update Layouts", "Rename layouts or edit layout notes", PermissionModule.LAYOUT),
    ("layout:delete", "Delete Layouts", "Delete layouts on pending plans", PermissionModule.LAYOUT),
]

LAYOUT_RATIO_PERMISSIONS = [
    ("layout_ratios:read", "View Size Ratios", "View layout size ratios", PermissionModule.LAYOUT_RATIOS),
    ("layout_ratios:update", "Set Size Ratios", "Replace layout size ratios on pending plans", PermissionModule.LAYOUT_RATIOS),
]

TASK_PERMISSIONS = [
    ("task:read", "View Tasks", "View production tasks and progress", PermissionModule.TASK),
    ("task:create", "Create Tasks", "Create tasks on pending plans", PermissionModule.TASK),
    ("task:delete", "Delete Tasks", "Delete tasks on pending plans", PermissionModule.TASK),
]

LOG_PERMISSIONS = [
    ("log:read", "View Logs", "View production logs of any worker", PermissionModule.LOG),
    ("log:create", "Submit Logs", "Submit production logs", PermissionModule.LOG),
    ("log:update", "Update Logs", "Correct void metadata of logs", PermissionModule.LOG),
    ("log:void", "Void Logs", "Void production logs (workers: own logs, rate limited)", PermissionModule.LOG),
]

USER_PERMISSIONS = [
    ("user:read", "View Users", "View user accounts", PermissionModule.USER),
    ("user:create", "Create Users", "Create user accounts", PermissionModule.USER),
    ("user:update", "Update Users", "Edit profiles, roles, status and passwords", PermissionModule.USER),
    ("user:delete", "Delete Users", "Delete user accounts", PermissionModule.USER),
]


# Combined list of all permissions (preserves original ordering)
PERMISSION_DEFINITIONS = (
    ORDER_PERMISSIONS
    + PLAN_PERMISSIONS
    + LAYOUT_PERMISSIONS
    + LAYOUT_RATIO_PERMISSIONS
    + TASK_PERMISSIONS
    + LOG_PERMISSIONS
    + USER_PERMISSIONS
)
