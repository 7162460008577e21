# Overview: Permission module names; the part before ':' in a permission code.


class PermissionModule:
    """Permission modules for grouping related permissions."""
    ORDER = "order"
    PLAN = "plan"
    LAYOUT = "layout"
    LAYOUT_RATIOS = "layout_ratios"
    TASK = "task"
    LOG = "log"
    USER = "user"
