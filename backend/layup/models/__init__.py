from .auth import User
from .orders import Order, OrderItem
from .planning import Plan, Layout, LayoutSizeRatio, Task
from .production import ProductionLog

__all__ = [
    'User',
    'Order', 'OrderItem',
    'Plan', 'Layout', 'LayoutSizeRatio', 'Task',
    'ProductionLog',
]
