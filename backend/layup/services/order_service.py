# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order Service

WHY: An order is the customer's request (style, colors, sizes, quantities)
and the root of everything cut for it. Plans hang off an order; task colors
must come from the order's items.

RULES:
- order_number is unique
- An order is written together with at least one item, in one transaction
- Items never change after creation; only note and finish date are editable
- Deleting an order deletes its plans, layouts, tasks and logs
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, OrderItem
from layup.time_utils import coerce_datetime
from .concurrency import atomic
from .event_service import emit


def _parse_date(value, field: str) -> datetime | None:
    try:
        return coerce_datetime(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field} format") from exc


def _validate_items(items) -> list[dict]:
    """
    Normalize the item list.

    Each item needs a non-empty color and size and a positive integer quantity.
    """
    if not items:
        raise ValidationError("Order requires at least one item")

    cleaned = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError("Each item must be an object", details={"index": index})

        color = str(item.get("color") or "").strip()
        size = str(item.get("size") or "").strip()
        if not color or not size:
            raise ValidationError("Item color and size are required", details={"index": index})

        quantity = item.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Item quantity must be a positive integer", details={"index": index})

        cleaned.append({"color": color, "size": size, "quantity": quantity})
    return cleaned


def create_order(
    order_number: str,
    style_number: str,
    items: list[dict],
    *,
    customer_name: str | None = None,
    order_start_date: datetime | str | None = None,
    order_finish_date: datetime | str | None = None,
    note: str | None = None,
) -> Order:
    """
    Create an order and its items atomically.

    Args:
        order_number: Unique external order number
        style_number: Garment style
        items: [{"color": ..., "size": ..., "quantity": ...}, ...] (at least one)

    Raises:
        ValidationError: missing numbers, no items, or a malformed item
        ConflictError: order_number already exists
    """
    order_number = (order_number or "").strip()
    style_number = (style_number or "").strip()
    if not order_number:
        raise ValidationError("order_number is required")
    if not style_number:
        raise ValidationError("style_number is required")

    cleaned_items = _validate_items(items)
    start = _parse_date(order_start_date, "order_start_date")
    finish = _parse_date(order_finish_date, "order_finish_date")

    try:
        with atomic() as session:
            existing = session.query(Order.id).filter_by(order_number=order_number).first()
            if existing is not None:
                raise ConflictError(f"Order number '{order_number}' already exists")

            order = Order(
                order_number=order_number,
                style_number=style_number,
                customer_name=customer_name,
                order_start_date=start,
                order_finish_date=finish,
                note=note,
            )
            order.items = [OrderItem(**item) for item in cleaned_items]
            session.add(order)
    except IntegrityError as exc:
        # Lost a race on the unique order_number
        raise ConflictError(f"Order number '{order_number}' already exists") from exc

    emit("order_created", order_id=order.id, order_number=order.order_number, items=len(cleaned_items))
    return order


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def get_order_with_items(order_id: int) -> dict:
    """Order dict including its items (for detail views)."""
    return get_order(order_id).to_dict(include_items=True)


def get_order_by_number(order_number: str) -> Order:
    order = db.session.query(Order).filter_by(order_number=(order_number or "").strip()).first()
    if order is None:
        raise NotFoundError(f"Order '{order_number}' not found")
    return order


def list_orders() -> list[Order]:
    """All orders, newest first."""
    return db.session.query(Order).order_by(Order.id.desc()).all()


def list_order_colors(order_id: int) -> list[str]:
    """Distinct item colors of an order, sorted."""
    rows = (
        db.session.query(OrderItem.color)
        .filter(OrderItem.order_id == order_id)
        .distinct()
        .order_by(OrderItem.color.asc())
        .all()
    )
    return [row[0] for row in rows]


def update_order_note(order_id: int, note: str | None) -> Order:
    order = get_order(order_id)
    order.note = note
    db.session.commit()
    return order


def update_order_finish_date(order_id: int, finish_date: datetime | str | None) -> Order:
    order = get_order(order_id)
    order.order_finish_date = _parse_date(finish_date, "order_finish_date")
    db.session.commit()
    return order


def delete_order(order_id: int) -> None:
    """
    Delete an order with everything below it.

    Allowed in every plan status: the cascade removes plans, layouts,
    ratios, tasks and logs together.
    """
    with atomic() as session:
        order = session.get(Order, order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        order_number = order.order_number
        session.delete(order)

    emit("order_deleted", order_id=order_id, order_number=order_number)
