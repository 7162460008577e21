from __future__ import annotations

from ..extensions import db
from layup.time_utils import to_utc_z


class Order(db.Model):
    """
    Customer production order.

    An order is always written together with at least one OrderItem and the
    items never change afterwards. Deleting an order removes every plan,
    layout, task and log below it.
    """
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(64), nullable=False, unique=True, index=True)
    style_number = db.Column(db.String(64), nullable=False)
    customer_name = db.Column(db.String(255), nullable=True)

    order_start_date = db.Column(db.DateTime, nullable=True)
    order_finish_date = db.Column(db.DateTime, nullable=True)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy=True,
    )
    plans = db.relationship(
        "Plan",
        backref="order",
        cascade="all, delete-orphan",
        order_by="Plan.id",
        lazy=True,
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "style_number": self.style_number,
            "customer_name": self.customer_name,
            "order_start_date": to_utc_z(self.order_start_date),
            "order_finish_date": to_utc_z(self.order_finish_date),
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """One color/size/quantity line of an order. Immutable after creation."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    color = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "color": self.color,
            "size": self.size,
            "quantity": self.quantity,
        }
