from __future__ import annotations

from ..extensions import db
from layup.time_utils import to_utc_z


class Plan(db.Model):
    """
    Production plan: the unit of publishable work under an order.

    STATE MACHINE (see services/lifecycle_service.py):
        pending -> in_progress -> completed -> frozen
                        ^-------------'   (reopened when a void drops a task)

    While pending, layouts/tasks/ratios below the plan may be edited freely.
    Once published only the plan note and layout notes stay writable;
    completion is derived from task progress, never set directly.
    """
    __tablename__ = "plans"
    __table_args__ = (
        db.Index("ix_plans_order_status", "order_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_name = db.Column(db.String(128), nullable=False)
    note = db.Column(db.Text, nullable=True)

    planned_publish_date = db.Column(db.DateTime, nullable=True)
    planned_finish_date = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    # Lifecycle audit trail
    published_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    frozen_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    layouts = db.relationship(
        "Layout",
        backref="plan",
        cascade="all, delete-orphan",
        order_by="Layout.id",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "plan_name": self.plan_name,
            "note": self.note,
            "planned_publish_date": to_utc_z(self.planned_publish_date),
            "planned_finish_date": to_utc_z(self.planned_finish_date),
            "status": self.status,
            "published_at": to_utc_z(self.published_at),
            "completed_at": to_utc_z(self.completed_at),
            "frozen_at": to_utc_z(self.frozen_at),
            "created_at": to_utc_z(self.created_at),
        }


class Layout(db.Model):
    """Cutting layout (marker) grouping tasks under a plan."""
    __tablename__ = "layouts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    plan_id = db.Column(
        db.Integer,
        db.ForeignKey("plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    layout_name = db.Column(db.String(128), nullable=False)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    ratios = db.relationship(
        "LayoutSizeRatio",
        backref="layout",
        cascade="all, delete-orphan",
        order_by="LayoutSizeRatio.id",
        lazy=True,
    )
    tasks = db.relationship(
        "Task",
        backref="layout",
        cascade="all, delete-orphan",
        order_by="Task.id",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "layout_name": self.layout_name,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }


class LayoutSizeRatio(db.Model):
    """Size ratio row of a layout. The set is always replaced as a whole."""
    __tablename__ = "layout_size_ratios"
    __table_args__ = (
        db.UniqueConstraint("layout_id", "size", name="uq_layout_size_ratios_layout_size"),
        db.CheckConstraint("ratio > 0", name="ck_layout_size_ratios_ratio_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    layout_id = db.Column(
        db.Integer,
        db.ForeignKey("layouts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    size = db.Column(db.String(32), nullable=False)
    ratio = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "layout_id": self.layout_id,
            "size": self.size,
            "ratio": self.ratio,
        }


class Task(db.Model):
    """
    Planned production for one color of a layout.

    completed_layers and status are derived columns: only
    services/progress_service.py writes them, from the non-voided logs.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        db.CheckConstraint("planned_layers > 0", name="ck_tasks_planned_layers_positive"),
        db.Index("ix_tasks_layout_status", "layout_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    layout_id = db.Column(
        db.Integer,
        db.ForeignKey("layouts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    color = db.Column(db.String(64), nullable=False)
    planned_layers = db.Column(db.Integer, nullable=False)

    # Derived from production_logs
    completed_layers = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    logs = db.relationship(
        "ProductionLog",
        backref="task",
        cascade="all, delete-orphan",
        order_by="ProductionLog.id",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "layout_id": self.layout_id,
            "color": self.color,
            "planned_layers": self.planned_layers,
            "completed_layers": self.completed_layers,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
