from __future__ import annotations

from ..extensions import db
from layup.time_utils import to_utc_z, utcnow


class ProductionLog(db.Model):
    """
    Append-only production record: a worker laid up N layers on a task.

    Logs are never edited or deleted individually. A wrong entry is voided,
    which excludes it from the task's completed_layers; voiding is one-way
    and only its reason/actor metadata may be corrected afterwards.
    """
    __tablename__ = "production_logs"
    __table_args__ = (
        db.CheckConstraint("layers_completed > 0", name="ck_production_logs_layers_positive"),
        db.Index("ix_production_logs_task_voided", "task_id", "voided"),
        db.Index("ix_production_logs_worker_time", "worker_id", "log_time"),
        db.Index("ix_production_logs_voided_by_at", "voided_by", "voided_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(
        db.Integer,
        db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Either may be set; worker_name covers people without an account
    worker_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    worker_name = db.Column(db.String(64), nullable=True)

    layers_completed = db.Column(db.Integer, nullable=False)
    log_time = db.Column(db.DateTime, nullable=False, default=utcnow)
    note = db.Column(db.Text, nullable=True)

    # Void audit trail
    voided = db.Column(db.Boolean, nullable=False, default=False)
    void_reason = db.Column(db.String(255), nullable=True)
    voided_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    voided_at = db.Column(db.DateTime, nullable=True)
    voided_by_name = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "worker_id": self.worker_id,
            "worker_name": self.worker_name,
            "layers_completed": self.layers_completed,
            "log_time": to_utc_z(self.log_time),
            "note": self.note,
            "voided": self.voided,
            "void_reason": self.void_reason,
            "voided_by": self.voided_by,
            "voided_at": to_utc_z(self.voided_at),
            "voided_by_name": self.voided_by_name,
        }
