from __future__ import annotations

from ..extensions import db
from layup.time_utils import to_utc_z


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Roles are a single string per user (admin, manager, pattern_maker, worker);
    what each role may do lives in layup.permissions, not in the database.

    WHY: Every log and every void must be attributable to a person.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role_active", "role", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Bcrypt hashed password; empty until an administrator sets one
    password_hash = db.Column(db.String(255), nullable=False, default="")

    role = db.Column(db.String(32), nullable=False, default="worker")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    user_group = db.Column(db.String(64), nullable=True)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "user_group": self.user_group,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }
