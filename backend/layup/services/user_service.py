# Overview: Service-layer operations for user accounts; profile, role and status management.

"""
User Management Service

Passwords and tokens are handled in auth_service.py; this module owns the
account records and the administrative rules around them.

RULES:
1. User names are unique (ConflictError)
2. A manager cannot create, re-role, deactivate or delete the admin
3. A manager cannot create admin or manager accounts
4. At most one active admin and one active manager exist at a time
5. Admins/managers cannot change their own role, deactivate or delete themselves
"""

from __future__ import annotations

from sqlalchemy import or_

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ProductionLog, User
from ..permissions import KNOWN_ROLES, ROLE_ADMIN, ROLE_MANAGER, SUPER_ROLES, normalize_code
from .auth_service import hash_password
from .event_service import emit


def _validate_role(role: str | None) -> str:
    role = normalize_code(role)
    if role not in KNOWN_ROLES:
        raise ValidationError(
            f"Invalid role '{role}'. Must be one of: {', '.join(sorted(KNOWN_ROLES))}"
        )
    return role


def _validate_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name required")
    return name


def _require_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def _ensure_single_active(role: str, *, exclude_user_id: int | None = None) -> None:
    """Only one active admin and one active manager may exist."""
    if role not in SUPER_ROLES:
        return
    q = db.session.query(User).filter(User.role == role, User.is_active.is_(True))
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    if q.first() is not None:
        raise ForbiddenError(f"An active {role} already exists")


def _ensure_manager_not_touching_admin(actor_role: str, target: User) -> None:
    if normalize_code(actor_role) == ROLE_MANAGER and target.role == ROLE_ADMIN:
        raise ForbiddenError("Managers cannot modify the admin account")


def get_user(user_id: int) -> User:
    return _require_user(user_id)


def get_user_by_name(name: str) -> User | None:
    return db.session.query(User).filter_by(name=(name or "").strip()).first()


def list_users(
    *,
    query: str | None = None,
    role: str | None = None,
    active: bool | None = None,
    user_group: str | None = None,
) -> list[User]:
    """
    List users, ordered by name.

    query is a case-insensitive substring match on name and note.
    """
    q = db.session.query(User)
    if query:
        pattern = f"%{query.strip()}%"
        q = q.filter(or_(User.name.ilike(pattern), User.note.ilike(pattern)))
    if role:
        q = q.filter(User.role == normalize_code(role))
    if active is not None:
        q = q.filter(User.is_active.is_(active))
    if user_group:
        q = q.filter(User.user_group == user_group)
    return q.order_by(User.name.asc()).all()


def create_user(
    actor_role: str,
    name: str,
    role: str,
    *,
    password: str | None = None,
    user_group: str | None = None,
    note: str | None = None,
) -> User:
    """
    Create a user account.

    Without a password the account exists but cannot log in until
    auth_service.set_initial_password() is called.
    """
    name = _validate_name(name)
    role = _validate_role(role)

    if get_user_by_name(name) is not None:
        raise ConflictError(f"User name '{name}' already exists")

    if normalize_code(actor_role) == ROLE_MANAGER and role in SUPER_ROLES:
        raise ForbiddenError(f"Managers cannot create {role} accounts")

    _ensure_single_active(role)

    user = User(
        name=name,
        role=role,
        is_active=True,
        password_hash=hash_password(password) if password else "",
        user_group=user_group,
        note=note,
    )
    db.session.add(user)
    db.session.commit()

    emit("user_created", user_id=user.id, name=user.name, role=user.role)
    return user


def update_profile(
    user_id: int,
    *,
    name: str | None = None,
    user_group: str | None = None,
    note: str | None = None,
) -> User:
    """Update non-sensitive profile fields. None leaves a field unchanged."""
    user = _require_user(user_id)

    if name is not None:
        name = _validate_name(name)
        if name != user.name:
            if get_user_by_name(name) is not None:
                raise ConflictError(f"User name '{name}' already exists")
            user.name = name

    if user_group is not None:
        user.user_group = user_group
    if note is not None:
        user.note = note

    db.session.commit()
    return user


def assign_role(actor_id: int, actor_role: str, target_id: int, role: str) -> User:
    role = _validate_role(role)
    target = _require_user(target_id)

    _ensure_manager_not_touching_admin(actor_role, target)

    if normalize_code(actor_role) in SUPER_ROLES and actor_id == target_id:
        raise ForbiddenError("You cannot change your own role")

    if role != target.role:
        _ensure_single_active(role, exclude_user_id=target_id)

    target.role = role
    db.session.commit()

    emit("user_role_assigned", user_id=target.id, role=role, actor_id=actor_id)
    return target


def set_active(actor_id: int, actor_role: str, target_id: int, active: bool) -> User:
    target = _require_user(target_id)

    _ensure_manager_not_touching_admin(actor_role, target)

    if normalize_code(actor_role) in SUPER_ROLES and actor_id == target_id and not active:
        raise ForbiddenError("You cannot deactivate yourself")

    if active and not target.is_active:
        _ensure_single_active(target.role, exclude_user_id=target_id)

    target.is_active = bool(active)
    db.session.commit()

    emit("user_active_changed", user_id=target.id, is_active=target.is_active, actor_id=actor_id)
    return target


def delete_user(actor_id: int, actor_role: str, target_id: int) -> None:
    target = _require_user(target_id)

    _ensure_manager_not_touching_admin(actor_role, target)

    if normalize_code(actor_role) in SUPER_ROLES and actor_id == target_id:
        raise ForbiddenError("You cannot delete yourself")

    # Logs keep worker_name / voided_by_name; only the account link goes
    db.session.query(ProductionLog).filter(ProductionLog.worker_id == target_id).update(
        {ProductionLog.worker_id: None}, synchronize_session=False
    )
    db.session.query(ProductionLog).filter(ProductionLog.voided_by == target_id).update(
        {ProductionLog.voided_by: None}, synchronize_session=False
    )
    db.session.delete(target)
    db.session.commit()

    emit("user_deleted", user_id=target_id, actor_id=actor_id)
