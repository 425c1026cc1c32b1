"""Approver directory: user lookups used to authorize and assign approvers."""
import uuid

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.config import settings


def get_user(db: Session, user_id: uuid.UUID):
    """Return the non-deleted User with this id, or None."""
    from app.models.user import User

    return db.execute(
        select(User).where(User.id == user_id, User.deleted_at.is_(None))
    ).scalars().first()


def is_active(db: Session, user_id: uuid.UUID) -> bool:
    user = get_user(db, user_id)
    return user is not None and user.is_active


def has_permission(db: Session, user_id: uuid.UUID, permission: str) -> bool:
    user = get_user(db, user_id)
    return user is not None and user.is_active and user.has_permission(permission)


def find_approvers(
    db: Session,
    search_text: str | None = None,
    permission: str | None = None,
    limit: int | None = None,
) -> list:
    """Active users eligible to be picked as approvers.

    Matches search_text case-insensitively against name and email, optionally
    restricted to holders of `permission`. Ordered by name; limit is clamped
    to APPROVER_SEARCH_MAX_LIMIT.
    """
    from app.models.user import User

    take = limit or settings.APPROVER_SEARCH_DEFAULT_LIMIT
    take = max(1, min(take, settings.APPROVER_SEARCH_MAX_LIMIT))

    stmt = select(User).where(User.is_active.is_(True), User.deleted_at.is_(None))

    search = (search_text or "").strip()
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))

    perm = (permission or "").strip()
    if perm:
        stmt = stmt.where(User.permissions[perm].as_boolean().is_(True))

    stmt = stmt.order_by(User.full_name.asc()).limit(take)
    return list(db.execute(stmt).scalars().all())


def department_head(db: Session, department_id: uuid.UUID | None):
    """Return the department's head if set and active."""
    from app.models.department import Department

    if department_id is None:
        return None
    department = db.execute(
        select(Department).where(Department.id == department_id)
    ).scalars().first()
    if department is None or department.head_id is None:
        return None
    head = get_user(db, department.head_id)
    if head is None or not head.is_active:
        return None
    return head


def first_active_with_role(db: Session, roles: list[str]):
    from app.models.user import User

    if not roles:
        return None
    return db.execute(
        select(User)
        .where(User.role.in_(roles), User.is_active.is_(True), User.deleted_at.is_(None))
        .order_by(User.created_at.asc())
    ).scalars().first()
