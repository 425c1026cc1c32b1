import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, UUIDMixin

ROLES = (
    "employee", "dept_head", "director", "ceo", "hr_manager", "administrator",
    "admin", "managing_director", "accountant", "finance_manager",
)

# Permission keys stored in User.permissions ({"add_approvers": true, ...}).
PERMISSIONS = (
    "add_approvers",      # may add approvers to chains the user is part of
    "manage_approvers",   # may add approvers anywhere and grant delegation
    "approve_payments",
    "approve_approvals",
)


class User(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    permissions: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict, server_default="{}")
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("departments.id", use_alter=True), nullable=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)  # soft delete

    def has_permission(self, permission: str) -> bool:
        return (self.permissions or {}).get(permission) is True
