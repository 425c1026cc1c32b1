"""Generic approval record shared by every approvable entity kind."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDMixin
from app.rules.workflow import AdHocLevel, CanonicalLevel, LevelRef


class Approval(Base, UUIDMixin, TimestampMixin):
    """One decision point in an entity's approval chain.

    Mutated exactly once (pending -> approved | rejected). Owned by the parent
    entity identified by (parent_kind, parent_id).
    """

    __tablename__ = "approvals"
    __table_args__ = (
        Index("ix_approvals_parent", "parent_kind", "parent_id", "sequence"),
        Index(
            "uq_approvals_pending_approver_per_level",
            "parent_kind", "parent_id", "level", "approver_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
        ),
    )

    parent_kind: Mapped[str] = mapped_column(String(20), nullable=False)  # request, project, payroll, payment
    parent_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    level: Mapped[str] = mapped_column(String(50), nullable=False)
    origin: Mapped[str] = mapped_column(
        String(20), nullable=False, default="canonical"
    )  # canonical, delegated
    approver_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    added_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending"
    )  # pending, approved, rejected
    action_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    can_add_approvers: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    approver = relationship("User", foreign_keys=[approver_id], lazy="selectin")

    @property
    def is_delegated(self) -> bool:
        return self.origin == "delegated"

    @property
    def level_ref(self) -> LevelRef:
        if self.is_delegated:
            return AdHocLevel(self.level)
        return CanonicalLevel(self.level)

    def snapshot(self) -> dict:
        return {
            "id": str(self.id),
            "parent_kind": self.parent_kind,
            "parent_id": str(self.parent_id),
            "level": self.level,
            "origin": self.origin,
            "approver_id": str(self.approver_id),
            "status": self.status,
            "action_date": self.action_date.isoformat() if self.action_date else None,
            "comments": self.comments,
            "can_add_approvers": self.can_add_approvers,
        }


def approvals_relationship(kind: str, parent_class: str):
    """Polymorphic one-to-many from a parent entity to its approval records."""
    return relationship(
        "Approval",
        primaryjoin=(
            f"and_(foreign(Approval.parent_id) == {parent_class}.id, "
            f"Approval.parent_kind == '{kind}')"
        ),
        order_by="Approval.sequence",
        cascade="all, delete-orphan",
        overlaps="approvals",
    )
