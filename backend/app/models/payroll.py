import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDMixin
from app.models.approval import approvals_relationship


class Payroll(Base, UUIDMixin, TimestampMixin):
    """Monthly payroll run; needs sign-off from every department head it touches."""

    __tablename__ = "payrolls"

    period_month: Mapped[int] = mapped_column(Integer, nullable=False)
    period_year: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="draft"
    )  # draft, pending_dept_head, pending_admin_head, pending_accountant, approved, rejected

    entries: Mapped[list["PayrollEntry"]] = relationship(
        "PayrollEntry", back_populates="payroll", cascade="all, delete-orphan", lazy="selectin"
    )
    approvals = approvals_relationship("payroll", "Payroll")

    @property
    def label(self) -> str:
        return f"Payroll {self.period_month:02d}/{self.period_year}"

    @property
    def total_net_pay(self) -> Decimal:
        return sum((e.net_pay or Decimal("0") for e in self.entries), Decimal("0"))


class PayrollEntry(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "payroll_entries"

    payroll_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("payrolls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("departments.id"), nullable=True
    )
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=0)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=0)

    payroll: Mapped["Payroll"] = relationship("Payroll", back_populates="entries")
    department = relationship("Department", lazy="selectin")
