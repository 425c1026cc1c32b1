from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, UUIDMixin
from app.models.approval import approvals_relationship


class Payment(Base, UUIDMixin, TimestampMixin):
    """Outgoing payment; scheduled once every assigned approver has signed off."""

    __tablename__ = "payments"

    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    method: Mapped[str] = mapped_column(
        String(30), nullable=False, default="bank_transfer"
    )  # bank_transfer, check, cash, credit_card, other
    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="draft"
    )  # draft, scheduled, partially_paid, paid, voided

    approvals = approvals_relationship("payment", "Payment")
