"""Pydantic schemas for approval workflow API endpoints."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ─── Approval record output ───

class ApproverOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str
    role: str


class ApprovalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    parent_kind: str
    parent_id: uuid.UUID
    level: str
    origin: str
    approver_id: uuid.UUID
    added_by_id: uuid.UUID | None
    status: str
    action_date: datetime | None
    comments: str | None
    can_add_approvers: bool
    sequence: int
    created_at: datetime | None = None

    approver: ApproverOut | None = None


class ParentSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: str
    id: uuid.UUID
    name: str
    status: str
    amount: Decimal | None = None
    currency: str | None = None
    department: str | None = None
    reference: str | None = None


# ─── Action request body ───

class ApprovalActionRequest(BaseModel):
    action: Literal["approve", "reject"]
    level: str | None = Field(default=None, max_length=50)
    comments: str | None = None
    approval_id: uuid.UUID | None = None


class ApprovalHistoryResponse(BaseModel):
    parent: ParentSummaryOut
    approvals: list[ApprovalOut]


# ─── Delegation ───

class AddApproverRequest(BaseModel):
    new_approver_id: uuid.UUID
    level: str = Field(min_length=1, max_length=50)
    grant_delegation: bool = False


# ─── Unified worklist ───

class WorklistItemOut(BaseModel):
    approval: ApprovalOut
    parent: ParentSummaryOut


class WorklistResponse(BaseModel):
    items: list[WorklistItemOut]
    counts: dict[str, int]
    total: int
