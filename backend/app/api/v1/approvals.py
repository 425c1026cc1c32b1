"""Approval workflow API endpoints (JWT required).

  GET  /approvals                              unified pending worklist
  GET  /approvals/available-approvers          directory search for the approver picker
  GET  /approvals/{kind}/{parent_id}           parent summary + ordered history
  POST /approvals/{kind}/{parent_id}/approvers add a delegated approver
"""
import logging
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_user, require_permission
from app.db.session import get_sync_session
from app.rules.workflow import ParentKind
from app.schemas.approval import (
    AddApproverRequest,
    ApprovalHistoryResponse,
    ApprovalOut,
    ApproverOut,
    ParentSummaryOut,
    WorklistItemOut,
    WorklistResponse,
)
from app.services import approval as approval_svc
from app.services import delegation as delegation_svc
from app.services import directory
from app.services import worklist as worklist_svc
from app.services.parent_summary import summarize

logger = logging.getLogger(__name__)

router = APIRouter()


def history_response(outcome) -> ApprovalHistoryResponse:
    return ApprovalHistoryResponse(
        parent=ParentSummaryOut.model_validate(summarize(outcome.kind, outcome.parent)),
        approvals=[ApprovalOut.model_validate(a) for a in outcome.approvals],
    )


# ─── Unified worklist ───

@router.get(
    "",
    response_model=WorklistResponse,
    summary="List the current user's pending approvals across all entity kinds",
)
def list_my_approvals(
    search: str | None = Query(None, description="Filter on parent name, reference or department"),
    permission: str | None = Query(None, description="Permission the caller must hold to view the list"),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    worklist = worklist_svc.get_worklist(
        db, current_user.id, search_text=search, required_permission=permission
    )
    return WorklistResponse(
        items=[
            WorklistItemOut(
                approval=ApprovalOut.model_validate(item.approval),
                parent=ParentSummaryOut.model_validate(item.summary),
            )
            for item in worklist.items
        ],
        counts=worklist.counts,
        total=worklist.total,
    )


# ─── Approver picker ───

@router.get(
    "/available-approvers",
    response_model=list[ApproverOut],
    summary="Search active users who can be added as approvers",
)
def available_approvers(
    search: str | None = Query(None),
    permission: str | None = Query(None),
    limit: int = Query(
        settings.APPROVER_SEARCH_DEFAULT_LIMIT, ge=1, le=settings.APPROVER_SEARCH_MAX_LIMIT
    ),
    current_user=Depends(require_permission("add_approvers", "manage_approvers")),
    db: Session = Depends(get_sync_session),
):
    return directory.find_approvers(db, search_text=search, permission=permission, limit=limit)


# ─── Per-parent history ───

@router.get(
    "/{kind}/{parent_id}",
    response_model=ApprovalHistoryResponse,
    summary="Get a parent entity's approval chain",
)
def get_history(
    kind: ParentKind,
    parent_id: uuid.UUID,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    return history_response(approval_svc.get_history(db, kind, parent_id))


# ─── Delegation ───

@router.post(
    "/{kind}/{parent_id}/approvers",
    response_model=ApprovalOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add an approver to an in-flight approval chain",
)
def add_approver(
    kind: ParentKind,
    parent_id: uuid.UUID,
    body: AddApproverRequest,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    record = delegation_svc.add_approver(
        db,
        kind,
        parent_id,
        actor_id=current_user.id,
        new_approver_id=body.new_approver_id,
        level=body.level,
        grant_delegation=body.grant_delegation,
    )
    return ApprovalOut.model_validate(record)
