"""Approve / reject endpoints, one per approvable entity kind.

  POST /requests/{id}/approve
  POST /projects/{id}/approve
  POST /payroll/{id}/approve
  POST /payments/{id}/approve

Each takes {action, level?, comments?, approval_id?} and returns the parent
summary with its full ordered approval history. Handlers are sync: the approval
services run on a sync Session shared with the Celery workers.
"""
import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.v1.approvals import history_response
from app.core.config import settings
from app.core.deps import get_current_user
from app.core.limiter import limiter
from app.db.session import get_sync_session
from app.rules.workflow import ParentKind
from app.schemas.approval import ApprovalActionRequest, ApprovalHistoryResponse
from app.services import approval as approval_svc

router = APIRouter()


def _act(kind: ParentKind, parent_id: uuid.UUID, body: ApprovalActionRequest, user, db: Session):
    outcome = approval_svc.submit_action(
        db,
        kind,
        parent_id,
        actor_id=user.id,
        action=body.action,
        level=body.level,
        comments=body.comments,
        approval_id=body.approval_id,
        actor_email=user.email,
    )
    return history_response(outcome)


@router.post(
    "/requests/{request_id}/approve",
    response_model=ApprovalHistoryResponse,
    tags=["requests"],
    summary="Approve or reject a request form at the caller's level",
)
@limiter.limit(settings.RATE_LIMIT_APPROVAL_ACTIONS)
def act_on_request(
    request: Request,
    request_id: uuid.UUID,
    body: ApprovalActionRequest,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    return _act(ParentKind.request, request_id, body, current_user, db)


@router.post(
    "/projects/{project_id}/approve",
    response_model=ApprovalHistoryResponse,
    tags=["projects"],
    summary="Approve or reject a project at the caller's level",
)
@limiter.limit(settings.RATE_LIMIT_APPROVAL_ACTIONS)
def act_on_project(
    request: Request,
    project_id: uuid.UUID,
    body: ApprovalActionRequest,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    return _act(ParentKind.project, project_id, body, current_user, db)


@router.post(
    "/payroll/{payroll_id}/approve",
    response_model=ApprovalHistoryResponse,
    tags=["payroll"],
    summary="Approve or reject a payroll run at the caller's level",
)
@limiter.limit(settings.RATE_LIMIT_APPROVAL_ACTIONS)
def act_on_payroll(
    request: Request,
    payroll_id: uuid.UUID,
    body: ApprovalActionRequest,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    return _act(ParentKind.payroll, payroll_id, body, current_user, db)


@router.post(
    "/payments/{payment_id}/approve",
    response_model=ApprovalHistoryResponse,
    tags=["payments"],
    summary="Approve or reject a payment",
)
@limiter.limit(settings.RATE_LIMIT_APPROVAL_ACTIONS)
def act_on_payment(
    request: Request,
    payment_id: uuid.UUID,
    body: ApprovalActionRequest,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    return _act(ParentKind.payment, payment_id, body, current_user, db)
