"""Approval orchestrator: the transactional boundary for acting on one approval.

All functions accept a sync SQLAlchemy Session and are safe to call from API
handlers and Celery tasks alike.

submit_action runs as a single transaction:
  1. lock the parent row, then re-read the targeted approval record
  2. validate actor / level / pending preconditions against that fresh read
  3. resolve the record and compute the parent's next status
  4. commit both writes together (rollback on any failure)
Audit emission happens after commit and is best-effort.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.errors import (
    AlreadyProcessed,
    Forbidden,
    LevelMismatch,
    NotFound,
    ValidationError,
)
from app.rules.workflow import (
    Action,
    ChainClosed,
    OutOfSequence,
    ParentKind,
    RecordStatus,
    Transition,
    get_workflow,
    next_status,
)
from app.services import approval_store as store
from app.services import audit as audit_svc
from app.services import directory
from app.services.parent_summary import summarize

logger = logging.getLogger(__name__)

# Holding a payment record is not enough; the approver also needs one of these.
PAYMENT_APPROVAL_PERMISSIONS = ("approve_payments", "approve_approvals")


@dataclass
class ApprovalOutcome:
    """Parent entity refreshed with its full approval history."""

    kind: ParentKind
    parent: object
    approvals: list = field(default_factory=list)
    approval: object | None = None
    transition: Transition | None = None


# ─── Input normalisation ───

def parse_id(value, what: str, kind: str | None = None, parent_id=None) -> uuid.UUID:
    if value is None or value == "":
        raise ValidationError(f"{what} is required.", kind, parent_id)
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"{what} '{value}' is not a valid id.", kind, parent_id)


def parse_kind(kind) -> ParentKind:
    try:
        return ParentKind(kind)
    except ValueError:
        raise ValidationError(
            f"Unknown approval type '{kind}'. Must be one of: "
            + ", ".join(k.value for k in ParentKind)
        )


def _as_action(action, kind: ParentKind, parent_id) -> Action:
    try:
        return Action(action)
    except ValueError:
        raise ValidationError(
            f"Invalid action '{action}'. Must be 'approve' or 'reject'.", kind.value, parent_id
        )


# ─── Record resolution ───

def _resolve_by_id(db, kind, parent_id, actor_id, level, approval_id):
    record = store.get_approval(db, approval_id, lock=True)
    if (
        record is None
        or record.parent_kind != kind.value
        or record.parent_id != parent_id
    ):
        raise NotFound(f"Approval {approval_id} not found on this {kind.value}.", kind.value, parent_id, level)
    if record.approver_id != actor_id:
        raise Forbidden(
            f"You are not the assigned approver for the {record.level} approval.",
            kind.value, parent_id, record.level,
        )
    if record.status != RecordStatus.pending.value:
        raise AlreadyProcessed(
            f"The {record.level} approval was already {record.status}.",
            kind.value, parent_id, record.level,
        )
    if level is not None and record.level != level:
        raise LevelMismatch(
            f"Approval is at level {record.level}, not {level}.",
            kind.value, parent_id, level,
        )
    return record


def _resolve_by_level(db, kind, parent, actor_id, level):
    parent_id = parent.id
    records = store.list_approvals(db, kind, parent_id, level=level, lock=True)
    where = f" at level {level}" if level is not None else ""
    if not records:
        raise NotFound(f"No approval record{where} for this {kind.value}.", kind.value, parent_id, level)

    mine = [r for r in records if r.approver_id == actor_id]
    if not mine:
        raise Forbidden(
            f"You are not an assigned approver{where} for this {kind.value}.",
            kind.value, parent_id, level,
        )

    pending = [r for r in mine if r.status == RecordStatus.pending.value]
    if not pending:
        raise AlreadyProcessed(
            f"Your approval{where} was already {mine[-1].status}.",
            kind.value, parent_id, level or mine[-1].level,
        )

    # Without a level, prefer the record that belongs to the current stage.
    if level is None and len(pending) > 1:
        spec = get_workflow(kind)
        current_idx = spec.stage_index_for_status(parent.status)
        for record in pending:
            if not record.is_delegated and spec.stage_index_for_level(record.level) == current_idx:
                return record
    return pending[0]


def _check_payment_permission(db, parent_id, actor_id, level) -> None:
    actor = directory.get_user(db, actor_id)
    if actor is None or not actor.is_active or not any(
        actor.has_permission(p) for p in PAYMENT_APPROVAL_PERMISSIONS
    ):
        raise Forbidden(
            "You do not have permission to approve payments.",
            ParentKind.payment.value, parent_id, level,
        )


def _stage_outcomes(db, kind: ParentKind, parent_id, record, new_status: str) -> list[str]:
    """Statuses of every canonical record in the acted record's stage.

    Re-read inside the locked transaction so concurrent same-stage approvals
    (e.g. two department heads on one payroll) are always counted. The acted
    record is reported with the status it is about to receive.
    """
    spec = get_workflow(kind)
    idx = spec.stage_index_for_level(record.level)
    if idx is None:
        return []
    stage_levels = spec.stages[idx].levels
    return [
        new_status if r.id == record.id else r.status
        for r in store.list_approvals(db, kind, parent_id, lock=True)
        if not r.is_delegated and r.level in stage_levels
    ]


# ─── Submit action ───

def submit_action(
    db: Session,
    kind: ParentKind | str,
    parent_id: uuid.UUID | str,
    actor_id: uuid.UUID | str | None,
    action: Action | str,
    level: str | None = None,
    comments: str | None = None,
    approval_id: uuid.UUID | str | None = None,
    actor_email: str | None = None,
) -> ApprovalOutcome:
    """Approve or reject one approval record and reconcile the parent status.

    Args:
        db: Sync SQLAlchemy session.
        kind: Parent entity kind (request, project, payroll, payment).
        parent_id: Parent entity id.
        actor_id: User acting; must be the record's approver.
        action: "approve" or "reject".
        level: Optional level; must match the record's level exactly.
        comments: Optional decision comments.
        approval_id: Optional explicit record id (unified approvals view).
        actor_email: Denormalised into the audit trail.

    Returns:
        ApprovalOutcome with the parent and its full ordered approval history.

    Raises:
        NotFound, Forbidden, AlreadyProcessed, LevelMismatch, ValidationError.
        Payments also raise Forbidden unless the actor holds approve_payments
        or approve_approvals.
    """
    kind = parse_kind(kind)
    parent_id = parse_id(parent_id, "Parent id", kind.value)
    actor_id = parse_id(actor_id, "Actor id", kind.value, parent_id)
    action = _as_action(action, kind, parent_id)
    if approval_id is not None:
        approval_id = parse_id(approval_id, "Approval id", kind.value, parent_id)
    spec = get_workflow(kind)

    try:
        parent = store.load_parent(db, kind, parent_id, lock=True)
        if parent is None:
            raise NotFound(f"{kind.value.capitalize()} {parent_id} not found.", kind.value, parent_id, level)

        if kind is ParentKind.payment:
            _check_payment_permission(db, parent_id, actor_id, level)

        if approval_id is not None:
            record = _resolve_by_id(db, kind, parent_id, actor_id, level, approval_id)
        else:
            record = _resolve_by_level(db, kind, parent, actor_id, level)

        old_status = parent.status
        if spec.is_terminal(old_status):
            raise AlreadyProcessed(
                f"This {kind.value} is already {old_status}; no further approvals are accepted.",
                kind.value, parent_id, record.level,
            )

        new_record_status = (
            RecordStatus.approved.value if action is Action.approve else RecordStatus.rejected.value
        )
        outcomes: list[str] = []
        if action is Action.approve and not record.is_delegated:
            outcomes = _stage_outcomes(db, kind, parent_id, record, new_record_status)

        try:
            transition = next_status(kind, old_status, record.level_ref, action, outcomes)
        except ChainClosed as exc:
            raise AlreadyProcessed(str(exc), kind.value, parent_id, record.level)
        except OutOfSequence as exc:
            raise ValidationError(str(exc), kind.value, parent_id, record.level)

        before = record.snapshot()
        record.status = new_record_status
        record.action_date = datetime.now(timezone.utc)
        record.comments = comments or None
        store.save_approval(db, record)

        if transition.new_status != old_status:
            store.save_parent_status(db, kind, parent, transition.new_status)

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Approval decision: kind=%s parent=%s level=%s action=%s status %s -> %s",
        kind.value, parent_id, record.level, action.value, old_status, transition.new_status,
    )

    summary = summarize(kind, parent)
    verb = "Approved" if action is Action.approve else "Rejected"
    audit_svc.record(audit_svc.AuditEvent(
        action=f"{kind.value.upper()}_{'APPROVED' if action is Action.approve else 'REJECTED'}",
        entity_type=kind.value,
        entity_id=str(parent_id),
        actor_id=str(actor_id),
        actor_email=actor_email,
        before={"status": old_status, "approval": before},
        after={"status": transition.new_status, "approval": record.snapshot()},
        description=f'{verb} {kind.value} "{summary.name}" at {record.level} level',
    ))

    return ApprovalOutcome(
        kind=kind,
        parent=parent,
        approvals=store.list_approvals(db, kind, parent_id),
        approval=record,
        transition=transition,
    )


# ─── Read side ───

def get_history(db: Session, kind: ParentKind | str, parent_id: uuid.UUID | str) -> ApprovalOutcome:
    """Return a parent and its approval chain in creation order."""
    kind = parse_kind(kind)
    parent_id = parse_id(parent_id, "Parent id", kind.value)
    parent = store.load_parent(db, kind, parent_id)
    if parent is None:
        raise NotFound(f"{kind.value.capitalize()} {parent_id} not found.", kind.value, parent_id)
    return ApprovalOutcome(kind=kind, parent=parent, approvals=store.list_approvals(db, kind, parent_id))
