"""Add-approver (delegation) service.

Inserts one pending, delegated approval record into an existing chain. The new
record is additive: existing records and the parent status are never touched.

Authorization:
  manage_approvers          add to any chain, may grant delegation
  add_approvers             add to chains the actor is already part of
  record.can_add_approvers  same, scoped to the parent carrying that record
Only manage_approvers may set grant_delegation, so delegation can not escalate.
"""
import logging
import uuid

from sqlalchemy.orm import Session

from app.core.errors import AlreadyProcessed, DuplicateApprover, NotFound, Unauthorized, ValidationError
from app.rules.workflow import ParentKind, RecordStatus, get_workflow
from app.services import approval_store as store
from app.services import audit as audit_svc
from app.services import directory
from app.services.approval import parse_id, parse_kind
from app.services.parent_summary import summarize

logger = logging.getLogger(__name__)

MANAGE_APPROVERS = "manage_approvers"
ADD_APPROVERS = "add_approvers"


def _authorize(actor, chain: list, kind: ParentKind, parent_id, level: str, grant_delegation: bool) -> None:
    if actor is None or not actor.is_active:
        raise Unauthorized("Inactive or unknown users can not add approvers.", kind.value, parent_id, level)

    if actor.has_permission(MANAGE_APPROVERS):
        return

    own_records = [r for r in chain if r.approver_id == actor.id]
    can_delegate = actor.has_permission(ADD_APPROVERS) or any(r.can_add_approvers for r in own_records)
    if not can_delegate:
        raise Unauthorized(
            "You do not have permission to add approvers.", kind.value, parent_id, level
        )
    if not own_records:
        raise Unauthorized(
            f"You can only add approvers to a {kind.value} you are an approver on.",
            kind.value, parent_id, level,
        )
    if grant_delegation:
        raise Unauthorized(
            f"Granting delegation requires the {MANAGE_APPROVERS} permission.",
            kind.value, parent_id, level,
        )


def add_approver(
    db: Session,
    kind: ParentKind | str,
    parent_id: uuid.UUID | str,
    actor_id: uuid.UUID | str | None,
    new_approver_id: uuid.UUID | str | None,
    level: str | None,
    grant_delegation: bool = False,
):
    """Append a pending delegated approval record to a parent's chain.

    Returns:
        The newly created Approval.

    Raises:
        ValidationError: malformed ids, blank level, or inactive new approver.
        NotFound: parent does not exist.
        Unauthorized: actor may not add approvers here, or may not grant delegation.
        AlreadyProcessed: parent is already terminal.
        DuplicateApprover: new approver already holds a pending record at that level.
    """
    kind = parse_kind(kind)
    parent_id = parse_id(parent_id, "Parent id", kind.value)
    actor_id = parse_id(actor_id, "Actor id", kind.value, parent_id)
    new_approver_id = parse_id(new_approver_id, "New approver id", kind.value, parent_id)
    level = (level or "").strip()
    if not level:
        raise ValidationError("Level is required.", kind.value, parent_id)

    try:
        parent = store.load_parent(db, kind, parent_id, lock=True)
        if parent is None:
            raise NotFound(f"{kind.value.capitalize()} {parent_id} not found.", kind.value, parent_id, level)

        chain = store.list_approvals(db, kind, parent_id)
        actor = directory.get_user(db, actor_id)
        _authorize(actor, chain, kind, parent_id, level, grant_delegation)

        if get_workflow(kind).is_terminal(parent.status):
            raise AlreadyProcessed(
                f"This {kind.value} is already {parent.status}; approvers can no longer be added.",
                kind.value, parent_id, level,
            )

        if not directory.is_active(db, new_approver_id):
            raise ValidationError(
                "The selected approver does not exist or is inactive.", kind.value, parent_id, level
            )

        existing = store.find_approval(
            db, kind, parent_id, level=level, approver_id=new_approver_id, status=RecordStatus.pending.value
        )
        if existing is not None:
            raise DuplicateApprover(
                f"This user is already a pending approver at level {level}.",
                kind.value, parent_id, level,
            )

        record = store.add_approval(
            db,
            kind,
            parent_id,
            level=level,
            origin="delegated",
            approver_id=new_approver_id,
            added_by_id=actor_id,
            can_add_approvers=bool(grant_delegation),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Approver added: kind=%s parent=%s level=%s approver=%s by=%s grant=%s",
        kind.value, parent_id, level, new_approver_id, actor_id, bool(grant_delegation),
    )

    summary = summarize(kind, parent)
    audit_svc.record(audit_svc.AuditEvent(
        action="APPROVER_ADDED",
        entity_type=kind.value,
        entity_id=str(parent_id),
        actor_id=str(actor_id),
        actor_email=actor.email,
        after={"approval": record.snapshot()},
        description=f'Added {level} approver to {kind.value} "{summary.name}"',
    ))
    return record
