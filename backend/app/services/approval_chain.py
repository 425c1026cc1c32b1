"""Approval chain opening: creates the canonical records for a parent.

Called when a parent enters its pending phase (entity creation, seeding).
Approvers that are missing or inactive are skipped, but every stage must keep at
least one active approver; otherwise nothing is created and the parent stays as
it was.
"""
import logging
import uuid
from typing import Iterable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFound, ValidationError
from app.rules.workflow import ParentKind, get_workflow
from app.services import approval_store as store
from app.services import audit as audit_svc
from app.services import directory
from app.services.parent_summary import summarize

logger = logging.getLogger(__name__)


def open_chain(
    db: Session,
    kind: ParentKind | str,
    parent,
    assignments: Iterable[tuple[str, uuid.UUID | None]],
    actor_id: uuid.UUID | None = None,
) -> list:
    """Create one pending canonical record per (level, approver_id) assignment.

    Commits. Returns the records created, in chain order.

    Raises:
        ValidationError: a non-canonical level, or a stage left without any
            active approver.
    """
    kind = ParentKind(kind)
    spec = get_workflow(kind)
    created = []
    seen: set[tuple[str, uuid.UUID]] = set()

    try:
        for level, approver_id in assignments:
            if level not in spec.canonical_levels:
                raise ValidationError(
                    f"'{level}' is not a canonical level for {kind.value}.", kind.value, parent.id, level
                )
            if approver_id is None or not directory.is_active(db, approver_id):
                logger.warning(
                    "No active approver for %s level %s on %s; level skipped",
                    kind.value, level, parent.id,
                )
                continue
            if (level, approver_id) in seen:
                continue
            seen.add((level, approver_id))
            created.append(store.add_approval(
                db, kind, parent.id,
                level=level,
                origin="canonical",
                approver_id=approver_id,
                added_by_id=actor_id,
            ))

        unstaffed = [
            "/".join(stage.levels) for stage in spec.stages
            if not any(r.level in stage.levels for r in created)
        ]
        if unstaffed:
            raise ValidationError(
                f"No active approver for {', '.join(unstaffed)} on this {kind.value}.",
                kind.value, parent.id, unstaffed[0],
            )

        store.save_parent_status(db, kind, parent, spec.initial_status)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Approval chain opened: kind=%s parent=%s records=%d", kind.value, parent.id, len(created)
    )
    audit_svc.record(audit_svc.AuditEvent(
        action="APPROVAL_CHAIN_OPENED",
        entity_type=kind.value,
        entity_id=str(parent.id),
        actor_id=str(actor_id) if actor_id else None,
        after={"status": parent.status, "approvals": [r.snapshot() for r in created]},
        description=f'Opened approval chain for {kind.value} "{summarize(kind, parent).name}"',
    ))
    return created


def _load(db: Session, kind: ParentKind, parent_id: uuid.UUID):
    parent = store.load_parent(db, kind, parent_id, lock=True)
    if parent is None:
        raise NotFound(f"{kind.value.capitalize()} {parent_id} not found.", kind.value, parent_id)
    return parent


def _admin_head_id(db: Session):
    user = directory.first_active_with_role(db, settings.admin_head_roles)
    return user.id if user else None


# ─── Per-kind openers ───

def open_request_chain(db: Session, request_id: uuid.UUID, actor_id: uuid.UUID | None = None) -> list:
    """Department head of the request's department, then an admin head."""
    request_form = _load(db, ParentKind.request, request_id)
    head = directory.department_head(db, request_form.department_id)
    return open_chain(
        db, ParentKind.request, request_form,
        [("dept_head", head.id if head else None), ("admin_head", _admin_head_id(db))],
        actor_id,
    )


def open_project_chain(
    db: Session,
    project_id: uuid.UUID,
    director_id: uuid.UUID,
    ceo_id: uuid.UUID,
    actor_id: uuid.UUID | None = None,
) -> list:
    project = _load(db, ParentKind.project, project_id)
    return open_chain(
        db, ParentKind.project, project, [("director", director_id), ("ceo", ceo_id)], actor_id
    )


def open_payroll_chain(db: Session, payroll_id: uuid.UUID, actor_id: uuid.UUID | None = None) -> list:
    """One dept_head record per department on the payroll, then admin head, then accountant."""
    payroll = _load(db, ParentKind.payroll, payroll_id)

    assignments: list[tuple[str, uuid.UUID | None]] = []
    department_ids = []
    for entry in payroll.entries:
        if entry.department_id is not None and entry.department_id not in department_ids:
            department_ids.append(entry.department_id)
    for department_id in department_ids:
        head = directory.department_head(db, department_id)
        if head is not None:
            assignments.append(("dept_head", head.id))

    accountant = directory.first_active_with_role(db, settings.accountant_roles)
    assignments.append(("admin_head", _admin_head_id(db)))
    assignments.append(("accountant", accountant.id if accountant else None))
    return open_chain(db, ParentKind.payroll, payroll, assignments, actor_id)


def open_payment_chain(
    db: Session,
    payment_id: uuid.UUID,
    assignments: Iterable[tuple[str, uuid.UUID]],
    actor_id: uuid.UUID | None = None,
) -> list:
    """Payments take whichever approvers the creator assigned (accountant, finance_manager, ceo)."""
    payment = _load(db, ParentKind.payment, payment_id)
    return open_chain(db, ParentKind.payment, payment, list(assignments), actor_id)
