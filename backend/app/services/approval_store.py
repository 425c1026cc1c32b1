"""Approval record store: the only module that queries approvals and parents.

All functions take a sync SQLAlchemy Session and never commit; the calling
service owns the transaction. `lock=True` issues SELECT ... FOR UPDATE so a
read-modify-write stays atomic against concurrent actions on the same parent.
"""
import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.rules.workflow import ParentKind, get_workflow


def parent_model(kind: ParentKind | str):
    from app.models.payment import Payment
    from app.models.payroll import Payroll
    from app.models.project import Project
    from app.models.request_form import RequestForm

    return {
        ParentKind.request: RequestForm,
        ParentKind.project: Project,
        ParentKind.payroll: Payroll,
        ParentKind.payment: Payment,
    }[ParentKind(kind)]


# ─── Parents ───

def load_parent(db: Session, kind: ParentKind | str, parent_id: uuid.UUID, lock: bool = False):
    model = parent_model(kind)
    stmt = select(model).where(model.id == parent_id)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalars().first()


def load_parents(db: Session, kind: ParentKind | str, parent_ids: list[uuid.UUID]) -> dict:
    """Return {id: parent} for the ids that still exist."""
    if not parent_ids:
        return {}
    model = parent_model(kind)
    rows = db.execute(select(model).where(model.id.in_(parent_ids))).scalars().all()
    return {row.id: row for row in rows}


def save_parent_status(db: Session, kind: ParentKind | str, parent, status: str) -> None:
    parent.status = status
    if ParentKind(kind) is ParentKind.payment:
        parent.requires_approval = not get_workflow(kind).is_terminal(status)
    db.flush()


# ─── Approval records ───

def get_approval(db: Session, approval_id: uuid.UUID, lock: bool = False):
    from app.models.approval import Approval

    stmt = select(Approval).where(Approval.id == approval_id)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalars().first()


def list_approvals(
    db: Session,
    kind: ParentKind | str,
    parent_id: uuid.UUID,
    level: str | None = None,
    lock: bool = False,
) -> list:
    """All records of one parent in creation order, optionally for one level."""
    from app.models.approval import Approval

    stmt = select(Approval).where(
        Approval.parent_kind == ParentKind(kind).value,
        Approval.parent_id == parent_id,
    )
    if level is not None:
        stmt = stmt.where(Approval.level == level)
    stmt = stmt.order_by(Approval.sequence.asc(), Approval.created_at.asc())
    if lock:
        stmt = stmt.with_for_update()
    return list(db.execute(stmt).scalars().all())


def find_approval(
    db: Session,
    kind: ParentKind | str,
    parent_id: uuid.UUID,
    level: str | None = None,
    approver_id: uuid.UUID | None = None,
    status: str | None = None,
):
    for record in list_approvals(db, kind, parent_id, level=level):
        if approver_id is not None and record.approver_id != approver_id:
            continue
        if status is not None and record.status != status:
            continue
        return record
    return None


def save_approval(db: Session, record) -> None:
    db.add(record)
    db.flush()


def next_sequence(db: Session, kind: ParentKind | str, parent_id: uuid.UUID) -> int:
    from app.models.approval import Approval

    current = db.execute(
        select(func.max(Approval.sequence)).where(
            Approval.parent_kind == ParentKind(kind).value,
            Approval.parent_id == parent_id,
        )
    ).scalar()
    return (current or 0) + 1


def add_approval(db: Session, kind: ParentKind | str, parent_id: uuid.UUID, **fields: Any):
    """Create a pending record appended to the end of the parent's chain."""
    from app.models.approval import Approval

    record = Approval(
        parent_kind=ParentKind(kind).value,
        parent_id=parent_id,
        sequence=next_sequence(db, kind, parent_id),
        status="pending",
        **fields,
    )
    db.add(record)
    db.flush()
    return record


def list_pending_for_approver(db: Session, approver_id: uuid.UUID) -> list:
    from app.models.approval import Approval

    stmt = (
        select(Approval)
        .where(Approval.approver_id == approver_id, Approval.status == "pending")
        .order_by(Approval.created_at.desc())
    )
    return list(db.execute(stmt).scalars().all())
