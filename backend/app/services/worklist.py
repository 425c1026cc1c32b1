"""Unified approval view: one actor's pending records across every entity kind."""
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from app.core.errors import Unauthorized
from app.rules.workflow import ParentKind, get_workflow
from app.services import approval_store as store
from app.services import directory
from app.services.approval import parse_id
from app.services.parent_summary import ParentSummary, matches, summarize

logger = logging.getLogger(__name__)


@dataclass
class WorklistItem:
    approval: object
    summary: ParentSummary


@dataclass
class Worklist:
    items: list[WorklistItem] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.items)


def get_worklist(
    db: Session,
    actor_id: uuid.UUID | str | None,
    search_text: str | None = None,
    required_permission: str | None = None,
) -> Worklist:
    """Pending records assigned to the actor, each with a summary of its parent.

    Records whose parent no longer exists are skipped with a warning, and records
    whose parent is already closed (e.g. admin_head after a dept_head
    rejection) are left out. Items keep the store's newest-first order.

    Raises:
        ValidationError: missing or malformed actor id.
        Unauthorized: required_permission given and the actor lacks it.
    """
    actor_id = parse_id(actor_id, "Actor id")
    if required_permission and not directory.has_permission(db, actor_id, required_permission):
        raise Unauthorized(f"The {required_permission} permission is required to view these approvals.")

    records = store.list_pending_for_approver(db, actor_id)

    ids_by_kind: dict[ParentKind, list] = defaultdict(list)
    for record in records:
        try:
            kind = ParentKind(record.parent_kind)
        except ValueError:
            logger.warning("Skipping approval %s with unknown parent kind %r", record.id, record.parent_kind)
            continue
        ids_by_kind[kind].append(record.parent_id)

    parents = {kind: store.load_parents(db, kind, ids) for kind, ids in ids_by_kind.items()}

    worklist = Worklist(counts={kind.value: 0 for kind in ParentKind})
    for record in records:
        if record.parent_kind not in worklist.counts:
            continue
        parent = parents[ParentKind(record.parent_kind)].get(record.parent_id)
        if parent is None:
            logger.warning(
                "Skipping orphaned approval %s: %s %s no longer exists",
                record.id, record.parent_kind, record.parent_id,
            )
            continue
        if get_workflow(record.parent_kind).is_terminal(parent.status):
            logger.debug(
                "Skipping approval %s: %s %s is already %s",
                record.id, record.parent_kind, record.parent_id, parent.status,
            )
            continue
        summary = summarize(record.parent_kind, parent)
        if not matches(summary, search_text):
            continue
        worklist.items.append(WorklistItem(approval=record, summary=summary))
        worklist.counts[record.parent_kind] += 1

    return worklist
