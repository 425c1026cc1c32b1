"""Audit log helper: append-only writes to audit_logs table.

`log` writes inside the caller's transaction. `record` is the fire-and-forget
path used after an approval transaction has committed: it never raises, so an
audit outage can not undo or fail an approval outcome.
"""
import json
import logging
import uuid
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.audit import AuditLog

logger = logging.getLogger(__name__)


@dataclass
class AuditEvent:
    action: str
    entity_type: str
    entity_id: str | None = None
    actor_id: str | None = None
    actor_email: str | None = None
    before: Any | None = None
    after: Any | None = None
    description: str | None = None

    def to_payload(self) -> dict:
        return json.loads(json.dumps(asdict(self), default=str))


def log(
    db: Session,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | str | None = None,
    actor_id: uuid.UUID | str | None = None,
    actor_email: str | None = None,
    before: Any | None = None,
    after: Any | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Write a single audit log entry.

    Args:
        db: Sync SQLAlchemy session. The caller controls the transaction.
        action: Short verb, e.g. 'REQUEST_APPROVED', 'APPROVER_ADDED'.
        entity_type: Domain name, e.g. 'request', 'payroll'.
        entity_id: PK of the affected record.
        actor_id: User who performed the action (None for system actions).
        actor_email: Denormalised email (preserved if user is later deleted).
        before: Dict snapshot of state before the action (JSON-serialisable).
        after: Dict snapshot of state after the action.
        notes: Human-readable description.
    """
    entry = AuditLog(
        actor_id=uuid.UUID(str(actor_id)) if actor_id else None,
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=uuid.UUID(str(entity_id)) if entity_id else None,
        before_state=json.dumps(before, default=str) if before is not None else None,
        after_state=json.dumps(after, default=str) if after is not None else None,
        notes=notes,
    )
    db.add(entry)
    db.flush()  # get id without committing; caller controls the transaction
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry


def write_event(event: AuditEvent) -> None:
    """Persist one event in its own short transaction."""
    from app.db.session import SyncSessionLocal

    with SyncSessionLocal() as db:
        log(
            db,
            action=event.action,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            actor_id=event.actor_id,
            actor_email=event.actor_email,
            before=event.before,
            after=event.after,
            notes=event.description,
        )
        db.commit()


def record(event: AuditEvent) -> None:
    """Best-effort emission. Failures are logged and swallowed."""
    try:
        if settings.AUDIT_DISPATCH == "celery":
            from app.workers.audit_tasks import write_audit_event

            write_audit_event.delay(event.to_payload())
        else:
            write_event(event)
    except Exception:
        logger.warning(
            "Audit emission failed (%s %s/%s); approval outcome unaffected.",
            event.action, event.entity_type, event.entity_id,
            exc_info=True,
        )
