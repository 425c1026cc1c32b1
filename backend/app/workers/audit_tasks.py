"""Celery task that persists audit events off the request path."""
import logging

from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="app.workers.audit_tasks.write_audit_event", max_retries=5)
def write_audit_event(self, payload: dict) -> None:
    """Write one AuditEvent payload (see app.services.audit.AuditEvent)."""
    from app.services.audit import AuditEvent, write_event

    event = AuditEvent(**payload)
    try:
        write_event(event)
    except Exception as exc:
        logger.exception("write_audit_event failed: %s %s/%s", event.action, event.entity_type, event.entity_id)
        raise self.retry(exc=exc, countdown=30)
    logger.info("write_audit_event: %s %s/%s", event.action, event.entity_type, event.entity_id)
