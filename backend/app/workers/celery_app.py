from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "ops_worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.workers.audit_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
    # Fail fast on an unreachable broker; audit.record logs and drops the event.
    broker_transport_options={"max_retries": 1, "interval_start": 0, "interval_step": 0.2},
    task_publish_retry=False,
)
