"""Celery application configuration."""
from celery import Celery
from celery.schedules import crontab

from app.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "tenant_settings",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Configure Celery
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # Task execution settings
    task_acks_late=True,  # Ack after task completes
    task_reject_on_worker_lost=True,
    task_track_started=True,
    # Result backend settings
    result_expires=3600,  # Results expire after 1 hour
    # Worker settings
    worker_prefetch_multiplier=1,  # One task at a time
    worker_concurrency=2,
    # Task routes
    task_routes={
        "app.tasks.maintenance.*": {"queue": "maintenance"},
    },
    # Beat schedule (for periodic tasks)
    beat_schedule={
        "cleanup-settings-audit-log": {
            "task": "app.tasks.maintenance.cleanup_audit_log",
            "schedule": crontab(hour=3, minute=0),  # Daily at 3am UTC
        },
    },
)

# Auto-discover tasks from task modules
celery_app.autodiscover_tasks([
    "app.tasks.maintenance",
])
