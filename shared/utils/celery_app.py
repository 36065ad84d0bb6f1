"""
Celery Application Configuration

Notification triggers are delivered through Celery so the request that fires
them never waits on (or fails because of) notification writes.
"""

from celery import Celery

from shared.utils.config import get_settings

settings = get_settings()

celery_app = Celery(
    "readiness_engine",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    # Crash safety
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    # Task routing
    task_routes={
        "workers.notification_worker.tasks.*": {"queue": "q.notifications"},
    },
    task_queues={
        "q.notifications": {},
    },

    # Local development runs tasks inline
    task_always_eager=settings.celery_task_always_eager,

    # Serialization
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Fire-and-forget: nobody reads results
    task_ignore_result=True,
    result_expires=3600,
)

celery_app.autodiscover_tasks([
    "workers.notification_worker",
])
