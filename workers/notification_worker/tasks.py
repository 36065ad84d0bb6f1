"""
Notification Worker Tasks

Celery tasks behind the notification triggers. Each task owns its session.
"""

from shared.db.session import get_db
from shared.models.enums import NotificationType
from shared.utils.celery_app import celery_app
from shared.utils.logging import get_logger, task_context
from workers.notification_worker.notifications import (
    create_notification,
    mentor_validation_message,
    roadmap_updated_message,
    role_changed_message,
)

logger = get_logger("notification_worker")


@celery_app.task(bind=True, name="workers.notification_worker.tasks.notify_mentor_validation")
def notify_mentor_validation(self, user_id: int, validated_count: int, rejected_count: int):
    with task_context(self.request.id, "notify_mentor_validation", user_id=user_id), get_db() as db:
        notification_id = create_notification(
            db,
            user_id,
            NotificationType.MENTOR_VALIDATION,
            message=mentor_validation_message(validated_count, rejected_count),
        )
    return {"status": "ok", "notification_id": notification_id}


@celery_app.task(bind=True, name="workers.notification_worker.tasks.notify_readiness_outdated")
def notify_readiness_outdated(self, user_id: int):
    with task_context(self.request.id, "notify_readiness_outdated", user_id=user_id), get_db() as db:
        notification_id = create_notification(db, user_id, NotificationType.READINESS_OUTDATED)
    return {"status": "ok", "notification_id": notification_id}


@celery_app.task(bind=True, name="workers.notification_worker.tasks.notify_role_changed")
def notify_role_changed(self, user_id: int, new_role_name: str):
    with task_context(self.request.id, "notify_role_changed", user_id=user_id), get_db() as db:
        notification_id = create_notification(
            db,
            user_id,
            NotificationType.ROLE_CHANGED,
            message=role_changed_message(new_role_name),
        )
    return {"status": "ok", "notification_id": notification_id}


@celery_app.task(bind=True, name="workers.notification_worker.tasks.notify_roadmap_updated")
def notify_roadmap_updated(self, user_id: int, item_count: int):
    with task_context(self.request.id, "notify_roadmap_updated", user_id=user_id), get_db() as db:
        notification_id = create_notification(
            db,
            user_id,
            NotificationType.ROADMAP_UPDATED,
            message=roadmap_updated_message(item_count),
        )
    return {"status": "ok", "notification_id": notification_id}
