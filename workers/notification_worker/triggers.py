"""
Celery-backed notification hooks.

Enqueue failures (broker down, serialization) are logged and swallowed.
"""

from typing import Any

from celery import Task

from shared.utils.logging import get_logger

logger = get_logger(__name__)


def _enqueue(task: Task, *args: Any) -> None:
    try:
        task.delay(*args)
    except Exception as e:
        logger.error("Failed to enqueue notification", task=task.name, error=str(e))


class CeleryNotificationHooks:
    """Production NotificationHooks: one Celery task per trigger."""

    def on_mentor_validation(self, user_id: int, validated_count: int, rejected_count: int) -> None:
        from workers.notification_worker.tasks import notify_mentor_validation

        _enqueue(notify_mentor_validation, user_id, validated_count, rejected_count)

    def on_readiness_outdated(self, user_id: int) -> None:
        from workers.notification_worker.tasks import notify_readiness_outdated

        _enqueue(notify_readiness_outdated, user_id)

    def on_role_changed(self, user_id: int, new_role_name: str) -> None:
        from workers.notification_worker.tasks import notify_role_changed

        _enqueue(notify_role_changed, user_id, new_role_name)

    def on_roadmap_updated(self, user_id: int, item_count: int) -> None:
        from workers.notification_worker.tasks import notify_roadmap_updated

        _enqueue(notify_roadmap_updated, user_id, item_count)


def get_notification_hooks() -> CeleryNotificationHooks:
    return CeleryNotificationHooks()
