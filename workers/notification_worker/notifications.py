"""
Notification Writer

Templates and deduplicated writes. A repeat trigger while an unread
notification of the same type exists refreshes that row instead of adding one.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.models import Notification
from shared.models.enums import NotificationType
from shared.utils.logging import get_logger
from shared.utils.timeutil import utcnow

logger = get_logger(__name__)

# Default notification templates
NOTIFICATION_TEMPLATES: dict[NotificationType, dict[str, str]] = {
    NotificationType.READINESS_OUTDATED: {
        "title": "Readiness Needs Recalculation",
        "message": "Your profile or skills have changed since your last readiness check. "
                   "Recalculate to see your updated score.",
        "action_url": "/dashboard/readiness",
    },
    NotificationType.MENTOR_VALIDATION: {
        "title": "Skills Reviewed by Mentor",
        "message": "A mentor has reviewed your skills. Check the results and recalculate your readiness.",
        "action_url": "/dashboard/readiness",
    },
    NotificationType.ROADMAP_UPDATED: {
        "title": "Roadmap Updated",
        "message": "Your learning roadmap has been refreshed based on your latest readiness calculation.",
        "action_url": "/dashboard/roadmap",
    },
    NotificationType.ROLE_CHANGED: {
        "title": "Target Role Changed",
        "message": "You've selected a new target role. Recalculate your readiness for it.",
        "action_url": "/dashboard/readiness",
    },
}


def mentor_validation_message(validated_count: int, rejected_count: int) -> str:
    message = "A mentor has reviewed your skills. "
    if validated_count > 0 and rejected_count > 0:
        message += f"{validated_count} skill(s) validated, {rejected_count} need improvement."
    elif validated_count > 0:
        message += f"{validated_count} skill(s) have been validated!"
    elif rejected_count > 0:
        message += f"{rejected_count} skill(s) need improvement."
    return message


def roadmap_updated_message(item_count: int) -> str:
    if item_count > 0:
        return (
            f"Your roadmap has been updated with {item_count} items "
            "based on your latest readiness."
        )
    return NOTIFICATION_TEMPLATES[NotificationType.ROADMAP_UPDATED]["message"]


def role_changed_message(new_role_name: str) -> str:
    return (
        f'You\'ve switched to "{new_role_name}". '
        "Calculate your readiness to see where you stand for this role."
    )


def create_notification(
    db: Session,
    user_id: int,
    notification_type: NotificationType,
    title: str | None = None,
    message: str | None = None,
) -> int:
    """
    Create (or refresh) a notification.

    Returns:
        The notification id
    """
    existing = db.execute(
        select(Notification).where(
            Notification.user_id == user_id,
            Notification.type == notification_type,
            Notification.is_read.is_(False),
        )
    ).scalars().first()

    if existing:
        existing.created_at = utcnow()
        if message:
            existing.message = message
        db.flush()
        logger.info(
            "Refreshed existing notification",
            notification_id=existing.id,
            user_id=user_id,
            type=notification_type.value,
        )
        return existing.id

    template = NOTIFICATION_TEMPLATES[notification_type]
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title or template["title"],
        message=message or template["message"],
        action_url=template["action_url"],
        is_read=False,
        created_at=utcnow(),
    )
    db.add(notification)
    db.flush()
    logger.info(
        "Created notification",
        notification_id=notification.id,
        user_id=user_id,
        type=notification_type.value,
    )
    return notification.id
