"""
Notification Trigger Contract

Notifications are side effects: a failing trigger is logged and never fails
or rolls back the operation that fired it.
"""

from typing import Any, Callable, Protocol

from shared.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationHooks(Protocol):
    def on_mentor_validation(self, user_id: int, validated_count: int, rejected_count: int) -> None:
        ...

    def on_readiness_outdated(self, user_id: int) -> None:
        ...

    def on_role_changed(self, user_id: int, new_role_name: str) -> None:
        ...

    def on_roadmap_updated(self, user_id: int, item_count: int) -> None:
        ...


class NullNotificationHooks:
    """Drops every trigger."""

    def on_mentor_validation(self, user_id: int, validated_count: int, rejected_count: int) -> None:
        pass

    def on_readiness_outdated(self, user_id: int) -> None:
        pass

    def on_role_changed(self, user_id: int, new_role_name: str) -> None:
        pass

    def on_roadmap_updated(self, user_id: int, item_count: int) -> None:
        pass


def fire(hook: Callable[..., Any], *args: Any) -> None:
    """Call a trigger hook, logging instead of raising on failure."""
    try:
        hook(*args)
    except Exception as e:
        logger.error(
            "Notification trigger failed",
            hook=getattr(hook, "__name__", repr(hook)),
            error=str(e),
        )
