"""
Roadmap Service

Preview (generate, not persisted), save (snapshot) and snapshot reads.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from shared.models import Roadmap
from shared.utils.config import Settings, get_settings
from shared.utils.errors import NotFoundError, require_id
from shared.utils.logging import get_logger
from shared.utils.notify import NotificationHooks, NullNotificationHooks, fire
from shared.utils.timeutil import utcnow
from services.roadmap_service.generator import GeneratedRoadmap, RoadmapEntry, generate_roadmap
from services.roadmap_service.input import RoadmapInput, load_roadmap_input
from services.roadmap_service.snapshots import RoadmapSnapshotStore

logger = get_logger(__name__)


@dataclass
class RoadmapPreview:
    roadmap: GeneratedRoadmap
    items: list[RoadmapEntry]
    is_truncated: bool


class RoadmapService:
    def __init__(
        self,
        db: Session,
        hooks: NotificationHooks | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.hooks = hooks or NullNotificationHooks()
        self.settings = settings or get_settings()
        self.clock = clock
        self.snapshots = RoadmapSnapshotStore(db)

    def load_input(self, user_id: int, role_id: int | None = None) -> RoadmapInput:
        """Input contract for diagnostics."""
        return load_roadmap_input(self.db, require_id(user_id, "user_id"), role_id)

    def generate(
        self,
        user_id: int,
        role_id: int | None = None,
        readiness_id: int | None = None,
    ) -> GeneratedRoadmap:
        user_id = require_id(user_id, "user_id")
        if role_id is not None:
            role_id = require_id(role_id, "role_id")

        roadmap_input = load_roadmap_input(self.db, user_id, role_id, readiness_id)
        return generate_roadmap(roadmap_input, generated_at=self.clock())

    def preview(
        self,
        user_id: int,
        role_id: int | None = None,
        limit: int | None = None,
    ) -> RoadmapPreview:
        """Generate without persisting; `limit` truncates the item list."""
        roadmap = self.generate(user_id, role_id)
        items = roadmap.items if limit is None else roadmap.items[:limit]
        return RoadmapPreview(
            roadmap=roadmap,
            items=items,
            is_truncated=len(items) < len(roadmap.items),
        )

    def top(self, user_id: int, role_id: int | None = None, count: int = 5) -> RoadmapPreview:
        return self.preview(user_id, role_id, limit=count)

    def save(
        self,
        user_id: int,
        role_id: int | None = None,
        readiness_id: int | None = None,
    ) -> Roadmap:
        """
        Generate and persist a snapshot.

        Args:
            user_id: Person the roadmap is for
            role_id: Category; defaults to the profile target
            readiness_id: Pin the snapshot to this calculation

        Returns:
            The persisted Roadmap header
        """
        roadmap = self.generate(user_id, role_id, readiness_id)
        snapshot = self.snapshots.save(roadmap)
        fire(self.hooks.on_roadmap_updated, roadmap.user_id, snapshot.total_items)
        return snapshot

    def get_saved(self, roadmap_id: int) -> Roadmap:
        roadmap_id = require_id(roadmap_id, "roadmap_id")

        snapshot = self.snapshots.get(roadmap_id)
        if snapshot is None:
            raise NotFoundError("Roadmap not found", roadmap_id=roadmap_id)
        return snapshot

    def latest(self, user_id: int, role_id: int | None = None) -> Roadmap:
        user_id = require_id(user_id, "user_id")

        snapshot = self.snapshots.latest_for_user(user_id, role_id)
        if snapshot is None:
            raise NotFoundError("No saved roadmap found for this user", user_id=user_id)
        return snapshot

    def history(self, user_id: int, limit: int | None = None) -> list[Roadmap]:
        user_id = require_id(user_id, "user_id")
        return self.snapshots.history(user_id, limit=limit or self.settings.roadmap_history_limit)
