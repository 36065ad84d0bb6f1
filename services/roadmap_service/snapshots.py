"""
Roadmap Snapshot Store

Roadmaps are snapshots, not live logic: each save writes a new header plus
its items in one transaction and is never edited afterwards.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from shared.db.session import transaction
from shared.models import Roadmap, RoadmapItem
from shared.models.enums import Priority
from shared.utils.logging import get_logger
from services.roadmap_service.generator import GeneratedRoadmap

logger = get_logger(__name__)


class RoadmapSnapshotStore:
    def __init__(self, db: Session):
        self.db = db

    def save(self, roadmap: GeneratedRoadmap) -> Roadmap:
        """
        Persist a generated roadmap as a new snapshot.

        The header is rolled back together with the items if any item
        insert fails.
        """
        by_priority = roadmap.summary.by_priority

        with transaction(self.db):
            snapshot = Roadmap(
                user_id=roadmap.user_id,
                role_id=roadmap.role_id,
                readiness_id=roadmap.readiness_id,
                readiness_score=roadmap.current_score,
                total_items=len(roadmap.items),
                high_priority_count=by_priority[Priority.HIGH.value.lower()],
                medium_priority_count=by_priority[Priority.MEDIUM.value.lower()],
                low_priority_count=by_priority[Priority.LOW.value.lower()],
                generated_at=roadmap.generated_at,
            )
            self.db.add(snapshot)
            self.db.flush()

            self.db.add_all(
                RoadmapItem(
                    roadmap_id=snapshot.roadmap_id,
                    skill_id=item.skill_id,
                    skill_name=item.skill_name,
                    priority=item.priority,
                    category=item.category,
                    confidence=item.confidence,
                    reason=item.reason,
                    priority_score=item.priority_score,
                    rank=item.rank,
                    rule_applied=item.rule_applied,
                    current_level=item.current_level,
                    target_level=item.target_level,
                    level_gap=item.level_gap,
                    is_required=item.is_required,
                    skill_weight=item.weight,
                    action_hint=item.action_hint,
                )
                for item in roadmap.items
            )
            self.db.flush()

        logger.info(
            "Roadmap snapshot saved",
            roadmap_id=snapshot.roadmap_id,
            readiness_id=roadmap.readiness_id,
            total_items=snapshot.total_items,
        )
        return snapshot

    def get(self, roadmap_id: int) -> Roadmap | None:
        return self.db.execute(
            select(Roadmap)
            .options(selectinload(Roadmap.items), selectinload(Roadmap.role))
            .where(Roadmap.roadmap_id == roadmap_id)
        ).scalar_one_or_none()

    def latest_for_user(self, user_id: int, role_id: int | None = None) -> Roadmap | None:
        query = (
            select(Roadmap)
            .options(selectinload(Roadmap.items), selectinload(Roadmap.role))
            .where(Roadmap.user_id == user_id)
        )
        if role_id is not None:
            query = query.where(Roadmap.role_id == role_id)
        query = query.order_by(Roadmap.generated_at.desc(), Roadmap.roadmap_id.desc()).limit(1)
        return self.db.execute(query).scalar_one_or_none()

    def history(self, user_id: int, limit: int = 10) -> list[Roadmap]:
        """Headers only, newest first."""
        return list(
            self.db.execute(
                select(Roadmap)
                .options(selectinload(Roadmap.role))
                .where(Roadmap.user_id == user_id)
                .order_by(Roadmap.generated_at.desc(), Roadmap.roadmap_id.desc())
                .limit(limit)
            ).scalars().all()
        )

    def count_for_user(self, user_id: int) -> int:
        return self.db.execute(
            select(func.count()).select_from(Roadmap).where(Roadmap.user_id == user_id)
        ).scalar_one()

    def clear_for_user(self, user_id: int) -> int:
        """
        Delete every snapshot (and item) of the user.

        Does not commit; callers wrap it in their own transaction.

        Returns:
            Number of roadmaps deleted
        """
        roadmap_ids = select(Roadmap.roadmap_id).where(Roadmap.user_id == user_id)
        self.db.execute(
            delete(RoadmapItem)
            .where(RoadmapItem.roadmap_id.in_(roadmap_ids))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(
            delete(Roadmap)
            .where(Roadmap.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
