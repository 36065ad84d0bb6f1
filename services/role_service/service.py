"""
Role Selection Service

Target role reads and switches. Switching records history, updates the
profile and deletes every roadmap snapshot of the user in one transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shared.db.session import transaction
from shared.models import BenchmarkSkill, Category, RoleChangeHistory, UserProfile
from shared.models.enums import Importance
from shared.utils.errors import InvalidInputError, NotFoundError, require_id
from shared.utils.logging import get_logger
from shared.utils.notify import NotificationHooks, NullNotificationHooks, fire
from shared.utils.timeutil import as_utc, utcnow
from services.readiness_service.scoring import percentage
from services.readiness_service.stores import ProfileStore, ReadinessHistoryStore
from services.roadmap_service.snapshots import RoadmapSnapshotStore

logger = get_logger(__name__)

ROLE_HISTORY_LIMIT = 20


@dataclass(frozen=True)
class TargetRole:
    user_id: int
    role_id: int | None
    role_name: str | None
    description: str | None
    set_at: datetime | None
    set_by: str | None

    @property
    def has_target_role(self) -> bool:
        return self.role_id is not None


@dataclass(frozen=True)
class AvailableRole:
    role_id: int
    name: str
    description: str | None
    skill_count: int
    required_count: int


@dataclass(frozen=True)
class RoleChange:
    user_id: int
    changed: bool
    previous_role_id: int | None
    new_role_id: int
    new_role_name: str
    readiness_score_at_change: int | None = None
    roadmaps_cleared: int = 0


class RoleSelectionService:
    def __init__(
        self,
        db: Session,
        hooks: NotificationHooks | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.hooks = hooks or NullNotificationHooks()
        self.clock = clock
        self.profiles = ProfileStore(db)
        self.history = ReadinessHistoryStore(db)
        self.snapshots = RoadmapSnapshotStore(db)

    def get_target_role(self, user_id: int) -> TargetRole:
        user_id = require_id(user_id, "user_id")

        profile = self.profiles.get(user_id)
        category = profile.target_category if profile else None
        return TargetRole(
            user_id=user_id,
            role_id=category.category_id if category else None,
            role_name=category.category_name if category else None,
            description=category.description if category else None,
            set_at=as_utc(profile.target_role_set_at) if profile else None,
            set_by=profile.target_role_set_by if profile else None,
        )

    def available_roles(self) -> list[AvailableRole]:
        """Active categories with their active benchmark sizes."""
        rows = self.db.execute(
            select(
                Category.category_id,
                Category.category_name,
                Category.description,
                func.count(BenchmarkSkill.skill_id).label("skill_count"),
                func.count(BenchmarkSkill.skill_id)
                .filter(BenchmarkSkill.importance == Importance.REQUIRED)
                .label("required_count"),
            )
            .outerjoin(
                BenchmarkSkill,
                (BenchmarkSkill.category_id == Category.category_id)
                & BenchmarkSkill.is_active.is_(True),
            )
            .where(Category.is_active.is_(True))
            .group_by(Category.category_id, Category.category_name, Category.description)
            .order_by(Category.category_name)
        ).all()

        return [
            AvailableRole(
                role_id=row.category_id,
                name=row.category_name,
                description=row.description,
                skill_count=row.skill_count,
                required_count=row.required_count,
            )
            for row in rows
        ]

    def change_role(self, user_id: int, new_role_id: int, changed_by: str = "self") -> RoleChange:
        """
        Switch the user's target role.

        Raises:
            NotFoundError: ROLE_NOT_FOUND for an unknown category
            InvalidInputError: The category is inactive
        """
        user_id = require_id(user_id, "user_id")
        new_role_id = require_id(new_role_id, "new_role_id")

        role = self.profiles.get_category(new_role_id)
        if role is None:
            raise NotFoundError("Role not found", code="ROLE_NOT_FOUND", role_id=new_role_id)
        if not role.is_active:
            raise InvalidInputError("Cannot select an inactive role", role_id=new_role_id)

        profile = self.profiles.get(user_id)
        previous_role_id = profile.target_category_id if profile else None

        if previous_role_id == new_role_id:
            return RoleChange(
                user_id=user_id,
                changed=False,
                previous_role_id=previous_role_id,
                new_role_id=new_role_id,
                new_role_name=role.category_name,
            )

        readiness_at_change = None
        if previous_role_id is not None:
            last = self.history.latest(user_id, previous_role_id)
            if last is not None:
                readiness_at_change = percentage(last.total_score, last.max_possible_score)

        with transaction(self.db):
            if profile is None:
                profile = UserProfile(user_id=user_id)
                self.db.add(profile)

            self.db.add(
                RoleChangeHistory(
                    user_id=user_id,
                    previous_role_id=previous_role_id,
                    new_role_id=new_role_id,
                    changed_by=changed_by,
                    readiness_score_at_change=readiness_at_change,
                    changed_at=self.clock(),
                )
            )
            profile.target_category_id = new_role_id
            profile.target_role_set_at = self.clock()
            profile.target_role_set_by = changed_by

            cleared = self.snapshots.clear_for_user(user_id)

        logger.info(
            "Target role changed",
            user_id=user_id,
            previous_role_id=previous_role_id,
            new_role_id=new_role_id,
            roadmaps_cleared=cleared,
        )
        fire(self.hooks.on_role_changed, user_id, role.category_name)

        return RoleChange(
            user_id=user_id,
            changed=True,
            previous_role_id=previous_role_id,
            new_role_id=new_role_id,
            new_role_name=role.category_name,
            readiness_score_at_change=readiness_at_change,
            roadmaps_cleared=cleared,
        )

    def role_history(self, user_id: int, limit: int = ROLE_HISTORY_LIMIT) -> list[RoleChangeHistory]:
        """Role switches, newest first."""
        user_id = require_id(user_id, "user_id")
        return list(
            self.db.execute(
                select(RoleChangeHistory)
                .where(RoleChangeHistory.user_id == user_id)
                .order_by(RoleChangeHistory.changed_at.desc(), RoleChangeHistory.id.desc())
                .limit(limit)
            ).scalars().all()
        )
