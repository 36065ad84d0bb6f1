"""
Readiness Stores

Thin data-access classes over an explicitly passed Session:
- SkillLedger: the person's skills (read + replace-by-source)
- BenchmarkStore: a category's requirements
- ProfileStore: target category resolution
- ReadinessHistoryStore: append-only score time series
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session, selectinload

from shared.db.session import transaction
from shared.models import (
    BenchmarkSkill,
    Category,
    ReadinessBreakdown,
    ReadinessScore,
    Skill,
    UserProfile,
    UserSkill,
)
from shared.models.enums import (
    SkillLevel,
    SkillSource,
    TriggerSource,
    ValidationStatus,
)
from shared.utils.logging import get_logger
from shared.utils.timeutil import as_utc
from services.readiness_service.scoring import (
    BenchmarkEntry,
    LedgerEntry,
    OwnedSkill,
    ScoreResult,
    collapse_ledger,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ValidationChanges:
    """Skills whose validation landed after a given instant."""
    validated_count: int = 0
    rejected_count: int = 0

    @property
    def total(self) -> int:
        return self.validated_count + self.rejected_count


# Status precedence when one skill has several ledger rows
_STATUS_PRECEDENCE = {
    ValidationStatus.REJECTED: 3,
    ValidationStatus.VALIDATED: 2,
    ValidationStatus.PENDING: 1,
    ValidationStatus.NONE: 0,
}


# =============================================================================
# Skill Ledger
# =============================================================================

class SkillLedger:
    """Skill ledger keyed by (user, skill, source)."""

    def __init__(self, db: Session):
        self.db = db

    def _category_rows(self, user_id: int, category_id: int) -> list[UserSkill]:
        """Rows for skills that belong to the category or to its benchmark."""
        benchmark_skill_ids = select(BenchmarkSkill.skill_id).where(
            BenchmarkSkill.category_id == category_id
        )
        return list(
            self.db.execute(
                select(UserSkill)
                .join(Skill, Skill.skill_id == UserSkill.skill_id)
                .where(
                    UserSkill.user_id == user_id,
                    or_(
                        Skill.category_id == category_id,
                        UserSkill.skill_id.in_(benchmark_skill_ids),
                    ),
                )
                .order_by(UserSkill.skill_id, UserSkill.id)
            ).scalars().all()
        )

    def entries_for_category(self, user_id: int, category_id: int) -> list[LedgerEntry]:
        return [
            LedgerEntry(
                skill_id=row.skill_id,
                source=row.source,
                validation_status=row.validation_status,
            )
            for row in self._category_rows(user_id, category_id)
        ]

    def owned_skills(self, user_id: int, category_id: int) -> dict[int, OwnedSkill]:
        """Skills that count toward the score (see scoring.collapse_ledger)."""
        return collapse_ledger(self.entries_for_category(user_id, category_id))

    def validation_changes_since(
        self,
        user_id: int,
        category_id: int,
        since: datetime,
    ) -> ValidationChanges:
        """Count skills validated / rejected strictly after `since`."""
        validated: set[int] = set()
        rejected: set[int] = set()

        for row in self._category_rows(user_id, category_id):
            if row.source == SkillSource.DEMO or row.validated_at is None:
                continue
            if as_utc(row.validated_at) <= as_utc(since):
                continue
            if row.validation_status == ValidationStatus.VALIDATED:
                validated.add(row.skill_id)
            elif row.validation_status == ValidationStatus.REJECTED:
                rejected.add(row.skill_id)

        return ValidationChanges(
            validated_count=len(validated - rejected),
            rejected_count=len(rejected),
        )

    def validation_status_by_skill(
        self,
        user_id: int,
        skill_ids: list[int],
    ) -> dict[int, ValidationStatus]:
        """Current status per skill (rejected > validated > pending > none)."""
        if not skill_ids:
            return {}

        rows = self.db.execute(
            select(UserSkill).where(
                UserSkill.user_id == user_id,
                UserSkill.skill_id.in_(skill_ids),
                UserSkill.source != SkillSource.DEMO,
            )
        ).scalars().all()

        statuses: dict[int, ValidationStatus] = {}
        for row in rows:
            status = row.validation_status
            if row.source == SkillSource.VALIDATED and status == ValidationStatus.NONE:
                status = ValidationStatus.VALIDATED
            current = statuses.get(row.skill_id, ValidationStatus.NONE)
            if _STATUS_PRECEDENCE[status] >= _STATUS_PRECEDENCE[current]:
                statuses[row.skill_id] = status
        return statuses

    def rows_for_skill(self, user_id: int, skill_id: int) -> list[UserSkill]:
        return list(
            self.db.execute(
                select(UserSkill)
                .options(selectinload(UserSkill.skill))
                .where(UserSkill.user_id == user_id, UserSkill.skill_id == skill_id)
                .order_by(UserSkill.id)
            ).scalars().all()
        )

    def list_for_user(self, user_id: int) -> list[UserSkill]:
        return list(
            self.db.execute(
                select(UserSkill)
                .options(selectinload(UserSkill.skill))
                .where(UserSkill.user_id == user_id)
                .order_by(UserSkill.skill_id, UserSkill.source)
            ).scalars().all()
        )

    def replace_skills(
        self,
        user_id: int,
        source: SkillSource,
        skills: list[tuple[int, SkillLevel | None]],
    ) -> int:
        """
        Replace every row of `source` for the user with `skills`.

        Returns:
            Number of rows written
        """
        # Last level wins for duplicate skill ids
        levels = dict(skills)

        with transaction(self.db):
            self.db.execute(
                delete(UserSkill).where(
                    UserSkill.user_id == user_id,
                    UserSkill.source == source,
                )
            )
            self.db.add_all(
                UserSkill(
                    user_id=user_id,
                    skill_id=skill_id,
                    source=source,
                    level=level,
                    validation_status=ValidationStatus.NONE,
                )
                for skill_id, level in levels.items()
            )

        logger.info(
            "Replaced ledger skills",
            user_id=user_id,
            source=source.value,
            count=len(levels),
        )
        return len(levels)


# =============================================================================
# Benchmark Store
# =============================================================================

class BenchmarkStore:
    """Read-only view of category benchmarks."""

    def __init__(self, db: Session):
        self.db = db

    def for_category(self, category_id: int) -> list[BenchmarkEntry]:
        rows = self.db.execute(
            select(BenchmarkSkill, Skill.name)
            .join(Skill, Skill.skill_id == BenchmarkSkill.skill_id)
            .where(
                BenchmarkSkill.category_id == category_id,
                BenchmarkSkill.is_active.is_(True),
            )
            .order_by(BenchmarkSkill.skill_id)
        ).all()

        return [
            BenchmarkEntry(
                skill_id=bench.skill_id,
                skill_name=name,
                weight=bench.weight,
                importance=bench.importance,
            )
            for bench, name in rows
        ]

    def by_skill(self, category_id: int) -> dict[int, BenchmarkEntry]:
        return {entry.skill_id: entry for entry in self.for_category(category_id)}


# =============================================================================
# Profile Store
# =============================================================================

class ProfileStore:
    """Resolves a person's target category."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> UserProfile | None:
        return self.db.get(UserProfile, user_id)

    def target_category_id(self, user_id: int) -> int | None:
        profile = self.get(user_id)
        return profile.target_category_id if profile else None

    def get_category(self, category_id: int) -> Category | None:
        return self.db.get(Category, category_id)


# =============================================================================
# Readiness History Store
# =============================================================================

class ReadinessHistoryStore:
    """Append-only readiness time series."""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        user_id: int,
        category_id: int,
        result: ScoreResult,
        trigger_source: TriggerSource,
        calculated_at: datetime,
    ) -> ReadinessScore:
        """
        Write one score and its full breakdown atomically.

        A failure anywhere rolls back both; there is never a score without
        its breakdown.
        """
        with transaction(self.db):
            score = ReadinessScore(
                user_id=user_id,
                category_id=category_id,
                total_score=result.total_score,
                max_possible_score=result.max_possible_score,
                trigger_source=trigger_source,
                calculated_at=calculated_at,
            )
            self.db.add(score)
            self.db.flush()

            self.db.add_all(self._breakdown_rows(score.readiness_id, result))
            self.db.flush()

        logger.info(
            "Readiness score stored",
            readiness_id=score.readiness_id,
            total_score=result.total_score,
            max_possible_score=result.max_possible_score,
            trigger_source=trigger_source.value,
        )
        return score

    def _breakdown_rows(self, readiness_id: int, result: ScoreResult) -> list[ReadinessBreakdown]:
        return [
            ReadinessBreakdown(
                readiness_id=readiness_id,
                skill_id=line.skill_id,
                required_weight=line.required_weight,
                achieved_weight=line.achieved_weight,
                status=line.status,
                skill_source=line.skill_source,
            )
            for line in result.breakdown
        ]

    def get(self, readiness_id: int) -> ReadinessScore | None:
        return self.db.get(ReadinessScore, readiness_id)

    def latest(self, user_id: int, category_id: int | None = None) -> ReadinessScore | None:
        """Current score: latest calculated_at, then highest id."""
        query = select(ReadinessScore).where(ReadinessScore.user_id == user_id)
        if category_id is not None:
            query = query.where(ReadinessScore.category_id == category_id)
        query = query.order_by(
            ReadinessScore.calculated_at.desc(),
            ReadinessScore.readiness_id.desc(),
        ).limit(1)
        return self.db.execute(query).scalar_one_or_none()

    def history(self, user_id: int, category_id: int, limit: int = 50) -> list[ReadinessScore]:
        """Newest first."""
        return list(
            self.db.execute(
                select(ReadinessScore)
                .where(
                    ReadinessScore.user_id == user_id,
                    ReadinessScore.category_id == category_id,
                )
                .order_by(
                    ReadinessScore.calculated_at.desc(),
                    ReadinessScore.readiness_id.desc(),
                )
                .limit(limit)
            ).scalars().all()
        )

    def breakdown(self, readiness_id: int) -> list[tuple[ReadinessBreakdown, str]]:
        """Breakdown rows with skill names, in write order."""
        return list(
            self.db.execute(
                select(ReadinessBreakdown, Skill.name)
                .join(Skill, Skill.skill_id == ReadinessBreakdown.skill_id)
                .where(ReadinessBreakdown.readiness_id == readiness_id)
                .order_by(ReadinessBreakdown.id)
            ).all()
        )
