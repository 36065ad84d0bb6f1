"""
Roadmap Input Contract

Everything the generator needs, gathered from one readiness calculation:
the frozen breakdown (status, source, weight) plus the current benchmark
importance and ledger validation status. Importance is read live; a skill
whose benchmark row has since been deactivated is treated as optional.
"""

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from shared.models import ReadinessScore
from shared.models.enums import BreakdownStatus, Importance, SkillSource, ValidationStatus
from shared.utils.errors import NotFoundError
from shared.utils.timeutil import as_utc
from services.readiness_service.scoring import percentage
from services.readiness_service.stores import (
    BenchmarkStore,
    ProfileStore,
    ReadinessHistoryStore,
    SkillLedger,
)

# The system only knows met / missing; levels are display labels
LEVEL_NONE = "none"
LEVEL_MET = "intermediate"


@dataclass(frozen=True)
class SkillInput:
    skill_id: int
    skill_name: str
    is_required: bool
    weight: int
    validation_status: ValidationStatus
    skill_source: SkillSource | None
    is_met: bool
    current_level: str
    target_level: str
    gap_points: int

    @property
    def level_gap(self) -> int:
        return self.gap_points


@dataclass(frozen=True)
class InputSummary:
    total_skills: int = 0
    met_count: int = 0
    missing_count: int = 0
    required_missing: int = 0
    optional_missing: int = 0
    total_gap_points: int = 0


@dataclass
class RoadmapInput:
    readiness_id: int
    user_id: int
    role_id: int
    role_name: str
    current_score: int
    calculated_at: datetime
    skills: list[SkillInput] = field(default_factory=list)

    @property
    def summary(self) -> InputSummary:
        missing = [s for s in self.skills if not s.is_met]
        return InputSummary(
            total_skills=len(self.skills),
            met_count=len(self.skills) - len(missing),
            missing_count=len(missing),
            required_missing=sum(1 for s in missing if s.is_required),
            optional_missing=sum(1 for s in missing if not s.is_required),
            total_gap_points=sum(s.gap_points for s in self.skills),
        )


def _resolve_score(
    db: Session,
    user_id: int,
    role_id: int | None,
    readiness_id: int | None,
) -> ReadinessScore | None:
    history = ReadinessHistoryStore(db)

    if readiness_id is not None:
        score = history.get(readiness_id)
        if score is None or score.user_id != user_id:
            return None
        return score

    if role_id is None:
        role_id = ProfileStore(db).target_category_id(user_id)
    return history.latest(user_id, role_id)


def load_roadmap_input(
    db: Session,
    user_id: int,
    role_id: int | None = None,
    readiness_id: int | None = None,
) -> RoadmapInput:
    """
    Build the input contract from a readiness calculation.

    Args:
        db: Database session
        user_id: Person the roadmap is for
        role_id: Category; defaults to the profile target (any role if unset)
        readiness_id: Exact calculation to use instead of the latest one

    Raises:
        NotFoundError: NO_READINESS_FOUND when there is nothing to build from
    """
    score = _resolve_score(db, user_id, role_id, readiness_id)
    if score is None:
        raise NotFoundError(
            "No readiness calculation found. Please calculate readiness first.",
            code="NO_READINESS_FOUND",
            user_id=user_id,
            role_id=role_id,
        )

    rows = ReadinessHistoryStore(db).breakdown(score.readiness_id)
    benchmark = BenchmarkStore(db).by_skill(score.category_id)
    statuses = SkillLedger(db).validation_status_by_skill(
        user_id, [row.skill_id for row, _ in rows]
    )
    category = ProfileStore(db).get_category(score.category_id)

    skills = []
    for row, skill_name in rows:
        entry = benchmark.get(row.skill_id)
        importance = entry.importance if entry else Importance.OPTIONAL
        is_met = row.status == BreakdownStatus.MET
        gap_points = max(row.required_weight - row.achieved_weight, 0)

        skills.append(
            SkillInput(
                skill_id=row.skill_id,
                skill_name=skill_name,
                is_required=importance == Importance.REQUIRED,
                weight=row.required_weight,
                validation_status=statuses.get(row.skill_id, ValidationStatus.NONE),
                skill_source=row.skill_source,
                is_met=is_met,
                current_level=LEVEL_MET if is_met else LEVEL_NONE,
                target_level=LEVEL_MET,
                gap_points=gap_points,
            )
        )

    return RoadmapInput(
        readiness_id=score.readiness_id,
        user_id=score.user_id,
        role_id=score.category_id,
        role_name=category.category_name if category else "this role",
        current_score=percentage(score.total_score, score.max_possible_score),
        calculated_at=as_utc(score.calculated_at),
        skills=skills,
    )
