"""
Readiness Service

Pipeline entry point:
    lock(user, category) -> guard -> score -> append history
    -> roadmap snapshot (non-fatal) -> notification triggers (best effort)
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from shared.models import ReadinessScore
from shared.models.enums import (
    BreakdownStatus,
    BypassReason,
    Importance,
    SkillSource,
    TriggerSource,
)
from shared.utils.config import Settings, get_settings
from shared.utils.errors import InvalidInputError, NotFoundError, coerce_enum, require_id
from shared.utils.locks import CalculationLock, get_calculation_lock
from shared.utils.logging import calculation_context, get_logger
from shared.utils.notify import NotificationHooks, NullNotificationHooks
from shared.utils.timeutil import as_utc, utcnow
from services.readiness_service.guard import GuardDecision, GuardReason, RecalculationGuard
from services.readiness_service.scoring import MissingSkill, percentage, score_skills
from services.readiness_service.stores import (
    BenchmarkStore,
    ProfileStore,
    ReadinessHistoryStore,
    SkillLedger,
    ValidationChanges,
)
from services.roadmap_service.service import RoadmapService

logger = get_logger(__name__)


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class ScoreSnapshot:
    """Read view of one ReadinessScore row."""
    readiness_id: int
    user_id: int
    category_id: int
    total_score: int
    max_possible_score: int
    percentage: int
    trigger_source: TriggerSource
    calculated_at: datetime

    @classmethod
    def from_model(cls, score: ReadinessScore) -> "ScoreSnapshot":
        return cls(
            readiness_id=score.readiness_id,
            user_id=score.user_id,
            category_id=score.category_id,
            total_score=score.total_score,
            max_possible_score=score.max_possible_score,
            percentage=percentage(score.total_score, score.max_possible_score),
            trigger_source=score.trigger_source,
            calculated_at=as_utc(score.calculated_at),
        )


@dataclass(frozen=True)
class BreakdownItem:
    skill_id: int
    skill_name: str
    required_weight: int
    achieved_weight: int
    status: BreakdownStatus
    skill_source: SkillSource | None
    importance: Importance


@dataclass
class ReadinessResult:
    """A calculation that was written."""
    score: ScoreSnapshot
    breakdown: list[BreakdownItem]
    skills_by_source: dict[str, int]
    missing_required_skills: list[MissingSkill]
    guard_reason: GuardReason
    validation_changes: ValidationChanges = field(default_factory=ValidationChanges)
    roadmap_id: int | None = None

    recalculated = True


@dataclass
class GuardRejection:
    """A calculation the guard refused; carries the existing state."""
    reason: GuardReason
    message: str
    hint: str | None
    last_score: ScoreSnapshot
    retry_after_seconds: int = 0

    recalculated = False

    @classmethod
    def from_decision(cls, decision: GuardDecision) -> "GuardRejection":
        return cls(
            reason=decision.reason,
            message=decision.message,
            hint=decision.hint,
            last_score=ScoreSnapshot.from_model(decision.last_score),
            retry_after_seconds=decision.retry_after_seconds,
        )


@dataclass
class BreakdownView:
    """Breakdown split by importance, with trust indicators."""
    score: ScoreSnapshot
    required: list[BreakdownItem]
    optional: list[BreakdownItem]
    trust: dict[str, int]

    @property
    def items(self) -> list[BreakdownItem]:
        return self.required + self.optional


# =============================================================================
# Service
# =============================================================================

class ReadinessService:
    """
    Readiness calculation and history queries.

    All collaborators are injected; defaults come from settings.
    """

    def __init__(
        self,
        db: Session,
        hooks: NotificationHooks | None = None,
        lock: CalculationLock | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        roadmaps: RoadmapService | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.hooks = hooks or NullNotificationHooks()
        self.lock = lock or get_calculation_lock()
        self.clock = clock

        self.ledger = SkillLedger(db)
        self.benchmarks = BenchmarkStore(db)
        self.profiles = ProfileStore(db)
        self.history = ReadinessHistoryStore(db)
        self.guard = RecalculationGuard(
            self.history,
            self.ledger,
            self.benchmarks,
            cooldown=timedelta(seconds=self.settings.recalc_cooldown_seconds),
        )
        self.roadmaps = roadmaps or RoadmapService(
            db, hooks=self.hooks, settings=self.settings, clock=clock
        )

    def calculate(
        self,
        user_id: int,
        trigger_source: TriggerSource | str = TriggerSource.USER_EXPLICIT,
        force: bool = False,
        bypass_reason: BypassReason | str | None = None,
    ) -> ReadinessResult | GuardRejection:
        """
        Calculate and store readiness for the user's target category.

        The category always comes from the profile.

        Raises:
            InvalidInputError: Bad ids or no target role (NO_TARGET_ROLE)
            NoBenchmarkSkillsError: The category has no active benchmark
            CalculationInProgressError: The calculation lock is busy
        """
        user_id = require_id(user_id, "user_id")
        trigger_source = coerce_enum(TriggerSource, trigger_source, "trigger_source")
        if bypass_reason is not None:
            bypass_reason = coerce_enum(BypassReason, bypass_reason, "bypass_reason")

        category_id = self.profiles.target_category_id(user_id)
        if category_id is None:
            raise InvalidInputError(
                "No target role selected. Choose a target role before calculating readiness.",
                code="NO_TARGET_ROLE",
                user_id=user_id,
            )

        with calculation_context(
            user_id,
            category_id,
            trigger_source=trigger_source.value,
            force=force,
        ):
            return self._calculate_locked(user_id, category_id, trigger_source, force, bypass_reason)

    def _calculate_locked(
        self,
        user_id: int,
        category_id: int,
        trigger_source: TriggerSource,
        force: bool,
        bypass_reason: BypassReason | None,
    ) -> ReadinessResult | GuardRejection:
        """Guard, score and store under the (user, category) lock, then snapshot the roadmap."""
        with self.lock.hold(user_id, category_id):
            decision = self.guard.evaluate(
                user_id,
                category_id,
                now=self.clock(),
                force=force,
                bypass_reason=bypass_reason,
            )
            if not decision.allowed:
                return GuardRejection.from_decision(decision)

            benchmark = self.benchmarks.for_category(category_id)
            owned = self.ledger.owned_skills(user_id, category_id)
            result = score_skills(benchmark, owned, category_id)
            score = self.history.append(
                user_id,
                category_id,
                result,
                trigger_source=trigger_source,
                calculated_at=self.clock(),
            )

        logger.info(
            "Readiness calculated",
            readiness_id=score.readiness_id,
            percentage=result.percentage,
            guard_reason=decision.reason.value,
        )

        readiness = ReadinessResult(
            score=ScoreSnapshot.from_model(score),
            breakdown=[
                BreakdownItem(
                    skill_id=line.skill_id,
                    skill_name=line.skill_name,
                    required_weight=line.required_weight,
                    achieved_weight=line.achieved_weight,
                    status=line.status,
                    skill_source=line.skill_source,
                    importance=line.importance,
                )
                for line in result.breakdown
            ],
            skills_by_source=result.skills_by_source,
            missing_required_skills=result.missing_required_skills,
            guard_reason=decision.reason,
            validation_changes=decision.validation_changes,
        )

        if self.settings.auto_generate_roadmap:
            readiness.roadmap_id = self._save_roadmap(user_id, category_id, score.readiness_id)

        return readiness

    def _save_roadmap(self, user_id: int, category_id: int, readiness_id: int) -> int | None:
        """Snapshot the roadmap for a fresh score. Failures are logged only."""
        try:
            roadmap = self.roadmaps.save(user_id, role_id=category_id, readiness_id=readiness_id)
        except Exception as e:
            logger.error(
                "Roadmap generation failed after calculation",
                user_id=user_id,
                readiness_id=readiness_id,
                error=str(e),
            )
            return None
        return roadmap.roadmap_id

    def get_latest(self, user_id: int, category_id: int) -> ScoreSnapshot:
        user_id = require_id(user_id, "user_id")
        category_id = require_id(category_id, "category_id")

        score = self.history.latest(user_id, category_id)
        if score is None:
            raise NotFoundError(
                "No readiness calculation found. Please calculate readiness first.",
                code="NO_READINESS_FOUND",
                user_id=user_id,
                category_id=category_id,
            )
        return ScoreSnapshot.from_model(score)

    def get_history(
        self,
        user_id: int,
        category_id: int,
        limit: int | None = None,
    ) -> list[ScoreSnapshot]:
        """Scores for (user, category), newest first."""
        user_id = require_id(user_id, "user_id")
        category_id = require_id(category_id, "category_id")

        rows = self.history.history(
            user_id,
            category_id,
            limit=limit or self.settings.readiness_history_limit,
        )
        return [ScoreSnapshot.from_model(row) for row in rows]

    def get_breakdown(self, readiness_id: int) -> BreakdownView:
        readiness_id = require_id(readiness_id, "readiness_id")

        score = self.history.get(readiness_id)
        if score is None:
            raise NotFoundError(
                "Readiness calculation not found",
                readiness_id=readiness_id,
            )

        benchmark = self.benchmarks.by_skill(score.category_id)
        required: list[BreakdownItem] = []
        optional: list[BreakdownItem] = []
        trust = {
            "validated": 0,
            "resume": 0,
            "self": 0,
            "met": 0,
            "missing": 0,
        }

        # weights are frozen on the row; importance comes from the live benchmark
        for row, skill_name in self.history.breakdown(readiness_id):
            entry = benchmark.get(row.skill_id)
            item = BreakdownItem(
                skill_id=row.skill_id,
                skill_name=skill_name,
                required_weight=row.required_weight,
                achieved_weight=row.achieved_weight,
                status=row.status,
                skill_source=row.skill_source,
                importance=entry.importance if entry else Importance.OPTIONAL,
            )
            (required if item.importance == Importance.REQUIRED else optional).append(item)

            trust[row.status.value] += 1
            if row.skill_source is not None:
                trust[row.skill_source.value] += 1

        return BreakdownView(
            score=ScoreSnapshot.from_model(score),
            required=required,
            optional=optional,
            trust=trust,
        )

