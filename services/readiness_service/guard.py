"""
Recalculation Guard

Decides whether a new readiness calculation may be written:
- first calculation for a (user, category) is always allowed
- force=True is always allowed
- validation changes since the last calculation waive the cooldown
- within the cooldown window the request is rejected (COOLDOWN_ACTIVE)
- an unchanged owned-skill set returns the last score (NO_CHANGES)

The guard reads only; callers hold the calculation lock around
evaluate() and the subsequent write.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from shared.models import ReadinessScore
from shared.models.enums import BreakdownStatus, BypassReason
from shared.utils.logging import get_logger
from shared.utils.timeutil import as_utc
from services.readiness_service.stores import (
    BenchmarkStore,
    ReadinessHistoryStore,
    SkillLedger,
    ValidationChanges,
)

logger = get_logger(__name__)


class GuardReason(str, Enum):
    # Allowed
    FIRST_CALCULATION = "FIRST_CALCULATION"
    FORCED = "FORCED"
    VALIDATION_BYPASS = "VALIDATION_BYPASS"
    CHANGES_DETECTED = "CHANGES_DETECTED"

    # Rejected
    COOLDOWN_ACTIVE = "COOLDOWN_ACTIVE"
    NO_CHANGES = "NO_CHANGES"


COOLDOWN_HINT = "Wait for the cooldown to expire or pass force=true to recalculate now"
NO_CHANGES_HINT = "Update your skills or pass force=true to recalculate anyway"


@dataclass
class GuardDecision:
    allowed: bool
    reason: GuardReason
    last_score: ReadinessScore | None = None
    retry_after_seconds: int = 0
    validation_changes: ValidationChanges = field(default_factory=ValidationChanges)
    hint: str | None = None

    @property
    def message(self) -> str:
        if self.reason == GuardReason.COOLDOWN_ACTIVE:
            return f"Readiness was calculated recently. Try again in {self.retry_after_seconds} seconds."
        if self.reason == GuardReason.NO_CHANGES:
            return "Your skills have not changed since the last calculation."
        if self.reason == GuardReason.VALIDATION_BYPASS:
            return (
                f"{self.validation_changes.validated_count} skill(s) validated and "
                f"{self.validation_changes.rejected_count} rejected since the last calculation"
            )
        return "Recalculation allowed"


class RecalculationGuard:
    """
    Evaluates recalculation requests against the readiness history.

    Args:
        history: Readiness history for the last score and its breakdown
        ledger: Current skill ledger
        benchmarks: Current benchmark definitions
        cooldown: Minimum spacing between calculations
    """

    def __init__(
        self,
        history: ReadinessHistoryStore,
        ledger: SkillLedger,
        benchmarks: BenchmarkStore,
        cooldown: timedelta,
    ):
        self.history = history
        self.ledger = ledger
        self.benchmarks = benchmarks
        self.cooldown = cooldown

    def evaluate(
        self,
        user_id: int,
        category_id: int,
        now: datetime,
        force: bool = False,
        bypass_reason: BypassReason | None = None,
    ) -> GuardDecision:
        last = self.history.latest(user_id, category_id)
        if last is None:
            return GuardDecision(allowed=True, reason=GuardReason.FIRST_CALCULATION)

        if force:
            return GuardDecision(allowed=True, reason=GuardReason.FORCED, last_score=last)

        last_at = as_utc(last.calculated_at)
        changes = self.ledger.validation_changes_since(user_id, category_id, last_at)
        waived = changes.total > 0 or bypass_reason == BypassReason.VALIDATION_UPDATE

        elapsed = as_utc(now) - last_at
        if not waived and elapsed < self.cooldown:
            retry_after = math.ceil((self.cooldown - elapsed).total_seconds())
            logger.info(
                "Recalculation blocked by cooldown",
                user_id=user_id,
                category_id=category_id,
                retry_after_seconds=retry_after,
            )
            return GuardDecision(
                allowed=False,
                reason=GuardReason.COOLDOWN_ACTIVE,
                last_score=last,
                retry_after_seconds=retry_after,
                hint=COOLDOWN_HINT,
            )

        if changes.total > 0:
            logger.info(
                "Cooldown waived by validation changes",
                user_id=user_id,
                category_id=category_id,
                validated=changes.validated_count,
                rejected=changes.rejected_count,
            )
            return GuardDecision(
                allowed=True,
                reason=GuardReason.VALIDATION_BYPASS,
                last_score=last,
                validation_changes=changes,
            )

        if self._unchanged(user_id, category_id, last):
            logger.info(
                "Recalculation skipped, no changes",
                user_id=user_id,
                category_id=category_id,
                readiness_id=last.readiness_id,
            )
            return GuardDecision(
                allowed=False,
                reason=GuardReason.NO_CHANGES,
                last_score=last,
                hint=NO_CHANGES_HINT,
            )

        return GuardDecision(allowed=True, reason=GuardReason.CHANGES_DETECTED, last_score=last)

    def _unchanged(self, user_id: int, category_id: int, last: ReadinessScore) -> bool:
        """Same benchmark skills and same met skills as the last breakdown."""
        benchmark_ids = {entry.skill_id for entry in self.benchmarks.for_category(category_id)}
        breakdown_ids = {row.skill_id for row in last.breakdown}
        met_ids = {row.skill_id for row in last.breakdown if row.status == BreakdownStatus.MET}

        owned_ids = set(self.ledger.owned_skills(user_id, category_id)) & benchmark_ids

        return benchmark_ids == breakdown_ids and met_ids == owned_ids
