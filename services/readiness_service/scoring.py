"""
Scoring Engine

Pure, deterministic scoring of a ledger slice against a benchmark.
Persistence lives in stores.ReadinessHistoryStore; dedup is the guard's job.
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from shared.models.enums import (
    BreakdownStatus,
    Importance,
    SCORING_SOURCES,
    SkillSource,
    ValidationStatus,
)
from shared.utils.errors import NoBenchmarkSkillsError

# Validated skills earn a bonus on top of the nominal weight
VALIDATED_MULTIPLIER = Decimal("1.25")

# Effective source when a skill appears under several sources
SOURCE_PRECEDENCE = {
    SkillSource.VALIDATED: 3,
    SkillSource.RESUME: 2,
    SkillSource.SELF: 1,
}


# =============================================================================
# Contracts
# =============================================================================

@dataclass(frozen=True)
class BenchmarkEntry:
    skill_id: int
    skill_name: str
    weight: int
    importance: Importance

    @property
    def is_required(self) -> bool:
        return self.importance == Importance.REQUIRED


@dataclass(frozen=True)
class LedgerEntry:
    """One ledger row as the engine sees it."""
    skill_id: int
    source: SkillSource
    validation_status: ValidationStatus


@dataclass(frozen=True)
class OwnedSkill:
    skill_id: int
    source: SkillSource
    is_validated: bool


@dataclass(frozen=True)
class BreakdownLine:
    skill_id: int
    skill_name: str
    required_weight: int
    achieved_weight: int
    status: BreakdownStatus
    skill_source: SkillSource | None
    importance: Importance


@dataclass(frozen=True)
class MissingSkill:
    skill_id: int
    skill_name: str


@dataclass
class ScoreResult:
    total_score: int
    max_possible_score: int
    breakdown: list[BreakdownLine]
    missing_required_skills: list[MissingSkill] = field(default_factory=list)
    skills_by_source: dict[str, int] = field(default_factory=dict)

    @property
    def percentage(self) -> int:
        return percentage(self.total_score, self.max_possible_score)

    @property
    def met_skill_ids(self) -> set[int]:
        return {b.skill_id for b in self.breakdown if b.status == BreakdownStatus.MET}


# =============================================================================
# Arithmetic
# =============================================================================

def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validated_weight(weight: int) -> int:
    """round(weight * 1.25), halves rounded up."""
    return round_half_up(Decimal(weight) * VALIDATED_MULTIPLIER)


def percentage(total: int, maximum: int) -> int:
    if not maximum:
        return 0
    return round_half_up(Decimal(100 * total) / Decimal(maximum))


# =============================================================================
# Engine
# =============================================================================

def collapse_ledger(entries: Iterable[LedgerEntry]) -> dict[int, OwnedSkill]:
    """
    Reduce ledger rows to the skills that count as owned.

    - demo rows never count
    - a skill rejected on any source row is not owned
    - validated if any row is validated (by source or status)
    - the effective source is the strongest of the remaining rows
    """
    rows_by_skill: dict[int, list[LedgerEntry]] = {}
    for entry in entries:
        if entry.source not in SCORING_SOURCES:
            continue
        rows_by_skill.setdefault(entry.skill_id, []).append(entry)

    owned: dict[int, OwnedSkill] = {}
    for skill_id, rows in rows_by_skill.items():
        if any(r.validation_status == ValidationStatus.REJECTED for r in rows):
            continue

        is_validated = any(
            r.source == SkillSource.VALIDATED or r.validation_status == ValidationStatus.VALIDATED
            for r in rows
        )
        source = max((r.source for r in rows), key=SOURCE_PRECEDENCE.__getitem__)
        owned[skill_id] = OwnedSkill(skill_id=skill_id, source=source, is_validated=is_validated)

    return owned


def score_skills(
    benchmark: list[BenchmarkEntry],
    owned: dict[int, OwnedSkill],
    category_id: int,
) -> ScoreResult:
    """
    Score owned skills against a benchmark.

    Args:
        benchmark: Active benchmark entries for the category
        owned: Output of collapse_ledger for the same category
        category_id: Used for error reporting only

    Returns:
        ScoreResult with one breakdown line per benchmark entry

    Raises:
        NoBenchmarkSkillsError: If the benchmark is empty
    """
    if not benchmark:
        raise NoBenchmarkSkillsError(category_id)

    total_score = 0
    max_possible_score = 0
    breakdown: list[BreakdownLine] = []
    missing_required: list[MissingSkill] = []

    for entry in benchmark:
        skill = owned.get(entry.skill_id)
        max_possible_score += entry.weight

        if skill is None:
            achieved = 0
            status = BreakdownStatus.MISSING
            if entry.is_required:
                missing_required.append(MissingSkill(entry.skill_id, entry.skill_name))
        else:
            achieved = validated_weight(entry.weight) if skill.is_validated else entry.weight
            status = BreakdownStatus.MET
            total_score += achieved

        breakdown.append(
            BreakdownLine(
                skill_id=entry.skill_id,
                skill_name=entry.skill_name,
                required_weight=entry.weight,
                achieved_weight=achieved,
                status=status,
                skill_source=skill.source if skill else None,
                importance=entry.importance,
            )
        )

    skills_by_source = Counter(skill.source.value for skill in owned.values())

    return ScoreResult(
        total_score=total_score,
        max_possible_score=max_possible_score,
        breakdown=breakdown,
        missing_required_skills=missing_required,
        skills_by_source={source.value: skills_by_source.get(source.value, 0) for source in SCORING_SOURCES},
    )
