"""
Roadmap Generator

Pure function from a RoadmapInput to a ranked, explainable roadmap.

Rules, first match wins (one item per skill at most):
1. validated and met           -> excluded
2. rejected by a mentor        -> HIGH,   100
3. required and missing        -> HIGH,   80 + weight*5
4. required, met, unvalidated  -> MEDIUM, 50 + weight*3
5. optional and missing        -> LOW,    20 + weight*2
Anything else (optional and met) produces no item.

Items are ranked by priority_score descending, skill_id ascending.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from shared.models.enums import (
    Confidence,
    Priority,
    RoadmapCategory,
    RoadmapRule,
    Severity,
    SkillSource,
    ValidationStatus,
)
from shared.utils.logging import get_logger
from services.roadmap_service.input import RoadmapInput, SkillInput

logger = get_logger(__name__)

CATEGORY_LABELS = {
    RoadmapCategory.REJECTED: "Rejected",
    RoadmapCategory.REQUIRED_GAP: "Required Gap",
    RoadmapCategory.STRENGTHEN: "Needs Validation",
    RoadmapCategory.OPTIONAL_GAP: "Optional Gap",
}

CONFIDENCE_LABELS = {
    Confidence.VALIDATED: "Verified",
    Confidence.UNVALIDATED: "Self-reported",
    Confidence.REJECTED: "Rejected by mentor",
}

RULE_DESCRIPTIONS = {
    RoadmapRule.VALIDATED_EXCLUDED: "Validated and met skills are excluded",
    RoadmapRule.REJECTED: "Rejected skills get HIGH priority",
    RoadmapRule.REQUIRED_MISSING: "Missing required skills get HIGH priority",
    RoadmapRule.UNVALIDATED_REQUIRED: "Unvalidated required skills get MEDIUM priority",
    RoadmapRule.OPTIONAL_MISSING: "Missing optional skills get LOW priority",
}


# =============================================================================
# Output contract
# =============================================================================

@dataclass
class RoadmapEntry:
    skill_id: int
    skill_name: str
    priority: Priority
    category: RoadmapCategory
    confidence: Confidence
    reason: str
    priority_score: int
    rule_applied: RoadmapRule
    current_level: str
    target_level: str
    level_gap: int
    is_required: bool
    weight: int
    skill_source: SkillSource | None
    action_hint: str
    rank: int = 0

    @property
    def category_label(self) -> str:
        return CATEGORY_LABELS[self.category]

    @property
    def confidence_label(self) -> str:
        return CONFIDENCE_LABELS[self.confidence]


@dataclass
class RoadmapSummary:
    total_items: int
    by_priority: dict[str, int]
    by_category: dict[str, int]
    by_rule: dict[str, int]
    needs_immediate_action: int
    excluded_validated: int


@dataclass(frozen=True)
class RuleCount:
    rule: RoadmapRule
    description: str
    count: int


@dataclass
class EdgeCase:
    is_fully_ready: bool
    only_optional_gaps: bool
    has_pending_validation: bool
    pending_validation_count: int
    has_unvalidated_required: bool
    unvalidated_required_count: int
    message: str | None = None
    severity: Severity | None = None


@dataclass
class GeneratedRoadmap:
    readiness_id: int
    user_id: int
    role_id: int
    role_name: str
    current_score: int
    generated_at: datetime
    items: list[RoadmapEntry]
    summary: RoadmapSummary
    rules_applied: list[RuleCount] = field(default_factory=list)
    edge_case: EdgeCase | None = None


# =============================================================================
# Rules
# =============================================================================

def _confidence(skill: SkillInput) -> Confidence:
    if skill.validation_status == ValidationStatus.VALIDATED:
        return Confidence.VALIDATED
    return Confidence.UNVALIDATED


def build_item(skill: SkillInput, role_name: str = "this role") -> RoadmapEntry | None:
    """Apply the rule table to one skill; None when no action is needed."""
    common = dict(
        skill_id=skill.skill_id,
        skill_name=skill.skill_name,
        current_level=skill.current_level,
        target_level=skill.target_level,
        is_required=skill.is_required,
        weight=skill.weight,
        skill_source=skill.skill_source,
    )

    if skill.validation_status == ValidationStatus.VALIDATED and skill.is_met:
        return None

    if skill.validation_status == ValidationStatus.REJECTED:
        return RoadmapEntry(
            **common,
            priority=Priority.HIGH,
            category=RoadmapCategory.REJECTED,
            confidence=Confidence.REJECTED,
            reason=f"{skill.skill_name} was rejected by a mentor and needs correction or removal",
            priority_score=100,
            rule_applied=RoadmapRule.REJECTED,
            level_gap=skill.level_gap,
            action_hint="Review mentor feedback, improve evidence, or remove this skill",
        )

    if skill.is_required and not skill.is_met:
        return RoadmapEntry(
            **common,
            priority=Priority.HIGH,
            category=RoadmapCategory.REQUIRED_GAP,
            confidence=_confidence(skill),
            reason=f"{skill.skill_name} is required for {role_name} but missing from your profile",
            priority_score=80 + skill.weight * 5,
            rule_applied=RoadmapRule.REQUIRED_MISSING,
            level_gap=skill.level_gap,
            action_hint="Add this skill to your profile",
        )

    if skill.is_required and skill.is_met:
        return RoadmapEntry(
            **common,
            priority=Priority.MEDIUM,
            category=RoadmapCategory.STRENGTHEN,
            confidence=Confidence.UNVALIDATED,
            reason=f"{skill.skill_name} meets requirements but is not mentor-validated yet",
            priority_score=50 + skill.weight * 3,
            rule_applied=RoadmapRule.UNVALIDATED_REQUIRED,
            level_gap=0,
            action_hint="Request mentor validation to strengthen credibility",
        )

    if not skill.is_required and not skill.is_met:
        return RoadmapEntry(
            **common,
            priority=Priority.LOW,
            category=RoadmapCategory.OPTIONAL_GAP,
            confidence=_confidence(skill),
            reason=f"{skill.skill_name} is optional for {role_name} and would boost your score if added",
            priority_score=20 + skill.weight * 2,
            rule_applied=RoadmapRule.OPTIONAL_MISSING,
            level_gap=skill.level_gap,
            action_hint="Consider adding this skill to improve your readiness score",
        )

    return None


# =============================================================================
# Generation
# =============================================================================

def _summarize(items: list[RoadmapEntry], excluded_validated: int) -> RoadmapSummary:
    by_priority = Counter(item.priority for item in items)
    by_category = Counter(item.category for item in items)
    by_rule = Counter(item.rule_applied for item in items)

    return RoadmapSummary(
        total_items=len(items),
        by_priority={p.value.lower(): by_priority.get(p, 0) for p in Priority},
        by_category={c.value: by_category.get(c, 0) for c in RoadmapCategory},
        by_rule={
            r.value: by_rule.get(r, 0)
            for r in RoadmapRule
            if r != RoadmapRule.VALIDATED_EXCLUDED
        },
        needs_immediate_action=by_priority.get(Priority.HIGH, 0),
        excluded_validated=excluded_validated,
    )


def _rules_applied(summary: RoadmapSummary) -> list[RuleCount]:
    counts = dict(summary.by_rule)
    counts[RoadmapRule.VALIDATED_EXCLUDED.value] = summary.excluded_validated
    return [
        RuleCount(rule=rule, description=RULE_DESCRIPTIONS[rule], count=counts[rule.value])
        for rule in RoadmapRule
    ]


def classify_edge_case(skills: list[SkillInput], summary: RoadmapSummary) -> EdgeCase:
    """Pick the single message shown above the roadmap."""
    pending = sum(1 for s in skills if s.validation_status == ValidationStatus.PENDING)
    unvalidated_required = summary.by_rule[RoadmapRule.UNVALIDATED_REQUIRED.value]

    edge_case = EdgeCase(
        is_fully_ready=summary.total_items == 0,
        only_optional_gaps=(
            summary.total_items > 0
            and summary.by_priority["high"] == 0
            and summary.by_priority["medium"] == 0
            and summary.by_priority["low"] > 0
        ),
        has_pending_validation=pending > 0,
        pending_validation_count=pending,
        has_unvalidated_required=unvalidated_required > 0,
        unvalidated_required_count=unvalidated_required,
    )

    if edge_case.is_fully_ready:
        edge_case.message = (
            "You're fully ready! All required skills are met and validated. "
            "Keep up the great work!"
        )
        edge_case.severity = Severity.SUCCESS
    elif edge_case.only_optional_gaps:
        edge_case.message = (
            "You've met all required skills! The items below are optional enhancements "
            "that could boost your profile further, but aren't required for this role."
        )
        edge_case.severity = Severity.INFO
    elif edge_case.has_pending_validation and edge_case.has_unvalidated_required:
        edge_case.message = (
            f"Your roadmap includes {unvalidated_required} skill(s) that haven't been "
            "validated by a mentor yet. These priorities may change after mentor review."
        )
        edge_case.severity = Severity.WARNING
    elif edge_case.has_unvalidated_required:
        edge_case.message = (
            f"{unvalidated_required} required skill(s) are unvalidated. Consider requesting "
            "mentor validation to boost your readiness score."
        )
        edge_case.severity = Severity.INFO

    return edge_case


def generate_roadmap(roadmap_input: RoadmapInput, generated_at: datetime) -> GeneratedRoadmap:
    """
    Generate a roadmap from an input contract.

    Args:
        roadmap_input: Output of load_roadmap_input
        generated_at: Timestamp stamped on the result

    Returns:
        GeneratedRoadmap with dense ranks 1..N
    """
    items: list[RoadmapEntry] = []
    excluded_validated = 0

    for skill in roadmap_input.skills:
        item = build_item(skill, roadmap_input.role_name)
        if item is None:
            if skill.validation_status == ValidationStatus.VALIDATED and skill.is_met:
                excluded_validated += 1
            continue
        items.append(item)

    items.sort(key=lambda i: (-i.priority_score, i.skill_id))
    for index, item in enumerate(items):
        item.rank = index + 1

    summary = _summarize(items, excluded_validated)

    logger.debug(
        "Roadmap generated",
        readiness_id=roadmap_input.readiness_id,
        items=summary.total_items,
        excluded_validated=excluded_validated,
    )

    return GeneratedRoadmap(
        readiness_id=roadmap_input.readiness_id,
        user_id=roadmap_input.user_id,
        role_id=roadmap_input.role_id,
        role_name=roadmap_input.role_name,
        current_score=roadmap_input.current_score,
        generated_at=generated_at,
        items=items,
        summary=summary,
        rules_applied=_rules_applied(summary),
        edge_case=classify_edge_case(roadmap_input.skills, summary),
    )
