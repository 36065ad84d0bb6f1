"""Roadmap rules, ranking, summary and edge-case messages."""

from datetime import datetime, timezone

import pytest

from shared.models.enums import (
    Confidence,
    Priority,
    RoadmapCategory,
    RoadmapRule,
    Severity,
    SkillSource,
    ValidationStatus,
)
from services.roadmap_service.generator import build_item, generate_roadmap
from services.roadmap_service.input import LEVEL_MET, LEVEL_NONE, RoadmapInput, SkillInput

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def skill(
    skill_id: int,
    *,
    required: bool,
    met: bool,
    weight: int = 5,
    status: ValidationStatus = ValidationStatus.NONE,
    name: str | None = None,
) -> SkillInput:
    return SkillInput(
        skill_id=skill_id,
        skill_name=name or f"Skill {skill_id}",
        is_required=required,
        weight=weight,
        validation_status=status,
        skill_source=SkillSource.SELF if met else None,
        is_met=met,
        current_level=LEVEL_MET if met else LEVEL_NONE,
        target_level=LEVEL_MET,
        gap_points=0 if met else weight,
    )


def roadmap_input(*skills: SkillInput) -> RoadmapInput:
    return RoadmapInput(
        readiness_id=7,
        user_id=1,
        role_id=1,
        role_name="Backend Developer",
        current_score=50,
        calculated_at=NOW,
        skills=list(skills),
    )


class TestRules:
    def test_validated_and_met_excluded(self):
        assert build_item(skill(1, required=True, met=True, status=ValidationStatus.VALIDATED)) is None

    def test_rejected_is_high_100(self):
        item = build_item(skill(1, required=False, met=False, weight=1, status=ValidationStatus.REJECTED))

        assert item.priority == Priority.HIGH
        assert item.category == RoadmapCategory.REJECTED
        assert item.confidence == Confidence.REJECTED
        assert item.priority_score == 100
        assert item.rule_applied == RoadmapRule.REJECTED

    def test_required_missing(self):
        item = build_item(skill(1, required=True, met=False, weight=10, name="Python"), "Backend Developer")

        assert item.priority == Priority.HIGH
        assert item.category == RoadmapCategory.REQUIRED_GAP
        assert item.priority_score == 130
        assert item.rule_applied == RoadmapRule.REQUIRED_MISSING
        assert item.reason == "Python is required for Backend Developer but missing from your profile"
        assert item.level_gap == 10

    def test_required_met_unvalidated(self):
        item = build_item(skill(1, required=True, met=True, weight=10, status=ValidationStatus.PENDING))

        assert item.priority == Priority.MEDIUM
        assert item.category == RoadmapCategory.STRENGTHEN
        assert item.category_label == "Needs Validation"
        assert item.confidence == Confidence.UNVALIDATED
        assert item.priority_score == 80
        assert item.level_gap == 0

    def test_optional_missing(self):
        item = build_item(skill(2, required=False, met=False, weight=5))

        assert item.priority == Priority.LOW
        assert item.category == RoadmapCategory.OPTIONAL_GAP
        assert item.priority_score == 30
        assert item.rule_applied == RoadmapRule.OPTIONAL_MISSING

    def test_optional_met_needs_nothing(self):
        assert build_item(skill(2, required=False, met=True)) is None

    def test_rejection_beats_required_missing(self):
        item = build_item(skill(1, required=True, met=False, weight=10, status=ValidationStatus.REJECTED))

        assert item.rule_applied == RoadmapRule.REJECTED
        assert item.priority_score == 100


class TestGenerate:
    def test_owned_required_and_missing_optional(self):
        result = generate_roadmap(
            roadmap_input(
                skill(1, required=True, met=True, weight=10, name="A"),
                skill(2, required=False, met=False, weight=5, name="B"),
            ),
            generated_at=NOW,
        )

        assert [(i.skill_name, i.priority, i.rank) for i in result.items] == [
            ("A", Priority.MEDIUM, 1),
            ("B", Priority.LOW, 2),
        ]

    def test_validated_skill_excluded_and_counted(self):
        result = generate_roadmap(
            roadmap_input(
                skill(1, required=True, met=True, weight=10, status=ValidationStatus.VALIDATED),
                skill(2, required=False, met=False, weight=5),
            ),
            generated_at=NOW,
        )

        assert [i.skill_id for i in result.items] == [2]
        assert result.summary.excluded_validated == 1
        rules = {r.rule: r.count for r in result.rules_applied}
        assert rules[RoadmapRule.VALIDATED_EXCLUDED] == 1
        assert len(result.rules_applied) == 5

    def test_ties_broken_by_skill_id(self):
        result = generate_roadmap(
            roadmap_input(
                skill(9, required=False, met=False, weight=3),
                skill(4, required=False, met=False, weight=3),
                skill(6, required=True, met=False, weight=1),
            ),
            generated_at=NOW,
        )

        assert [i.skill_id for i in result.items] == [6, 4, 9]
        assert [i.rank for i in result.items] == [1, 2, 3]

    def test_ranking_non_increasing(self):
        result = generate_roadmap(
            roadmap_input(
                skill(1, required=True, met=False, weight=2),
                skill(2, required=True, met=True, weight=9),
                skill(3, required=False, met=False, weight=10),
                skill(4, required=False, met=False, weight=1, status=ValidationStatus.REJECTED),
            ),
            generated_at=NOW,
        )

        scores = [i.priority_score for i in result.items]
        assert scores == sorted(scores, reverse=True)
        assert result.items[0].rule_applied == RoadmapRule.REJECTED

    def test_summary_counts(self):
        result = generate_roadmap(
            roadmap_input(
                skill(1, required=True, met=False),
                skill(2, required=True, met=True),
                skill(3, required=False, met=False),
            ),
            generated_at=NOW,
        )

        assert result.summary.total_items == 3
        assert result.summary.by_priority == {"high": 1, "medium": 1, "low": 1}
        assert result.summary.needs_immediate_action == 1
        assert RoadmapRule.VALIDATED_EXCLUDED.value not in result.summary.by_rule


class TestEdgeCases:
    def test_fully_ready(self):
        result = generate_roadmap(
            roadmap_input(skill(1, required=True, met=True, status=ValidationStatus.VALIDATED)),
            generated_at=NOW,
        )

        assert result.items == []
        assert result.edge_case.is_fully_ready
        assert result.edge_case.severity == Severity.SUCCESS

    def test_only_optional_gaps(self):
        result = generate_roadmap(
            roadmap_input(
                skill(1, required=True, met=True, status=ValidationStatus.VALIDATED),
                skill(2, required=False, met=False),
            ),
            generated_at=NOW,
        )

        assert result.edge_case.only_optional_gaps
        assert result.edge_case.severity == Severity.INFO

    def test_pending_with_unvalidated_required_warns(self):
        result = generate_roadmap(
            roadmap_input(skill(1, required=True, met=True, status=ValidationStatus.PENDING)),
            generated_at=NOW,
        )

        assert result.edge_case.has_pending_validation
        assert result.edge_case.unvalidated_required_count == 1
        assert result.edge_case.severity == Severity.WARNING

    def test_unvalidated_required_info(self):
        result = generate_roadmap(
            roadmap_input(skill(1, required=True, met=True)),
            generated_at=NOW,
        )

        assert result.edge_case.severity == Severity.INFO
        assert result.edge_case.message.startswith("1 required skill(s) are unvalidated")

    @pytest.mark.parametrize("status", [ValidationStatus.NONE, ValidationStatus.PENDING])
    def test_required_gap_has_no_edge_message(self, status):
        result = generate_roadmap(
            roadmap_input(skill(1, required=True, met=False, status=status)),
            generated_at=NOW,
        )

        assert result.edge_case.message is None
