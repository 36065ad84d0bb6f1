"""Scoring engine: arithmetic, ledger collapse and breakdown invariants."""

import pytest

from shared.models.enums import BreakdownStatus, Importance, SkillSource, ValidationStatus
from shared.utils.errors import NoBenchmarkSkillsError
from services.readiness_service.scoring import (
    BenchmarkEntry,
    LedgerEntry,
    OwnedSkill,
    collapse_ledger,
    percentage,
    score_skills,
    validated_weight,
)

BENCHMARK = [
    BenchmarkEntry(skill_id=1, skill_name="Python", weight=10, importance=Importance.REQUIRED),
    BenchmarkEntry(skill_id=2, skill_name="Docker", weight=5, importance=Importance.OPTIONAL),
]


def owned(*skills: OwnedSkill) -> dict[int, OwnedSkill]:
    return {s.skill_id: s for s in skills}


class TestArithmetic:
    @pytest.mark.parametrize(
        "weight, expected",
        [(10, 13), (5, 6), (2, 3), (4, 5), (1, 1), (0, 0)],
    )
    def test_validated_weight_rounds_half_up(self, weight, expected):
        assert validated_weight(weight) == expected

    @pytest.mark.parametrize(
        "total, maximum, expected",
        [(10, 15, 67), (1, 8, 13), (15, 15, 100), (0, 15, 0), (0, 0, 0)],
    )
    def test_percentage(self, total, maximum, expected):
        assert percentage(total, maximum) == expected


class TestCollapseLedger:
    def test_demo_rows_never_count(self):
        result = collapse_ledger([
            LedgerEntry(1, SkillSource.DEMO, ValidationStatus.VALIDATED),
        ])
        assert result == {}

    def test_rejection_on_any_row_removes_skill(self):
        result = collapse_ledger([
            LedgerEntry(1, SkillSource.SELF, ValidationStatus.NONE),
            LedgerEntry(1, SkillSource.RESUME, ValidationStatus.REJECTED),
        ])
        assert 1 not in result

    def test_strongest_source_wins(self):
        result = collapse_ledger([
            LedgerEntry(1, SkillSource.SELF, ValidationStatus.NONE),
            LedgerEntry(1, SkillSource.RESUME, ValidationStatus.NONE),
        ])
        assert result[1].source == SkillSource.RESUME
        assert result[1].is_validated is False

    def test_validated_status_on_self_row(self):
        result = collapse_ledger([
            LedgerEntry(1, SkillSource.SELF, ValidationStatus.VALIDATED),
        ])
        assert result[1].is_validated is True

    def test_validated_source_counts_as_validated(self):
        result = collapse_ledger([
            LedgerEntry(2, SkillSource.VALIDATED, ValidationStatus.NONE),
        ])
        assert result[2] == OwnedSkill(2, SkillSource.VALIDATED, True)


class TestScoreSkills:
    def test_partial_ownership(self):
        result = score_skills(BENCHMARK, owned(OwnedSkill(1, SkillSource.SELF, False)), 1)

        assert result.total_score == 10
        assert result.max_possible_score == 15
        assert result.percentage == 67
        assert result.met_skill_ids == {1}
        assert result.missing_required_skills == []

    def test_validated_skill_earns_bonus(self):
        result = score_skills(BENCHMARK, owned(OwnedSkill(1, SkillSource.VALIDATED, True)), 1)

        assert result.total_score == 13
        assert result.percentage == 87

    def test_missing_required_listed(self):
        result = score_skills(BENCHMARK, owned(OwnedSkill(2, SkillSource.RESUME, False)), 1)

        assert [m.skill_name for m in result.missing_required_skills] == ["Python"]
        assert result.total_score == 5

    def test_breakdown_sums_match_totals(self):
        result = score_skills(
            BENCHMARK,
            owned(
                OwnedSkill(1, SkillSource.VALIDATED, True),
                OwnedSkill(2, SkillSource.SELF, False),
            ),
            1,
        )

        assert sum(b.achieved_weight for b in result.breakdown) == result.total_score
        assert sum(b.required_weight for b in result.breakdown) == result.max_possible_score
        assert len(result.breakdown) == len(BENCHMARK)

    def test_missing_line_has_no_source(self):
        result = score_skills(BENCHMARK, {}, 1)

        assert all(b.status == BreakdownStatus.MISSING for b in result.breakdown)
        assert all(b.skill_source is None for b in result.breakdown)
        assert result.total_score == 0

    def test_skills_by_source_counts(self):
        result = score_skills(
            BENCHMARK,
            owned(
                OwnedSkill(1, SkillSource.VALIDATED, True),
                OwnedSkill(2, SkillSource.SELF, False),
            ),
            1,
        )
        assert result.skills_by_source == {"self": 1, "resume": 0, "validated": 1}

    def test_empty_benchmark_is_integrity_error(self):
        with pytest.raises(NoBenchmarkSkillsError) as exc_info:
            score_skills([], {}, 42)

        assert exc_info.value.code == "NO_BENCHMARK_SKILLS"
        assert exc_info.value.details == {"category_id": 42}
