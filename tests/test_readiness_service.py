"""Readiness pipeline: calculate, guard outcomes, history reads."""

import threading

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from shared.models import ReadinessBreakdown, ReadinessScore, Roadmap, UserSkill
from shared.models.enums import BreakdownStatus, Importance, SkillSource, TriggerSource, ValidationStatus
from shared.utils.errors import (
    CalculationInProgressError,
    InvalidInputError,
    NoBenchmarkSkillsError,
    NotFoundError,
)
from shared.utils.locks import LocalCalculationLock
from services.readiness_service.guard import GuardReason
from services.readiness_service.service import GuardRejection, ReadinessResult, ReadinessService
from services.readiness_service.stores import ReadinessHistoryStore

USER_ID = 1
NO_PROFILE_USER_ID = 2


def count(db, model) -> int:
    return db.query(model).count()


class TestCalculate:
    def test_first_calculation_scores_target_role(self, db, seeded, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)

        result = readiness_service.calculate(USER_ID)

        assert isinstance(result, ReadinessResult)
        assert result.recalculated
        assert result.guard_reason == GuardReason.FIRST_CALCULATION
        assert result.score.category_id == seeded.backend_id
        assert result.score.total_score == 10
        assert result.score.max_possible_score == 15
        assert result.score.percentage == 67
        assert result.score.trigger_source == TriggerSource.USER_EXPLICIT
        assert result.missing_required_skills == []
        assert count(db, ReadinessScore) == 1
        assert count(db, ReadinessBreakdown) == 2

    def test_breakdown_lines(self, seeded, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)

        result = readiness_service.calculate(USER_ID)
        lines = {line.skill_name: line for line in result.breakdown}

        assert lines["Python"].status == BreakdownStatus.MET
        assert lines["Python"].skill_source == SkillSource.SELF
        assert lines["Python"].importance == Importance.REQUIRED
        assert lines["Docker"].status == BreakdownStatus.MISSING
        assert lines["Docker"].achieved_weight == 0
        assert lines["Docker"].skill_source is None

    def test_other_category_skills_ignored(self, seeded, readiness_service, make_skill):
        make_skill(USER_ID, seeded.sql_id)

        result = readiness_service.calculate(USER_ID)

        assert result.score.total_score == 0
        assert [m.skill_name for m in result.missing_required_skills] == ["Python"]

    def test_roadmap_saved_after_calculation(self, db, seeded, readiness_service, hooks, make_skill):
        make_skill(USER_ID, seeded.python_id)

        result = readiness_service.calculate(USER_ID)

        roadmap = db.get(Roadmap, result.roadmap_id)
        assert roadmap.readiness_id == result.score.readiness_id
        assert roadmap.total_items == 2
        assert hooks.named("roadmap_updated") == [("roadmap_updated", USER_ID, 2)]

    def test_roadmap_failure_does_not_fail_calculation(self, db, seeded, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)

        def broken_save(*args, **kwargs):
            raise RuntimeError("snapshot write failed")

        readiness_service.roadmaps.save = broken_save
        result = readiness_service.calculate(USER_ID)

        assert result.recalculated
        assert result.roadmap_id is None
        assert count(db, ReadinessScore) == 1

    def test_roadmap_disabled(self, db, seeded, readiness_service, settings, make_skill):
        settings.auto_generate_roadmap = False
        make_skill(USER_ID, seeded.python_id)

        result = readiness_service.calculate(USER_ID)

        assert result.roadmap_id is None
        assert count(db, Roadmap) == 0

    def test_failing_hooks_never_break_calculation(
        self, db, seeded, lock, settings, clock, failing_hooks, make_skill
    ):
        make_skill(USER_ID, seeded.python_id)
        service = ReadinessService(db, hooks=failing_hooks, lock=lock, settings=settings, clock=clock)

        result = service.calculate(USER_ID)

        assert result.recalculated
        assert result.roadmap_id is not None

    def test_cooldown_rejection_returns_existing_score(self, db, seeded, clock, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)
        first = readiness_service.calculate(USER_ID)

        clock.advance(seconds=30)
        second = readiness_service.calculate(USER_ID)

        assert isinstance(second, GuardRejection)
        assert not second.recalculated
        assert second.reason == GuardReason.COOLDOWN_ACTIVE
        assert second.retry_after_seconds == 270
        assert second.last_score.readiness_id == first.score.readiness_id
        assert count(db, ReadinessScore) == 1

    def test_force_writes_new_row(self, db, seeded, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)
        readiness_service.calculate(USER_ID)

        result = readiness_service.calculate(USER_ID, force=True)

        assert result.guard_reason == GuardReason.FORCED
        assert count(db, ReadinessScore) == 2

    def test_no_changes_after_cooldown(self, db, seeded, clock, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)
        readiness_service.calculate(USER_ID)

        clock.advance(minutes=6)
        result = readiness_service.calculate(USER_ID)

        assert isinstance(result, GuardRejection)
        assert result.reason == GuardReason.NO_CHANGES
        assert count(db, ReadinessScore) == 1

    def test_changed_ledger_recalculates(self, seeded, clock, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)
        readiness_service.calculate(USER_ID)

        make_skill(USER_ID, seeded.docker_id, source=SkillSource.RESUME)
        clock.advance(minutes=6)
        result = readiness_service.calculate(USER_ID, trigger_source="system")

        assert result.guard_reason == GuardReason.CHANGES_DETECTED
        assert result.score.percentage == 100
        assert result.score.trigger_source == TriggerSource.SYSTEM

    def test_rejected_skill_scores_zero(self, seeded, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id, status=ValidationStatus.REJECTED)

        result = readiness_service.calculate(USER_ID)

        assert result.score.total_score == 0

    def test_no_target_role(self, seeded, readiness_service):
        with pytest.raises(InvalidInputError) as exc_info:
            readiness_service.calculate(NO_PROFILE_USER_ID)

        assert exc_info.value.code == "NO_TARGET_ROLE"

    @pytest.mark.parametrize("user_id", [0, -3, "1", None, True])
    def test_invalid_user_id(self, seeded, readiness_service, user_id):
        with pytest.raises(InvalidInputError):
            readiness_service.calculate(user_id)

    def test_invalid_trigger_source(self, seeded, readiness_service):
        with pytest.raises(InvalidInputError):
            readiness_service.calculate(USER_ID, trigger_source="cron")

    def test_empty_benchmark(self, db, seeded, readiness_service):
        from shared.models import UserProfile

        db.get(UserProfile, USER_ID).target_category_id = seeded.retired_id
        db.commit()

        with pytest.raises(NoBenchmarkSkillsError):
            readiness_service.calculate(USER_ID)

    def test_busy_lock(self, seeded, lock, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)
        held = threading.Event()
        release = threading.Event()

        def holder():
            with lock.hold(USER_ID, seeded.backend_id):
                held.set()
                release.wait(timeout=2)

        thread = threading.Thread(target=holder)
        thread.start()
        held.wait(timeout=2)
        try:
            with pytest.raises(CalculationInProgressError):
                readiness_service.calculate(USER_ID)
        finally:
            release.set()
            thread.join()

    def test_concurrent_requests_write_one_score(self, file_engine, settings, clock, hooks):
        factory = sessionmaker(bind=file_engine, autoflush=False)
        with factory() as session:
            session.add(UserSkill(user_id=USER_ID, skill_id=1))
            session.commit()

        lock = LocalCalculationLock(max_wait=5)
        barrier = threading.Barrier(4)
        outcomes, errors = [], []

        def request():
            with factory() as session:
                service = ReadinessService(session, hooks=hooks, lock=lock, settings=settings, clock=clock)
                barrier.wait(timeout=5)
                try:
                    outcomes.append(service.calculate(USER_ID))
                except Exception as e:
                    errors.append(e)

        threads = [threading.Thread(target=request) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        assert sum(isinstance(o, ReadinessResult) for o in outcomes) == 1
        assert [o.reason for o in outcomes if isinstance(o, GuardRejection)] == [
            GuardReason.COOLDOWN_ACTIVE
        ] * 3
        with factory() as session:
            assert session.query(ReadinessScore).count() == 1

    def test_breakdown_failure_leaves_no_score(self, db, seeded, monkeypatch, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)
        write_rows = ReadinessHistoryStore._breakdown_rows

        def rows_with_a_bad_one(self, readiness_id, result):
            rows = write_rows(self, readiness_id, result)
            rows[-1].required_weight = None
            return rows

        monkeypatch.setattr(ReadinessHistoryStore, "_breakdown_rows", rows_with_a_bad_one)

        with pytest.raises(IntegrityError):
            readiness_service.calculate(USER_ID)

        assert count(db, ReadinessScore) == 0
        assert count(db, ReadinessBreakdown) == 0
        assert count(db, Roadmap) == 0


class TestQueries:
    def test_get_latest(self, seeded, clock, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)
        readiness_service.calculate(USER_ID)
        clock.advance(minutes=1)
        second = readiness_service.calculate(USER_ID, force=True)

        latest = readiness_service.get_latest(USER_ID, seeded.backend_id)

        assert latest.readiness_id == second.score.readiness_id

    def test_get_latest_missing(self, seeded, readiness_service):
        with pytest.raises(NotFoundError) as exc_info:
            readiness_service.get_latest(USER_ID, seeded.backend_id)

        assert exc_info.value.code == "NO_READINESS_FOUND"

    def test_history_newest_first(self, seeded, clock, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id)
        ids = []
        for _ in range(3):
            ids.append(readiness_service.calculate(USER_ID, force=True).score.readiness_id)
            clock.advance(minutes=1)

        history = readiness_service.get_history(USER_ID, seeded.backend_id)
        assert [h.readiness_id for h in history] == list(reversed(ids))

        limited = readiness_service.get_history(USER_ID, seeded.backend_id, limit=2)
        assert len(limited) == 2

    def test_breakdown_view(self, seeded, readiness_service, make_skill):
        make_skill(USER_ID, seeded.python_id, source=SkillSource.VALIDATED)

        result = readiness_service.calculate(USER_ID)
        view = readiness_service.get_breakdown(result.score.readiness_id)

        assert [i.skill_name for i in view.required] == ["Python"]
        assert [i.skill_name for i in view.optional] == ["Docker"]
        assert view.required[0].achieved_weight == 13
        assert view.trust == {"validated": 1, "resume": 0, "self": 0, "met": 1, "missing": 1}
        assert sum(i.achieved_weight for i in view.items) == view.score.total_score

    def test_breakdown_missing(self, seeded, readiness_service):
        with pytest.raises(NotFoundError):
            readiness_service.get_breakdown(12345)
