"""Shared fixtures: in-memory SQLite, seeded benchmark, fake clock and hooks."""

import os

os.environ.setdefault("CALC_LOCK_BACKEND", "local")

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.models import (
    Base,
    BenchmarkSkill,
    Category,
    Skill,
    UserProfile,
    UserSkill,
)
from shared.models.enums import Importance, SkillSource, ValidationStatus
from shared.utils.config import Settings
from shared.utils.locks import LocalCalculationLock
from services.readiness_service.service import ReadinessService
from services.roadmap_service.service import RoadmapService
from services.validation_service.service import MentorValidationService

USER_ID = 1


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingHooks:
    """NotificationHooks that remembers every trigger."""

    def __init__(self):
        self.calls: list[tuple] = []

    def on_mentor_validation(self, user_id, validated_count, rejected_count):
        self.calls.append(("mentor_validation", user_id, validated_count, rejected_count))

    def on_readiness_outdated(self, user_id):
        self.calls.append(("readiness_outdated", user_id))

    def on_role_changed(self, user_id, new_role_name):
        self.calls.append(("role_changed", user_id, new_role_name))

    def on_roadmap_updated(self, user_id, item_count):
        self.calls.append(("roadmap_updated", user_id, item_count))

    def named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


class FailingHooks:
    """Every trigger raises."""

    def _fail(self, *args):
        raise RuntimeError("broker unavailable")

    on_mentor_validation = _fail
    on_readiness_outdated = _fail
    on_role_changed = _fail
    on_roadmap_updated = _fail


def add_skill(
    db,
    user_id: int,
    skill_id: int,
    source: SkillSource = SkillSource.SELF,
    status: ValidationStatus = ValidationStatus.NONE,
    validated_at: datetime | None = None,
) -> UserSkill:
    row = UserSkill(
        user_id=user_id,
        skill_id=skill_id,
        source=source,
        validation_status=status,
        validated_at=validated_at,
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


def seed_reference_data(db) -> SimpleNamespace:
    """
    Categories:
    - Backend Developer: Python (10, required), Docker (5, optional)
    - Data Analyst: SQL (8, required)
    - Webmaster: inactive, no benchmark
    User 1 targets Backend Developer; user 2 has no profile.
    """
    backend = Category(category_id=1, category_name="Backend Developer", is_active=True)
    analyst = Category(category_id=2, category_name="Data Analyst", is_active=True)
    retired = Category(category_id=3, category_name="Webmaster", is_active=False)
    db.add_all([backend, analyst, retired])
    db.flush()

    db.add_all([
        Skill(skill_id=1, name="Python", category_id=1),
        Skill(skill_id=2, name="Docker", category_id=1),
        Skill(skill_id=3, name="SQL", category_id=2),
    ])
    db.flush()

    db.add_all([
        BenchmarkSkill(category_id=1, skill_id=1, weight=10, importance=Importance.REQUIRED),
        BenchmarkSkill(category_id=1, skill_id=2, weight=5, importance=Importance.OPTIONAL),
        BenchmarkSkill(category_id=2, skill_id=3, weight=8, importance=Importance.REQUIRED),
    ])
    db.add(UserProfile(user_id=USER_ID, target_category_id=1))
    db.commit()

    return SimpleNamespace(
        backend_id=1,
        analyst_id=2,
        retired_id=3,
        python_id=1,
        docker_id=2,
        sql_id=3,
    )


@pytest.fixture
def seeded(db):
    return seed_reference_data(db)


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite with the reference data, for tests that need one session per thread."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'readiness.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()
    seed_reference_data(session)
    session.close()
    yield engine
    engine.dispose()


@pytest.fixture
def settings():
    return Settings(
        calc_lock_backend="local",
        recalc_cooldown_minutes=5,
        auto_generate_roadmap=True,
        auto_recalculate_on_validation=True,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hooks():
    return RecordingHooks()


@pytest.fixture
def lock():
    return LocalCalculationLock(max_wait=0.05)


@pytest.fixture
def roadmap_service(db, hooks, settings, clock):
    return RoadmapService(db, hooks=hooks, settings=settings, clock=clock)


@pytest.fixture
def readiness_service(db, hooks, lock, settings, clock, roadmap_service):
    return ReadinessService(
        db,
        hooks=hooks,
        lock=lock,
        settings=settings,
        clock=clock,
        roadmaps=roadmap_service,
    )


@pytest.fixture
def validation_service(db, hooks, settings, clock, readiness_service):
    return MentorValidationService(
        db,
        hooks=hooks,
        readiness=readiness_service,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def client(db, hooks, lock, clock):
    from apps.api_service import dependencies
    from apps.api_service.main import app
    from shared.db.session import get_session

    def override_session():
        yield db

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[dependencies.get_hooks] = lambda: hooks
    app.dependency_overrides[dependencies.get_lock] = lambda: lock
    app.dependency_overrides[dependencies.get_clock] = lambda: clock

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_skill(db):
    """add_skill bound to the test session."""
    def _make(user_id, skill_id, source=SkillSource.SELF, status=ValidationStatus.NONE, validated_at=None):
        return add_skill(db, user_id, skill_id, source, status, validated_at)
    return _make


@pytest.fixture
def failing_hooks():
    return FailingHooks()
