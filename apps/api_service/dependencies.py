"""
FastAPI dependency providers.

Every service gets its session, notification hooks, lock and clock from
here so tests can swap any of them with app.dependency_overrides.
"""

from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from shared.db.session import get_session
from shared.utils.locks import CalculationLock, get_calculation_lock
from shared.utils.notify import NotificationHooks
from shared.utils.timeutil import utcnow
from services.ledger_service.service import SkillLedgerService
from services.readiness_service.service import ReadinessService
from services.role_service.service import RoleSelectionService
from services.roadmap_service.service import RoadmapService
from services.validation_service.service import MentorValidationService
from workers.notification_worker.triggers import get_notification_hooks


def get_hooks() -> NotificationHooks:
    return get_notification_hooks()


def get_lock() -> CalculationLock:
    return get_calculation_lock()


def get_clock() -> Callable[[], datetime]:
    return utcnow


def get_roadmap_service(
    db: Session = Depends(get_session),
    hooks: NotificationHooks = Depends(get_hooks),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RoadmapService:
    return RoadmapService(db, hooks=hooks, clock=clock)


def get_readiness_service(
    db: Session = Depends(get_session),
    hooks: NotificationHooks = Depends(get_hooks),
    lock: CalculationLock = Depends(get_lock),
    clock: Callable[[], datetime] = Depends(get_clock),
    roadmaps: RoadmapService = Depends(get_roadmap_service),
) -> ReadinessService:
    return ReadinessService(db, hooks=hooks, lock=lock, clock=clock, roadmaps=roadmaps)


def get_validation_service(
    db: Session = Depends(get_session),
    hooks: NotificationHooks = Depends(get_hooks),
    clock: Callable[[], datetime] = Depends(get_clock),
    readiness: ReadinessService = Depends(get_readiness_service),
) -> MentorValidationService:
    return MentorValidationService(db, hooks=hooks, readiness=readiness, clock=clock)


def get_role_service(
    db: Session = Depends(get_session),
    hooks: NotificationHooks = Depends(get_hooks),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RoleSelectionService:
    return RoleSelectionService(db, hooks=hooks, clock=clock)


def get_ledger_service(
    db: Session = Depends(get_session),
    hooks: NotificationHooks = Depends(get_hooks),
) -> SkillLedgerService:
    return SkillLedgerService(db, hooks=hooks)
