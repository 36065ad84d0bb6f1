"""
Mentor Validation Service

Second entry point into the pipeline: a mentor validates or rejects a
person's skill, which stamps the ledger, fires notification triggers and
(optionally) recalculates readiness with the cooldown bypassed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from shared.db.session import transaction
from shared.models import Skill, UserProfile, UserSkill
from shared.models.enums import (
    BypassReason,
    SkillLevel,
    SkillSource,
    TriggerSource,
    ValidationStatus,
)
from shared.utils.config import Settings, get_settings
from shared.utils.errors import ForbiddenError, InvalidInputError, NotFoundError, require_id
from shared.utils.logging import get_logger
from shared.utils.notify import NotificationHooks, NullNotificationHooks, fire
from shared.utils.timeutil import as_utc, utcnow
from services.readiness_service.stores import SkillLedger

if TYPE_CHECKING:
    from services.readiness_service.service import (
        GuardRejection,
        ReadinessResult,
        ReadinessService,
    )

logger = get_logger(__name__)

# Sources a mentor reviews
REVIEWABLE_SOURCES = (SkillSource.SELF, SkillSource.RESUME)
QUEUE_STATUSES = (ValidationStatus.NONE, ValidationStatus.PENDING)


@dataclass
class ValidationOutcome:
    user_id: int
    skill_id: int
    skill_name: str
    status: ValidationStatus
    validated_by: int
    validated_at: datetime
    note: str | None
    rows_updated: int
    recalculation: "ReadinessResult | GuardRejection | None" = None


@dataclass(frozen=True)
class QueueSkill:
    skill_id: int
    skill_name: str
    level: SkillLevel | None
    source: SkillSource
    validation_status: ValidationStatus
    skill_added_at: datetime | None


@dataclass
class QueueEntry:
    user_id: int
    target_role_id: int | None
    skills: list[QueueSkill] = field(default_factory=list)


@dataclass(frozen=True)
class MentorStats:
    mentor_id: int
    total: int
    validated: int
    rejected: int


class MentorValidationService:
    """
    Mentor review of ledger skills.

    Args:
        db: Database session
        hooks: Notification triggers
        readiness: Used for the automatic recalculation after a review
        settings: Defaults to get_settings()
        clock: Timestamp source for validated_at
    """

    def __init__(
        self,
        db: Session,
        hooks: NotificationHooks | None = None,
        readiness: "ReadinessService | None" = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.hooks = hooks or NullNotificationHooks()
        self.readiness = readiness
        self.settings = settings or get_settings()
        self.clock = clock
        self.ledger = SkillLedger(db)

    def validate(
        self,
        mentor_id: int,
        user_id: int,
        skill_id: int,
        note: str | None = None,
    ) -> ValidationOutcome:
        return self._review(mentor_id, user_id, skill_id, ValidationStatus.VALIDATED, note)

    def reject(
        self,
        mentor_id: int,
        user_id: int,
        skill_id: int,
        note: str | None,
    ) -> ValidationOutcome:
        """
        Reject a skill. A reason of at least rejection_note_min_length
        characters is mandatory.
        """
        min_length = self.settings.rejection_note_min_length
        if note is None or len(note.strip()) < min_length:
            raise InvalidInputError(
                f"A reason (at least {min_length} characters) is required when rejecting a skill",
                code="NOTE_REQUIRED",
            )
        return self._review(mentor_id, user_id, skill_id, ValidationStatus.REJECTED, note.strip())

    def _review(
        self,
        mentor_id: int,
        user_id: int,
        skill_id: int,
        status: ValidationStatus,
        note: str | None,
    ) -> ValidationOutcome:
        mentor_id = require_id(mentor_id, "mentor_id")
        user_id = require_id(user_id, "user_id")
        skill_id = require_id(skill_id, "skill_id")

        if mentor_id == user_id:
            raise ForbiddenError(
                "You cannot review your own skills",
                code="SELF_VALIDATION_NOT_ALLOWED",
            )

        rows = [
            row for row in self.ledger.rows_for_skill(user_id, skill_id)
            if row.source != SkillSource.DEMO
        ]
        if not rows:
            raise NotFoundError(
                "Skill not found for this user",
                code="SKILL_NOT_FOUND",
                user_id=user_id,
                skill_id=skill_id,
            )

        skill_name = rows[0].skill.name
        validated_at = self.clock()

        with transaction(self.db):
            for row in rows:
                row.validation_status = status
                row.validated_by = mentor_id
                row.validated_at = validated_at
                row.validation_note = note

        logger.info(
            "Skill reviewed",
            mentor_id=mentor_id,
            user_id=user_id,
            skill_id=skill_id,
            status=status.value,
            rows_updated=len(rows),
        )

        validated = 1 if status == ValidationStatus.VALIDATED else 0
        fire(self.hooks.on_mentor_validation, user_id, validated, 1 - validated)
        fire(self.hooks.on_readiness_outdated, user_id)

        return ValidationOutcome(
            user_id=user_id,
            skill_id=skill_id,
            skill_name=skill_name,
            status=status,
            validated_by=mentor_id,
            validated_at=validated_at,
            note=note,
            rows_updated=len(rows),
            recalculation=self._recalculate(user_id),
        )

    def _recalculate(self, user_id: int) -> "ReadinessResult | GuardRejection | None":
        """Recalculate after a review. Failures are logged, never raised."""
        if not self.settings.auto_recalculate_on_validation or self.readiness is None:
            return None

        try:
            return self.readiness.calculate(
                user_id,
                trigger_source=TriggerSource.VALIDATION_REVIEW,
                bypass_reason=BypassReason.VALIDATION_UPDATE,
            )
        except Exception as e:
            logger.warning(
                "Recalculation after review failed",
                user_id=user_id,
                error=str(e),
            )
            return None

    def queue(self, mentor_id: int, category_id: int | None = None) -> list[QueueEntry]:
        """
        Skills awaiting review, grouped by person, newest first.

        The mentor's own skills are never listed. With category_id, only
        skills of that category or people targeting it are included.
        """
        mentor_id = require_id(mentor_id, "mentor_id")

        query = (
            select(UserSkill, Skill.name, UserProfile.target_category_id)
            .join(Skill, Skill.skill_id == UserSkill.skill_id)
            .outerjoin(UserProfile, UserProfile.user_id == UserSkill.user_id)
            .where(
                UserSkill.user_id != mentor_id,
                UserSkill.source.in_(REVIEWABLE_SOURCES),
                UserSkill.validation_status.in_(QUEUE_STATUSES),
            )
        )
        if category_id is not None:
            query = query.where(
                or_(
                    Skill.category_id == category_id,
                    UserProfile.target_category_id == category_id,
                )
            )
        query = query.order_by(UserSkill.created_at.desc(), UserSkill.id.desc())

        entries: dict[int, QueueEntry] = {}
        for row, skill_name, target_role_id in self.db.execute(query).all():
            entry = entries.setdefault(
                row.user_id,
                QueueEntry(user_id=row.user_id, target_role_id=target_role_id),
            )
            entry.skills.append(
                QueueSkill(
                    skill_id=row.skill_id,
                    skill_name=skill_name,
                    level=row.level,
                    source=row.source,
                    validation_status=row.validation_status,
                    skill_added_at=as_utc(row.created_at),
                )
            )
        return list(entries.values())

    def stats(self, mentor_id: int) -> MentorStats:
        """Reviews by this mentor, counted per (person, skill)."""
        mentor_id = require_id(mentor_id, "mentor_id")

        rows = self.db.execute(
            select(UserSkill.user_id, UserSkill.skill_id, UserSkill.validation_status)
            .where(UserSkill.validated_by == mentor_id)
            .distinct()
        ).all()

        validated = {(r.user_id, r.skill_id) for r in rows if r.validation_status == ValidationStatus.VALIDATED}
        rejected = {(r.user_id, r.skill_id) for r in rows if r.validation_status == ValidationStatus.REJECTED}

        return MentorStats(
            mentor_id=mentor_id,
            total=len(validated | rejected),
            validated=len(validated),
            rejected=len(rejected),
        )
