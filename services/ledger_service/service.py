"""
Skill Ledger Service

Person-facing ledger writes. Resubmitting a source replaces every row of
that source; mentor-validated rows are only written through mentor review.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.models import Skill, UserSkill
from shared.models.enums import REPLACEABLE_SOURCES, SkillLevel, SkillSource
from shared.utils.errors import InvalidInputError, NotFoundError, coerce_enum, require_id
from shared.utils.notify import NotificationHooks, NullNotificationHooks, fire
from services.readiness_service.stores import SkillLedger


class SkillLedgerService:
    def __init__(self, db: Session, hooks: NotificationHooks | None = None):
        self.db = db
        self.hooks = hooks or NullNotificationHooks()
        self.ledger = SkillLedger(db)

    def list_skills(self, user_id: int) -> list[UserSkill]:
        return self.ledger.list_for_user(require_id(user_id, "user_id"))

    def replace_skills(
        self,
        user_id: int,
        source: SkillSource | str,
        skills: list[tuple[int, SkillLevel | str | None]],
    ) -> int:
        """
        Replace all of the user's `source` rows with `skills`.

        Returns:
            Number of rows written

        Raises:
            InvalidInputError: Source cannot be replaced (validated) or bad ids
            NotFoundError: SKILL_NOT_FOUND for an unknown skill id
        """
        user_id = require_id(user_id, "user_id")
        source = coerce_enum(SkillSource, source, "source")
        if source not in REPLACEABLE_SOURCES:
            raise InvalidInputError(
                f"Skills from source '{source.value}' cannot be replaced",
                field="source",
            )

        entries = [
            (
                require_id(skill_id, "skill_id"),
                coerce_enum(SkillLevel, level, "level") if level is not None else None,
            )
            for skill_id, level in skills
        ]

        skill_ids = {skill_id for skill_id, _ in entries}
        if skill_ids:
            known = set(
                self.db.execute(
                    select(Skill.skill_id).where(Skill.skill_id.in_(skill_ids))
                ).scalars().all()
            )
            unknown = sorted(skill_ids - known)
            if unknown:
                raise NotFoundError(
                    "Unknown skill id(s)",
                    code="SKILL_NOT_FOUND",
                    skill_ids=unknown,
                )

        count = self.ledger.replace_skills(user_id, source, entries)
        fire(self.hooks.on_readiness_outdated, user_id)
        return count
