"""
Profile Models

- UserProfile: Resolves a person's current target category
- RoleChangeHistory: Read-only trail of target-role switches
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.models.base import Base
from shared.models.skill import Category


class UserProfile(Base):
    """
    Profile slice the engine needs.

    The scoring category always comes from here, never from the caller.
    """

    __tablename__ = "user_profile"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    target_category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category.category_id"),
        nullable=True,
    )
    target_role_set_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    target_role_set_by: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Relationships
    target_category: Mapped[Category | None] = relationship()


class RoleChangeHistory(Base):
    """One row per target-role switch."""

    __tablename__ = "role_change_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_role_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category.category_id"),
        nullable=True,
    )
    new_role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("category.category_id"),
        nullable=False,
    )
    changed_by: Mapped[str] = mapped_column(String(32), nullable=False, default="self")
    readiness_score_at_change: Mapped[int | None] = mapped_column(Integer, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_role_change_history_user", "user_id", "changed_at"),
    )
