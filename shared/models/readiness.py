"""
Readiness Models

- ReadinessScore: Append-only score snapshot per (user, category)
- ReadinessBreakdown: Frozen per-skill detail backing one score
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.models.base import Base, enum_column
from shared.models.enums import BreakdownStatus, SkillSource, TriggerSource


class ReadinessScore(Base):
    """
    One readiness calculation.

    Never mutated after creation. The "current" score for a (user, category)
    is the row with the latest calculated_at.

    Invariants (with its breakdown):
    - sum(achieved_weight) == total_score
    - sum(required_weight) == max_possible_score
    """

    __tablename__ = "readiness_score"

    readiness_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("category.category_id"),
        nullable=False,
    )
    total_score: Mapped[int] = mapped_column(Integer, nullable=False)
    max_possible_score: Mapped[int] = mapped_column(Integer, nullable=False)
    trigger_source: Mapped[TriggerSource] = mapped_column(
        enum_column(TriggerSource, 32),
        nullable=False,
        default=TriggerSource.USER_EXPLICIT,
    )
    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Relationships
    breakdown: Mapped[list["ReadinessBreakdown"]] = relationship(
        back_populates="readiness",
        cascade="all, delete-orphan",
        order_by="ReadinessBreakdown.id",
    )

    __table_args__ = (
        Index("ix_readiness_score_user_category", "user_id", "category_id", "calculated_at"),
    )


class ReadinessBreakdown(Base):
    """Per benchmark skill detail, frozen at calculation time."""

    __tablename__ = "readiness_breakdown"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    readiness_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("readiness_score.readiness_id", ondelete="CASCADE"),
        nullable=False,
    )
    skill_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("skill.skill_id"),
        nullable=False,
    )
    required_weight: Mapped[int] = mapped_column(Integer, nullable=False)
    achieved_weight: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[BreakdownStatus] = mapped_column(
        enum_column(BreakdownStatus, 16),
        nullable=False,
    )
    skill_source: Mapped[SkillSource | None] = mapped_column(
        enum_column(SkillSource, 16),
        nullable=True,
    )  # ledger source at calculation time, null when missing

    # Relationships
    readiness: Mapped[ReadinessScore] = relationship(back_populates="breakdown")

    __table_args__ = (
        Index("ix_readiness_breakdown_readiness", "readiness_id"),
    )
