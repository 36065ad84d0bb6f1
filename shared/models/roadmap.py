"""
Roadmap Models

- Roadmap: Immutable snapshot of one roadmap generation
- RoadmapItem: Ranked, explainable action within a snapshot
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.models.base import Base, enum_column
from shared.models.enums import Confidence, Priority, RoadmapCategory, RoadmapRule
from shared.models.skill import Category


class Roadmap(Base):
    """
    Roadmap snapshot tied to the readiness calculation that produced it.

    Regenerating for the same readiness_id adds a new row; rows are never
    edited. Changing target role deletes every snapshot of the user.
    """

    __tablename__ = "roadmap"

    roadmap_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    role_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("category.category_id"),
        nullable=False,
    )
    readiness_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("readiness_score.readiness_id"),
        nullable=False,
    )
    readiness_score: Mapped[int] = mapped_column(Integer, nullable=False)  # percentage
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    high_priority_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    medium_priority_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    low_priority_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Relationships
    items: Mapped[list["RoadmapItem"]] = relationship(
        back_populates="roadmap",
        cascade="all, delete-orphan",
        order_by="RoadmapItem.rank",
    )
    role: Mapped[Category] = relationship()

    __table_args__ = (
        Index("ix_roadmap_user", "user_id", "generated_at"),
        Index("ix_roadmap_readiness", "readiness_id"),
    )


class RoadmapItem(Base):
    """One roadmap entry. rank is dense 1..N by non-increasing priority_score."""

    __tablename__ = "roadmap_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    roadmap_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("roadmap.roadmap_id", ondelete="CASCADE"),
        nullable=False,
    )
    skill_id: Mapped[int] = mapped_column(Integer, nullable=False)
    skill_name: Mapped[str] = mapped_column(String(255), nullable=False)
    priority: Mapped[Priority] = mapped_column(enum_column(Priority, 8), nullable=False)
    category: Mapped[RoadmapCategory] = mapped_column(
        enum_column(RoadmapCategory, 16),
        nullable=False,
    )
    confidence: Mapped[Confidence] = mapped_column(enum_column(Confidence, 16), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    priority_score: Mapped[int] = mapped_column(Integer, nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    rule_applied: Mapped[RoadmapRule] = mapped_column(
        enum_column(RoadmapRule, 40),
        nullable=False,
    )

    # Descriptive
    current_level: Mapped[str] = mapped_column(String(20), nullable=False)
    target_level: Mapped[str] = mapped_column(String(20), nullable=False)
    level_gap: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    skill_weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    action_hint: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    roadmap: Mapped[Roadmap] = relationship(back_populates="items")
