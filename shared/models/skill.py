"""
Skill Models

- Category: Target role a person can aim for
- Skill: Canonical skill reference data
- BenchmarkSkill: What a category requires (weight + importance)
- UserSkill: Skill ledger entry, one per (user, skill, source)
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.models.base import Base, enum_column
from shared.models.enums import Importance, SkillLevel, SkillSource, ValidationStatus


class Category(Base):
    """Target role / category."""

    __tablename__ = "category"

    category_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    skills: Mapped[list["Skill"]] = relationship(back_populates="category")
    benchmark_skills: Mapped[list["BenchmarkSkill"]] = relationship(back_populates="category")


class Skill(Base):
    """Canonical skill. Immutable reference data."""

    __tablename__ = "skill"

    skill_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category.category_id"),
        nullable=True,
    )

    # Relationships
    category: Mapped[Category | None] = relationship(back_populates="skills")


class BenchmarkSkill(Base):
    """
    A (category, skill, weight, importance) requirement.

    Maintained by administrators; read-only to the scoring engine.
    Inactive rows are ignored.
    """

    __tablename__ = "benchmark_skill"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("category.category_id"),
        nullable=False,
    )
    skill_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("skill.skill_id"),
        nullable=False,
    )
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    importance: Mapped[Importance] = mapped_column(
        enum_column(Importance, 16),
        nullable=False,
        default=Importance.OPTIONAL,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    category: Mapped[Category] = relationship(back_populates="benchmark_skills")
    skill: Mapped[Skill] = relationship()

    __table_args__ = (
        UniqueConstraint("category_id", "skill_id", name="uq_benchmark_skill"),
    )


class UserSkill(Base):
    """
    Skill ledger entry.

    The same skill may appear once per source (self-declared, resume-derived,
    validated, demo). Validation transitions:
    - none / pending: awaiting mentor review
    - validated: mentor confirmed (stamps validated_by / validated_at)
    - rejected: mentor refused; validation_note carries the reason
    """

    __tablename__ = "user_skill"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    skill_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("skill.skill_id"),
        nullable=False,
    )
    source: Mapped[SkillSource] = mapped_column(
        enum_column(SkillSource, 16),
        nullable=False,
        default=SkillSource.SELF,
    )
    level: Mapped[SkillLevel | None] = mapped_column(
        enum_column(SkillLevel, 16),
        nullable=True,
    )
    validation_status: Mapped[ValidationStatus] = mapped_column(
        enum_column(ValidationStatus, 16),
        nullable=False,
        default=ValidationStatus.NONE,
    )
    validated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    validated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    validation_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    skill: Mapped[Skill] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", "source", name="uq_user_skill_source"),
        Index("ix_user_skill_user", "user_id"),
        Index("ix_user_skill_validated_by", "validated_by"),
    )
