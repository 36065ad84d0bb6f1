"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-09-14

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Category table
    op.create_table(
        "category",
        sa.Column("category_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("category_name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    # Skill table
    op.create_table(
        "skill",
        sa.Column("skill_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("category.category_id"), nullable=True),
    )

    # Benchmark table
    op.create_table(
        "benchmark_skill",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("category.category_id"), nullable=False),
        sa.Column("skill_id", sa.Integer, sa.ForeignKey("skill.skill_id"), nullable=False),
        sa.Column("weight", sa.Integer, nullable=False, server_default="1"),
        sa.Column("importance", sa.String(16), nullable=False, server_default="optional"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("category_id", "skill_id", name="uq_benchmark_skill"),
    )

    # Skill ledger table
    op.create_table(
        "user_skill",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False),
        sa.Column("skill_id", sa.Integer, sa.ForeignKey("skill.skill_id"), nullable=False),
        sa.Column("source", sa.String(16), nullable=False, server_default="self"),
        sa.Column("level", sa.String(16), nullable=True),
        sa.Column("validation_status", sa.String(16), nullable=False, server_default="none"),
        sa.Column("validated_by", sa.Integer, nullable=True),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validation_note", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "skill_id", "source", name="uq_user_skill_source"),
    )
    op.create_index("ix_user_skill_user", "user_skill", ["user_id"])
    op.create_index("ix_user_skill_validated_by", "user_skill", ["validated_by"])

    # Profile table
    op.create_table(
        "user_profile",
        sa.Column("user_id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("target_category_id", sa.Integer, sa.ForeignKey("category.category_id"), nullable=True),
        sa.Column("target_role_set_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("target_role_set_by", sa.String(32), nullable=True),
    )

    # Role change history table
    op.create_table(
        "role_change_history",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False),
        sa.Column("previous_role_id", sa.Integer, sa.ForeignKey("category.category_id"), nullable=True),
        sa.Column("new_role_id", sa.Integer, sa.ForeignKey("category.category_id"), nullable=False),
        sa.Column("changed_by", sa.String(32), nullable=False, server_default="self"),
        sa.Column("readiness_score_at_change", sa.Integer, nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_role_change_history_user", "role_change_history", ["user_id", "changed_at"])

    # Readiness score table (append-only)
    op.create_table(
        "readiness_score",
        sa.Column("readiness_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("category.category_id"), nullable=False),
        sa.Column("total_score", sa.Integer, nullable=False),
        sa.Column("max_possible_score", sa.Integer, nullable=False),
        sa.Column("trigger_source", sa.String(32), nullable=False, server_default="user_explicit"),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_readiness_score_user_category",
        "readiness_score",
        ["user_id", "category_id", "calculated_at"],
    )

    # Readiness breakdown table
    op.create_table(
        "readiness_breakdown",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "readiness_id",
            sa.Integer,
            sa.ForeignKey("readiness_score.readiness_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("skill_id", sa.Integer, sa.ForeignKey("skill.skill_id"), nullable=False),
        sa.Column("required_weight", sa.Integer, nullable=False),
        sa.Column("achieved_weight", sa.Integer, nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("skill_source", sa.String(16), nullable=True),
    )
    op.create_index("ix_readiness_breakdown_readiness", "readiness_breakdown", ["readiness_id"])

    # Roadmap snapshot table
    op.create_table(
        "roadmap",
        sa.Column("roadmap_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False),
        sa.Column("role_id", sa.Integer, sa.ForeignKey("category.category_id"), nullable=False),
        sa.Column("readiness_id", sa.Integer, sa.ForeignKey("readiness_score.readiness_id"), nullable=False),
        sa.Column("readiness_score", sa.Integer, nullable=False),
        sa.Column("total_items", sa.Integer, nullable=False, server_default="0"),
        sa.Column("high_priority_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("medium_priority_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("low_priority_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_roadmap_user", "roadmap", ["user_id", "generated_at"])
    op.create_index("ix_roadmap_readiness", "roadmap", ["readiness_id"])

    # Roadmap item table
    op.create_table(
        "roadmap_item",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "roadmap_id",
            sa.Integer,
            sa.ForeignKey("roadmap.roadmap_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("skill_id", sa.Integer, nullable=False),
        sa.Column("skill_name", sa.String(255), nullable=False),
        sa.Column("priority", sa.String(8), nullable=False),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("confidence", sa.String(16), nullable=False),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("priority_score", sa.Integer, nullable=False),
        sa.Column("rank", sa.Integer, nullable=False),
        sa.Column("rule_applied", sa.String(40), nullable=False),
        sa.Column("current_level", sa.String(20), nullable=False),
        sa.Column("target_level", sa.String(20), nullable=False),
        sa.Column("level_gap", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("skill_weight", sa.Integer, nullable=False, server_default="1"),
        sa.Column("action_hint", sa.Text, nullable=True),
    )
    op.create_index("ix_roadmap_item_roadmap", "roadmap_item", ["roadmap_id", "rank"])

    # Notification table
    op.create_table(
        "notification",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("action_url", sa.String(255), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notification_user_type", "notification", ["user_id", "type", "is_read"])


def downgrade() -> None:
    op.drop_table("notification")
    op.drop_table("roadmap_item")
    op.drop_table("roadmap")
    op.drop_table("readiness_breakdown")
    op.drop_table("readiness_score")
    op.drop_table("role_change_history")
    op.drop_table("user_profile")
    op.drop_table("user_skill")
    op.drop_table("benchmark_skill")
    op.drop_table("skill")
    op.drop_table("category")
