"""Shared models package."""

from shared.models.base import Base
from shared.models.notification import Notification
from shared.models.profile import RoleChangeHistory, UserProfile
from shared.models.readiness import ReadinessBreakdown, ReadinessScore
from shared.models.roadmap import Roadmap, RoadmapItem
from shared.models.skill import BenchmarkSkill, Category, Skill, UserSkill

__all__ = [
    "Base",
    "BenchmarkSkill",
    "Category",
    "Notification",
    "ReadinessBreakdown",
    "ReadinessScore",
    "Roadmap",
    "RoadmapItem",
    "RoleChangeHistory",
    "Skill",
    "UserProfile",
    "UserSkill",
]
