"""
Closed vocabularies for ledger, readiness and roadmap status fields.
"""

from enum import Enum


class SkillLevel(str, Enum):
    """Self-reported proficiency. Descriptive only; not used in scoring."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class SkillSource(str, Enum):
    SELF = "self"
    RESUME = "resume"
    VALIDATED = "validated"
    DEMO = "demo"


# Sources that count toward a real readiness score
SCORING_SOURCES = (SkillSource.SELF, SkillSource.RESUME, SkillSource.VALIDATED)

# Sources a person can resubmit wholesale
REPLACEABLE_SOURCES = (SkillSource.SELF, SkillSource.RESUME, SkillSource.DEMO)


class ValidationStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"


class Importance(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"


class TriggerSource(str, Enum):
    USER_EXPLICIT = "user_explicit"
    SYSTEM = "system"
    VALIDATION_REVIEW = "validation_review"
    DEMO = "demo"


class BypassReason(str, Enum):
    VALIDATION_UPDATE = "validation_update"


class BreakdownStatus(str, Enum):
    MET = "met"
    MISSING = "missing"


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class RoadmapCategory(str, Enum):
    REJECTED = "rejected"
    REQUIRED_GAP = "required_gap"
    STRENGTHEN = "strengthen"
    OPTIONAL_GAP = "optional_gap"


class Confidence(str, Enum):
    VALIDATED = "validated"
    UNVALIDATED = "unvalidated"
    REJECTED = "rejected"


class RoadmapRule(str, Enum):
    """The five roadmap rules, in precedence order."""
    VALIDATED_EXCLUDED = "RULE_1_VALIDATED_EXCLUDED"
    REJECTED = "RULE_2_REJECTED"
    REQUIRED_MISSING = "RULE_3_REQUIRED_MISSING"
    UNVALIDATED_REQUIRED = "RULE_4_UNVALIDATED_REQUIRED"
    OPTIONAL_MISSING = "RULE_5_OPTIONAL_MISSING"


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"


class NotificationType(str, Enum):
    READINESS_OUTDATED = "readiness_outdated"
    MENTOR_VALIDATION = "mentor_validation"
    ROADMAP_UPDATED = "roadmap_updated"
    ROLE_CHANGED = "role_changed"
