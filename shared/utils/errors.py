"""
Domain Errors

Every error carries a machine-readable code and the HTTP status the API
renders it with. Guard rejections are not errors; see
services.readiness_service.guard.
"""

from enum import Enum
from typing import Any, TypeVar

E = TypeVar("E", bound=Enum)


class ReadinessError(Exception):
    """Base class for all domain errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str, *, code: str | None = None, **details: Any):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


# =============================================================================
# Input errors (4xx, no side effects)
# =============================================================================

class InvalidInputError(ReadinessError):
    code = "INVALID_INPUT"
    status_code = 400


class NotFoundError(ReadinessError):
    code = "NOT_FOUND"
    status_code = 404


class ForbiddenError(ReadinessError):
    code = "FORBIDDEN"
    status_code = 403


class CalculationInProgressError(ReadinessError):
    """Another calculation holds the (user, category) lock."""

    code = "CALCULATION_IN_PROGRESS"
    status_code = 409


# =============================================================================
# Data-integrity errors (administrative misconfiguration, not user mistakes)
# =============================================================================

class DataIntegrityError(ReadinessError):
    code = "DATA_INTEGRITY_ERROR"
    status_code = 500


class NoBenchmarkSkillsError(DataIntegrityError):
    code = "NO_BENCHMARK_SKILLS"

    def __init__(self, category_id: int):
        super().__init__(
            f"Category {category_id} has no benchmark skills configured",
            category_id=category_id,
        )


# =============================================================================
# Input helpers
# =============================================================================

def require_id(value: Any, name: str) -> int:
    """Return value if it is a positive integer id, else raise INVALID_INPUT."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"{name} must be a positive integer", field=name)
    return value


def coerce_enum(enum_cls: type[E], value: Any, name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidInputError(f"Invalid {name}: {value}", field=name) from None
