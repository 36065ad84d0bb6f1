"""
Mentor Validation API Router

Validate / reject a person's skill, review queue and mentor stats.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from apps.api_service.dependencies import get_validation_service
from apps.api_service.routers.readiness import CalculationModel, calculation_model
from shared.models.enums import SkillLevel, SkillSource, ValidationStatus
from services.validation_service.service import MentorValidationService, ValidationOutcome

router = APIRouter()


# =============================================================================
# Request / Response Models
# =============================================================================

class ReviewRequest(BaseModel):
    mentor_id: int
    user_id: int
    skill_id: int
    note: Optional[str] = None


class ReviewResponse(BaseModel):
    request_id: str
    success: bool
    message: str
    user_id: int
    skill_id: int
    skill_name: str
    status: ValidationStatus
    validated_by: int
    validated_at: datetime
    note: Optional[str] = None
    rows_updated: int
    recalculation: Optional[CalculationModel] = None


class QueueSkillModel(BaseModel):
    skill_id: int
    skill_name: str
    level: Optional[SkillLevel] = None
    source: SkillSource
    validation_status: ValidationStatus
    skill_added_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QueueEntryModel(BaseModel):
    user_id: int
    target_role_id: Optional[int] = None
    skills: list[QueueSkillModel]

    class Config:
        from_attributes = True


class QueueResponse(BaseModel):
    request_id: str
    total_skills: int
    total_users: int
    queue: list[QueueEntryModel]


class StatsResponse(BaseModel):
    request_id: str
    mentor_id: int
    total: int
    validated: int
    rejected: int


def _review_response(outcome: ValidationOutcome, request_id: str) -> ReviewResponse:
    verb = "Validated" if outcome.status == ValidationStatus.VALIDATED else "Rejected"
    return ReviewResponse(
        request_id=request_id,
        success=True,
        message=f"{verb}: {outcome.skill_name}",
        user_id=outcome.user_id,
        skill_id=outcome.skill_id,
        skill_name=outcome.skill_name,
        status=outcome.status,
        validated_by=outcome.validated_by,
        validated_at=outcome.validated_at,
        note=outcome.note,
        rows_updated=outcome.rows_updated,
        recalculation=(
            calculation_model(outcome.recalculation)
            if outcome.recalculation is not None
            else None
        ),
    )


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/validate", response_model=ReviewResponse)
def validate_skill(
    body: ReviewRequest,
    request: Request,
    service: MentorValidationService = Depends(get_validation_service),
) -> ReviewResponse:
    """Mark a skill as validated by a mentor."""
    outcome = service.validate(body.mentor_id, body.user_id, body.skill_id, body.note)
    return _review_response(outcome, request.state.request_id)


@router.post("/reject", response_model=ReviewResponse)
def reject_skill(
    body: ReviewRequest,
    request: Request,
    service: MentorValidationService = Depends(get_validation_service),
) -> ReviewResponse:
    """Reject a skill. A reason of at least 10 characters is required."""
    outcome = service.reject(body.mentor_id, body.user_id, body.skill_id, body.note)
    return _review_response(outcome, request.state.request_id)


@router.get("/queue/{mentor_id}", response_model=QueueResponse)
def validation_queue(
    mentor_id: int,
    request: Request,
    category_id: Optional[int] = Query(None, description="Filter by skill or target category"),
    service: MentorValidationService = Depends(get_validation_service),
) -> QueueResponse:
    """Skills awaiting review, grouped by person."""
    queue = service.queue(mentor_id, category_id)
    return QueueResponse(
        request_id=request.state.request_id,
        total_skills=sum(len(entry.skills) for entry in queue),
        total_users=len(queue),
        queue=[QueueEntryModel.model_validate(entry) for entry in queue],
    )


@router.get("/stats/{mentor_id}", response_model=StatsResponse)
def mentor_stats(
    mentor_id: int,
    request: Request,
    service: MentorValidationService = Depends(get_validation_service),
) -> StatsResponse:
    """Review counts for a mentor."""
    stats = service.stats(mentor_id)
    return StatsResponse(
        request_id=request.state.request_id,
        mentor_id=stats.mentor_id,
        total=stats.total,
        validated=stats.validated,
        rejected=stats.rejected,
    )
