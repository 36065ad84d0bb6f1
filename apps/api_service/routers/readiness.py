"""
Readiness API Router

Calculation (guarded, category from profile) and score history reads.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel

from apps.api_service.dependencies import get_readiness_service
from shared.models.enums import BreakdownStatus, Importance, SkillSource, TriggerSource
from services.readiness_service.guard import GuardReason
from services.readiness_service.service import (
    BreakdownItem,
    GuardRejection,
    ReadinessResult,
    ReadinessService,
)

router = APIRouter()


# =============================================================================
# Request / Response Models
# =============================================================================

class CalculateRequest(BaseModel):
    """Calculation request. The category is never taken from the caller."""
    user_id: int
    trigger_source: TriggerSource = TriggerSource.USER_EXPLICIT
    force: bool = False


class ScoreModel(BaseModel):
    readiness_id: int
    user_id: int
    category_id: int
    total_score: int
    max_possible_score: int
    percentage: int
    trigger_source: TriggerSource
    calculated_at: datetime

    class Config:
        from_attributes = True


class BreakdownItemModel(BaseModel):
    skill_id: int
    skill_name: str
    required_weight: int
    achieved_weight: int
    status: BreakdownStatus
    skill_source: Optional[SkillSource] = None
    importance: Importance

    class Config:
        from_attributes = True


class MissingSkillModel(BaseModel):
    skill_id: int
    skill_name: str

    class Config:
        from_attributes = True


class ValidationChangesModel(BaseModel):
    validated_count: int
    rejected_count: int

    class Config:
        from_attributes = True


class CalculationModel(BaseModel):
    """Either a written calculation or a guard rejection."""
    success: bool
    recalculated: bool
    reason: str
    error: Optional[str] = None
    message: Optional[str] = None
    hint: Optional[str] = None
    retry_after_seconds: Optional[int] = None
    readiness: ScoreModel
    breakdown: list[BreakdownItemModel] = []
    skills_by_source: dict[str, int] = {}
    missing_required_skills: list[MissingSkillModel] = []
    validation_changes: Optional[ValidationChangesModel] = None
    roadmap_id: Optional[int] = None


class CalculateResponse(CalculationModel):
    request_id: str


class LatestResponse(BaseModel):
    request_id: str
    readiness: ScoreModel


class HistoryResponse(BaseModel):
    request_id: str
    user_id: int
    category_id: int
    count: int
    history: list[ScoreModel]


class BreakdownResponse(BaseModel):
    request_id: str
    readiness: ScoreModel
    required: list[BreakdownItemModel]
    optional: list[BreakdownItemModel]
    trust: dict[str, int]


def _items(items: list[BreakdownItem]) -> list[BreakdownItemModel]:
    return [BreakdownItemModel.model_validate(item) for item in items]


def calculation_model(outcome: ReadinessResult | GuardRejection) -> CalculationModel:
    """Map a calculation outcome to its wire shape."""
    if isinstance(outcome, GuardRejection):
        return CalculationModel(
            success=True,
            recalculated=False,
            reason=outcome.reason.value,
            error=outcome.reason.value,
            message=outcome.message,
            hint=outcome.hint,
            retry_after_seconds=outcome.retry_after_seconds or None,
            readiness=ScoreModel.model_validate(outcome.last_score),
        )

    return CalculationModel(
        success=True,
        recalculated=True,
        reason=outcome.guard_reason.value,
        message="Readiness score calculated successfully",
        readiness=ScoreModel.model_validate(outcome.score),
        breakdown=_items(outcome.breakdown),
        skills_by_source=outcome.skills_by_source,
        missing_required_skills=[
            MissingSkillModel.model_validate(m) for m in outcome.missing_required_skills
        ],
        validation_changes=ValidationChangesModel.model_validate(outcome.validation_changes),
        roadmap_id=outcome.roadmap_id,
    )


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/calculate", response_model=CalculateResponse, status_code=201)
def calculate(
    body: CalculateRequest,
    request: Request,
    response: Response,
    service: ReadinessService = Depends(get_readiness_service),
) -> CalculateResponse:
    """
    Calculate readiness for the user's target role.

    - 201: new score written
    - 429: cooldown active, body carries the existing score
    - 200: no changes detected, body carries the existing score
    """
    outcome = service.calculate(body.user_id, body.trigger_source, force=body.force)

    if isinstance(outcome, GuardRejection):
        cooldown = outcome.reason == GuardReason.COOLDOWN_ACTIVE
        response.status_code = 429 if cooldown else 200
        if cooldown:
            response.headers["Retry-After"] = str(outcome.retry_after_seconds)

    return CalculateResponse(
        request_id=request.state.request_id,
        **calculation_model(outcome).model_dump(),
    )


@router.get("/latest/{user_id}/{category_id}", response_model=LatestResponse)
def get_latest(
    user_id: int,
    category_id: int,
    request: Request,
    service: ReadinessService = Depends(get_readiness_service),
) -> LatestResponse:
    """Current score for (user, category)."""
    score = service.get_latest(user_id, category_id)
    return LatestResponse(
        request_id=request.state.request_id,
        readiness=ScoreModel.model_validate(score),
    )


@router.get("/history/{user_id}/{category_id}", response_model=HistoryResponse)
def get_history(
    user_id: int,
    category_id: int,
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=200, description="Max rows"),
    service: ReadinessService = Depends(get_readiness_service),
) -> HistoryResponse:
    """Score history, newest first."""
    history = service.get_history(user_id, category_id, limit=limit)
    return HistoryResponse(
        request_id=request.state.request_id,
        user_id=user_id,
        category_id=category_id,
        count=len(history),
        history=[ScoreModel.model_validate(s) for s in history],
    )


@router.get("/breakdown/{readiness_id}", response_model=BreakdownResponse)
def get_breakdown(
    readiness_id: int,
    request: Request,
    service: ReadinessService = Depends(get_readiness_service),
) -> BreakdownResponse:
    """Frozen breakdown split into required / optional with trust counts."""
    view = service.get_breakdown(readiness_id)
    return BreakdownResponse(
        request_id=request.state.request_id,
        readiness=ScoreModel.model_validate(view.score),
        required=_items(view.required),
        optional=_items(view.optional),
        trust=view.trust,
    )
