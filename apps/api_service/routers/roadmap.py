"""
Roadmap API Router

Preview, top items, snapshot save and snapshot reads.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from apps.api_service.dependencies import get_roadmap_service
from shared.models import Roadmap
from shared.models.enums import (
    Confidence,
    Priority,
    RoadmapCategory,
    RoadmapRule,
    Severity,
    SkillSource,
    ValidationStatus,
)
from shared.utils.timeutil import as_utc
from services.roadmap_service.service import RoadmapService

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class RoadmapItemModel(BaseModel):
    rank: int
    skill_id: int
    skill_name: str
    priority: Priority
    category: RoadmapCategory
    category_label: str
    confidence: Confidence
    confidence_label: str
    reason: str
    priority_score: int
    rule_applied: RoadmapRule
    current_level: str
    target_level: str
    level_gap: int
    is_required: bool
    weight: int
    skill_source: Optional[SkillSource] = None
    action_hint: Optional[str] = None

    class Config:
        from_attributes = True


class SummaryModel(BaseModel):
    total_items: int
    by_priority: dict[str, int]
    by_category: dict[str, int]
    by_rule: dict[str, int]
    needs_immediate_action: int
    excluded_validated: int

    class Config:
        from_attributes = True


class RuleCountModel(BaseModel):
    rule: RoadmapRule
    description: str
    count: int

    class Config:
        from_attributes = True


class EdgeCaseModel(BaseModel):
    is_fully_ready: bool
    only_optional_gaps: bool
    has_pending_validation: bool
    pending_validation_count: int
    has_unvalidated_required: bool
    unvalidated_required_count: int
    message: Optional[str] = None
    severity: Optional[Severity] = None

    class Config:
        from_attributes = True


class RoadmapResponse(BaseModel):
    """Generated (not persisted) roadmap."""
    request_id: str
    readiness_id: int
    user_id: int
    role_id: int
    role_name: str
    current_score: int
    generated_at: datetime
    total_items: int
    is_truncated: bool
    items: list[RoadmapItemModel]
    summary: SummaryModel
    rules_applied: list[RuleCountModel]
    edge_case: EdgeCaseModel


class TopItem(BaseModel):
    rank: int
    skill_name: str
    priority: Priority
    category: str
    reason: str


class TopItemsResponse(BaseModel):
    request_id: str
    user_id: int
    role_name: str
    current_score: int
    total_items: int
    showing: int
    top_items: list[TopItem]


class SavedItemModel(BaseModel):
    rank: int
    skill_id: int
    skill_name: str
    priority: Priority
    category: RoadmapCategory
    confidence: Confidence
    reason: str
    priority_score: int
    rule_applied: RoadmapRule
    current_level: str
    target_level: str
    level_gap: int
    is_required: bool
    skill_weight: int
    action_hint: Optional[str] = None

    class Config:
        from_attributes = True


class SnapshotHeader(BaseModel):
    roadmap_id: int
    user_id: int
    role_id: int
    role_name: Optional[str] = None
    readiness_id: int
    readiness_score: int
    total_items: int
    high_priority_count: int
    medium_priority_count: int
    low_priority_count: int
    generated_at: datetime


class SnapshotResponse(SnapshotHeader):
    request_id: str
    items: list[SavedItemModel]


class SaveResponse(BaseModel):
    request_id: str
    success: bool
    message: str
    roadmap_id: int
    readiness_id: int
    total_items: int


class RoadmapHistoryResponse(BaseModel):
    request_id: str
    user_id: int
    count: int
    roadmaps: list[SnapshotHeader]


class SkillInputModel(BaseModel):
    skill_id: int
    skill_name: str
    is_required: bool
    weight: int
    validation_status: ValidationStatus
    skill_source: Optional[SkillSource] = None
    is_met: bool
    current_level: str
    target_level: str
    gap_points: int

    class Config:
        from_attributes = True


class InputResponse(BaseModel):
    """Raw generator input, for diagnostics."""
    request_id: str
    readiness_id: int
    user_id: int
    role_id: int
    role_name: str
    current_score: int
    calculated_at: datetime
    skills: list[SkillInputModel]
    summary: dict[str, int]


def _header(roadmap: Roadmap) -> dict:
    return dict(
        roadmap_id=roadmap.roadmap_id,
        user_id=roadmap.user_id,
        role_id=roadmap.role_id,
        role_name=roadmap.role.category_name if roadmap.role else None,
        readiness_id=roadmap.readiness_id,
        readiness_score=roadmap.readiness_score,
        total_items=roadmap.total_items,
        high_priority_count=roadmap.high_priority_count,
        medium_priority_count=roadmap.medium_priority_count,
        low_priority_count=roadmap.low_priority_count,
        generated_at=as_utc(roadmap.generated_at),
    )


def _snapshot(roadmap: Roadmap, request_id: str) -> SnapshotResponse:
    return SnapshotResponse(
        request_id=request_id,
        items=[SavedItemModel.model_validate(item) for item in roadmap.items],
        **_header(roadmap),
    )


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/generate/{user_id}", response_model=RoadmapResponse)
def generate_roadmap(
    user_id: int,
    request: Request,
    role_id: Optional[int] = Query(None, description="Role; defaults to the profile target"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Max items"),
    service: RoadmapService = Depends(get_roadmap_service),
) -> RoadmapResponse:
    """Generate a roadmap preview from the latest readiness calculation."""
    preview = service.preview(user_id, role_id, limit=limit)
    roadmap = preview.roadmap

    return RoadmapResponse(
        request_id=request.state.request_id,
        readiness_id=roadmap.readiness_id,
        user_id=roadmap.user_id,
        role_id=roadmap.role_id,
        role_name=roadmap.role_name,
        current_score=roadmap.current_score,
        generated_at=roadmap.generated_at,
        total_items=roadmap.summary.total_items,
        is_truncated=preview.is_truncated,
        items=[RoadmapItemModel.model_validate(item) for item in preview.items],
        summary=SummaryModel.model_validate(roadmap.summary),
        rules_applied=[RuleCountModel.model_validate(rule) for rule in roadmap.rules_applied],
        edge_case=EdgeCaseModel.model_validate(roadmap.edge_case),
    )


@router.get("/top/{user_id}", response_model=TopItemsResponse)
def top_items(
    user_id: int,
    request: Request,
    role_id: Optional[int] = Query(None),
    count: int = Query(5, ge=1, le=20, description="Number of items"),
    service: RoadmapService = Depends(get_roadmap_service),
) -> TopItemsResponse:
    """Highest-priority roadmap items."""
    preview = service.top(user_id, role_id, count=count)

    return TopItemsResponse(
        request_id=request.state.request_id,
        user_id=user_id,
        role_name=preview.roadmap.role_name,
        current_score=preview.roadmap.current_score,
        total_items=preview.roadmap.summary.total_items,
        showing=len(preview.items),
        top_items=[
            TopItem(
                rank=item.rank,
                skill_name=item.skill_name,
                priority=item.priority,
                category=item.category_label,
                reason=item.reason,
            )
            for item in preview.items
        ],
    )


@router.post("/save/{user_id}", response_model=SaveResponse, status_code=201)
def save_roadmap(
    user_id: int,
    request: Request,
    role_id: Optional[int] = Query(None),
    service: RoadmapService = Depends(get_roadmap_service),
) -> SaveResponse:
    """Persist a roadmap snapshot for the latest calculation."""
    snapshot = service.save(user_id, role_id)
    return SaveResponse(
        request_id=request.state.request_id,
        success=True,
        message="Roadmap saved successfully",
        roadmap_id=snapshot.roadmap_id,
        readiness_id=snapshot.readiness_id,
        total_items=snapshot.total_items,
    )


@router.get("/saved/{roadmap_id}", response_model=SnapshotResponse)
def get_saved_roadmap(
    roadmap_id: int,
    request: Request,
    service: RoadmapService = Depends(get_roadmap_service),
) -> SnapshotResponse:
    """Saved snapshot by id."""
    return _snapshot(service.get_saved(roadmap_id), request.state.request_id)


@router.get("/latest/{user_id}", response_model=SnapshotResponse)
def get_latest_roadmap(
    user_id: int,
    request: Request,
    role_id: Optional[int] = Query(None),
    service: RoadmapService = Depends(get_roadmap_service),
) -> SnapshotResponse:
    """Most recent saved snapshot for the user."""
    return _snapshot(service.latest(user_id, role_id), request.state.request_id)


@router.get("/history/{user_id}", response_model=RoadmapHistoryResponse)
def roadmap_history(
    user_id: int,
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=50),
    service: RoadmapService = Depends(get_roadmap_service),
) -> RoadmapHistoryResponse:
    """Saved snapshot headers, newest first."""
    roadmaps = service.history(user_id, limit=limit)
    return RoadmapHistoryResponse(
        request_id=request.state.request_id,
        user_id=user_id,
        count=len(roadmaps),
        roadmaps=[SnapshotHeader(**_header(r)) for r in roadmaps],
    )


@router.get("/input/{user_id}", response_model=InputResponse)
def roadmap_input(
    user_id: int,
    request: Request,
    role_id: Optional[int] = Query(None),
    service: RoadmapService = Depends(get_roadmap_service),
) -> InputResponse:
    """Generator input contract, for verifying data before generation."""
    contract = service.load_input(user_id, role_id)
    return InputResponse(
        request_id=request.state.request_id,
        readiness_id=contract.readiness_id,
        user_id=contract.user_id,
        role_id=contract.role_id,
        role_name=contract.role_name,
        current_score=contract.current_score,
        calculated_at=contract.calculated_at,
        skills=[SkillInputModel.model_validate(s) for s in contract.skills],
        summary=asdict(contract.summary),
    )
