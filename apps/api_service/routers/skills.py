"""
Skills API Router

Skill ledger reads and per-source resubmission.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from apps.api_service.dependencies import get_ledger_service
from shared.models.enums import SkillLevel, SkillSource, ValidationStatus
from shared.utils.timeutil import as_utc
from services.ledger_service.service import SkillLedgerService

router = APIRouter()


# =============================================================================
# Request / Response Models
# =============================================================================

class SkillEntry(BaseModel):
    skill_id: int
    level: Optional[SkillLevel] = None


class ReplaceSkillsRequest(BaseModel):
    source: SkillSource
    skills: list[SkillEntry]


class LedgerEntryModel(BaseModel):
    skill_id: int
    skill_name: str
    source: SkillSource
    level: Optional[SkillLevel] = None
    validation_status: ValidationStatus
    validated_by: Optional[int] = None
    validated_at: Optional[datetime] = None
    validation_note: Optional[str] = None


class LedgerResponse(BaseModel):
    request_id: str
    user_id: int
    count: int
    skills: list[LedgerEntryModel]


class ReplaceSkillsResponse(BaseModel):
    request_id: str
    success: bool
    user_id: int
    source: SkillSource
    count: int


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/{user_id}", response_model=LedgerResponse)
def list_skills(
    user_id: int,
    request: Request,
    service: SkillLedgerService = Depends(get_ledger_service),
) -> LedgerResponse:
    """All ledger rows of a user."""
    rows = service.list_skills(user_id)
    return LedgerResponse(
        request_id=request.state.request_id,
        user_id=user_id,
        count=len(rows),
        skills=[
            LedgerEntryModel(
                skill_id=row.skill_id,
                skill_name=row.skill.name,
                source=row.source,
                level=row.level,
                validation_status=row.validation_status,
                validated_by=row.validated_by,
                validated_at=as_utc(row.validated_at),
                validation_note=row.validation_note,
            )
            for row in rows
        ],
    )


@router.put("/{user_id}", response_model=ReplaceSkillsResponse)
def replace_skills(
    user_id: int,
    body: ReplaceSkillsRequest,
    request: Request,
    service: SkillLedgerService = Depends(get_ledger_service),
) -> ReplaceSkillsResponse:
    """
    Replace every row of one source.

    Validated rows cannot be resubmitted; they come from mentor review.
    """
    count = service.replace_skills(
        user_id,
        body.source,
        [(entry.skill_id, entry.level) for entry in body.skills],
    )
    return ReplaceSkillsResponse(
        request_id=request.state.request_id,
        success=True,
        user_id=user_id,
        source=body.source,
        count=count,
    )
