"""
Role Selection API Router

Target role reads and switches.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from apps.api_service.dependencies import get_role_service
from shared.utils.timeutil import as_utc
from services.role_service.service import RoleSelectionService

router = APIRouter()


# =============================================================================
# Request / Response Models
# =============================================================================

class ChangeRoleRequest(BaseModel):
    user_id: int
    new_role_id: int
    changed_by: str = "self"


class TargetRoleResponse(BaseModel):
    request_id: str
    user_id: int
    has_target_role: bool
    role_id: Optional[int] = None
    role_name: Optional[str] = None
    description: Optional[str] = None
    set_at: Optional[datetime] = None
    set_by: Optional[str] = None


class AvailableRoleModel(BaseModel):
    role_id: int
    name: str
    description: Optional[str] = None
    skill_count: int
    required_count: int

    class Config:
        from_attributes = True


class AvailableRolesResponse(BaseModel):
    request_id: str
    count: int
    roles: list[AvailableRoleModel]


class ChangeRoleResponse(BaseModel):
    request_id: str
    success: bool
    changed: bool
    message: str
    user_id: int
    previous_role_id: Optional[int] = None
    new_role_id: int
    new_role_name: str
    readiness_score_at_change: Optional[int] = None
    roadmaps_cleared: int


class RoleChangeModel(BaseModel):
    previous_role_id: Optional[int] = None
    new_role_id: int
    changed_by: str
    readiness_score_at_change: Optional[int] = None
    changed_at: datetime


class RoleHistoryResponse(BaseModel):
    request_id: str
    user_id: int
    count: int
    history: list[RoleChangeModel]


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/target-role/{user_id}", response_model=TargetRoleResponse)
def get_target_role(
    user_id: int,
    request: Request,
    service: RoleSelectionService = Depends(get_role_service),
) -> TargetRoleResponse:
    """Current target role of a user."""
    target = service.get_target_role(user_id)
    return TargetRoleResponse(
        request_id=request.state.request_id,
        user_id=target.user_id,
        has_target_role=target.has_target_role,
        role_id=target.role_id,
        role_name=target.role_name,
        description=target.description,
        set_at=target.set_at,
        set_by=target.set_by,
    )


@router.get("/available-roles", response_model=AvailableRolesResponse)
def available_roles(
    request: Request,
    service: RoleSelectionService = Depends(get_role_service),
) -> AvailableRolesResponse:
    """Active roles with their benchmark sizes."""
    roles = service.available_roles()
    return AvailableRolesResponse(
        request_id=request.state.request_id,
        count=len(roles),
        roles=[AvailableRoleModel.model_validate(role) for role in roles],
    )


@router.post("/change-role", response_model=ChangeRoleResponse)
def change_role(
    body: ChangeRoleRequest,
    request: Request,
    service: RoleSelectionService = Depends(get_role_service),
) -> ChangeRoleResponse:
    """
    Switch target role.

    Clears every saved roadmap of the user; readiness history is kept.
    """
    change = service.change_role(body.user_id, body.new_role_id, body.changed_by)
    return ChangeRoleResponse(
        request_id=request.state.request_id,
        success=True,
        changed=change.changed,
        message=(
            "Target role updated successfully"
            if change.changed
            else "Already targeting this role"
        ),
        user_id=change.user_id,
        previous_role_id=change.previous_role_id,
        new_role_id=change.new_role_id,
        new_role_name=change.new_role_name,
        readiness_score_at_change=change.readiness_score_at_change,
        roadmaps_cleared=change.roadmaps_cleared,
    )


@router.get("/role-history/{user_id}", response_model=RoleHistoryResponse)
def role_history(
    user_id: int,
    request: Request,
    service: RoleSelectionService = Depends(get_role_service),
) -> RoleHistoryResponse:
    """Role switches, newest first."""
    history = service.role_history(user_id)
    return RoleHistoryResponse(
        request_id=request.state.request_id,
        user_id=user_id,
        count=len(history),
        history=[
            RoleChangeModel(
                previous_role_id=row.previous_role_id,
                new_role_id=row.new_role_id,
                changed_by=row.changed_by,
                readiness_score_at_change=row.readiness_score_at_change,
                changed_at=as_utc(row.changed_at),
            )
            for row in history
        ],
    )
