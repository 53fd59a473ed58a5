"""
Assignment endpoints: the team lead pick pool, pick/release, and the
administrator overrides for team lead and employee staffing.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedUser,
    require_admin,
    require_team_lead,
    require_team_lead_or_employee,
)
from app.core.config import Settings, get_settings
from app.core.database import get_session
from app.services import assignment as assignment_service
from app.services.projects import project_stats
from app.services.visibility import project_list_response, project_response
from trackhub_shared.schemas.common import ProjectCategory, ProjectPriority, ProjectStatus
from trackhub_shared.schemas.projects import (
    EmployeesAssign,
    ProjectListResponse,
    ProjectRelease,
    ProjectResponse,
    TeamLeadAssign,
)

router = APIRouter()


def _filters(status, priority, category, search) -> dict:
    return {
        "status": status.value if status else None,
        "priority": priority.value if priority else None,
        "category": category.value if category else None,
        "search": search,
    }


@router.get("/available", response_model=ProjectListResponse)
async def list_available_projects(
    status: Optional[ProjectStatus] = None,
    priority: Optional[ProjectPriority] = None,
    category: Optional[ProjectCategory] = None,
    search: Optional[str] = None,
    auth: AuthenticatedUser = Depends(require_team_lead),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Projects a team lead could pick right now."""
    aggregates = await assignment_service.list_available_projects(
        session, settings, **_filters(status, priority, category, search)
    )
    return project_list_response(aggregates, auth)


@router.get("/mine", response_model=ProjectListResponse)
async def list_my_projects(
    status: Optional[ProjectStatus] = None,
    priority: Optional[ProjectPriority] = None,
    category: Optional[ProjectCategory] = None,
    search: Optional[str] = None,
    auth: AuthenticatedUser = Depends(require_team_lead_or_employee),
    session: AsyncSession = Depends(get_session),
):
    """Projects the caller owns (team lead) or is staffed on (employee)."""
    aggregates = await assignment_service.list_my_projects(
        session, auth.user_id, auth.role, **_filters(status, priority, category, search)
    )
    return project_list_response(aggregates, auth, stats=project_stats(aggregates))


@router.put("/{project_id}/pick", response_model=ProjectResponse)
async def pick_project(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_team_lead),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    aggregate = await assignment_service.pick_project(session, project_id, auth.user_id, settings)
    await session.commit()
    return project_response(aggregate, auth, "Project picked successfully")


@router.put("/{project_id}/release", response_model=ProjectResponse)
async def release_project(
    project_id: uuid.UUID,
    body: Optional[ProjectRelease] = Body(default=None),
    auth: AuthenticatedUser = Depends(require_team_lead),
    session: AsyncSession = Depends(get_session),
):
    """Give an owned project back to the pick pool."""
    aggregate = await assignment_service.release_project(
        session, project_id, auth.user_id, reason=body.reason if body else None
    )
    await session.commit()
    return project_response(
        aggregate,
        auth,
        "Project released successfully. It's now available for other team leads to pick.",
    )


@router.put("/{project_id}/teamlead", response_model=ProjectResponse)
async def assign_team_lead(
    project_id: uuid.UUID,
    body: TeamLeadAssign,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Set the project's team lead (Admin only). Bypasses the pick rules."""
    aggregate = await assignment_service.assign_team_lead(
        session, project_id, body.team_lead_id, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Team Lead assigned successfully")


@router.put("/{project_id}/employees", response_model=ProjectResponse)
async def assign_employees(
    project_id: uuid.UUID,
    body: EmployeesAssign,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Replace the project's staffed employees (Admin only)."""
    aggregate = await assignment_service.assign_employees(
        session, project_id, body.employee_ids, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Employees assigned successfully")
