"""
Project endpoints: CRUD, client status and forced recalculation.

Every response goes through the visibility filter, so financial fields only
reach administrators.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedUser,
    require_admin,
    require_admin_or_team_lead,
    require_member,
)
from app.core.database import get_session
from app.core.errors import ForbiddenError
from app.services import projects as project_service
from app.services.visibility import project_list_response, project_response
from trackhub_shared.schemas.common import ProjectCategory, ProjectPriority, ProjectStatus, Role
from trackhub_shared.schemas.projects import (
    ClientStatusUpdate,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
)

router = APIRouter()


def _check_access(aggregate: project_service.ProjectAggregate, auth: AuthenticatedUser) -> None:
    """Non-admins only see projects they own, are staffed on, or could pick."""
    if auth.is_admin:
        return
    project = aggregate.project
    if auth.role == Role.TEAM_LEAD:
        if project.team_lead_id == auth.user_id:
            return
        if project.team_lead_id is None and project.visible_to_team_leads:
            return
    elif auth.user_id in aggregate.employee_ids:
        return
    raise ForbiddenError("You do not have access to this project")


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    status: Optional[ProjectStatus] = None,
    priority: Optional[ProjectPriority] = None,
    category: Optional[ProjectCategory] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(25, ge=1, le=100),
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """List all projects (Admin only), newest first."""
    aggregates = await project_service.list_projects(
        session,
        page=page,
        per_page=per_page,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        category=category.value if category else None,
        search=search,
    )
    return project_list_response(
        aggregates, auth, stats=project_service.project_stats(aggregates)
    )


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    project_in: ProjectCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Create a project (Admin only). Totals are derived immediately."""
    aggregate = await project_service.create_project(session, project_in, auth.user_id)
    await session.commit()
    return project_response(aggregate, auth, "Project created successfully")


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await project_service.load_project(session, project_id)
    _check_access(aggregate, auth)
    return project_response(aggregate, auth, "Project retrieved successfully")


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Update descriptive fields or the category's rate (Admin only)."""
    aggregate = await project_service.update_project(session, project_id, project_in, auth.user_id)
    await session.commit()
    return project_response(aggregate, auth, "Project updated successfully")


@router.delete("/{project_id}", response_model=ProjectResponse)
async def delete_project(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Delete a project with its ledgers and staffing (Admin only)."""
    await project_service.delete_project(session, project_id)
    await session.commit()
    return project_response(None, auth, "Project deleted successfully")


@router.patch("/{project_id}/client-status", response_model=ProjectResponse)
async def update_client_status(
    project_id: uuid.UUID,
    body: ClientStatusUpdate,
    auth: AuthenticatedUser = Depends(require_admin_or_team_lead),
    session: AsyncSession = Depends(get_session),
):
    if auth.role == Role.TEAM_LEAD:
        aggregate = await project_service.load_project(session, project_id)
        if aggregate.project.team_lead_id != auth.user_id:
            raise ForbiddenError("You can only update projects assigned to you")
    aggregate = await project_service.set_client_status(
        session, project_id, body.client_status.value, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Client status updated successfully")


@router.put("/{project_id}/recalculate", response_model=ProjectResponse)
async def recalculate_project(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Recompute and persist the derived totals from the ledgers (Admin only)."""
    aggregate = await project_service.recalculate_project(session, project_id)
    await session.commit()
    return project_response(aggregate, auth, "Project totals recalculated successfully")
