"""
Time entry endpoints (Admin and owning team lead).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin_or_team_lead
from app.core.database import get_session
from app.core.errors import ForbiddenError
from app.services import time_entries as time_entry_service
from app.services.projects import load_project
from app.services.visibility import project_response
from trackhub_shared.schemas.common import Role
from trackhub_shared.schemas.ledgers import TimeEntryCreate, TimeEntryUpdate
from trackhub_shared.schemas.projects import ProjectResponse

router = APIRouter()


async def _check_owner(session: AsyncSession, project_id: uuid.UUID, auth: AuthenticatedUser) -> None:
    """Team leads log time only on projects they own."""
    if auth.role != Role.TEAM_LEAD:
        return
    aggregate = await load_project(session, project_id)
    if aggregate.project.team_lead_id != auth.user_id:
        raise ForbiddenError("You can only log time on projects assigned to you")


@router.post("/{project_id}/time-entries", response_model=ProjectResponse, status_code=201)
async def add_time_entry(
    project_id: uuid.UUID,
    entry_in: TimeEntryCreate,
    auth: AuthenticatedUser = Depends(require_admin_or_team_lead),
    session: AsyncSession = Depends(get_session),
):
    await _check_owner(session, project_id, auth)
    aggregate = await time_entry_service.add_time_entry(
        session, project_id, entry_in, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Time entry added successfully")


@router.put("/{project_id}/time-entries/{entry_id}", response_model=ProjectResponse)
async def update_time_entry(
    project_id: uuid.UUID,
    entry_id: uuid.UUID,
    entry_in: TimeEntryUpdate,
    auth: AuthenticatedUser = Depends(require_admin_or_team_lead),
    session: AsyncSession = Depends(get_session),
):
    await _check_owner(session, project_id, auth)
    aggregate = await time_entry_service.update_time_entry(
        session, project_id, entry_id, entry_in, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Time entry updated successfully")


@router.delete("/{project_id}/time-entries/{entry_id}", response_model=ProjectResponse)
async def delete_time_entry(
    project_id: uuid.UUID,
    entry_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin_or_team_lead),
    session: AsyncSession = Depends(get_session),
):
    await _check_owner(session, project_id, auth)
    aggregate = await time_entry_service.delete_time_entry(
        session, project_id, entry_id, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Time entry deleted successfully")
