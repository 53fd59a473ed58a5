"""
Milestone endpoints (Admin only).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin
from app.core.database import get_session
from app.services import milestones as milestone_service
from app.services.visibility import project_response
from trackhub_shared.schemas.ledgers import MilestoneCreate, MilestoneUpdate
from trackhub_shared.schemas.projects import ProjectResponse

router = APIRouter()


@router.post("/{project_id}/milestones", response_model=ProjectResponse, status_code=201)
async def add_milestone(
    project_id: uuid.UUID,
    milestone_in: MilestoneCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await milestone_service.add_milestone(
        session, project_id, milestone_in, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Milestone added successfully")


@router.put("/{project_id}/milestones/{milestone_id}", response_model=ProjectResponse)
async def update_milestone(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    milestone_in: MilestoneUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await milestone_service.update_milestone(
        session, project_id, milestone_id, milestone_in, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Milestone updated successfully")


@router.delete("/{project_id}/milestones/{milestone_id}", response_model=ProjectResponse)
async def delete_milestone(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await milestone_service.delete_milestone(
        session, project_id, milestone_id, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Milestone deleted successfully")
