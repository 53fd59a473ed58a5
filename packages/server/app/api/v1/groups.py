"""
Project group endpoints. Administrators manage groups; team leads may list
and read them without the deal value.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin, require_admin_or_team_lead
from app.core.database import get_session
from app.services import groups as group_service
from app.services.visibility import group_list_response, group_response
from trackhub_shared.schemas.groups import (
    GroupCreate,
    GroupListResponse,
    GroupResponse,
    GroupUpdate,
)

router = APIRouter()


@router.post("/groups", response_model=GroupResponse, status_code=201)
async def create_group(
    group_in: GroupCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await group_service.create_group(session, group_in, auth.user_id)
    await session.commit()
    return group_response(aggregate, auth, "Project group created successfully")


@router.get("/groups", response_model=GroupListResponse)
async def list_groups(
    auth: AuthenticatedUser = Depends(require_admin_or_team_lead),
    session: AsyncSession = Depends(get_session),
):
    """All project groups, newest first."""
    aggregates = await group_service.list_groups(session)
    return group_list_response(aggregates, auth)


@router.get("/groups/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin_or_team_lead),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await group_service.load_group(session, group_id)
    return group_response(aggregate, auth, "Project group retrieved successfully")


@router.put("/groups/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: uuid.UUID,
    group_in: GroupUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await group_service.update_group(session, group_id, group_in, auth.user_id)
    await session.commit()
    return group_response(aggregate, auth, "Project group updated successfully")


@router.delete("/groups/{group_id}", response_model=GroupResponse)
async def delete_group(
    group_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await group_service.delete_group(session, group_id)
    await session.commit()
    return group_response(None, auth, "Project group deleted successfully")
