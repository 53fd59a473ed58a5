"""
Payment endpoints (Admin only).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin
from app.core.database import get_session
from app.services import payments as payment_service
from app.services.visibility import project_response
from trackhub_shared.schemas.ledgers import PaymentCreate, PaymentUpdate
from trackhub_shared.schemas.projects import ProjectResponse

router = APIRouter()


@router.post("/{project_id}/payments", response_model=ProjectResponse, status_code=201)
async def add_payment(
    project_id: uuid.UUID,
    payment_in: PaymentCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await payment_service.add_payment(session, project_id, payment_in, auth.user_id)
    await session.commit()
    return project_response(aggregate, auth, "Payment added successfully")


@router.post(
    "/{project_id}/milestones/{milestone_id}/payments",
    response_model=ProjectResponse,
    status_code=201,
)
async def add_milestone_payment(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    payment_in: PaymentCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Record a payment against a milestone; a covering payment completes it."""
    aggregate = await payment_service.add_milestone_payment(
        session, project_id, milestone_id, payment_in, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Milestone payment added successfully")


@router.put("/{project_id}/payments/{payment_id}", response_model=ProjectResponse)
async def update_payment(
    project_id: uuid.UUID,
    payment_id: uuid.UUID,
    payment_in: PaymentUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await payment_service.update_payment(
        session, project_id, payment_id, payment_in, auth.user_id
    )
    await session.commit()
    return project_response(aggregate, auth, "Payment updated successfully")


@router.delete("/{project_id}/payments/{payment_id}", response_model=ProjectResponse)
async def delete_payment(
    project_id: uuid.UUID,
    payment_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    aggregate = await payment_service.delete_payment(session, project_id, payment_id, auth.user_id)
    await session.commit()
    return project_response(aggregate, auth, "Payment deleted successfully")
