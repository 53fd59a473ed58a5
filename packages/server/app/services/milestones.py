"""
Milestone ledger.

Milestones feed ``total_amount`` only for milestone-category projects, but
the pricing engine runs after every change regardless of category.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidArgumentError
from app.models.base import utcnow
from app.services.pricing import is_positive, to_decimal
from app.services.projects import (
    ProjectAggregate,
    build_milestone,
    find_entry,
    load_project,
    refresh_totals,
)
from trackhub_shared.schemas.common import MilestoneStatus
from trackhub_shared.schemas.ledgers import MilestoneCreate, MilestoneUpdate

log = structlog.get_logger()


async def add_milestone(
    session: AsyncSession,
    project_id: uuid.UUID,
    milestone_in: MilestoneCreate,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    """Append a pending milestone at the end of the schedule."""
    # Validate before touching the store; order is filled in once loaded
    build_milestone(project_id, milestone_in, 0)

    aggregate = await load_project(session, project_id, for_update=True)
    milestone = build_milestone(aggregate.project.id, milestone_in, len(aggregate.milestones))
    session.add(milestone)
    aggregate.milestones.append(milestone)

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info(
        "milestone.added",
        project_id=str(project_id),
        milestone_id=str(milestone.id),
        amount=str(milestone.amount),
    )
    return aggregate


async def update_milestone(
    session: AsyncSession,
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    milestone_in: MilestoneUpdate,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    data = milestone_in.model_dump(exclude_unset=True)
    if "amount" in data:
        if not is_positive(data["amount"]):
            raise InvalidArgumentError("Amount must be greater than 0")
        data["amount"] = to_decimal(data["amount"])
    for required in ("title", "due_date", "status"):
        if required in data and not data[required]:
            raise InvalidArgumentError(f"{required} cannot be empty")

    aggregate = await load_project(session, project_id, for_update=True)
    milestone = find_entry(aggregate.milestones, milestone_id, "Milestone")

    if "status" in data:
        status = MilestoneStatus(data.pop("status"))
        if status == MilestoneStatus.COMPLETED and milestone.status != status.value:
            milestone.completed_at = utcnow()
            milestone.completed_by = actor_id
        elif status == MilestoneStatus.PENDING:
            milestone.completed_at = None
            milestone.completed_by = None
        milestone.status = status.value

    for key, value in data.items():
        setattr(milestone, key, value)
    session.add(milestone)

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info("milestone.updated", project_id=str(project_id), milestone_id=str(milestone_id))
    return aggregate


async def delete_milestone(
    session: AsyncSession,
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    """Remove a milestone. Payments made against it stay and lose the reference."""
    aggregate = await load_project(session, project_id, for_update=True)
    milestone = find_entry(aggregate.milestones, milestone_id, "Milestone")

    for payment in aggregate.payments:
        if payment.milestone_id == milestone.id:
            payment.milestone_id = None
            session.add(payment)
    await session.flush()

    await session.delete(milestone)
    aggregate.milestones.remove(milestone)

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info("milestone.deleted", project_id=str(project_id), milestone_id=str(milestone_id))
    return aggregate
