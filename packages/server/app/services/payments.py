"""
Payment ledger.

A payment may reference one of the project's milestones. When it does, the
milestone is marked completed if *that single payment* covers the
milestone's amount. Installments are not summed: a milestone paid in two
partial payments stays pending until an administrator completes it. Updating
or deleting a payment never re-evaluates milestone status.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidArgumentError
from app.models.base import utcnow
from app.models.ledger import Milestone, Payment
from app.services.pricing import is_positive, to_decimal
from app.services.projects import ProjectAggregate, find_entry, load_project, refresh_totals
from trackhub_shared.schemas.common import MilestoneStatus
from trackhub_shared.schemas.ledgers import PaymentCreate, PaymentUpdate

log = structlog.get_logger()


def find_milestone(aggregate: ProjectAggregate, milestone_id: uuid.UUID) -> Milestone:
    return find_entry(aggregate.milestones, milestone_id, "Milestone")


def find_payment(aggregate: ProjectAggregate, payment_id: uuid.UUID) -> Payment:
    return find_entry(aggregate.payments, payment_id, "Payment")


def _check_amount(amount) -> None:
    if not is_positive(amount):
        raise InvalidArgumentError("Valid amount is required")


def settles_milestone(payment_amount, milestone: Milestone) -> bool:
    """A single payment completes a milestone when it covers the full amount."""
    return to_decimal(payment_amount) >= to_decimal(milestone.amount)


async def add_payment(
    session: AsyncSession,
    project_id: uuid.UUID,
    payment_in: PaymentCreate,
    actor_id: uuid.UUID,
    *,
    milestone_id: Optional[uuid.UUID] = None,
) -> ProjectAggregate:
    """Append a payment, complete the referenced milestone if covered, recompute."""
    _check_amount(payment_in.amount)
    milestone_id = milestone_id or payment_in.milestone_id

    aggregate = await load_project(session, project_id, for_update=True)
    milestone = find_milestone(aggregate, milestone_id) if milestone_id else None

    payment = Payment(
        project_id=aggregate.project.id,
        amount=to_decimal(payment_in.amount),
        payment_method=payment_in.payment_method.value,
        transaction_id=payment_in.transaction_id,
        notes=payment_in.notes,
        milestone_id=milestone_id,
        added_by=actor_id,
        payment_date=payment_in.payment_date or utcnow(),
    )
    session.add(payment)
    aggregate.payments.append(payment)

    if milestone is not None and milestone.status != MilestoneStatus.COMPLETED.value:
        if settles_milestone(payment.amount, milestone):
            milestone.status = MilestoneStatus.COMPLETED.value
            milestone.completed_at = utcnow()
            milestone.completed_by = actor_id
            session.add(milestone)
            log.info(
                "milestone.completed",
                project_id=str(project_id),
                milestone_id=str(milestone.id),
                payment_id=str(payment.id),
            )

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info(
        "payment.added",
        project_id=str(project_id),
        payment_id=str(payment.id),
        amount=str(payment.amount),
        actor_id=str(actor_id),
    )
    return aggregate


async def add_milestone_payment(
    session: AsyncSession,
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    payment_in: PaymentCreate,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    return await add_payment(session, project_id, payment_in, actor_id, milestone_id=milestone_id)


async def update_payment(
    session: AsyncSession,
    project_id: uuid.UUID,
    payment_id: uuid.UUID,
    payment_in: PaymentUpdate,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    data = payment_in.model_dump(exclude_unset=True)
    if "amount" in data:
        _check_amount(data["amount"])
        data["amount"] = to_decimal(data["amount"])
    if "payment_method" in data and data["payment_method"] is not None:
        data["payment_method"] = data["payment_method"].value
    if data.get("payment_date", False) is None:
        raise InvalidArgumentError("Payment date cannot be empty")

    aggregate = await load_project(session, project_id, for_update=True)
    payment = find_payment(aggregate, payment_id)
    if data.get("milestone_id"):
        find_milestone(aggregate, data["milestone_id"])

    for key, value in data.items():
        if key == "payment_method" and value is None:
            continue
        setattr(payment, key, value)
    session.add(payment)

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info("payment.updated", project_id=str(project_id), payment_id=str(payment_id), fields=sorted(data))
    return aggregate


async def delete_payment(
    session: AsyncSession,
    project_id: uuid.UUID,
    payment_id: uuid.UUID,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    aggregate = await load_project(session, project_id, for_update=True)
    payment = find_payment(aggregate, payment_id)

    await session.delete(payment)
    aggregate.payments.remove(payment)

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info("payment.deleted", project_id=str(project_id), payment_id=str(payment_id))
    return aggregate
