"""
Milestone ledger service tests.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from app.core.errors import InvalidArgumentError, NotFoundError
from app.services.milestones import add_milestone, delete_milestone, update_milestone
from app.services.payments import add_payment
from trackhub_shared.schemas.ledgers import MilestoneCreate, MilestoneUpdate, PaymentCreate

from factories import due, fixed_project, milestone_project


class TestAddMilestone:
    async def test_milestone_scenario(self, session, users, make_project):
        aggregate = await make_project(milestone_project())
        project_id = aggregate.project.id

        await add_milestone(
            session, project_id, MilestoneCreate(title="Design", amount=Decimal("200"), due_date=due()), users.admin.id
        )
        aggregate = await add_milestone(
            session, project_id, MilestoneCreate(title="Build", amount=Decimal("300"), due_date=due(60)), users.admin.id
        )

        assert aggregate.project.total_amount == Decimal("500")
        assert aggregate.project.pending_amount == Decimal("500")
        assert [m.order for m in aggregate.milestones] == [0, 1]
        assert all(m.status == "pending" for m in aggregate.milestones)

    async def test_fixed_project_total_ignores_milestones(self, session, users, make_project):
        aggregate = await make_project(fixed_project("1000"))
        aggregate = await add_milestone(
            session,
            aggregate.project.id,
            MilestoneCreate(title="Handover", amount=Decimal("250"), due_date=due()),
            users.admin.id,
        )
        assert len(aggregate.milestones) == 1
        assert aggregate.project.total_amount == Decimal("1000")

    @pytest.mark.parametrize(
        "milestone_in",
        [
            MilestoneCreate(amount=Decimal("100"), due_date=due()),
            MilestoneCreate(title="No amount", due_date=due()),
            MilestoneCreate(title="No date", amount=Decimal("100")),
            MilestoneCreate(title="Zero", amount=Decimal("0"), due_date=due()),
            MilestoneCreate(title="Sub-cent", amount=Decimal("0.004"), due_date=due()),
        ],
    )
    async def test_rejects_incomplete_input(self, session, users, make_project, milestone_in):
        aggregate = await make_project(milestone_project())
        with pytest.raises(InvalidArgumentError):
            await add_milestone(session, aggregate.project.id, milestone_in, users.admin.id)

    async def test_unknown_project(self, session, users):
        with pytest.raises(NotFoundError):
            await add_milestone(
                session,
                uuid.uuid4(),
                MilestoneCreate(title="Design", amount=Decimal("200"), due_date=due()),
                users.admin.id,
            )


class TestUpdateMilestone:
    async def test_amount_change_recomputes(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200", "300"))
        aggregate = await update_milestone(
            session,
            aggregate.project.id,
            aggregate.milestones[1].id,
            MilestoneUpdate(amount=Decimal("450")),
            users.admin.id,
        )
        assert aggregate.project.total_amount == Decimal("650")

    async def test_manual_completion_stamps_actor(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        aggregate = await update_milestone(
            session,
            aggregate.project.id,
            aggregate.milestones[0].id,
            MilestoneUpdate(status="completed"),
            users.admin.id,
        )
        milestone = aggregate.milestones[0]
        assert milestone.status == "completed"
        assert milestone.completed_by == users.admin.id

        aggregate = await update_milestone(
            session,
            aggregate.project.id,
            milestone.id,
            MilestoneUpdate(status="pending"),
            users.admin.id,
        )
        assert aggregate.milestones[0].completed_at is None

    async def test_rejects_empty_title(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        with pytest.raises(InvalidArgumentError):
            await update_milestone(
                session, aggregate.project.id, aggregate.milestones[0].id, MilestoneUpdate(title=""), users.admin.id
            )

    async def test_rejects_sub_cent_amount(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        with pytest.raises(InvalidArgumentError):
            await update_milestone(
                session,
                aggregate.project.id,
                aggregate.milestones[0].id,
                MilestoneUpdate(amount=Decimal("0.004")),
                users.admin.id,
            )

    async def test_unknown_milestone(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        with pytest.raises(NotFoundError):
            await update_milestone(
                session, aggregate.project.id, uuid.uuid4(), MilestoneUpdate(title="x"), users.admin.id
            )


class TestDeleteMilestone:
    async def test_delete_recomputes_and_detaches_payments(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200", "300"))
        first = aggregate.milestones[0]
        aggregate = await add_payment(
            session,
            aggregate.project.id,
            PaymentCreate(amount=Decimal("200"), milestone_id=first.id),
            users.admin.id,
        )

        aggregate = await delete_milestone(session, aggregate.project.id, first.id, users.admin.id)

        assert [m.amount for m in aggregate.milestones] == [Decimal("300")]
        assert aggregate.payments[0].milestone_id is None
        assert aggregate.project.total_amount == Decimal("300")
        assert aggregate.project.paid_amount == Decimal("200")
        assert aggregate.project.pending_amount == Decimal("100")

    async def test_unknown_milestone(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        with pytest.raises(NotFoundError):
            await delete_milestone(session, aggregate.project.id, uuid.uuid4(), users.admin.id)
