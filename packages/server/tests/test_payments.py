"""
Payment ledger service tests.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from app.core.errors import InvalidArgumentError, NotFoundError
from app.services.payments import (
    add_milestone_payment,
    add_payment,
    delete_payment,
    update_payment,
)
from app.services.projects import load_project
from app.services.time_entries import add_time_entry
from trackhub_shared.schemas.ledgers import PaymentCreate, PaymentUpdate, TimeEntryCreate

from factories import fixed_project, hourly_project, milestone_project


class TestAddPayment:
    async def test_hourly_scenario(self, session, users, make_project):
        aggregate = await make_project(hourly_project("50"))
        project_id = aggregate.project.id

        await add_time_entry(
            session, project_id, TimeEntryCreate(hours=Decimal("3"), description="Build"), users.lead.id
        )
        aggregate = await add_payment(
            session, project_id, PaymentCreate(amount=Decimal("100")), users.admin.id
        )

        project = aggregate.project
        assert project.actual_hours == Decimal("3")
        assert project.total_amount == Decimal("150")
        assert project.paid_amount == Decimal("100")
        assert project.pending_amount == Decimal("50")
        assert aggregate.payments[0].added_by == users.admin.id

    async def test_rejects_non_positive_amount(self, session, users, make_project):
        aggregate = await make_project(fixed_project("1000"))
        for amount in ("0", "-5", "0.004"):
            with pytest.raises(InvalidArgumentError):
                await add_payment(
                    session, aggregate.project.id, PaymentCreate(amount=Decimal(amount)), users.admin.id
                )

    async def test_sub_cent_amount_is_rejected_before_storing(self, session, users, make_project):
        aggregate = await make_project(fixed_project("1000"))
        with pytest.raises(InvalidArgumentError):
            await add_payment(
                session, aggregate.project.id, PaymentCreate(amount=Decimal("0.004")), users.admin.id
            )
        aggregate = await load_project(session, aggregate.project.id)
        assert aggregate.payments == []
        assert aggregate.project.paid_amount == Decimal("0")

    async def test_half_cent_rounds_up_to_a_cent(self, session, users, make_project):
        aggregate = await make_project(fixed_project("1000"))
        aggregate = await add_payment(
            session, aggregate.project.id, PaymentCreate(amount=Decimal("0.005")), users.admin.id
        )
        assert aggregate.payments[0].amount == Decimal("0.01")

    async def test_unknown_project(self, session, users):
        with pytest.raises(NotFoundError):
            await add_payment(session, uuid.uuid4(), PaymentCreate(amount=Decimal("10")), users.admin.id)

    async def test_unknown_milestone_reference(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        with pytest.raises(NotFoundError):
            await add_payment(
                session,
                aggregate.project.id,
                PaymentCreate(amount=Decimal("10"), milestone_id=uuid.uuid4()),
                users.admin.id,
            )

    async def test_overpayment_is_accepted(self, session, users, make_project):
        aggregate = await make_project(fixed_project("100"))
        aggregate = await add_payment(
            session, aggregate.project.id, PaymentCreate(amount=Decimal("150")), users.admin.id
        )
        assert aggregate.project.pending_amount == Decimal("-50")


class TestMilestoneCompletion:
    async def test_covering_payment_completes_milestone(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200", "300"))
        first = aggregate.milestones[0]

        aggregate = await add_milestone_payment(
            session, aggregate.project.id, first.id, PaymentCreate(amount=Decimal("200")), users.admin.id
        )

        milestone = next(m for m in aggregate.milestones if m.id == first.id)
        assert milestone.status == "completed"
        assert milestone.completed_by == users.admin.id
        assert milestone.completed_at is not None
        assert aggregate.project.total_amount == Decimal("500")
        assert aggregate.project.paid_amount == Decimal("200")
        assert aggregate.project.pending_amount == Decimal("300")

    async def test_milestone_id_in_body_is_honoured(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        first = aggregate.milestones[0]
        aggregate = await add_payment(
            session,
            aggregate.project.id,
            PaymentCreate(amount=Decimal("250"), milestone_id=first.id),
            users.admin.id,
        )
        assert aggregate.milestones[0].status == "completed"

    async def test_installments_do_not_complete_milestone(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        first = aggregate.milestones[0]
        for _ in range(2):
            aggregate = await add_milestone_payment(
                session, aggregate.project.id, first.id, PaymentCreate(amount=Decimal("100")), users.admin.id
            )

        assert aggregate.milestones[0].status == "pending"
        assert aggregate.project.paid_amount == Decimal("200")
        assert aggregate.project.pending_amount == Decimal("0")


class TestUpdateDelete:
    async def test_update_amount_recomputes(self, session, users, make_project):
        aggregate = await make_project(fixed_project("1000"))
        aggregate = await add_payment(
            session, aggregate.project.id, PaymentCreate(amount=Decimal("400")), users.admin.id
        )
        payment_id = aggregate.payments[0].id

        aggregate = await update_payment(
            session, aggregate.project.id, payment_id, PaymentUpdate(amount=Decimal("600")), users.admin.id
        )
        assert aggregate.project.paid_amount == Decimal("600")
        assert aggregate.project.pending_amount == Decimal("400")

    @pytest.mark.parametrize("amount", ["0", "0.001"])
    async def test_update_rejects_zero_amount(self, session, users, make_project, amount):
        aggregate = await make_project(fixed_project("1000"))
        aggregate = await add_payment(
            session, aggregate.project.id, PaymentCreate(amount=Decimal("400")), users.admin.id
        )
        with pytest.raises(InvalidArgumentError):
            await update_payment(
                session,
                aggregate.project.id,
                aggregate.payments[0].id,
                PaymentUpdate(amount=Decimal(amount)),
                users.admin.id,
            )

    async def test_update_unknown_payment(self, session, users, make_project):
        aggregate = await make_project(fixed_project("1000"))
        with pytest.raises(NotFoundError):
            await update_payment(
                session, aggregate.project.id, uuid.uuid4(), PaymentUpdate(notes="x"), users.admin.id
            )

    async def test_delete_restores_pending(self, session, users, make_project):
        aggregate = await make_project(fixed_project("1000"))
        aggregate = await add_payment(
            session, aggregate.project.id, PaymentCreate(amount=Decimal("400")), users.admin.id
        )
        aggregate = await delete_payment(
            session, aggregate.project.id, aggregate.payments[0].id, users.admin.id
        )
        assert aggregate.payments == []
        assert aggregate.project.paid_amount == Decimal("0")
        assert aggregate.project.pending_amount == Decimal("1000")

    async def test_delete_does_not_reopen_milestone(self, session, users, make_project):
        aggregate = await make_project(milestone_project("200"))
        first = aggregate.milestones[0]
        aggregate = await add_milestone_payment(
            session, aggregate.project.id, first.id, PaymentCreate(amount=Decimal("200")), users.admin.id
        )
        aggregate = await delete_payment(
            session, aggregate.project.id, aggregate.payments[0].id, users.admin.id
        )
        assert aggregate.milestones[0].status == "completed"
        assert aggregate.project.pending_amount == Decimal("200")
