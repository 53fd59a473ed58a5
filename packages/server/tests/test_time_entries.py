"""
Time entry ledger service tests.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from app.core.errors import InvalidArgumentError, InvalidStateError, NotFoundError
from app.services.projects import load_project, refresh_totals
from app.services.time_entries import (
    add_time_entry,
    delete_time_entry,
    record_time_entry,
    update_time_entry,
)
from trackhub_shared.schemas.ledgers import TimeEntryCreate, TimeEntryUpdate

from factories import fixed_project, hourly_project, milestone_project


def entry(hours: str, description: str = "Implementation") -> TimeEntryCreate:
    return TimeEntryCreate(hours=Decimal(hours), description=description)


class TestAddTimeEntry:
    async def test_hourly_total_follows_hours(self, session, users, make_project):
        aggregate = await make_project(hourly_project("50"))
        aggregate = await add_time_entry(session, aggregate.project.id, entry("3"), users.lead.id)

        assert aggregate.project.actual_hours == Decimal("3")
        assert aggregate.project.total_amount == Decimal("150")
        assert aggregate.project.pending_amount == Decimal("150")
        assert aggregate.time_entries[0].added_by == users.lead.id

    @pytest.mark.parametrize(
        "project_in", [fixed_project("1000"), milestone_project("200")], ids=["fixed", "milestone"]
    )
    async def test_non_hourly_projects_reject_entries(self, session, users, make_project, project_in):
        aggregate = await make_project(project_in)
        total_before = aggregate.project.total_amount

        with pytest.raises(InvalidStateError):
            await add_time_entry(session, aggregate.project.id, entry("2"), users.admin.id)

        aggregate = await load_project(session, aggregate.project.id)
        assert aggregate.time_entries == []
        assert aggregate.project.total_amount == total_before

    @pytest.mark.parametrize(
        "hours,description", [("0", "Work"), ("-1", "Work"), ("0.001", "Work"), ("1", "  ")]
    )
    async def test_rejects_invalid_input(self, session, users, make_project, hours, description):
        aggregate = await make_project(hourly_project())
        with pytest.raises(InvalidArgumentError):
            await add_time_entry(
                session, aggregate.project.id, entry(hours, description), users.admin.id
            )

    async def test_missing_description(self, session, users, make_project):
        aggregate = await make_project(hourly_project())
        with pytest.raises(InvalidArgumentError):
            await add_time_entry(
                session, aggregate.project.id, TimeEntryCreate(hours=Decimal("1")), users.admin.id
            )


class TestRecordThenRefresh:
    async def test_record_leaves_totals_until_refresh(self, session, users, make_project):
        aggregate = await make_project(hourly_project("40"))
        aggregate = await load_project(session, aggregate.project.id, for_update=True)

        record_time_entry(session, aggregate, entry("2.5"), users.lead.id)
        assert aggregate.project.total_amount == Decimal("0")

        await refresh_totals(session, aggregate)
        assert aggregate.project.actual_hours == Decimal("2.5")
        assert aggregate.project.total_amount == Decimal("100")

    async def test_refresh_is_idempotent(self, session, users, make_project):
        aggregate = await make_project(hourly_project("40"))
        aggregate = await add_time_entry(session, aggregate.project.id, entry("1.75"), users.lead.id)
        before = (aggregate.project.total_amount, aggregate.project.pending_amount)

        await refresh_totals(session, aggregate)
        await refresh_totals(session, aggregate)
        assert (aggregate.project.total_amount, aggregate.project.pending_amount) == before


class TestUpdateDeleteTimeEntry:
    async def test_update_hours_recomputes(self, session, users, make_project):
        aggregate = await make_project(hourly_project("50"))
        aggregate = await add_time_entry(session, aggregate.project.id, entry("3"), users.lead.id)

        aggregate = await update_time_entry(
            session,
            aggregate.project.id,
            aggregate.time_entries[0].id,
            TimeEntryUpdate(hours=Decimal("5")),
            users.lead.id,
        )
        assert aggregate.project.actual_hours == Decimal("5")
        assert aggregate.project.total_amount == Decimal("250")

    @pytest.mark.parametrize("hours", ["0", "0.004"])
    async def test_update_rejects_zero_hours(self, session, users, make_project, hours):
        aggregate = await make_project(hourly_project("50"))
        aggregate = await add_time_entry(session, aggregate.project.id, entry("3"), users.lead.id)
        with pytest.raises(InvalidArgumentError):
            await update_time_entry(
                session,
                aggregate.project.id,
                aggregate.time_entries[0].id,
                TimeEntryUpdate(hours=Decimal(hours)),
                users.lead.id,
            )
        aggregate = await load_project(session, aggregate.project.id)
        assert aggregate.time_entries[0].hours == Decimal("3")

    async def test_delete_recomputes(self, session, users, make_project):
        aggregate = await make_project(hourly_project("50"))
        await add_time_entry(session, aggregate.project.id, entry("3"), users.lead.id)
        aggregate = await add_time_entry(session, aggregate.project.id, entry("1"), users.lead.id)

        three_hours = next(e for e in aggregate.time_entries if e.hours == Decimal("3"))
        aggregate = await delete_time_entry(
            session, aggregate.project.id, three_hours.id, users.lead.id
        )
        assert len(aggregate.time_entries) == 1
        assert aggregate.project.actual_hours == Decimal("1")
        assert aggregate.project.total_amount == Decimal("50")

    async def test_delete_unknown_entry(self, session, users, make_project):
        aggregate = await make_project(hourly_project("50"))
        with pytest.raises(NotFoundError):
            await delete_time_entry(session, aggregate.project.id, uuid.uuid4(), users.lead.id)
