"""
Time entry ledger.

Only hourly projects accept time entries. Every change is followed by a
totals refresh in the same transaction: ``actual_hours`` and, for hourly
projects, ``total_amount`` and ``pending_amount`` move with the ledger.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidArgumentError, InvalidStateError
from app.models.base import utcnow
from app.models.ledger import TimeEntry
from app.services.pricing import is_positive, to_decimal
from app.services.projects import ProjectAggregate, find_entry, load_project, refresh_totals
from trackhub_shared.schemas.common import ProjectCategory
from trackhub_shared.schemas.ledgers import TimeEntryCreate, TimeEntryUpdate

log = structlog.get_logger()


def _check_hours(hours) -> None:
    if not is_positive(hours):
        raise InvalidArgumentError("Valid hours and description are required")


def _check_description(description) -> None:
    if description is None or not description.strip():
        raise InvalidArgumentError("Valid hours and description are required")


def _require_hourly(aggregate: ProjectAggregate) -> None:
    if aggregate.project.category != ProjectCategory.HOURLY.value:
        raise InvalidStateError(
            "Time entries can only be added to hourly projects",
            category=aggregate.project.category,
        )


def record_time_entry(
    session: AsyncSession,
    aggregate: ProjectAggregate,
    entry_in: TimeEntryCreate,
    actor_id: uuid.UUID,
) -> TimeEntry:
    """Append a time entry to a loaded aggregate. Callers refresh totals after."""
    _require_hourly(aggregate)
    _check_hours(entry_in.hours)
    _check_description(entry_in.description)

    entry = TimeEntry(
        project_id=aggregate.project.id,
        date=entry_in.date or utcnow(),
        hours=to_decimal(entry_in.hours),
        description=entry_in.description.strip(),
        task_type=entry_in.task_type.value,
        added_by=actor_id,
    )
    session.add(entry)
    aggregate.time_entries.append(entry)
    return entry


async def add_time_entry(
    session: AsyncSession,
    project_id: uuid.UUID,
    entry_in: TimeEntryCreate,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    _check_hours(entry_in.hours)
    _check_description(entry_in.description)

    aggregate = await load_project(session, project_id, for_update=True)
    entry = record_time_entry(session, aggregate, entry_in, actor_id)

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info(
        "time_entry.added",
        project_id=str(project_id),
        time_entry_id=str(entry.id),
        hours=str(entry.hours),
        actual_hours=str(aggregate.project.actual_hours),
    )
    return aggregate


async def update_time_entry(
    session: AsyncSession,
    project_id: uuid.UUID,
    entry_id: uuid.UUID,
    entry_in: TimeEntryUpdate,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    data = entry_in.model_dump(exclude_unset=True)
    if "hours" in data:
        _check_hours(data["hours"])
        data["hours"] = to_decimal(data["hours"])
    if "description" in data:
        _check_description(data["description"])
        data["description"] = data["description"].strip()
    if "task_type" in data:
        if data["task_type"] is None:
            raise InvalidArgumentError("task_type cannot be empty")
        data["task_type"] = data["task_type"].value
    if data.get("date", False) is None:
        raise InvalidArgumentError("date cannot be empty")

    aggregate = await load_project(session, project_id, for_update=True)
    _require_hourly(aggregate)
    entry = find_entry(aggregate.time_entries, entry_id, "Time entry")

    for key, value in data.items():
        setattr(entry, key, value)
    session.add(entry)

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info("time_entry.updated", project_id=str(project_id), time_entry_id=str(entry_id))
    return aggregate


async def delete_time_entry(
    session: AsyncSession,
    project_id: uuid.UUID,
    entry_id: uuid.UUID,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    aggregate = await load_project(session, project_id, for_update=True)
    entry = find_entry(aggregate.time_entries, entry_id, "Time entry")

    await session.delete(entry)
    aggregate.time_entries.remove(entry)

    aggregate.project.updated_by = actor_id
    await refresh_totals(session, aggregate)
    log.info("time_entry.deleted", project_id=str(project_id), time_entry_id=str(entry_id))
    return aggregate
