"""
Project service layer: aggregate loading, project CRUD and totals refresh.

A project and its ledgers (milestones, time entries, payments) plus its
staffed employees are handled as one aggregate. Mutating services load the
aggregate with the project row locked, change it, run the pricing engine and
flush; the request handler commits.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog
from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import InvalidArgumentError, NotFoundError
from app.models.assignments import ProjectEmployeeAssignment
from app.models.ledger import Milestone, Payment, TimeEntry
from app.models.project import Project
from app.services.groups import detach_project
from app.services.pricing import is_positive, recompute, to_decimal, totals_of
from trackhub_shared.schemas.common import MilestoneStatus, ProjectCategory, ProjectStatus
from trackhub_shared.schemas.ledgers import MilestoneCreate
from trackhub_shared.schemas.projects import ProjectCreate, ProjectStats, ProjectUpdate

log = structlog.get_logger()


@dataclass
class ProjectAggregate:
    project: Project
    milestones: list[Milestone] = field(default_factory=list)
    time_entries: list[TimeEntry] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    employee_ids: list[uuid.UUID] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


async def _load_ledgers(
    session: AsyncSession, projects: Sequence[Project]
) -> list[ProjectAggregate]:
    """Attach ledgers and staffing to projects with one query per child table."""
    if not projects:
        return []
    project_ids = [p.id for p in projects]

    milestones: dict[uuid.UUID, list[Milestone]] = defaultdict(list)
    result = await session.execute(
        select(Milestone)
        .where(Milestone.project_id.in_(project_ids))
        .order_by(Milestone.order, Milestone.due_date)
    )
    for m in result.scalars().all():
        milestones[m.project_id].append(m)

    time_entries: dict[uuid.UUID, list[TimeEntry]] = defaultdict(list)
    result = await session.execute(
        select(TimeEntry)
        .where(TimeEntry.project_id.in_(project_ids))
        .order_by(TimeEntry.date, TimeEntry.added_at)
    )
    for t in result.scalars().all():
        time_entries[t.project_id].append(t)

    payments: dict[uuid.UUID, list[Payment]] = defaultdict(list)
    result = await session.execute(
        select(Payment)
        .where(Payment.project_id.in_(project_ids))
        .order_by(Payment.payment_date, Payment.added_at)
    )
    for p in result.scalars().all():
        payments[p.project_id].append(p)

    employees: dict[uuid.UUID, list[uuid.UUID]] = defaultdict(list)
    result = await session.execute(
        select(ProjectEmployeeAssignment)
        .where(ProjectEmployeeAssignment.project_id.in_(project_ids))
        .order_by(ProjectEmployeeAssignment.assigned_at)
    )
    for a in result.scalars().all():
        employees[a.project_id].append(a.user_id)

    return [
        ProjectAggregate(
            project=p,
            milestones=milestones[p.id],
            time_entries=time_entries[p.id],
            payments=payments[p.id],
            employee_ids=employees[p.id],
        )
        for p in projects
    ]


async def load_project(
    session: AsyncSession, project_id: uuid.UUID, *, for_update: bool = False
) -> ProjectAggregate:
    """Load a project aggregate, raising NotFoundError if it does not exist.

    With ``for_update`` the project row stays locked until the transaction
    ends, so concurrent ledger writes on the same project serialize and every
    recompute sees the latest committed ledgers.
    """
    stmt = (
        select(Project)
        .where(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    project = result.scalar_one_or_none()
    if project is None:
        raise NotFoundError("Project", project_id)
    aggregates = await _load_ledgers(session, [project])
    return aggregates[0]


def find_entry(entries: Sequence, entry_id: uuid.UUID, resource: str):
    """Find a ledger entry of the aggregate by id or raise NotFoundError."""
    for entry in entries:
        if entry.id == entry_id:
            return entry
    raise NotFoundError(resource, entry_id)


async def load_projects(session: AsyncSession, stmt) -> list[ProjectAggregate]:
    result = await session.execute(stmt)
    return await _load_ledgers(session, list(result.scalars().all()))


async def refresh_totals(session: AsyncSession, aggregate: ProjectAggregate) -> ProjectAggregate:
    """Recompute the derived totals and flush. Safe to call any number of times."""
    recompute(aggregate)
    session.add(aggregate.project)
    await session.flush()
    totals = totals_of(aggregate)
    log.debug(
        "project.totals_refreshed",
        project_id=str(aggregate.project.id),
        total_amount=str(totals.total_amount),
        paid_amount=str(totals.paid_amount),
        pending_amount=str(totals.pending_amount),
    )
    return aggregate


async def recalculate_project(session: AsyncSession, project_id: uuid.UUID) -> ProjectAggregate:
    aggregate = await load_project(session, project_id, for_update=True)
    return await refresh_totals(session, aggregate)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


def build_milestone(project_id: uuid.UUID, milestone_in: MilestoneCreate, order: int) -> Milestone:
    """Validate a new milestone and build its row (status pending)."""
    if not milestone_in.title or milestone_in.amount is None or milestone_in.due_date is None:
        raise InvalidArgumentError("Title, amount, and due date are required")
    if not is_positive(milestone_in.amount):
        raise InvalidArgumentError("Amount must be greater than 0")
    return Milestone(
        project_id=project_id,
        title=milestone_in.title,
        description=milestone_in.description,
        amount=to_decimal(milestone_in.amount),
        due_date=milestone_in.due_date,
        deliverables=milestone_in.deliverables,
        order=order,
        status=MilestoneStatus.PENDING.value,
    )


def _validate_rates(category: ProjectCategory, fixed_amount, hourly_rate) -> None:
    if category == ProjectCategory.FIXED and not is_positive(fixed_amount):
        raise InvalidArgumentError("Fixed amount is required for fixed projects")
    if category == ProjectCategory.HOURLY and not is_positive(hourly_rate):
        raise InvalidArgumentError("Hourly rate is required for hourly projects")


async def create_project(
    session: AsyncSession, project_in: ProjectCreate, actor_id: uuid.UUID
) -> ProjectAggregate:
    category = project_in.category
    _validate_rates(category, project_in.fixed_amount, project_in.hourly_rate)

    project = Project(
        project_name=project_in.project_name,
        client_name=project_in.client_name,
        description=project_in.description,
        deadline=project_in.deadline,
        client_email=project_in.client_email,
        client_phone=project_in.client_phone,
        project_platform=project_in.project_platform,
        priority=project_in.priority.value,
        payment_schedule=project_in.payment_schedule.value,
        scope_policy=project_in.scope_policy,
        estimated_hours=to_decimal(project_in.estimated_hours),
        technologies=list(project_in.technologies),
        category=category.value,
        fixed_amount=to_decimal(project_in.fixed_amount) if category == ProjectCategory.FIXED else to_decimal(0),
        hourly_rate=to_decimal(project_in.hourly_rate) if category == ProjectCategory.HOURLY else to_decimal(0),
        status=ProjectStatus.PENDING.value,
        visible_to_team_leads=project_in.visible_to_team_leads,
        created_by=actor_id,
        updated_by=actor_id,
    )
    milestones = [
        build_milestone(project.id, m, order) for order, m in enumerate(project_in.milestones)
    ]
    session.add(project)
    await session.flush()  # parent row before children
    for m in milestones:
        session.add(m)

    aggregate = ProjectAggregate(project=project, milestones=milestones)
    await refresh_totals(session, aggregate)
    log.info(
        "project.created",
        project_id=str(project.id),
        category=project.category,
        actor_id=str(actor_id),
    )
    return aggregate


async def update_project(
    session: AsyncSession,
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    aggregate = await load_project(session, project_id, for_update=True)
    project = aggregate.project
    data = project_in.model_dump(exclude_unset=True)

    category = ProjectCategory(project.category)
    # Only the rate that belongs to the project's category may change
    if "fixed_amount" in data:
        if category != ProjectCategory.FIXED:
            raise InvalidArgumentError("Fixed amount only applies to fixed projects")
        _validate_rates(category, data["fixed_amount"], None)
        data["fixed_amount"] = to_decimal(data["fixed_amount"])
    if "hourly_rate" in data:
        if category != ProjectCategory.HOURLY:
            raise InvalidArgumentError("Hourly rate only applies to hourly projects")
        _validate_rates(category, None, data["hourly_rate"])
        data["hourly_rate"] = to_decimal(data["hourly_rate"])

    for required in ("project_name", "client_name"):
        if required in data and not data[required]:
            raise InvalidArgumentError(f"{required} cannot be empty")

    for key, value in data.items():
        if hasattr(value, "value"):
            value = value.value
        setattr(project, key, value)
    project.updated_by = actor_id

    await refresh_totals(session, aggregate)
    log.info("project.updated", project_id=str(project.id), fields=sorted(data))
    return aggregate


async def delete_project(session: AsyncSession, project_id: uuid.UUID) -> None:
    """Delete a project together with its ledgers, staffing and group memberships."""
    aggregate = await load_project(session, project_id, for_update=True)
    for model in (Payment, TimeEntry, Milestone, ProjectEmployeeAssignment):
        await session.execute(delete(model).where(model.project_id == project_id))
    await detach_project(session, project_id)
    await session.delete(aggregate.project)
    await session.flush()
    log.info("project.deleted", project_id=str(project_id))


async def set_client_status(
    session: AsyncSession, project_id: uuid.UUID, client_status: str, actor_id: uuid.UUID
) -> ProjectAggregate:
    aggregate = await load_project(session, project_id, for_update=True)
    aggregate.project.client_status = client_status
    aggregate.project.updated_by = actor_id
    session.add(aggregate.project)
    await session.flush()
    return aggregate


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def apply_filters(
    stmt,
    *,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
):
    if status:
        stmt = stmt.where(Project.status == status)
    if priority:
        stmt = stmt.where(Project.priority == priority)
    if category:
        stmt = stmt.where(Project.category == category)
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Project.project_name).like(pattern),
                func.lower(Project.client_name).like(pattern),
                func.lower(Project.description).like(pattern),
            )
        )
    return stmt


async def list_projects(
    session: AsyncSession,
    *,
    page: int = 1,
    per_page: int = 25,
    **filters,
) -> list[ProjectAggregate]:
    stmt = apply_filters(select(Project), **filters)
    stmt = stmt.order_by(Project.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    return await load_projects(session, stmt)


def project_stats(aggregates: Sequence[ProjectAggregate]) -> ProjectStats:
    statuses = [a.project.status for a in aggregates]
    return ProjectStats(
        total=len(statuses),
        pending=statuses.count(ProjectStatus.PENDING.value),
        in_progress=statuses.count(ProjectStatus.IN_PROGRESS.value),
        completed=statuses.count(ProjectStatus.COMPLETED.value),
        on_hold=statuses.count(ProjectStatus.ON_HOLD.value),
    )
