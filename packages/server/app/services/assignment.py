"""
Assignment lifecycle: team leads pick and release projects, administrators
assign team leads and employees directly.

    Unclaimed  --pick-->     Owned      (pending -> in-progress)
    Owned      --release-->  Unclaimed  (team lead and employees cleared)

A team lead may own at most ``max_concurrent_projects`` projects whose status
is in the quota window. The cap is counted from live rows at pick time and
the claim itself is one conditional UPDATE, so two team leads racing for the
same project cannot both win.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional, Sequence

import structlog
from sqlalchemy import case, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import Settings, get_settings
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    QuotaExceededError,
)
from app.models.assignments import ProjectEmployeeAssignment
from app.models.base import utcnow
from app.models.project import Project
from app.models.user import User
from app.services.projects import ProjectAggregate, apply_filters, load_project, load_projects
from trackhub_shared.schemas.common import TERMINAL_STATUSES, ProjectStatus, Role

log = structlog.get_logger()


def _values(statuses: Iterable) -> list[str]:
    return [ProjectStatus(s).value for s in statuses]


async def count_open_projects(
    session: AsyncSession, team_lead_id: uuid.UUID, quota_statuses: Iterable
) -> int:
    """Number of projects the team lead owns whose status counts toward the cap."""
    result = await session.execute(
        select(func.count())
        .select_from(Project)
        .where(
            Project.team_lead_id == team_lead_id,
            Project.status.in_(_values(quota_statuses)),
        )
    )
    return result.scalar_one()


async def claim_project(
    session: AsyncSession,
    project_id: uuid.UUID,
    team_lead_id: uuid.UUID,
    pickable_statuses: Iterable,
) -> bool:
    """Set the team lead if and only if the project is still unclaimed.

    Returns False when no row matched: the project was claimed, hidden or
    moved out of the pickable statuses since it was read.
    """
    result = await session.execute(
        update(Project)
        .where(
            Project.id == project_id,
            Project.team_lead_id.is_(None),
            Project.visible_to_team_leads.is_(True),
            Project.status.in_(_values(pickable_statuses)),
        )
        .values(
            team_lead_id=team_lead_id,
            status=case(
                (Project.status == ProjectStatus.PENDING.value, ProjectStatus.IN_PROGRESS.value),
                else_=Project.status,
            ),
            updated_by=team_lead_id,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _check_pickable(project: Project, pickable_statuses: Iterable) -> None:
    if not project.visible_to_team_leads:
        raise ForbiddenError("This project is not available for team leads")
    if project.team_lead_id is not None:
        raise ConflictError("Project is already assigned to a team lead")
    if project.status not in _values(pickable_statuses):
        raise InvalidStateError(
            f"Project cannot be picked while {project.status}", status=project.status
        )


async def pick_project(
    session: AsyncSession,
    project_id: uuid.UUID,
    team_lead_id: uuid.UUID,
    settings: Optional[Settings] = None,
) -> ProjectAggregate:
    settings = settings or get_settings()

    aggregate = await load_project(session, project_id)
    _check_pickable(aggregate.project, settings.pickable_statuses)

    open_projects = await count_open_projects(session, team_lead_id, settings.quota_statuses)
    if open_projects >= settings.max_concurrent_projects:
        log.info(
            "project.pick_rejected",
            project_id=str(project_id),
            team_lead_id=str(team_lead_id),
            open_projects=open_projects,
        )
        raise QuotaExceededError(settings.max_concurrent_projects)

    if not await claim_project(session, project_id, team_lead_id, settings.pickable_statuses):
        # Lost a race; report what changed underneath us
        aggregate = await load_project(session, project_id)
        _check_pickable(aggregate.project, settings.pickable_statuses)
        raise ConflictError("Project is already assigned to a team lead")

    aggregate = await load_project(session, project_id)
    log.info(
        "project.picked",
        project_id=str(project_id),
        team_lead_id=str(team_lead_id),
        status=aggregate.project.status,
    )
    return aggregate


async def release_project(
    session: AsyncSession,
    project_id: uuid.UUID,
    team_lead_id: uuid.UUID,
    reason: Optional[str] = None,
) -> ProjectAggregate:
    """Hand an owned project back to the pick pool."""
    aggregate = await load_project(session, project_id, for_update=True)
    project = aggregate.project

    if project.team_lead_id != team_lead_id:
        raise ForbiddenError("You can only release projects assigned to you")
    if ProjectStatus(project.status) in TERMINAL_STATUSES:
        raise InvalidStateError(
            "Cannot release completed or cancelled projects", status=project.status
        )

    await _replace_employees(session, project_id, [])
    aggregate.employee_ids = []
    project.team_lead_id = None
    project.status = ProjectStatus.PENDING.value
    project.updated_by = team_lead_id
    session.add(project)
    await session.flush()

    log.info(
        "project.released",
        project_id=str(project_id),
        team_lead_id=str(team_lead_id),
        reason=reason,
    )
    return aggregate


async def _replace_employees(
    session: AsyncSession, project_id: uuid.UUID, employee_ids: Sequence[uuid.UUID]
) -> None:
    """Make the staffed set exactly ``employee_ids``, keeping unchanged rows."""
    result = await session.execute(
        select(ProjectEmployeeAssignment).where(
            ProjectEmployeeAssignment.project_id == project_id
        )
    )
    current = {a.user_id: a for a in result.scalars().all()}
    for user_id, assignment in current.items():
        if user_id not in employee_ids:
            await session.delete(assignment)
    for employee_id in employee_ids:
        if employee_id not in current:
            session.add(ProjectEmployeeAssignment(project_id=project_id, user_id=employee_id))


async def _load_user(session: AsyncSession, user_id: uuid.UUID, role: Role) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    if user.role != role.value:
        raise InvalidArgumentError(
            f"User {user_id} is not a {role.value}", user_id=str(user_id), role=user.role
        )
    return user


async def assign_team_lead(
    session: AsyncSession,
    project_id: uuid.UUID,
    team_lead_id: uuid.UUID,
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    """Administrator override: set the owner regardless of cap or current owner."""
    aggregate = await load_project(session, project_id, for_update=True)
    await _load_user(session, team_lead_id, Role.TEAM_LEAD)

    previous = aggregate.project.team_lead_id
    aggregate.project.team_lead_id = team_lead_id
    aggregate.project.updated_by = actor_id
    session.add(aggregate.project)
    await session.flush()

    log.info(
        "project.team_lead_assigned",
        project_id=str(project_id),
        team_lead_id=str(team_lead_id),
        previous_team_lead_id=str(previous) if previous else None,
        actor_id=str(actor_id),
    )
    return aggregate


async def assign_employees(
    session: AsyncSession,
    project_id: uuid.UUID,
    employee_ids: Sequence[uuid.UUID],
    actor_id: uuid.UUID,
) -> ProjectAggregate:
    """Administrator override: replace the staffed employee set."""
    # Keep first occurrence order, drop duplicates
    employee_ids = list(dict.fromkeys(employee_ids))

    aggregate = await load_project(session, project_id, for_update=True)
    if employee_ids and aggregate.project.team_lead_id is None:
        raise InvalidStateError("Assign a team lead before staffing employees")
    for employee_id in employee_ids:
        await _load_user(session, employee_id, Role.EMPLOYEE)

    await _replace_employees(session, project_id, employee_ids)
    aggregate.employee_ids = employee_ids
    aggregate.project.updated_by = actor_id
    session.add(aggregate.project)
    await session.flush()

    log.info(
        "project.employees_assigned",
        project_id=str(project_id),
        employee_count=len(employee_ids),
        actor_id=str(actor_id),
    )
    return aggregate


async def list_available_projects(
    session: AsyncSession,
    settings: Optional[Settings] = None,
    **filters,
) -> list[ProjectAggregate]:
    """The pick pool: visible, unowned projects in a pickable status."""
    settings = settings or get_settings()
    stmt = select(Project).where(
        Project.visible_to_team_leads.is_(True),
        Project.team_lead_id.is_(None),
        Project.status.in_(_values(settings.pickable_statuses)),
    )
    stmt = apply_filters(stmt, **filters).order_by(Project.created_at.desc())
    return await load_projects(session, stmt)


async def list_my_projects(
    session: AsyncSession, user_id: uuid.UUID, role: Role, **filters
) -> list[ProjectAggregate]:
    """Projects a team lead owns, or projects an employee is staffed on."""
    if role == Role.TEAM_LEAD:
        stmt = select(Project).where(Project.team_lead_id == user_id)
    elif role == Role.EMPLOYEE:
        stmt = (
            select(Project)
            .join(
                ProjectEmployeeAssignment,
                ProjectEmployeeAssignment.project_id == Project.id,
            )
            .where(ProjectEmployeeAssignment.user_id == user_id)
        )
    else:
        raise InvalidArgumentError("Only team leads and employees have assigned projects")
    stmt = apply_filters(stmt, **filters).order_by(Project.created_at.desc())
    return await load_projects(session, stmt)
