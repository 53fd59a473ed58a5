"""
Project groups: an administrator bundles several projects sold to one client
under a single deal, with a main project, a pricing model and the agreed
total value of the deal.

The group's ``total_value`` is the negotiated contract value. It is entered
by an administrator and is not derived from the member projects' ledgers.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from app.models.groups import ProjectGroup, ProjectGroupMember
from app.models.project import Project
from app.services.pricing import to_decimal
from trackhub_shared.schemas.groups import GroupCreate, GroupUpdate

log = structlog.get_logger()


@dataclass
class GroupAggregate:
    group: ProjectGroup
    project_ids: list[uuid.UUID] = field(default_factory=list)


async def _load_members(
    session: AsyncSession, groups: Sequence[ProjectGroup]
) -> list[GroupAggregate]:
    if not groups:
        return []
    members: dict[uuid.UUID, list[uuid.UUID]] = defaultdict(list)
    result = await session.execute(
        select(ProjectGroupMember).where(
            ProjectGroupMember.group_id.in_([g.id for g in groups])
        )
    )
    for m in result.scalars().all():
        members[m.group_id].append(m.project_id)
    return [GroupAggregate(group=g, project_ids=sorted(members[g.id], key=str)) for g in groups]


async def load_group(session: AsyncSession, group_id: uuid.UUID) -> GroupAggregate:
    result = await session.execute(
        select(ProjectGroup)
        .where(ProjectGroup.id == group_id)
        .execution_options(populate_existing=True)
    )
    group = result.scalar_one_or_none()
    if group is None:
        raise NotFoundError("Project group", group_id)
    aggregates = await _load_members(session, [group])
    return aggregates[0]


async def list_groups(session: AsyncSession) -> list[GroupAggregate]:
    result = await session.execute(
        select(ProjectGroup).order_by(ProjectGroup.created_at.desc())
    )
    return await _load_members(session, list(result.scalars().all()))


def _clean(value: str, name: str) -> str:
    value = value.strip()
    if not value:
        raise InvalidArgumentError(f"{name} cannot be empty")
    return value


def _total_value(value):
    total = to_decimal(value)
    if total < 0:
        raise InvalidArgumentError("Total value cannot be negative")
    return total


async def _require_projects(session: AsyncSession, project_ids: Sequence[uuid.UUID]) -> None:
    if not project_ids:
        return
    result = await session.execute(select(Project.id).where(Project.id.in_(project_ids)))
    found = set(result.scalars().all())
    for project_id in project_ids:
        if project_id not in found:
            raise NotFoundError("Project", project_id)


async def _require_unique_code(
    session: AsyncSession, group_code: str, exclude_id: Optional[uuid.UUID] = None
) -> None:
    stmt = select(ProjectGroup.id).where(ProjectGroup.group_code == group_code)
    if exclude_id is not None:
        stmt = stmt.where(ProjectGroup.id != exclude_id)
    result = await session.execute(stmt)
    if result.first() is not None:
        raise ConflictError("Group ID already exists", group_code=group_code)


async def _replace_members(
    session: AsyncSession, group_id: uuid.UUID, project_ids: Sequence[uuid.UUID]
) -> None:
    result = await session.execute(
        select(ProjectGroupMember).where(ProjectGroupMember.group_id == group_id)
    )
    current = {m.project_id: m for m in result.scalars().all()}
    for project_id, member in current.items():
        if project_id not in project_ids:
            await session.delete(member)
    for project_id in project_ids:
        if project_id not in current:
            session.add(ProjectGroupMember(group_id=group_id, project_id=project_id))


async def create_group(
    session: AsyncSession, group_in: GroupCreate, actor_id: uuid.UUID
) -> GroupAggregate:
    group_code = _clean(group_in.group_code, "Group ID")
    client_name = _clean(group_in.client_name, "Client name")
    total_value = _total_value(group_in.total_value)
    project_ids = list(dict.fromkeys(group_in.project_ids))

    await _require_unique_code(session, group_code)
    await _require_projects(session, [group_in.main_project_id, *project_ids])

    group = ProjectGroup(
        group_code=group_code,
        client_name=client_name,
        main_project_id=group_in.main_project_id,
        pricing_model=group_in.pricing_model.value,
        total_value=total_value,
        created_by=actor_id,
    )
    session.add(group)
    await session.flush()
    for project_id in project_ids:
        session.add(ProjectGroupMember(group_id=group.id, project_id=project_id))
    await session.flush()

    log.info(
        "project_group.created",
        group_id=str(group.id),
        group_code=group_code,
        project_count=len(project_ids),
        actor_id=str(actor_id),
    )
    return GroupAggregate(group=group, project_ids=sorted(project_ids, key=str))


async def update_group(
    session: AsyncSession, group_id: uuid.UUID, group_in: GroupUpdate, actor_id: uuid.UUID
) -> GroupAggregate:
    data = group_in.model_dump(exclude_unset=True)
    aggregate = await load_group(session, group_id)
    group = aggregate.group

    if "group_code" in data:
        data["group_code"] = _clean(data["group_code"] or "", "Group ID")
        await _require_unique_code(session, data["group_code"], exclude_id=group.id)
    if "client_name" in data:
        data["client_name"] = _clean(data["client_name"] or "", "Client name")
    if "main_project_id" in data:
        if data["main_project_id"] is None:
            raise InvalidArgumentError("Main project is required")
        await _require_projects(session, [data["main_project_id"]])
    if "pricing_model" in data:
        if data["pricing_model"] is None:
            raise InvalidArgumentError("Pricing model cannot be empty")
        data["pricing_model"] = data["pricing_model"].value
    if "total_value" in data:
        data["total_value"] = _total_value(data["total_value"])

    project_ids = data.pop("project_ids", None)
    if project_ids is not None:
        project_ids = list(dict.fromkeys(project_ids))
        await _require_projects(session, project_ids)
        await _replace_members(session, group.id, project_ids)
        aggregate.project_ids = sorted(project_ids, key=str)

    for key, value in data.items():
        setattr(group, key, value)
    session.add(group)
    await session.flush()

    log.info(
        "project_group.updated",
        group_id=str(group_id),
        fields=sorted(data) + (["project_ids"] if project_ids is not None else []),
        actor_id=str(actor_id),
    )
    return aggregate


async def delete_group(session: AsyncSession, group_id: uuid.UUID) -> None:
    aggregate = await load_group(session, group_id)
    await session.execute(
        delete(ProjectGroupMember).where(ProjectGroupMember.group_id == group_id)
    )
    await session.delete(aggregate.group)
    await session.flush()
    log.info("project_group.deleted", group_id=str(group_id))


async def detach_project(session: AsyncSession, project_id: uuid.UUID) -> None:
    """Drop a deleted project from every group it belongs to or heads."""
    await session.execute(
        delete(ProjectGroupMember).where(ProjectGroupMember.project_id == project_id)
    )
    await session.execute(
        update(ProjectGroup)
        .where(ProjectGroup.main_project_id == project_id)
        .values(main_project_id=None)
        .execution_options(synchronize_session=False)
    )
