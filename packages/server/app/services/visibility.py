"""
Visibility filter: the single place a project or group becomes a response.

Administrators see pricing inputs, derived totals, payments and group deal
values. Everyone else gets the same data with those keys absent (not nulled).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

from app.services.projects import ProjectAggregate
from trackhub_shared.schemas.common import Role
from trackhub_shared.schemas.groups import (
    GroupFinancialView,
    GroupListResponse,
    GroupResponse,
    GroupView,
)
from trackhub_shared.schemas.ledgers import MilestoneRead, PaymentRead, TimeEntryRead
from trackhub_shared.schemas.projects import (
    ProjectFinancialView,
    ProjectListResponse,
    ProjectResponse,
    ProjectStats,
    ProjectView,
)

if TYPE_CHECKING:
    from app.core.auth import AuthenticatedUser
    from app.services.groups import GroupAggregate

FINANCIAL_FIELDS: frozenset[str] = frozenset(
    {
        "fixed_amount",
        "hourly_rate",
        "total_amount",
        "paid_amount",
        "pending_amount",
        "payments",
    }
)


def build_view(aggregate: ProjectAggregate, role: Union[Role, str]) -> ProjectView:
    data: dict[str, Any] = aggregate.project.model_dump()
    data["employee_ids"] = list(aggregate.employee_ids)
    data["milestones"] = [MilestoneRead.model_validate(m) for m in aggregate.milestones]
    data["time_entries"] = [TimeEntryRead.model_validate(t) for t in aggregate.time_entries]

    if Role(role) == Role.ADMIN:
        data["payments"] = [PaymentRead.model_validate(p) for p in aggregate.payments]
        return ProjectFinancialView.model_validate(data)
    return ProjectView.model_validate(data)


def filter_project(aggregate: ProjectAggregate, role: Union[Role, str]) -> dict[str, Any]:
    """JSON-ready project as the given role is allowed to see it."""
    return build_view(aggregate, role).model_dump(mode="json")


def project_response(
    aggregate: Optional[ProjectAggregate], auth: "AuthenticatedUser", message: str
) -> ProjectResponse:
    project = filter_project(aggregate, auth.role) if aggregate is not None else None
    return ProjectResponse(success=True, message=message, project=project)


def project_list_response(
    aggregates: Sequence[ProjectAggregate],
    auth: "AuthenticatedUser",
    stats: Optional[ProjectStats] = None,
) -> ProjectListResponse:
    return ProjectListResponse(
        success=True,
        count=len(aggregates),
        projects=[filter_project(a, auth.role) for a in aggregates],
        stats=stats,
    )


def filter_group(aggregate: "GroupAggregate", auth: "AuthenticatedUser") -> dict[str, Any]:
    """JSON-ready group; the deal value only reaches administrators."""
    data: dict[str, Any] = aggregate.group.model_dump()
    data["project_ids"] = list(aggregate.project_ids)
    view = GroupFinancialView if auth.is_admin else GroupView
    return view.model_validate(data).model_dump(mode="json")


def group_response(
    aggregate: Optional["GroupAggregate"], auth: "AuthenticatedUser", message: str
) -> GroupResponse:
    group = filter_group(aggregate, auth) if aggregate is not None else None
    return GroupResponse(success=True, message=message, group=group)


def group_list_response(
    aggregates: Sequence["GroupAggregate"], auth: "AuthenticatedUser"
) -> GroupListResponse:
    return GroupListResponse(
        success=True,
        count=len(aggregates),
        groups=[filter_group(a, auth) for a in aggregates],
    )
