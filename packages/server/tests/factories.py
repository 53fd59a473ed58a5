"""
Builders for test data: request payloads and bearer headers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.core.auth import create_jwt
from app.models.user import User
from trackhub_shared.schemas.common import ProjectCategory
from trackhub_shared.schemas.ledgers import MilestoneCreate
from trackhub_shared.schemas.projects import ProjectCreate


def auth_headers(user: User) -> dict[str, str]:
    token, _ = create_jwt(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


def due(days: int = 30) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


def hourly_project(rate: str = "50", **kwargs) -> ProjectCreate:
    return ProjectCreate(
        project_name=kwargs.pop("project_name", "Support retainer"),
        client_name=kwargs.pop("client_name", "Acme"),
        category=ProjectCategory.HOURLY,
        hourly_rate=Decimal(rate),
        **kwargs,
    )


def fixed_project(amount: str = "1500", **kwargs) -> ProjectCreate:
    return ProjectCreate(
        project_name=kwargs.pop("project_name", "Landing page"),
        client_name=kwargs.pop("client_name", "Globex"),
        category=ProjectCategory.FIXED,
        fixed_amount=Decimal(amount),
        **kwargs,
    )


def milestone_project(*amounts: str, **kwargs) -> ProjectCreate:
    return ProjectCreate(
        project_name=kwargs.pop("project_name", "Mobile app"),
        client_name=kwargs.pop("client_name", "Initech"),
        category=ProjectCategory.MILESTONE,
        milestones=[
            MilestoneCreate(title=f"Phase {i + 1}", amount=Decimal(a), due_date=due(30 * (i + 1)))
            for i, a in enumerate(amounts)
        ],
        **kwargs,
    )

