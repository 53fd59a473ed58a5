"""Project model (aggregate root of the billing ledgers)."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    project_name: str = Field(nullable=False, max_length=200)
    client_name: str = Field(nullable=False, max_length=200)
    description: Optional[str] = None
    deadline: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_platform: Optional[str] = None
    priority: str = Field(nullable=False, default="medium")  # low | medium | high | urgent
    payment_schedule: str = Field(nullable=False, default="upfront")  # upfront | 50-50 | milestone
    scope_policy: Optional[str] = None
    technologies: List[str] = Field(default_factory=list, sa_type=JSONType, nullable=False)
    progress: int = Field(nullable=False, default=0)

    # Pricing strategy, fixed at creation
    category: str = Field(nullable=False)  # fixed | hourly | milestone
    fixed_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2, nullable=False)
    hourly_rate: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2, nullable=False)
    estimated_hours: Decimal = Field(default=Decimal("0"), max_digits=8, decimal_places=2, nullable=False)

    # Derived from the ledgers by app.services.pricing; never written directly
    actual_hours: Decimal = Field(default=Decimal("0"), max_digits=8, decimal_places=2, nullable=False)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2, nullable=False)
    paid_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2, nullable=False)
    pending_amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2, nullable=False)

    status: str = Field(nullable=False, default="pending", index=True)
    client_status: Optional[str] = None  # accept | reject | review | away
    team_lead_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", index=True)
    visible_to_team_leads: bool = Field(nullable=False, default=True)

    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    updated_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
