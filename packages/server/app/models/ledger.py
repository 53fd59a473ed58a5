"""Ledger entry models owned by a project: payments, milestones, time entries."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class Milestone(UUIDMixin, SQLModel, table=True):
    __tablename__ = "milestones"

    project_id: uuid.UUID = Field(
        foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True
    )
    title: str = Field(nullable=False)
    description: Optional[str] = None
    amount: Decimal = Field(max_digits=12, decimal_places=2, nullable=False)
    due_date: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    deliverables: Optional[str] = None
    order: int = Field(nullable=False, default=0)
    status: str = Field(nullable=False, default="pending")  # pending | completed
    completed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    completed_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")


class Payment(UUIDMixin, SQLModel, table=True):
    __tablename__ = "payments"

    project_id: uuid.UUID = Field(
        foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True
    )
    amount: Decimal = Field(max_digits=12, decimal_places=2, nullable=False)
    payment_method: str = Field(nullable=False, default="bank-transfer")
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    milestone_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="milestones.id", ondelete="SET NULL"
    )
    added_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    payment_date: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=sa.DateTime(timezone=True)
    )
    added_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=sa.DateTime(timezone=True)
    )


class TimeEntry(UUIDMixin, SQLModel, table=True):
    __tablename__ = "time_entries"

    project_id: uuid.UUID = Field(
        foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True
    )
    date: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime(timezone=True))
    hours: Decimal = Field(max_digits=8, decimal_places=2, nullable=False)
    description: str = Field(nullable=False)
    task_type: str = Field(nullable=False, default="development")
    added_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    added_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=sa.DateTime(timezone=True)
    )
