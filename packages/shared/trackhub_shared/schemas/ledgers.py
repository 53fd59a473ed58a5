"""Ledger entry schemas: payments, milestones and time entries."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import UUID4, BaseModel

from .common import Hours, MilestoneStatus, Money, PaymentMethod, TaskType

# Amount and hours positivity is checked by the ledger services so that the
# same rule applies to HTTP callers and in-process callers alike.


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

class PaymentCreate(BaseModel):
    amount: Money
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    milestone_id: Optional[UUID4] = None
    payment_date: Optional[datetime] = None


class PaymentUpdate(BaseModel):
    amount: Optional[Money] = None
    payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    milestone_id: Optional[UUID4] = None
    payment_date: Optional[datetime] = None


class PaymentRead(BaseModel):
    id: UUID4
    amount: Money
    payment_method: str
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    milestone_id: Optional[UUID4] = None
    added_by: Optional[UUID4] = None
    payment_date: datetime
    added_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------

class MilestoneCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[Money] = None
    due_date: Optional[datetime] = None
    deliverables: Optional[str] = None


class MilestoneUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[Money] = None
    due_date: Optional[datetime] = None
    deliverables: Optional[str] = None
    status: Optional[MilestoneStatus] = None


class MilestoneRead(BaseModel):
    id: UUID4
    title: str
    description: Optional[str] = None
    amount: Money
    due_date: datetime
    deliverables: Optional[str] = None
    order: int
    status: MilestoneStatus
    completed_at: Optional[datetime] = None
    completed_by: Optional[UUID4] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Time entries
# ---------------------------------------------------------------------------

class TimeEntryCreate(BaseModel):
    hours: Hours
    description: Optional[str] = None
    date: Optional[datetime] = None
    task_type: TaskType = TaskType.DEVELOPMENT


class TimeEntryUpdate(BaseModel):
    hours: Optional[Hours] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    task_type: Optional[TaskType] = None


class TimeEntryRead(BaseModel):
    id: UUID4
    date: datetime
    hours: Hours
    description: str
    task_type: TaskType
    added_by: Optional[UUID4] = None
    added_at: datetime

    model_config = {"from_attributes": True}
