from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import (
    ClientStatus,
    Hours,
    Money,
    PaymentSchedule,
    ProjectCategory,
    ProjectPriority,
    ProjectStatus,
)
from .ledgers import MilestoneCreate, MilestoneRead, PaymentRead, TimeEntryRead


class ProjectBase(BaseModel):
    project_name: str = Field(min_length=1, max_length=200)
    client_name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_platform: Optional[str] = None
    priority: ProjectPriority = ProjectPriority.MEDIUM
    payment_schedule: PaymentSchedule = PaymentSchedule.UPFRONT
    scope_policy: Optional[str] = None
    estimated_hours: Hours = Decimal("0")
    technologies: List[str] = Field(default_factory=list)
    visible_to_team_leads: bool = True


class ProjectCreate(ProjectBase):
    category: ProjectCategory
    fixed_amount: Optional[Money] = None
    hourly_rate: Optional[Money] = None
    milestones: List[MilestoneCreate] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    """Editable project fields. Category and derived totals are not editable."""

    project_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    client_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_platform: Optional[str] = None
    priority: Optional[ProjectPriority] = None
    payment_schedule: Optional[PaymentSchedule] = None
    scope_policy: Optional[str] = None
    estimated_hours: Optional[Hours] = None
    technologies: Optional[List[str]] = None
    visible_to_team_leads: Optional[bool] = None
    status: Optional[ProjectStatus] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    fixed_amount: Optional[Money] = None
    hourly_rate: Optional[Money] = None


class ClientStatusUpdate(BaseModel):
    client_status: ClientStatus


class ProjectRelease(BaseModel):
    reason: Optional[str] = None


class TeamLeadAssign(BaseModel):
    team_lead_id: UUID


class EmployeesAssign(BaseModel):
    employee_ids: List[UUID]


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

class ProjectView(BaseModel):
    """Project as seen by team leads and employees: no prices, no payments."""

    id: UUID
    project_name: str
    client_name: str
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_platform: Optional[str] = None
    category: ProjectCategory
    priority: ProjectPriority
    payment_schedule: PaymentSchedule
    scope_policy: Optional[str] = None
    status: ProjectStatus
    client_status: Optional[ClientStatus] = None
    progress: int = 0
    technologies: List[str] = Field(default_factory=list)
    estimated_hours: Hours
    actual_hours: Hours
    team_lead_id: Optional[UUID] = None
    employee_ids: List[UUID] = Field(default_factory=list)
    visible_to_team_leads: bool
    milestones: List[MilestoneRead] = Field(default_factory=list)
    time_entries: List[TimeEntryRead] = Field(default_factory=list)
    created_by: Optional[UUID] = None
    updated_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class ProjectFinancialView(ProjectView):
    """Administrator view: adds pricing inputs, derived totals and payments."""

    fixed_amount: Money
    hourly_rate: Money
    total_amount: Money
    paid_amount: Money
    pending_amount: Money
    payments: List[PaymentRead] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------------

class ProjectResponse(BaseModel):
    success: bool = True
    message: str
    project: Optional[Dict[str, Any]] = None


class ProjectStats(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    on_hold: int = 0


class ProjectListResponse(BaseModel):
    success: bool = True
    count: int
    projects: List[Dict[str, Any]] = Field(default_factory=list)
    stats: Optional[ProjectStats] = None
