from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, PlainSerializer

# Decimal internally, plain JSON numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Hours = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class Role(str, Enum):
    ADMIN = "administrator"
    TEAM_LEAD = "team-lead"
    EMPLOYEE = "employee"


class ProjectCategory(str, Enum):
    FIXED = "fixed"
    HOURLY = "hourly"
    MILESTONE = "milestone"


class ProjectStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES: frozenset[ProjectStatus] = frozenset(
    {ProjectStatus.COMPLETED, ProjectStatus.CANCELLED}
)

# Statuses a project may be picked from, and the statuses that count toward
# a team lead's concurrency cap. Both are overridable through settings.
DEFAULT_PICKABLE_STATUSES: list[ProjectStatus] = [
    ProjectStatus.PENDING,
    ProjectStatus.ACTIVE,
    ProjectStatus.IN_PROGRESS,
]
DEFAULT_QUOTA_STATUSES: list[ProjectStatus] = [
    ProjectStatus.PENDING,
    ProjectStatus.ACTIVE,
    ProjectStatus.IN_PROGRESS,
]


class ClientStatus(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    REVIEW = "review"
    AWAY = "away"


class ProjectPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PaymentSchedule(str, Enum):
    UPFRONT = "upfront"
    HALF_AND_HALF = "50-50"
    MILESTONE = "milestone"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank-transfer"
    CREDIT_CARD = "credit-card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    OTHER = "other"


class MilestoneStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class TaskType(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    DESIGN = "design"
    MEETING = "meeting"
    RESEARCH = "research"
    DOCUMENTATION = "documentation"
    BUG_FIXING = "bug-fixing"
    DEPLOYMENT = "deployment"


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int
    detail: Optional[Any] = None


class APIResponse(BaseModel):
    success: bool
    message: str
    error: Optional[ErrorBody] = None
