"""Project group schemas: several projects sold to one client under one deal."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .common import Money, ProjectCategory


class GroupCreate(BaseModel):
    group_code: str = Field(min_length=1, max_length=50)
    client_name: str = Field(min_length=1, max_length=200)
    main_project_id: UUID
    project_ids: List[UUID] = Field(default_factory=list)
    pricing_model: ProjectCategory = ProjectCategory.FIXED
    total_value: Optional[Money] = None


class GroupUpdate(BaseModel):
    group_code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    client_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    main_project_id: Optional[UUID] = None
    project_ids: Optional[List[UUID]] = None
    pricing_model: Optional[ProjectCategory] = None
    total_value: Optional[Money] = None


class GroupView(BaseModel):
    """Group as seen by team leads: membership without the deal value."""

    id: UUID
    group_code: str
    client_name: str
    main_project_id: Optional[UUID] = None
    project_ids: List[UUID] = Field(default_factory=list)
    pricing_model: ProjectCategory
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class GroupFinancialView(GroupView):
    total_value: Money


class GroupResponse(BaseModel):
    success: bool = True
    message: str
    group: Optional[Dict[str, Any]] = None


class GroupListResponse(BaseModel):
    success: bool = True
    count: int
    groups: List[Dict[str, Any]] = Field(default_factory=list)
