"""Project groups and their member projects."""

from decimal import Decimal
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ProjectGroup(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "project_groups"

    group_code: str = Field(nullable=False, unique=True, index=True, max_length=50)
    client_name: str = Field(nullable=False, max_length=200)
    # Nulled when the main project is deleted; the group keeps its members
    main_project_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="projects.id", ondelete="SET NULL"
    )
    pricing_model: str = Field(nullable=False, default="fixed")  # fixed | hourly | milestone
    total_value: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2, nullable=False)
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")


class ProjectGroupMember(SQLModel, table=True):
    __tablename__ = "project_group_members"

    group_id: uuid.UUID = Field(foreign_key="project_groups.id", ondelete="CASCADE", primary_key=True)
    project_id: uuid.UUID = Field(foreign_key="projects.id", ondelete="CASCADE", primary_key=True)
