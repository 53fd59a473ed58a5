"""User model.

Accounts are owned by the authentication service; this server only reads
them to resolve callers and validate assignment targets.
"""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class User(UUIDMixin, SQLModel, table=True):
    __tablename__ = "users"

    name: str = Field(nullable=False)
    email: Optional[str] = Field(default=None, unique=True, index=True)
    role: str = Field(nullable=False, default="employee")  # administrator | team-lead | employee
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
