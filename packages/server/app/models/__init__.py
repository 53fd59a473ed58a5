# SQLModel definitions, imported here so Alembic sees the full metadata.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .project import Project  # noqa: F401
from .ledger import Milestone, Payment, TimeEntry  # noqa: F401
from .assignments import ProjectEmployeeAssignment  # noqa: F401
from .groups import ProjectGroup, ProjectGroupMember  # noqa: F401
