"""
Shared fixtures: an in-memory SQLite database built from the SQLModel
metadata, seeded users for each role, and an HTTP client wired to it.
"""

from __future__ import annotations

import os

os.environ.setdefault("TRACKHUB_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TRACKHUB_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("TRACKHUB_LOG_FORMAT", "text")

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.database import get_session
from app.main import app as fastapi_app
from app.models.project import Project
from app.models.user import User
from app.services.projects import create_project
from trackhub_shared.schemas.common import ProjectStatus, Role
from trackhub_shared.schemas.projects import ProjectCreate

from factories import fixed_project


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def users(session) -> SimpleNamespace:
    """One administrator, two team leads and two employees."""
    seeded = SimpleNamespace(
        admin=User(name="Ada Admin", email="admin@example.com", role=Role.ADMIN.value),
        lead=User(name="Lee Lead", email="lead@example.com", role=Role.TEAM_LEAD.value),
        other_lead=User(name="Olu Lead", email="lead2@example.com", role=Role.TEAM_LEAD.value),
        employee=User(name="Eve Employee", email="eve@example.com", role=Role.EMPLOYEE.value),
        other_employee=User(name="Eli Employee", email="eli@example.com", role=Role.EMPLOYEE.value),
    )
    session.add_all(vars(seeded).values())
    await session.commit()
    return seeded


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(
        transport=ASGITransport(app=fastapi_app), base_url="http://test"
    ) as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_project(session, users):
    """Create and commit a project; optional owner and status are set directly."""

    async def _make(project_in: ProjectCreate = None, *, team_lead=None, status=None):
        aggregate = await create_project(session, project_in or fixed_project(), users.admin.id)
        project: Project = aggregate.project
        if team_lead is not None:
            project.team_lead_id = team_lead.id
        if status is not None:
            project.status = ProjectStatus(status).value
        session.add(project)
        await session.commit()
        return aggregate

    return _make
