"""
Shared fixtures: an in-memory SQLite database per test, an API client wired
to it, and helpers that seed users, orgs, members and pages.
"""

from __future__ import annotations

import os

os.environ.setdefault("ORGKEEPER_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ORGKEEPER_SECRET_KEY", "s3cr3t")
os.environ.setdefault("ORGKEEPER_LOG_FORMAT", "text")
os.environ.setdefault("ORGKEEPER_LOG_LEVEL", "warning")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import orgkeeper.models  # noqa: F401
from orgkeeper.core.auth import ORG_HEADER, create_jwt
from orgkeeper.core.config import get_settings
from orgkeeper.core.database import get_session
from orgkeeper.main import app
from orgkeeper.models.integration import Integration
from orgkeeper.models.membership import Membership
from orgkeeper.models.organization import Organization
from orgkeeper.models.user import User
from orgkeeper.services import organizations as org_service
from orgkeeper_shared.schemas.common import Role

TEST_SECRET = get_settings().secret_key


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(session_factory):
    async def _make(email: str, name: str | None = None) -> User:
        async with session_factory() as session:
            user = User(email=email, name=name or email.split("@")[0])
            session.add(user)
            await session.commit()
            return user

    return _make


@pytest.fixture
def make_org(session_factory):
    async def _make(owner: User, name: str = "Acme") -> Organization:
        async with session_factory() as session:
            org = await org_service.create_org_for_user(owner.id, name, TEST_SECRET, session)
            await session.commit()
            return org

    return _make


@pytest.fixture
def add_member(session_factory):
    async def _add(user: User, org: Organization, role: Role = Role.USER) -> Membership:
        async with session_factory() as session:
            membership = Membership(user_id=user.id, organization_id=org.id, role=role)
            session.add(membership)
            await session.commit()
            return membership

    return _add


@pytest.fixture
def make_page(session_factory):
    async def _make(org: Organization, name: str, provider: str = "youtube") -> Integration:
        async with session_factory() as session:
            page = Integration(organization_id=org.id, name=name, provider_identifier=provider)
            session.add(page)
            await session.commit()
            return page

    return _make


def auth_headers(user: User, org: Organization | None = None) -> dict[str, str]:
    token, _ = create_jwt(user.id)
    headers = {"Authorization": f"Bearer {token}"}
    if org is not None:
        headers[ORG_HEADER] = org.id
    return headers
