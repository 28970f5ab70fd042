"""
Shared fixtures for the test suite.

Strategy:
- Every test gets its own in-memory SQLite database (aiosqlite + StaticPool),
  created from the ORM metadata; no migrations, no external services.
- The app's ``get_db`` dependency is overridden to hand out sessions bound to
  that database.
- Users are inserted directly; tokens are minted with the same helpers the
  login route uses.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["GEOCODING_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ponto.core.security import create_access_token, hash_password
from ponto.db.models import Base, User
from ponto.db.session import get_db
from ponto.main import app


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    """Raw DB session for direct queries in tests."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# HTTP client fixture
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncClient:
    """Fresh HTTPX async client per test function (maintains cookie jar)."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


async def _create_user(
    session_factory,
    *,
    email: str,
    password: str,
    role: str,
    first_name: str | None,
    last_name: str | None,
    is_active: bool = True,
) -> dict:
    async with session_factory() as session:
        user = User(
            email=email,
            password_hash=hash_password(password),
            role=role,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return {"id": user.id, "email": email, "password": password}


def _headers_for(user: dict) -> dict:
    token = create_access_token({"sub": str(user["id"])})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_user(session_factory) -> dict:
    return await _create_user(
        session_factory,
        email="admin@cleanmyhouse.com.br",
        password="Admin123!",
        role="admin",
        first_name="Admin",
        last_name="Geral",
    )


@pytest_asyncio.fixture
async def employee_user(session_factory) -> dict:
    return await _create_user(
        session_factory,
        email="ana.silva@cleanmyhouse.com.br",
        password="AnaSilva123!",
        role="employee",
        first_name="Ana",
        last_name="Silva",
    )


@pytest_asyncio.fixture
async def second_employee(session_factory) -> dict:
    return await _create_user(
        session_factory,
        email="bruno.costa@cleanmyhouse.com.br",
        password="Bruno123!",
        role="employee",
        first_name="Bruno",
        last_name="Costa",
    )


@pytest_asyncio.fixture
async def inactive_user(session_factory) -> dict:
    return await _create_user(
        session_factory,
        email="inativo@cleanmyhouse.com.br",
        password="Inativo123!",
        role="employee",
        first_name="Carlos",
        last_name="Inativo",
        is_active=False,
    )


@pytest.fixture
def admin_headers(admin_user: dict) -> dict:
    return _headers_for(admin_user)


@pytest.fixture
def employee_headers(employee_user: dict) -> dict:
    return _headers_for(employee_user)
