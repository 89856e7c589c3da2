"""
Pytest fixtures for the portal API.
Every test gets a fresh in-memory SQLite schema and an ASGI client.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUDIT_REQUESTS"] = "false"
os.environ["AUTO_CREATE_SCHEMA"] = "false"
os.environ["APP_ENV"] = "test"

from collections.abc import AsyncGenerator  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

import portal.domain  # noqa: E402,F401
from portal.db.base import Base, async_session_factory, engine  # noqa: E402
from portal.main import create_app  # noqa: E402

API = "/api/v1"


@pytest_asyncio.fixture(autouse=True)
async def schema() -> AsyncGenerator[None, None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    # The in-memory database lives on the pooled connection; disposing drops it
    await engine.dispose()


@pytest_asyncio.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def participants(client: AsyncClient) -> dict[str, str]:
    """A provider, a consumer and an admin; returns ``{role: id}``."""
    ids = {}
    for role, name in (("provider", "KKKS Alpha"), ("consumer", "SKK Migas"), ("admin", "Portal Admin")):
        resp = await client.post(
            f"{API}/participants",
            json={"email": f"{role}@example.id", "name": name, "role": role},
        )
        assert resp.status_code == 201, resp.text
        ids[role] = resp.json()["data"]["id"]
    return ids
