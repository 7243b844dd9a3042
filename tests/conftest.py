"""
Shared fixtures: a throwaway SQLite database, the app wired to it and an
HTTP client talking to the app in-process.
"""

import os

# Must be set before ``config.settings`` is first imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("REFRESH_SECRET", "test-refresh-secret-0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from datetime import timedelta

import httpx
import pytest
import pytest_asyncio

from auth.tokens import TokenService
from config.settings import Settings
from database.session import create_tables
from main import create_app

ACCESS_SECRET = os.environ["JWT_SECRET"]
REFRESH_SECRET = os.environ["REFRESH_SECRET"]


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(
        ACCESS_SECRET,
        REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        auto_create_tables=False,
    )


@pytest_asyncio.fixture
async def app(settings):
    application = create_app(settings)
    await create_tables(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def session_factory(app):
    return app.state.session_factory


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


async def register(client, name="Alice", email="alice@example.com", password="secret"):
    """Register through the API and return the parsed response body."""
    response = await client.post(
        "/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def alice(client):
    return await register(client)


@pytest_asyncio.fixture
async def bob(client):
    return await register(client, name="Bob", email="bob@example.com", password="hunter2")
