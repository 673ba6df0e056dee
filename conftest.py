import os

# Settings are read on import, so the test database is chosen first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_taskboard.db"
os.environ["RUN_MIGRATIONS"] = "False"
os.environ["ENVIRONMENT"] = "production"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SMTP_HOST"] = ""

from types import SimpleNamespace

import httpx
import pytest_asyncio

from taskboard.db.database import engine, async_session_factory
from taskboard.db.models import Base, User
from taskboard.main import app
from taskboard.services.security_service import SecurityService


@pytest_asyncio.fixture
async def db_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db(db_schema):
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(db):
    """Three registered users; passwords are not needed below the HTTP layer"""
    alice = User(email="alice@example.com", name="Alice", hashed_password="unused", avatar="")
    bob = User(email="bob@example.com", name="Bob", hashed_password="unused", avatar="")
    carol = User(email="carol@example.com", name="Carol", hashed_password="unused", avatar="")
    db.add_all([alice, bob, carol])
    await db.commit()
    return SimpleNamespace(alice=alice, bob=bob, carol=carol)


@pytest_asyncio.fixture
async def client(db_schema):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {SecurityService.create_access_token(user)}"}
