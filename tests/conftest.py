"""
Newsdesk Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before anything from `newsdesk` is
       imported, so the settings singleton, the engine and the app all pick
       up the test configuration.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: AsyncMock session for pure unit tests
    ├── memory_store:    MemoryContentStore, inspected directly by tests
    ├── media_service:   MediaService over memory_store
    ├── database:        SQLite schema created before / dropped after the test
    ├── db_session:      AsyncSession on that schema
    ├── app / client:    FastAPI app with memory_store + httpx AsyncClient
    ├── png_bytes / png_payload: a real 2x2 PNG and its data URL
    └── admin_token / user_token: bearer tokens for seeded accounts
"""

import base64
import io
import os
import tempfile
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before any newsdesk import: settings are read once at import time
_TEST_ROOT = tempfile.mkdtemp(prefix="newsdesk_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/test.db"
os.environ["CONTENT_STORE_BACKEND"] = "memory"
os.environ["UPLOADS_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["BASE_URL"] = "http://testserver"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

from newsdesk.database import async_session_factory, create_all, dispose_engine, drop_all  # noqa: E402
from newsdesk.models import ROLE_ADMIN  # noqa: E402
from newsdesk.security import create_access_token  # noqa: E402
from newsdesk.services.auth_service import auth_service  # noqa: E402
from newsdesk.services.content_store import MemoryContentStore  # noqa: E402
from newsdesk.services.media_service import MediaService  # noqa: E402

BASE_URL = "http://testserver"


# ══════════════════════════════════════════════════════════════════════════
# Unit Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Mock async database session for tests that must not touch a database.

    Usage:
        mock_db_session.execute.return_value.all.return_value = []
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def memory_store() -> MemoryContentStore:
    return MemoryContentStore()


@pytest.fixture
def media_service(memory_store) -> MediaService:
    return MediaService(memory_store)


@pytest.fixture
def png_bytes() -> bytes:
    """A real 2x2 PNG, so Pillow verification passes."""
    buffer = io.BytesIO()
    Image.new("RGB", (2, 2), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_payload(png_bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema for each test."""
    await drop_all()
    await create_all()
    yield
    await drop_all()
    await dispose_engine()


@pytest_asyncio.fixture
async def db_session(database):
    async with async_session_factory() as session:
        yield session
        await session.rollback()


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def app(database, memory_store):
    """
    The application with the per-test memory store swapped in.

    ASGITransport does not run the lifespan, so no admin bootstrap happens;
    tests seed the accounts they need.
    """
    from newsdesk.main import app as application

    application.state.content_store = memory_store
    yield application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as http:
        yield http


async def _seed_user(email: str, role: str = "user") -> str:
    async with async_session_factory() as session:
        user = await auth_service.create_user(
            session, name=email.split("@")[0], email=email, password="secret123", role=role
        )
        await session.commit()
        return create_access_token(str(user.id), user.role)


@pytest_asyncio.fixture
async def admin_token(database) -> str:
    return await _seed_user("root@example.com", role=ROLE_ADMIN)


@pytest_asyncio.fixture
async def user_token(database) -> str:
    return await _seed_user("writer@example.com")
