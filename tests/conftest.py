"""
PostDesk Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    ├── mock_db_session: AsyncMock session (service unit tests, no real DB)
    ├── sample_post_data: Field values matching the Post model
    ├── sqlite_url: URL of a fresh SQLite file per test
    ├── connector: DatabaseConnector bound to that file
    └── test_client: HTTPX AsyncClient talking to an app using `connector`
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings for testing BEFORE any postdesk imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./postdesk_test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DB_CONNECT_MAX_ATTEMPTS"] = "1"

from postdesk.database import DatabaseConnector  # noqa: E402
from postdesk.main import create_app  # noqa: E402


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.get.return_value = post
        result = await post_service.get_post(mock_db_session, str(post.id))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_post_data():
    now = datetime.now(timezone.utc)
    return {
        "id": uuid4(),
        "title": "Hello world",
        "description": "First post on the new blog.",
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'posts.db'}"


@pytest_asyncio.fixture
async def connector(sqlite_url):
    db = DatabaseConnector(database_url=sqlite_url, connect_max_attempts=1)
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def test_client(connector):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    ASGITransport does not run the lifespan; the connector connects lazily
    on the first request.
    """
    app = create_app(connector=connector)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
