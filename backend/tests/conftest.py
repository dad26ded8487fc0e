"""
simple-crud — Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── store:        DocumentStore on a fresh SQLite file (real SQL, no server)
    ├── test_client:  HTTPX AsyncClient talking to an app wired to `store`
    └── mock_store:   AsyncMock standing in for DocumentStore (repository unit tests)
"""

import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings for testing BEFORE any app imports
os.environ["DB_URI"] = "sqlite+aiosqlite:///./test.db"
os.environ["DB_COLLECTION"] = "documents"
os.environ["LOG_LEVEL"] = "WARNING"

from simplecrud.services.document_store import DocumentStore  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def store(tmp_path):
    """
    A connected DocumentStore with an empty `documents` collection.

    Each test gets its own SQLite file under tmp_path. SQLite allows one
    writer at a time, so the pool holds a single connection and concurrent
    requests queue for it.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'store.db'}", pool_size=1, max_overflow=0
    )
    document_store = DocumentStore(engine, "documents", timeout=5.0)
    await document_store.create_collection()
    yield document_store
    await document_store.close()


@pytest_asyncio.fixture
async def test_client(store):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_get(test_client):
            response = await test_client.get("/some/path")
            assert response.status_code == 404
    """
    from simplecrud.main import create_app

    app = create_app(store=store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_store():
    """
    AsyncMock with the DocumentStore primitives.

    Defaults: nothing stored, every write succeeds.
    """
    store = AsyncMock(spec=DocumentStore)
    store.find_one = AsyncMock(return_value=None)
    store.insert_one = AsyncMock(return_value=None)
    store.replace_one = AsyncMock(return_value=1)
    store.update_one = AsyncMock()
    store.delete_one = AsyncMock(return_value=0)
    return store
