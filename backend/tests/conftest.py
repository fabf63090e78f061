"""
ScopeNotes Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:        Fresh SQLite database file per test (aiosqlite)
    ├── session_factory:  async_sessionmaker bound to db_engine
    ├── seeded_factory:   session_factory after seeding two categories
    ├── db_session:       One session from seeded_factory
    ├── job_queue:        Started JobQueue with CleanupJob registered
    └── test_client:      HTTPX AsyncClient against create_app()

Seed data:
    Category 1: note 1 (open), note 2 (completed), note 3 (completed)
    Category 2: note 4 (completed), note 5 (open)
"""

import os
import tempfile
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any scopenotes imports
os.environ["DATABASE_URL"] = (
    "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(prefix="scopenotes_test_"), "app.db")
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_ON_STARTUP"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from scopenotes.database import build_engine, build_session_factory, create_schema
from scopenotes.models.category import Category
from scopenotes.models.note import Note

SEED_NOTES = {
    1: [(1, False), (2, True), (3, True)],
    2: [(4, True), (5, False)],
}


def _build_request(headers: dict | None = None) -> Request:
    """Build a bare Starlette request carrying the given headers."""
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "query_string": b"",
            "headers": raw_headers,
        }
    )


async def seed_categories(session_factory) -> None:
    async with session_factory() as session:
        for category_id, notes in SEED_NOTES.items():
            session.add(
                Category(
                    id=category_id,
                    name=f"Category {category_id}",
                    notes=[
                        Note(
                            id=note_id,
                            name=f"Note {note_id}",
                            category_id=category_id,
                            is_completed=completed,
                        )
                        for note_id, completed in notes
                    ],
                )
            )
        await session.commit()


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A fresh SQLite database file with the schema created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest_asyncio.fixture
async def seeded_factory(session_factory):
    """Session factory over a database holding the seed categories and notes."""
    await seed_categories(session_factory)
    return session_factory


@pytest_asyncio.fixture
async def db_session(seeded_factory) -> AsyncGenerator:
    async with seeded_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async session for tests that count store calls.

    Usage:
        mock_db_session.get.return_value = category
        ...
        mock_db_session.get.assert_awaited_once()
    """
    session = AsyncMock()
    session.get = AsyncMock()
    session.execute = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Job Queue & HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def job_queue(seeded_factory):
    """A running JobQueue with CleanupJob registered, stopped after the test."""
    from scopenotes.jobs import JobQueue
    from scopenotes.jobs.cleanup import CleanupJob

    queue = JobQueue(seeded_factory, worker_count=2, max_size=10, history_size=50)
    queue.register(CleanupJob)
    await queue.start()
    yield queue
    await queue.stop(drain=True)


@pytest_asyncio.fixture
async def test_client(seeded_factory, job_queue):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    get_db_session is overridden to use the per-test database, and the job
    queue fixture stands in for the one the lifespan would create.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/api/notes", headers={"CategoryId": "1"})
    """
    from scopenotes.database import get_db_session
    from scopenotes.main import create_app

    app = create_app()

    async def override_get_db_session():
        async with seeded_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.state.job_queue = job_queue

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def build_request():
    """
    Factory for bare Starlette requests.

    Usage:
        request = build_request({"CategoryId": "1"})
    """
    return _build_request
