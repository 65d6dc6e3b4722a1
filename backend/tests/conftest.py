"""
Pytest fixtures for the document store, engine services and HTTP client.

Engine tests run against the in-memory store; the SQL adapter is exercised
over an in-memory SQLite database (aiosqlite). Redis is disabled so the
curation cache always misses.
"""

import os

os.environ["REDIS_ENABLED"] = "false"
os.environ["STORE_BACKEND"] = "memory"
os.environ.setdefault("ENVIRONMENT", "test")

from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artspace.api.deps import get_notifier, get_store
from artspace.core.config import Settings
from artspace.db.base import Base
from artspace.db.session import create_engine_for_url
from artspace.infrastructure.memory_store import MemoryDocumentStore
from artspace.infrastructure.sql_store import SqlDocumentStore
from artspace.main import app
from artspace.services.assignment_service import AssignmentService
from artspace.services.curation_service import CurationService
from artspace.services.interfaces.notification import AcceptanceNotification, NotificationHook
from artspace.services.relationships import ARTISTS, ARTWORKS, LOCATIONS, SHOWS

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingNotifier(NotificationHook):
    """Keeps every notification it is asked to deliver."""

    def __init__(self):
        self.events: List[AcceptanceNotification] = []

    async def notify(self, event: AcceptanceNotification) -> None:
        self.events.append(event)


async def seed_gallery(store) -> None:
    """
    Artist a1 owns A1 and A2 (both unassigned). Shows s1/s2 and locations
    l1/l2 start empty.
    """
    await store.create(ARTISTS, {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "role": "on-boarding",
        "status": "active",
        "artshowId": "",
        "artworks": ["A1", "A2"],
    }, "a1")
    await store.create(ARTWORKS, {"artistId": "a1", "title": "Dawn", "showStatus": "none"}, "A1")
    await store.create(ARTWORKS, {"artistId": "a1", "title": "Dusk", "showStatus": "none"}, "A2")
    await store.create(SHOWS, {
        "name": "Spring Salon",
        "status": "active",
        "artistIds": [],
        "artworkIds": [],
        "artworkOrder": [],
    }, "s1")
    await store.create(SHOWS, {"name": "Summer Salon", "status": "active"}, "s2")
    await store.create(LOCATIONS, {"name": "Main Hall", "artistIds": [], "artworkIds": []}, "l1")
    await store.create(LOCATIONS, {"name": "Annex"}, "l2")


@pytest.fixture
def settings() -> Settings:
    return Settings(REDIS_ENABLED=False, STORE_BACKEND="memory", USE_TRANSACTIONS=True)


@pytest.fixture
def legacy_settings() -> Settings:
    """Best-effort ordered writes, no transactions."""
    return Settings(REDIS_ENABLED=False, STORE_BACKEND="memory", USE_TRANSACTIONS=False)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def store() -> MemoryDocumentStore:
    store = MemoryDocumentStore()
    await seed_gallery(store)
    return store


@pytest.fixture
def engine(store, notifier, settings) -> AssignmentService:
    return AssignmentService(store, notifier=notifier, settings=settings)


@pytest.fixture
def curation(store, settings) -> CurationService:
    return CurationService(store, settings=settings)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables on a fresh in-memory SQLite database, then dispose it."""
    test_engine = create_engine_for_url(TEST_DATABASE_URL)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    await test_engine.dispose()


@pytest_asyncio.fixture
async def sql_store(session_factory) -> SqlDocumentStore:
    store = SqlDocumentStore(session_factory)
    await seed_gallery(store)
    return store


@pytest_asyncio.fixture
async def client(store, notifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose services run on the seeded memory store."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def fetch(store, collection: str, document_id: str) -> dict:
    """Read a document, failing the test when it is missing."""
    document = await store.get(collection, document_id)
    assert document is not None, f"{collection}/{document_id} missing"
    return document
