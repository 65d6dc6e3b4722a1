"""
Tests for the HTTP API: routing, response shapes and error mapping.
"""

import pytest
from httpx import AsyncClient

from artspace.api.deps import get_store
from artspace.core.exceptions import StoreError
from artspace.infrastructure.memory_store import MemoryDocumentStore
from artspace.main import app
from artspace.services.relationships import ARTISTS, SHOWS

from conftest import fetch, seed_gallery


class UnavailableStore(MemoryDocumentStore):
    async def get(self, collection, document_id):
        raise StoreError("connection refused")

    async def _load_versioned(self, collection, document_id):
        raise StoreError("connection refused")


@pytest.mark.asyncio
async def test_assign_artwork(client: AsyncClient, store):
    response = await client.put(
        "/api/v1/artworks/A1/assignment",
        json={"show_id": "s1", "location_id": "l1"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["artwork"]["showStatus"] == "accepted"
    assert data["artwork"]["artshowId"] == "s1"
    assert data["artwork"]["title"] == "Dawn"
    assert data["warnings"] == []
    assert (await fetch(store, SHOWS, "s1"))["artworkIds"] == ["A1"]


@pytest.mark.asyncio
async def test_assign_reports_partial_application(client: AsyncClient):
    response = await client.put(
        "/api/v1/artworks/A1/assignment",
        json={"show_id": "ghost", "location_id": "l1"},
    )
    assert response.status_code == 200
    assert response.json()["warnings"] == [
        {"collection": SHOWS, "document_id": "ghost", "reason": "missing"},
    ]


@pytest.mark.asyncio
async def test_unknown_artwork_returns_404(client: AsyncClient):
    response = await client.put("/api/v1/artworks/nope/assignment", json={"show_id": "s1"})
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_empty_show_id_is_rejected(client: AsyncClient):
    response = await client.put("/api/v1/artworks/A1/assignment", json={"show_id": ""})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reject_artwork(client: AsyncClient):
    await client.put("/api/v1/artworks/A1/assignment", json={"show_id": "s1", "location_id": "l1"})

    response = await client.delete("/api/v1/artworks/A1/assignment")

    assert response.status_code == 200
    assert response.json()["artwork"]["showStatus"] == "rejected"


@pytest.mark.asyncio
async def test_reassign_and_mark_shown(client: AsyncClient):
    await client.put("/api/v1/artworks/A1/assignment", json={"show_id": "s1", "location_id": "l1"})

    moved = await client.post("/api/v1/artworks/A1/reassignment", json={"show_id": "s2", "location_id": "l2"})
    assert moved.status_code == 200
    assert moved.json()["artwork"]["artshowId"] == "s2"

    shown = await client.post("/api/v1/artworks/A1/shown", json={"show_id": "s2"})
    assert shown.status_code == 200
    assert shown.json()["artwork"]["beenInShows"] == ["s2"]

    wrong = await client.post("/api/v1/artworks/A1/shown", json={"show_id": "s1"})
    assert wrong.status_code == 400
    assert wrong.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_accept_and_remove_artist(client: AsyncClient, store, notifier):
    response = await client.post(
        "/api/v1/artists/a1/acceptance",
        json={"show_id": "s1", "location_id": "l1", "selected_artwork_ids": ["A1"]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["artist"]["status"] == "showing"
    assert [a["id"] for a in data["accepted"]] == ["A1"]
    assert [a["id"] for a in data["rejected"]] == ["A2"]
    assert data["notified"] is True
    assert len(notifier.events) == 1

    response = await client.delete("/api/v1/artists/a1/acceptance")
    assert response.status_code == 200
    assert response.json()["artist"]["artshowId"] == ""
    assert (await fetch(store, ARTISTS, "a1"))["role"] == "on-boarding"


@pytest.mark.asyncio
async def test_reorder_and_curated_listing(client: AsyncClient):
    await client.post(
        "/api/v1/artists/a1/acceptance",
        json={"show_id": "s1", "location_id": "l1", "selected_artwork_ids": ["A1", "A2"]},
    )

    response = await client.put("/api/v1/shows/s1/order", json={"artwork_order": ["A2", "A1"]})
    assert response.status_code == 200
    assert response.json()["artworkOrder"] == ["A2", "A1"]

    listing = await client.get("/api/v1/shows/s1/curation")
    assert listing.status_code == 200
    assert [a["id"] for a in listing.json()] == ["A2", "A1"]


@pytest.mark.asyncio
async def test_reorder_with_duplicates_returns_400(client: AsyncClient):
    await client.put("/api/v1/artworks/A1/assignment", json={"show_id": "s1"})

    response = await client.put("/api/v1/shows/s1/order", json={"artwork_order": ["A1", "A1"]})

    assert response.status_code == 400
    assert response.json()["details"] == {"duplicates": ["A1"]}


@pytest.mark.asyncio
async def test_close_and_audit_show(client: AsyncClient):
    await client.put("/api/v1/artworks/A1/assignment", json={"show_id": "s1", "location_id": "l1"})

    audit = await client.get("/api/v1/shows/s1/audit")
    assert audit.json() == {"show_id": "s1", "consistent": True, "violations": []}

    closed = await client.post("/api/v1/shows/s1/close")
    assert closed.status_code == 200
    assert closed.json()["show"]["status"] == "closed"
    assert [a["id"] for a in closed.json()["shown_artworks"]] == ["A1"]


@pytest.mark.asyncio
async def test_create_and_delete_artwork(client: AsyncClient, store):
    created = await client.post("/api/v1/artworks/", json={"artist_id": "a1", "title": "Noon", "price": 120})
    assert created.status_code == 201
    artwork = created.json()
    assert artwork["artistId"] == "a1"
    assert artwork["showStatus"] == "none"
    assert artwork["price"] == 120

    deleted = await client.delete(f"/api/v1/artworks/{artwork['id']}")
    assert deleted.status_code == 200
    assert await store.get("artworks", artwork["id"]) is None
    assert artwork["id"] not in (await fetch(store, ARTISTS, "a1"))["artworks"]


@pytest.mark.asyncio
async def test_store_outage_returns_503(client: AsyncClient):
    outage = UnavailableStore()
    app.dependency_overrides[get_store] = lambda: outage

    response = await client.put("/api/v1/artworks/A1/assignment", json={"show_id": "s1"})

    assert response.status_code == 503
    assert response.json()["error"] == "STORE_ERROR"


@pytest.mark.asyncio
async def test_exhausted_retries_return_409(client: AsyncClient):
    class AlwaysConflicting(MemoryDocumentStore):
        async def _commit(self, transaction):
            await self.update(SHOWS, "s1", {"name": "Concurrent"})
            await super()._commit(transaction)

    conflicting = AlwaysConflicting()
    await seed_gallery(conflicting)
    await conflicting.update(SHOWS, "s1", {"artworkIds": ["A1"], "artworkOrder": ["A1"]})
    app.dependency_overrides[get_store] = lambda: conflicting

    response = await client.put("/api/v1/shows/s1/order", json={"artwork_order": ["A1"]})

    assert response.status_code == 409
    assert response.json()["error"] == "TRANSACTION_CONFLICT"


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert health.json()["cache"] == {"status": "disabled"}

    await client.put("/api/v1/artworks/A1/assignment", json={"show_id": "s1"})
    metrics = await client.get("/metrics")
    assert metrics.status_code == 200
    assert "assignment_operations_total" in metrics.text


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    response = await client.get("/", headers={"X-Curator-Id": "curator-7"})
    assert response.status_code == 200
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_incoming_request_id_is_kept(client: AsyncClient):
    response = await client.get("/api/v1/shows/s1/audit", headers={"X-Request-ID": "trace-42"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "trace-42"
