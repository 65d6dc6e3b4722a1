"""
Tests for the SQL document store: CRUD, version-checked writes and
optimistic transactions, plus the engine running on top of it.
"""

import pytest
from sqlalchemy.dialects import postgresql

from artspace.core.exceptions import NotFoundError, TransactionConflictError
from artspace.infrastructure.document_store import where
from artspace.services.assignment_service import AssignmentService
from artspace.services.curation_service import CurationService
from artspace.services.relationships import ARTWORKS, LOCATIONS, SHOWS

from conftest import fetch


@pytest.mark.asyncio
async def test_create_get_update_delete(sql_store):
    document_id = await sql_store.create("notes", {"text": "hello", "tags": ["a"]})

    assert (await sql_store.get("notes", document_id)) == {"id": document_id, "text": "hello", "tags": ["a"]}

    await sql_store.update("notes", document_id, {"text": "bye"})
    document = await sql_store.get("notes", document_id)
    assert document["text"] == "bye"
    assert document["tags"] == ["a"]

    await sql_store.delete("notes", document_id)
    assert await sql_store.get("notes", document_id) is None


@pytest.mark.asyncio
async def test_update_missing_document(sql_store):
    with pytest.raises(NotFoundError):
        await sql_store.update(SHOWS, "nope", {"name": "x"})


@pytest.mark.asyncio
async def test_update_bumps_version(sql_store):
    _, before = await sql_store._load_versioned(SHOWS, "s1")

    await sql_store.update(SHOWS, "s1", {"name": "Renamed"})

    data, after = await sql_store._load_versioned(SHOWS, "s1")
    assert after == before + 1
    assert data["name"] == "Renamed"


@pytest.mark.asyncio
async def test_query_filters(sql_store):
    owned = await sql_store.query(ARTWORKS, where("artistId", "==", "a1"))
    assert sorted(d["id"] for d in owned) == ["A1", "A2"]

    await sql_store.update(SHOWS, "s1", {"artworkIds": ["A1"]})
    holding = await sql_store.query(SHOWS, where("artworkIds", "array_contains", "A1"))
    assert [d["id"] for d in holding] == ["s1"]


@pytest.mark.asyncio
async def test_transaction_commits_all_writes(sql_store):
    async def move(transaction):
        await transaction.update(SHOWS, "s1", {"artworkIds": ["A1"]})
        await transaction.update(LOCATIONS, "l1", {"artworkIds": ["A1"]})
        return "done"

    assert await sql_store.run_transaction(move) == "done"
    assert (await fetch(sql_store, SHOWS, "s1"))["artworkIds"] == ["A1"]
    assert (await fetch(sql_store, LOCATIONS, "l1"))["artworkIds"] == ["A1"]


@pytest.mark.asyncio
async def test_transaction_retries_on_version_conflict(sql_store):
    attempts = []

    async def reorder(transaction):
        attempts.append(1)
        show = await transaction.get(SHOWS, "s1")
        if len(attempts) == 1:
            # Another curator writes between our read and commit
            await sql_store.update(SHOWS, "s1", {"name": "Concurrent"})
        await transaction.update(SHOWS, "s1", {"artworkOrder": ["A2", "A1"], "name": show["name"]})

    await sql_store.run_transaction(reorder)

    assert len(attempts) == 2
    show = await fetch(sql_store, SHOWS, "s1")
    assert show["artworkOrder"] == ["A2", "A1"]
    assert show["name"] == "Concurrent"


@pytest.mark.asyncio
async def test_transaction_gives_up_after_max_attempts(sql_store):
    async def always_conflicting(transaction):
        await transaction.get(SHOWS, "s1")
        await sql_store.update(SHOWS, "s1", {"name": "Concurrent"})
        await transaction.update(SHOWS, "s1", {"artworkOrder": ["A1"]})

    with pytest.raises(TransactionConflictError):
        await sql_store.run_transaction(always_conflicting, max_attempts=2)

    assert (await fetch(sql_store, SHOWS, "s1"))["artworkOrder"] == []


@pytest.mark.asyncio
async def test_engine_scenarios_on_sql_store(sql_store, notifier, settings):
    engine = AssignmentService(sql_store, notifier=notifier, settings=settings)
    curation = CurationService(sql_store, settings=settings)

    await engine.accept_artist_into_show("a1", "s1", "l1", ["A1", "A2"])
    await curation.reorder("s1", ["A2", "A1"])
    await engine.reject_artwork("A1")

    show = await fetch(sql_store, SHOWS, "s1")
    assert show["artworkIds"] == ["A2"]
    assert show["artworkOrder"] == ["A2"]
    assert (await fetch(sql_store, ARTWORKS, "A1"))["showStatus"] == "rejected"
    assert await engine.audit_show("s1") == []
    assert len(notifier.events) == 1


@pytest.mark.asyncio
async def test_change_to_document_only_read_forces_retry(sql_store):
    attempts = []

    async def copy_title(transaction):
        attempts.append(1)
        artwork = await transaction.get(ARTWORKS, "A1")
        if len(attempts) == 1:
            await sql_store.update(ARTWORKS, "A1", {"title": "Retitled"})
        await transaction.update(SHOWS, "s1", {"name": artwork["title"]})

    await sql_store.run_transaction(copy_title)

    assert len(attempts) == 2
    assert (await fetch(sql_store, SHOWS, "s1"))["name"] == "Retitled"


@pytest.mark.asyncio
async def test_commit_check_locks_rows_that_were_only_read(sql_store):
    dialect = postgresql.dialect()

    locked = sql_store._document_query(ARTWORKS, "A1", lock=True).compile(dialect=dialect)
    plain = sql_store._document_query(ARTWORKS, "A1").compile(dialect=dialect)

    assert "FOR UPDATE" in str(locked)
    assert "FOR UPDATE" not in str(plain)
