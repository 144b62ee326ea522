import sqlite3

import pytest
import pytest_asyncio

from repomap.errors import RecordStoreError
from repomap.store.record_store import InMemoryRecordStore, SqliteRecordStore
from repomap.types import IndexRecord


def _record(record_id: str, keywords: str, description: str, content: str = "@@ map") -> IndexRecord:
    return IndexRecord(id=record_id, content=content, description=description, keywords=keywords)


@pytest_asyncio.fixture
async def sqlite_store(tmp_path) -> SqliteRecordStore:
    store = SqliteRecordStore(tmp_path / "db" / "indexing.sqlite")
    await store.initialize()
    await store.upsert(_record("a", "database connection", "handles db pool"))
    await store.upsert(_record("b", "calculator math", "adds numbers"))
    await store.upsert(_record("c", "rate_limit, 100%", "caps requests"))
    return store


@pytest.mark.asyncio
async def test_initialize_is_idempotent(tmp_path) -> None:
    store = SqliteRecordStore(tmp_path / "indexing.sqlite")
    await store.initialize()
    await store.initialize()

    with sqlite3.connect(store.db_path) as conn:
        tables = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    assert ("indexing",) in tables


@pytest.mark.asyncio
async def test_find_matching_checks_keywords_or_description(sqlite_store) -> None:
    by_keyword = await sqlite_store.find_matching("calculator", limit=3)
    by_description = await sqlite_store.find_matching("pool", limit=3)

    assert [record.id for record in by_keyword] == ["b"]
    assert [record.id for record in by_description] == ["a"]


@pytest.mark.asyncio
async def test_find_matching_is_case_insensitive(sqlite_store) -> None:
    records = await sqlite_store.find_matching("DATABASE", limit=3)
    assert [record.id for record in records] == ["a"]


@pytest.mark.asyncio
async def test_find_matching_respects_limit(tmp_path) -> None:
    store = SqliteRecordStore(tmp_path / "indexing.sqlite")
    await store.initialize()
    for i in range(5):
        await store.upsert(_record(f"f{i}", "widget", "part"))

    assert len(await store.find_matching("widget", limit=3)) == 3


@pytest.mark.asyncio
async def test_wildcard_characters_match_literally(sqlite_store) -> None:
    assert [r.id for r in await sqlite_store.find_matching("_limit", limit=3)] == ["c"]
    assert [r.id for r in await sqlite_store.find_matching("100%", limit=3)] == ["c"]
    assert await sqlite_store.find_matching("%", limit=3) != []
    assert await sqlite_store.find_matching("r_t", limit=3) == []


@pytest.mark.asyncio
async def test_upsert_updates_existing_row(sqlite_store) -> None:
    original = await sqlite_store.get("a")
    inserted = await sqlite_store.upsert(_record("a", "database", "new text", content="@@ v2"))
    updated = await sqlite_store.get("a")

    assert inserted is False
    assert updated is not None and original is not None
    assert updated.content == "@@ v2"
    assert updated.created_at == original.created_at
    assert updated.updated_at >= original.updated_at


@pytest.mark.asyncio
async def test_get_unknown_id_returns_none(sqlite_store) -> None:
    assert await sqlite_store.get("missing") is None


@pytest.mark.asyncio
async def test_lookup_without_table_raises_store_error(tmp_path) -> None:
    store = SqliteRecordStore(tmp_path / "empty.sqlite")
    with pytest.raises(RecordStoreError):
        await store.find_matching("anything", limit=3)


@pytest.mark.asyncio
async def test_in_memory_store_upsert_keeps_created_at() -> None:
    store = InMemoryRecordStore()
    first = _record("a", "alpha", "beta")
    assert await store.upsert(first) is True

    second = _record("a", "alpha", "gamma")
    assert await store.upsert(second) is False

    stored = await store.get("a")
    assert stored is not None
    assert stored.description == "gamma"
    assert stored.created_at == first.created_at


@pytest.mark.asyncio
async def test_non_ascii_matching_agrees_with_in_memory_store(tmp_path) -> None:
    record = _record("a", "Äpfel, Zähler", "Zählt Äpfel im Lager")
    sqlite_store = SqliteRecordStore(tmp_path / "indexing.sqlite")
    await sqlite_store.initialize()
    await sqlite_store.upsert(record)
    memory_store = InMemoryRecordStore([record])

    for term in ("äpfel", "ZÄHLER", "lager"):
        from_sqlite = [r.id for r in await sqlite_store.find_matching(term, limit=3)]
        from_memory = [r.id for r in await memory_store.find_matching(term, limit=3)]
        assert from_sqlite == from_memory == ["a"]
