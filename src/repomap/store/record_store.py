"""Record store interfaces and concrete adapters."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol

from repomap.errors import RecordStoreError
from repomap.types import IndexRecord, utc_now

_COLUMNS = ("id", "content", "description", "keywords", "created_at", "updated_at")


class RecordStore(Protocol):
    """Read-only query surface consumed by the search engine."""

    async def find_matching(self, term: str, *, limit: int) -> list[IndexRecord]:
        """Return records whose keywords or description contain `term`."""

    async def get(self, record_id: str) -> IndexRecord | None:
        """Fetch one record by primary key."""


class InMemoryRecordStore:
    """Deterministic record store used for tests and local prototyping."""

    def __init__(self, records: list[IndexRecord] | None = None) -> None:
        self._records: dict[str, IndexRecord] = {}
        for record in records or []:
            self._records[record.id] = record

    async def find_matching(self, term: str, *, limit: int) -> list[IndexRecord]:
        needle = term.lower()
        matches = [
            record
            for record in self._records.values()
            if needle in record.keywords.lower() or needle in record.description.lower()
        ]
        return matches[:limit]

    async def get(self, record_id: str) -> IndexRecord | None:
        return self._records.get(record_id)

    async def upsert(self, record: IndexRecord) -> bool:
        existing = self._records.get(record.id)
        if existing is not None:
            record.created_at = existing.created_at
            record.updated_at = utc_now()
        self._records[record.id] = record
        return existing is None


class SqliteRecordStore:
    """SQLite-backed store for the `indexing` table.

    Lookups run a registered `contains_text` function over `keywords` and
    `description`. It lower-cases with Python, so non-ASCII text matches the
    same way as in `InMemoryRecordStore` (SQLite's own `LIKE` only folds ASCII).
    Blocking sqlite calls are pushed to a worker thread so searches stay
    cooperative.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)

    async def initialize(self) -> None:
        await asyncio.to_thread(self._initialize_sync)

    async def find_matching(self, term: str, *, limit: int) -> list[IndexRecord]:
        return await asyncio.to_thread(self._find_matching_sync, term, limit)

    async def get(self, record_id: str) -> IndexRecord | None:
        return await asyncio.to_thread(self._get_sync, record_id)

    async def upsert(self, record: IndexRecord) -> bool:
        """Insert or update by id. Returns True when a new row was created."""
        return await asyncio.to_thread(self._upsert_sync, record)

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path)
            conn.create_function("contains_text", 2, _contains_text, deterministic=True)
            return conn
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Cannot open record store {self.db_path}: {exc}") from exc

    def _initialize_sync(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self._connect() as conn:
                conn.execute(
                    "CREATE TABLE IF NOT EXISTS indexing ("
                    "id TEXT PRIMARY KEY, "
                    "content TEXT NOT NULL, "
                    "description TEXT NOT NULL, "
                    "keywords TEXT NOT NULL, "
                    "created_at TEXT NOT NULL, "
                    "updated_at TEXT NOT NULL)"
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Failed to initialize record store: {exc}") from exc

    def _find_matching_sync(self, term: str, limit: int) -> list[IndexRecord]:
        try:
            with self._connect() as conn:
                cur = conn.execute(
                    f"SELECT {', '.join(_COLUMNS)} FROM indexing "
                    "WHERE contains_text(keywords, ?) OR contains_text(description, ?) "
                    "LIMIT ?",
                    (term, term, limit),
                )
                rows = cur.fetchall()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Lookup failed for term {term!r}: {exc}") from exc
        return [_row_to_record(row) for row in rows]

    def _get_sync(self, record_id: str) -> IndexRecord | None:
        try:
            with self._connect() as conn:
                cur = conn.execute(
                    f"SELECT {', '.join(_COLUMNS)} FROM indexing WHERE id = ?",
                    (record_id,),
                )
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Lookup failed for id {record_id!r}: {exc}") from exc
        return _row_to_record(row) if row else None

    def _upsert_sync(self, record: IndexRecord) -> bool:
        now = utc_now().isoformat()
        try:
            with self._connect() as conn:
                cur = conn.execute("SELECT 1 FROM indexing WHERE id = ?", (record.id,))
                exists = cur.fetchone() is not None
                if exists:
                    conn.execute(
                        "UPDATE indexing SET content = ?, description = ?, keywords = ?, "
                        "updated_at = ? WHERE id = ?",
                        (record.content, record.description, record.keywords, now, record.id),
                    )
                else:
                    conn.execute(
                        f"INSERT INTO indexing({', '.join(_COLUMNS)}) VALUES(?, ?, ?, ?, ?, ?)",
                        (record.id, record.content, record.description, record.keywords, now, now),
                    )
                conn.commit()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Failed to write record {record.id!r}: {exc}") from exc
        return not exists


def _contains_text(haystack: str | None, needle: str | None) -> int:
    if haystack is None or needle is None:
        return 0
    return int(needle.lower() in haystack.lower())


def _row_to_record(row: tuple) -> IndexRecord:
    record_id, content, description, keywords, created_at, updated_at = row
    return IndexRecord(
        id=record_id,
        content=content,
        description=description,
        keywords=keywords,
        created_at=datetime.fromisoformat(created_at),
        updated_at=datetime.fromisoformat(updated_at),
    )
