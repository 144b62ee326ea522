"""Shared fixtures: a small indexed codebase."""

import pytest

from repomap.store.record_store import InMemoryRecordStore
from repomap.types import IndexRecord


def make_record(record_id: str, keywords: str, description: str, content: str | None = None) -> IndexRecord:
    return IndexRecord(
        id=record_id,
        content=content or f"@@ {record_id}\n│ symbols of {record_id}",
        description=description,
        keywords=keywords,
    )


@pytest.fixture
def codebase_records() -> list[IndexRecord]:
    return [
        make_record(
            "src/db.ts",
            "database connection, pool",
            "Opens the sqlite database connection and handles db pool sizing.",
            "@@ src/db.ts\n│ export const db: Knex",
        ),
        make_record(
            "src/calculator.ts",
            "calculator, math",
            "Adds and multiplies numbers for the calculator screen.",
            "@@ src/calculator.ts\n│ export function add(a, b)",
        ),
        make_record(
            "src/migrations.ts",
            "schema, migrations",
            "Creates database tables on first run.",
            "@@ src/migrations.ts\n│ export async function migrate()",
        ),
    ]


@pytest.fixture
def memory_store(codebase_records: list[IndexRecord]) -> InMemoryRecordStore:
    return InMemoryRecordStore(codebase_records)
