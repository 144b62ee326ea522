import asyncio

import pytest

from repomap import cli
from repomap.config import Settings
from repomap.errors import IndexingError
from repomap.store.record_store import SqliteRecordStore
from repomap.types import IndexRecord


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


def test_missing_command_prints_help(capsys) -> None:
    assert cli.main([]) == 1
    assert "usage: repomap" in capsys.readouterr().out


def test_search_prints_ranked_ids(monkeypatch, tmp_path, capsys) -> None:
    db_path = tmp_path / "indexing.sqlite"
    store = SqliteRecordStore(db_path)

    async def _seed() -> None:
        await store.initialize()
        await store.upsert(
            IndexRecord(id="a", content="@@ a", description="handles db pool", keywords="database connection")
        )
        await store.upsert(
            IndexRecord(id="b", content="@@ b", description="adds numbers", keywords="calculator math")
        )

    asyncio.run(_seed())
    monkeypatch.setenv("REPOMAP_DATABASE_PATH", str(db_path))

    assert cli.main(["search", "database"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["  4  a"]


def test_ask_without_model_fails(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("REPOMAP_DATABASE_PATH", str(tmp_path / "indexing.sqlite"))
    monkeypatch.delenv("REPOMAP_LLM_API_KEY", raising=False)
    monkeypatch.delenv("REPOMAP_LLM_BASE_URL", raising=False)

    assert cli.main(["ask", "what is file1?"]) == 2


def test_missing_indexing_prompt_raises_indexing_error(tmp_path) -> None:
    settings = Settings(indexing_prompt_path=tmp_path / "missing.md")
    with pytest.raises(IndexingError, match="Cannot read indexing prompt"):
        settings.indexing_config()


def test_index_with_missing_prompt_exits_cleanly(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("REPOMAP_DATABASE_PATH", str(tmp_path / "indexing.sqlite"))
    monkeypatch.setenv("REPOMAP_INDEXING_PROMPT_PATH", str(tmp_path / "missing.md"))
    monkeypatch.setattr(cli, "create_chat_model", lambda settings: object())

    assert cli.main(["index", str(tmp_path)]) == 1
