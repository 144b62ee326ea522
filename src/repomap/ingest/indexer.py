"""LLM-driven indexing: file -> repo map summary -> record store."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, Field, ValidationError

from repomap.config import IndexingConfig
from repomap.errors import IndexingError, UnreadableFileError
from repomap.ingest.walker import collect_files
from repomap.types import IndexRecord

logger = logging.getLogger(__name__)


class RepoMapSummary(BaseModel):
    """Structured output requested from the model for one file."""

    content: str = Field(
        description="Full repo map with @@ file path, ⋮... descriptions, and │ symbol lines"
    )
    description: str = Field(
        description="One paragraph description of what the code does and its purpose"
    )
    keywords: str = Field(
        description="Minimal 3 word each separator, max 5 keyword (separator by comma)"
    )


class WritableRecordStore(Protocol):
    async def upsert(self, record: IndexRecord) -> bool:
        """Insert or update a record; True when newly inserted."""


@dataclass(slots=True)
class IndexReport:
    inserted: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.inserted) + len(self.updated)


class CodebaseIndexer:
    """Summarizes each source file with a chat model and persists the result.

    This is the only writer of the record store; the search path never
    mutates records.
    """

    def __init__(
        self,
        *,
        llm: Any,
        store: WritableRecordStore,
        config: IndexingConfig | None = None,
        exclude: Iterable[str | Path] = (),
    ) -> None:
        self.config = config or IndexingConfig()
        self.store = store
        self._excluded = {Path(path).resolve() for path in exclude}
        self._summarizer = llm.with_structured_output(RepoMapSummary)

    async def index_path(self, root: str | Path) -> IndexReport:
        report = IndexReport()
        for file_path in collect_files(root, suffixes=self.config.include_suffixes):
            resolved = file_path.resolve()
            if resolved in self._excluded:
                continue
            record_id = str(resolved)
            logger.info("Indexing file: %s", record_id)
            try:
                record = await self.summarize_file(file_path, record_id=record_id)
            except UnreadableFileError as exc:
                logger.warning("Skipping %s: %s", record_id, exc)
                report.skipped.append(record_id)
                continue
            if await self.store.upsert(record):
                report.inserted.append(record_id)
                logger.info("Inserted into database: %s", record.description[:120])
            else:
                report.updated.append(record_id)
                logger.info("Updated into database: %s", record.description[:120])
        return report

    async def summarize_file(self, file_path: Path, *, record_id: str) -> IndexRecord:
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise UnreadableFileError(f"Cannot read {file_path}: {exc}") from exc

        messages = [
            SystemMessage(content=self.config.system_prompt),
            HumanMessage(content=build_user_prompt(record_id, source[: self.config.max_file_chars])),
        ]
        raw = await self._summarizer.ainvoke(messages)
        summary = _coerce_summary(raw, record_id)

        keywords = normalize_keywords(summary.keywords, limit=self.config.max_keywords)
        if not summary.content.strip() or not summary.description.strip() or not keywords:
            raise IndexingError(f"Model returned an incomplete summary for {record_id}")

        return IndexRecord(
            id=record_id,
            content=summary.content.strip(),
            description=summary.description.strip(),
            keywords=keywords,
        )


def build_user_prompt(file_path: str, source: str) -> str:
    return (
        "## Context\n"
        "System wants you to give repo map for this file,\n"
        f"File path: {file_path}\n\n"
        "## File Content\n"
        f"```\n{source}\n```"
    )


def normalize_keywords(raw: str, *, limit: int = 5) -> str:
    tags: list[str] = []
    for part in raw.split(","):
        tag = part.strip()
        if tag and tag.lower() not in (existing.lower() for existing in tags):
            tags.append(tag)
    return ", ".join(tags[:limit])


def _coerce_summary(raw: Any, record_id: str) -> RepoMapSummary:
    if isinstance(raw, RepoMapSummary):
        return raw
    try:
        return RepoMapSummary.model_validate(raw)
    except ValidationError as exc:
        raise IndexingError(f"Error parsing model response for {record_id}: {exc}") from exc
