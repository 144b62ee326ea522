"""Built-in tool implementations exposed to the agent."""

from __future__ import annotations

import asyncio
from pathlib import Path

from pydantic import BaseModel, Field

from repomap.agent.registry import ToolRegistry, ToolSpec
from repomap.retrieval.search import SearchEngine

FILE_READER = "file_reader"
SEMANTIC_SEARCH = "semantic_search"


class FileReaderInput(BaseModel):
    target_file: str = Field(description="Path to the file to read, must be a valid file path.")


class SemanticSearchInput(BaseModel):
    query: str = Field(
        description=(
            "Natural language query to find relevant indexed files, example: "
            "how the implementation of calculator, database connection, etc"
        )
    )


async def read_file(target_file: str) -> str:
    """Read a whole file, describing expected failures instead of raising."""
    path = Path(target_file)
    if not path.exists():
        return f"File not found: {target_file}"
    if not path.is_file():
        return f"{target_file} is not a file"
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return f"File reading failed - {exc}"


def register_builtin_tools(registry: ToolRegistry, search_engine: SearchEngine) -> None:
    """Register the default tool set.

    Tools:
    - `file_reader`: full file contents by path.
    - `semantic_search`: repository maps of the best matching indexed files,
      newline separated in rank order.
    """

    async def _read(input_data: FileReaderInput) -> str:
        return await read_file(input_data.target_file)

    async def _search(input_data: SemanticSearchInput) -> str:
        hits = await search_engine.search(input_data.query)
        return "\n".join(hit.content for hit in hits)

    registry.register(
        ToolSpec(
            name=FILE_READER,
            description="Read entire file contents from the filesystem with absolute path",
            args_schema=FileReaderInput,
            handler=_read,
        )
    )
    registry.register(
        ToolSpec(
            name=SEMANTIC_SEARCH,
            description=(
                "Search and explore codebase using semantic search with relevance scoring. "
                "Finds relevant files, functions, and code patterns based on natural "
                "language queries."
            ),
            args_schema=SemanticSearchInput,
            handler=_search,
        )
    )
