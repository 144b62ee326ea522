"""Command line entrypoint: `repomap <command>`."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from repomap.agent.llm import create_chat_model
from repomap.agent.loop import AgentLoop
from repomap.agent.registry import ToolRegistry
from repomap.agent.tools import register_builtin_tools
from repomap.config import Settings
from repomap.errors import RepomapError
from repomap.ingest.indexer import CodebaseIndexer
from repomap.obs.logging import configure_logging
from repomap.retrieval.search import SearchEngine
from repomap.store.record_store import SqliteRecordStore

logger = logging.getLogger("repomap.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="repomap", description=__doc__)
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("init", help="Initialize the database")
    index = sub.add_parser("index", help="Index a codebase with the configured model")
    index.add_argument("path", nargs="?", help="Directory to index (defaults to REPOMAP_DATA_DIR)")
    search = sub.add_parser("search", help="Run a search and print ranked file ids")
    search.add_argument("query")
    ask = sub.add_parser("ask", help="Answer a question with the tool-calling agent")
    ask.add_argument("question")
    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    store = SqliteRecordStore(settings.database_path)
    await store.initialize()

    if args.command == "init":
        logger.info("Database initialized at %s", settings.database_path)
        return 0

    if args.command == "search":
        hits = await SearchEngine(store).search(args.query)
        for hit in hits:
            print(f"{hit.relevance_score:>3}  {hit.id}")
        return 0

    llm = create_chat_model(settings)
    if llm is None:
        logger.error("No chat model configured; set REPOMAP_LLM_API_KEY or REPOMAP_LLM_BASE_URL")
        return 2

    if args.command == "index":
        indexer = CodebaseIndexer(
            llm=llm,
            store=store,
            config=settings.indexing_config(),
            exclude=[settings.database_path],
        )
        report = await indexer.index_path(args.path or settings.data_dir)
        logger.info(
            "Indexing codebase completed: %d inserted, %d updated, %d skipped",
            len(report.inserted),
            len(report.updated),
            len(report.skipped),
        )
        return 0

    registry = ToolRegistry()
    register_builtin_tools(registry, SearchEngine(store))
    run = await AgentLoop(llm=llm, tool_registry=registry).run(args.question)
    print(run.answer)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    settings = Settings()
    configure_logging(settings.log_level)
    try:
        return asyncio.run(_run(args, settings))
    except RepomapError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
