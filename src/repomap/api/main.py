"""FastAPI entrypoint for search, tool dispatch, agent query and trace endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from repomap.agent.dispatcher import ToolCallPayload, ToolDispatcher
from repomap.agent.llm import create_chat_model
from repomap.agent.loop import AgentLoop
from repomap.agent.registry import ToolRegistry
from repomap.agent.tools import register_builtin_tools
from repomap.config import AgentConfig, SearchConfig, Settings
from repomap.errors import RecordStoreError
from repomap.obs.tracing import TraceStore
from repomap.retrieval.search import SearchEngine
from repomap.store.record_store import RecordStore, SqliteRecordStore


class SearchRequest(BaseModel):
    query: str


class QueryRequest(BaseModel):
    question: str = Field(min_length=1)


def create_app(
    *,
    settings: Settings | None = None,
    store: RecordStore | None = None,
    llm: Any | None = None,
) -> FastAPI:
    settings = settings or Settings()
    record_store = store or SqliteRecordStore(settings.database_path)
    chat_model = llm if llm is not None else create_chat_model(settings)

    search_engine = SearchEngine(record_store, config=SearchConfig())
    registry = ToolRegistry()
    register_builtin_tools(registry, search_engine)
    dispatcher = ToolDispatcher(registry)
    trace_store = TraceStore()
    agent = (
        AgentLoop(llm=chat_model, tool_registry=registry, config=AgentConfig(), trace_store=trace_store)
        if chat_model is not None
        else None
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        initialize = getattr(record_store, "initialize", None)
        if initialize is not None:
            await initialize()
        yield

    app = FastAPI(title="Repository Map Search", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "llm_configured": agent is not None,
            "tools": registry.names(),
        }

    @app.get("/tools")
    async def tools() -> dict[str, Any]:
        return {"items": registry.schemas()}

    @app.post("/search")
    async def search(request: SearchRequest) -> dict[str, Any]:
        try:
            hits = await search_engine.search(request.query)
        except RecordStoreError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {
            "items": [
                {
                    "id": hit.id,
                    "score": hit.relevance_score,
                    "keywords": hit.record.keywords,
                    "description": hit.record.description,
                    "content": hit.content,
                }
                for hit in hits
            ]
        }

    @app.post("/tools/dispatch")
    async def dispatch(payload: ToolCallPayload) -> dict[str, Any]:
        outcome = await dispatcher.execute(payload)
        return {"ok": outcome.ok, "output": outcome.render()}

    @app.post("/query")
    async def query(request: QueryRequest) -> dict[str, Any]:
        if agent is None:
            raise HTTPException(status_code=503, detail="No chat model configured")
        try:
            run = await agent.run(request.question)
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {
            "answer": run.answer,
            "trace_id": run.trace_id,
            "iterations": run.iterations,
            "latency_ms": run.latency_ms,
            "tools_used": [trace.name for trace in run.tool_traces],
        }

    @app.get("/traces")
    async def traces(limit: int = 20) -> dict[str, Any]:
        return {"items": [asdict(record) for record in trace_store.list_recent(limit=limit)]}

    @app.get("/traces/{trace_id}")
    async def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    async def metrics() -> dict[str, Any]:
        return trace_store.summary()

    return app


app = create_app()
