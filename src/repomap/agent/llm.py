"""Chat model construction from process settings."""

from __future__ import annotations

from typing import Any

from repomap.config import Settings


def create_chat_model(settings: Settings) -> Any | None:
    """Build a LangChain chat model, or None when no endpoint is configured.

    `llm_base_url` may point at any OpenAI-compatible server (for example an
    Ollama instance at ``http://localhost:11434/v1``).
    """
    if not settings.llm_api_key and not settings.llm_base_url:
        return None

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key or "unused",
        temperature=0,
    )
