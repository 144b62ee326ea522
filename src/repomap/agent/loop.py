"""Tool-calling conversation loop over a LangChain chat model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from repomap.agent.dispatcher import ToolCallPayload, ToolDispatcher
from repomap.agent.registry import ToolRegistry
from repomap.config import AgentConfig
from repomap.obs.tracing import Timer, TraceStore
from repomap.types import ToolTrace


@dataclass(slots=True)
class AgentRun:
    answer: str
    tool_traces: list[ToolTrace]
    iterations: int
    latency_ms: float
    trace_id: str | None = None


class AgentLoop:
    """Asks the model for its next step until it stops requesting tools.

    Each tool call in a response is dispatched in order and its text result
    is appended as a tool message, so failures (unknown tool, bad
    arguments) reach the model as conversation content it can react to.
    """

    def __init__(
        self,
        *,
        llm: Any,
        tool_registry: ToolRegistry,
        config: AgentConfig | None = None,
        trace_store: TraceStore | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or AgentConfig()
        self.tool_registry = tool_registry
        self.trace_store = trace_store
        self._logger = logger or logging.getLogger(__name__)
        self.dispatcher = ToolDispatcher(tool_registry, logger=self._logger)
        self.model = llm.bind_tools(tool_registry.schemas())

    async def run(
        self,
        question: str,
        *,
        chat_history: list[BaseMessage] | None = None,
    ) -> AgentRun:
        messages: list[BaseMessage] = [SystemMessage(content=self.config.system_prompt)]
        messages.extend(chat_history or [])
        messages.append(HumanMessage(content=question))

        self._logger.info("Loaded %d tools", len(self.tool_registry.names()))
        self._logger.info("Query: %s", question)

        traces: list[ToolTrace] = []
        answer = ""
        iterations = 0
        with Timer() as timer:
            while iterations < self.config.max_iterations:
                iterations += 1
                response = await self.model.ainvoke(messages)
                answer = _message_text(response)
                if answer:
                    self._logger.info("Assistant content: %s", answer[:200])

                tool_calls = list(getattr(response, "tool_calls", None) or [])
                if not tool_calls:
                    break

                messages.append(response)
                for call in tool_calls:
                    name = str(call.get("name", ""))
                    payload = ToolCallPayload(name=name, arguments=dict(call.get("args") or {}))
                    output = await self.dispatcher.dispatch(payload, observer=traces.append)
                    self._logger.info("Tool %s -> %s", name, output[:100])
                    messages.append(
                        ToolMessage(
                            content=output,
                            tool_call_id=str(call.get("id") or name),
                            name=name,
                        )
                    )
            else:
                self._logger.warning(
                    "Stopped after %d iterations without a final answer", iterations
                )

        run = AgentRun(
            answer=answer,
            tool_traces=traces,
            iterations=iterations,
            latency_ms=timer.elapsed_ms,
        )
        if self.trace_store is not None:
            record = self.trace_store.create_record(
                question=question,
                answer=answer,
                tool_traces=traces,
                iterations=iterations,
                latency_ms=timer.elapsed_ms,
            )
            run.trace_id = record.trace_id
        return run


def _message_text(message: Any) -> str:
    if isinstance(message, AIMessage):
        content: Any = message.content
    else:
        content = getattr(message, "content", message)
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            elif isinstance(item, str):
                parts.append(item)
        return " ".join(parts).strip()
    return str(content or "")
