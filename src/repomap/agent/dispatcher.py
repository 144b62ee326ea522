"""Routes tool-call payloads to registered tools.

Internally every call ends in a `ToolSuccess` or a `ToolFailure`. Only
`render()` turns that into the marked plain text the conversation expects,
because a chat transcript has no way to carry a raised exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from repomap.agent.registry import ToolObserver, ToolRegistry

TOOL_NOT_FOUND = "tool_not_found"
TOOL_ERROR = "tool_error"


class ToolCallPayload(BaseModel):
    """A tool request as emitted by the model."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ToolSuccess:
    tool_name: str
    output: str

    ok = True

    def render(self) -> str:
        return self.output


@dataclass(frozen=True, slots=True)
class ToolFailure:
    tool_name: str
    kind: FailureKind
    message: str

    ok = False

    def render(self) -> str:
        if self.kind is FailureKind.NOT_FOUND:
            return f"{TOOL_NOT_FOUND}: Tool '{self.tool_name}' not found"
        return f"{TOOL_ERROR}: {self.message}"


ToolOutcome = ToolSuccess | ToolFailure


class ToolDispatcher:
    """Dispatch boundary between the agent loop and the tool registry."""

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.registry = registry
        self._logger = logger or logging.getLogger(__name__)

    async def execute(
        self,
        payload: ToolCallPayload,
        *,
        observer: ToolObserver | None = None,
    ) -> ToolOutcome:
        if self.registry.get(payload.name) is None:
            self._logger.warning("Tool not found: %s", payload.name)
            return ToolFailure(
                tool_name=payload.name,
                kind=FailureKind.NOT_FOUND,
                message=f"Tool '{payload.name}' not found",
            )

        try:
            output = await self.registry.execute(
                payload.name, payload.arguments, observer=observer
            )
        except ValidationError as exc:
            self._logger.warning("Invalid arguments for %s: %s", payload.name, exc)
            return ToolFailure(
                tool_name=payload.name,
                kind=FailureKind.ERROR,
                message=_validation_message(exc),
            )
        except Exception as exc:
            self._logger.exception("Tool %s failed", payload.name)
            return ToolFailure(
                tool_name=payload.name,
                kind=FailureKind.ERROR,
                message=str(exc) or exc.__class__.__name__,
            )
        return ToolSuccess(tool_name=payload.name, output=output)

    async def dispatch(
        self,
        payload: ToolCallPayload | dict[str, Any],
        *,
        observer: ToolObserver | None = None,
    ) -> str:
        """Run a tool call and always return text, never raise."""
        if not isinstance(payload, ToolCallPayload):
            try:
                payload = ToolCallPayload.model_validate(payload)
            except ValidationError as exc:
                return ToolFailure(
                    tool_name="", kind=FailureKind.ERROR, message=_validation_message(exc)
                ).render()
        outcome = await self.execute(payload, observer=observer)
        return outcome.render()


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "arguments"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)
