"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from pydantic import BaseModel, ConfigDict

from repomap.types import ToolTrace

ToolObserver = Callable[[ToolTrace], None]

_JSON_TYPES = {"string", "integer", "number", "boolean", "array", "object"}


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation.

    `args_schema` is the one argument shape this tool accepts; it doubles as
    the source of the parameter block advertised to the model.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[Any], Awaitable[str]]

    async def invoke(self, payload: dict[str, Any]) -> str:
        data = self.args_schema.model_validate(payload)
        return await self.handler(data)

    def tool_schema(self) -> dict[str, Any]:
        """Function-tool declaration in the OpenAI/Ollama `tools` format."""
        json_schema = self.args_schema.model_json_schema()
        properties: dict[str, Any] = {}
        for field_name, prop in json_schema.get("properties", {}).items():
            entry: dict[str, Any] = {"type": prop.get("type", "string")}
            if entry["type"] not in _JSON_TYPES:
                entry["type"] = "string"
            if "description" in prop:
                entry["description"] = prop["description"]
            properties[field_name] = entry

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": list(json_schema.get("required", [])),
                },
            },
        }


class ToolRegistry:
    """Stores tool specs keyed by name and runs them with timing."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def schemas(self) -> list[dict[str, Any]]:
        return [spec.tool_schema() for spec in self._tools.values()]

    async def execute(
        self,
        name: str,
        payload: dict[str, Any],
        *,
        observer: ToolObserver | None = None,
    ) -> str:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")

        start = perf_counter()
        output = await spec.invoke(payload)
        latency_ms = (perf_counter() - start) * 1000.0

        if observer is not None:
            observer(
                ToolTrace(
                    name=spec.name,
                    input_payload=dict(payload),
                    output_preview=output[:320],
                    latency_ms=latency_ms,
                )
            )
        return output
