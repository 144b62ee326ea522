"""Run tracing and aggregate metrics for agent conversations."""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from repomap.types import ToolTrace

_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", flags=re.UNICODE)


@dataclass(slots=True)
class RunRecord:
    trace_id: str
    timestamp_utc: str
    question: str
    answer: str
    tool_traces: list[ToolTrace]
    iterations: int
    input_tokens: int
    output_tokens: int
    latency_ms: float


class TraceStore:
    """In-memory storage of completed agent runs."""

    def __init__(self, *, max_records: int = 1000) -> None:
        self._records: dict[str, RunRecord] = {}
        self._max_records = max_records

    def create_record(
        self,
        *,
        question: str,
        answer: str,
        tool_traces: list[ToolTrace],
        iterations: int,
        latency_ms: float,
    ) -> RunRecord:
        record = RunRecord(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            question=question,
            answer=answer,
            tool_traces=tool_traces,
            iterations=iterations,
            input_tokens=estimate_token_count(question),
            output_tokens=estimate_token_count(answer),
            latency_ms=latency_ms,
        )
        self._records[record.trace_id] = record
        while len(self._records) > self._max_records:
            del self._records[next(iter(self._records))]
        return record

    def get(self, trace_id: str) -> RunRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[RunRecord]:
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, float | int]:
        """Aggregate run metrics for the `/metrics` endpoint."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_runs": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "total_tool_calls": 0,
                "total_input_tokens": 0,
                "total_output_tokens": 0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        return {
            "total_runs": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "total_tool_calls": sum(len(record.tool_traces) for record in records),
            "total_input_tokens": sum(record.input_tokens for record in records),
            "total_output_tokens": sum(record.output_tokens for record in records),
        }


class Timer:
    """Context timer measuring wall-clock milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def estimate_token_count(text: str) -> int:
    return len(_TOKEN_PATTERN.findall(text))
