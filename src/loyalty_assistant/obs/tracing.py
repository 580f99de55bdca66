"""Request tracing and latency accounting."""

from __future__ import annotations

import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone

from loyalty_assistant.types import ToolTrace


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    conversation_id: str
    question: str
    answer: str
    outcome: str  # "answered", "rejected" or "failed"
    sources: list[dict[str, str]]
    tool_traces: list[ToolTrace]
    latency_ms: float


class TraceStore:
    """Bounded in-memory trace storage for API-level observability."""

    def __init__(self, *, max_records: int = 1000) -> None:
        self._records: OrderedDict[str, TraceRecord] = OrderedDict()
        self._max_records = max_records
        self._lock = threading.Lock()

    def create_record(
        self,
        *,
        conversation_id: str,
        question: str,
        answer: str,
        outcome: str,
        sources: list[dict[str, str]],
        tool_traces: list[ToolTrace],
        latency_ms: float,
    ) -> TraceRecord:
        record = TraceRecord(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            conversation_id=conversation_id,
            question=question,
            answer=answer,
            outcome=outcome,
            sources=sources,
            tool_traces=tool_traces,
            latency_ms=latency_ms,
        )
        with self._lock:
            self._records[record.trace_id] = record
            while len(self._records) > self._max_records:
                self._records.popitem(last=False)
        return record

    def get(self, trace_id: str) -> TraceRecord:
        with self._lock:
            record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        with self._lock:
            records = list(self._records.values())
        return records[-limit:] if limit > 0 else []

    def summary(self) -> dict[str, float | int]:
        """Aggregate request metrics for dashboard display."""
        with self._lock:
            records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "rejected_requests": 0,
                "failed_requests": 0,
                "tool_calls": 0,
                "failed_tool_calls": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        tool_traces = [trace for record in records for trace in record.tool_traces]
        return {
            "total_requests": total,
            "rejected_requests": sum(1 for record in records if record.outcome == "rejected"),
            "failed_requests": sum(1 for record in records if record.outcome == "failed"),
            "tool_calls": len(tool_traces),
            "failed_tool_calls": sum(1 for trace in tool_traces if not trace.succeeded),
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
        }


class Timer:
    """Simple context timer used by the orchestrator."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
