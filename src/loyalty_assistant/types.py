"""Shared domain models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any


@dataclass(slots=True)
class ParsedDocument:
    """A parsed source document before chunking, one text entry per page."""

    doc_id: str
    pages: list[str]
    metadata: dict[str, Any]

    @property
    def text(self) -> str:
        return "\n\n".join(page for page in self.pages if page)


@dataclass(frozen=True, slots=True)
class DocumentChunk:
    """A token-bounded span of a source document."""

    chunk_id: str
    doc_id: str
    text: str
    token_count: int
    metadata: dict[str, Any]


@dataclass(slots=True)
class ScoredChunk:
    """A retrieval result with its similarity score."""

    chunk: DocumentChunk
    score: float
    rank: int = 0


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
    succeeded: bool = True


@dataclass(slots=True)
class ChatReply:
    """Outcome of one request/response cycle."""

    conversation_id: str
    answer: str
    rejected: bool
    sources: list[dict[str, str]] = field(default_factory=list)
    tool_traces: list[ToolTrace] = field(default_factory=list)
    trace_id: str = ""
    latency_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class ReferenceDocument:
    """A reference file and the provenance attached to its chunks."""

    key: str
    path: Path
    source_url: str
    title: str


class ReferenceLibrary:
    """Read-only program text keyed by reference document key.

    Built once after startup ingestion; a key missing from the library means
    that document failed to load.
    """

    __slots__ = ("_texts",)

    def __init__(self, texts: Mapping[str, str] | None = None) -> None:
        self._texts: Mapping[str, str] = MappingProxyType(
            {key: text for key, text in (texts or {}).items() if text.strip()}
        )

    def get(self, key: str) -> str | None:
        return self._texts.get(key)

    def is_available(self, key: str) -> bool:
        return key in self._texts

    def keys(self) -> list[str]:
        return sorted(self._texts)
