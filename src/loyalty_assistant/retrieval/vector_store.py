"""Vector store contract and the in-process implementation."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from math import sqrt
from typing import Any, Protocol

from loyalty_assistant.types import DocumentChunk, ScoredChunk


class VectorStore(Protocol):
    """Minimal vector store contract for retrieval."""

    def upsert(self, chunks: list[DocumentChunk], embeddings: list[list[float]]) -> None:
        """Insert or replace chunk vectors."""

    def similarity_search(
        self,
        query_embedding: list[float],
        top_k: int,
        similarity_threshold: float = 0.0,
    ) -> list[ScoredChunk]:
        """Return at most ``top_k`` chunks scoring at least the threshold, best first."""

    def stats(self) -> dict[str, Any]:
        """Summarize stored chunks for inspection."""


@dataclass(slots=True)
class _StoredVector:
    chunk: DocumentChunk
    embedding: list[float]


class InMemoryVectorStore:
    """Cosine-similarity store rebuilt from source documents on every start.

    Writes come from concurrent ingestion tasks and are serialized by a lock;
    searches work on a snapshot taken under the same lock.
    """

    def __init__(self) -> None:
        self._store: dict[str, _StoredVector] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def upsert(self, chunks: list[DocumentChunk], embeddings: list[list[float]]) -> None:
        if len(chunks) != len(embeddings):
            raise ValueError("chunks and embeddings must have the same length")
        with self._lock:
            for chunk, embedding in zip(chunks, embeddings, strict=True):
                self._store[chunk.chunk_id] = _StoredVector(chunk=chunk, embedding=embedding)

    def similarity_search(
        self,
        query_embedding: list[float],
        top_k: int,
        similarity_threshold: float = 0.0,
    ) -> list[ScoredChunk]:
        if top_k < 1:
            return []
        with self._lock:
            records = list(self._store.values())

        scored = [
            (record.chunk, _cosine_similarity(query_embedding, record.embedding))
            for record in records
        ]
        ranked = sorted(
            (item for item in scored if item[1] >= similarity_threshold),
            key=lambda item: item[1],
            reverse=True,
        )
        return [
            ScoredChunk(chunk=chunk, score=score, rank=i + 1)
            for i, (chunk, score) in enumerate(ranked[:top_k])
        ]

    def stats(self) -> dict[str, Any]:
        with self._lock:
            chunks = [record.chunk for record in self._store.values()]
        sources = sorted({str(c.metadata["source"]) for c in chunks if "source" in c.metadata})
        titles = sorted({str(c.metadata["title"]) for c in chunks if "title" in c.metadata})
        return {
            "total_chunks": len(chunks),
            "unique_sources": len(sources),
            "sources": sources,
            "titles": titles,
        }


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
