"""Query-time retrieval of reference excerpts."""

from __future__ import annotations

from loguru import logger

from loyalty_assistant.config import RetrievalConfig
from loyalty_assistant.ingest.embedder import Embedder
from loyalty_assistant.retrieval.vector_store import VectorStore
from loyalty_assistant.types import ScoredChunk


class ContextRetriever:
    """Embeds a query and runs a thresholded similarity search.

    The pipeline uses the configured ``top_k`` / ``similarity_threshold``
    (3 / 0.4 by default); the debug endpoint passes its own values.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: Embedder,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embedder = embedder
        self.config = config or RetrievalConfig()

    def retrieve(
        self,
        query: str,
        *,
        top_k: int | None = None,
        similarity_threshold: float | None = None,
    ) -> list[ScoredChunk]:
        k = self.config.top_k if top_k is None else top_k
        threshold = (
            self.config.similarity_threshold
            if similarity_threshold is None
            else similarity_threshold
        )
        hits = self.vector_store.similarity_search(
            query_embedding=self.embedder.embed_query(query),
            top_k=k,
            similarity_threshold=threshold,
        )
        logger.debug("Retrieved {} chunks (top_k={}, threshold={})", len(hits), k, threshold)
        return hits


def hit_sources(hits: list[ScoredChunk]) -> list[dict[str, str]]:
    """Distinct ``{title, source}`` pairs of the hits, in rank order."""

    seen: list[dict[str, str]] = []
    for hit in hits:
        entry = {
            "title": str(hit.chunk.metadata.get("title", hit.chunk.doc_id)),
            "source": str(hit.chunk.metadata.get("source", "")),
        }
        if entry not in seen:
            seen.append(entry)
    return seen
