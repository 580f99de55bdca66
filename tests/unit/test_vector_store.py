from loyalty_assistant.config import RetrievalConfig
from loyalty_assistant.ingest.embedder import HashingEmbedder
from loyalty_assistant.retrieval.retriever import ContextRetriever, hit_sources
from loyalty_assistant.retrieval.vector_store import InMemoryVectorStore
from loyalty_assistant.types import DocumentChunk


def _chunk(chunk_id: str, text: str, source: str = "https://example.test/a") -> DocumentChunk:
    return DocumentChunk(
        chunk_id=chunk_id,
        doc_id=chunk_id.split("-")[0],
        text=text,
        token_count=len(text.split()),
        metadata={"source": source, "title": f"Title {source[-1]}"},
    )


def _store_with_axes() -> InMemoryVectorStore:
    store = InMemoryVectorStore()
    store.upsert(
        [
            _chunk("a-0", "exact"),
            _chunk("a-1", "close"),
            _chunk("b-0", "medium", source="https://example.test/b"),
            _chunk("b-1", "far", source="https://example.test/b"),
            _chunk("b-2", "opposite", source="https://example.test/b"),
        ],
        [[1.0, 0.0], [0.9, 0.1], [0.6, 0.8], [0.1, 1.0], [-1.0, 0.0]],
    )
    return store


def test_search_returns_at_most_top_k_above_threshold_best_first() -> None:
    store = _store_with_axes()

    hits = store.similarity_search([1.0, 0.0], top_k=3, similarity_threshold=0.4)

    assert [hit.chunk.chunk_id for hit in hits] == ["a-0", "a-1", "b-0"]
    assert [hit.rank for hit in hits] == [1, 2, 3]
    assert all(hit.score >= 0.4 for hit in hits)
    assert hits[0].score >= hits[1].score >= hits[2].score


def test_threshold_can_leave_fewer_than_top_k() -> None:
    store = _store_with_axes()

    hits = store.similarity_search([1.0, 0.0], top_k=3, similarity_threshold=0.95)

    assert [hit.chunk.chunk_id for hit in hits] == ["a-0", "a-1"]
    assert store.similarity_search([1.0, 0.0], top_k=0) == []


def test_upsert_replaces_by_chunk_id_and_stats_count_sources() -> None:
    store = _store_with_axes()
    store.upsert([_chunk("a-0", "replaced")], [[0.0, 1.0]])

    stats = store.stats()

    assert len(store) == 5
    assert stats["total_chunks"] == 5
    assert stats["unique_sources"] == 2
    assert stats["sources"] == ["https://example.test/a", "https://example.test/b"]


def test_retriever_uses_configured_defaults_and_overrides() -> None:
    embedder = HashingEmbedder(dimension=64)
    store = InMemoryVectorStore()
    texts = [
        "silver medallion qualification dollars",
        "premier qualifying points united",
        "weather at the airport",
        "sky club membership",
    ]
    chunks = [_chunk(f"d-{i}", text) for i, text in enumerate(texts)]
    store.upsert(chunks, embedder.embed_documents(texts))
    retriever = ContextRetriever(store, embedder, RetrievalConfig(top_k=1, similarity_threshold=0.0))

    default_hits = retriever.retrieve("silver medallion qualification dollars")
    wide_hits = retriever.retrieve("silver medallion", top_k=4, similarity_threshold=-1.0)

    assert [hit.chunk.chunk_id for hit in default_hits] == ["d-0"]
    assert default_hits[0].score > 0.99
    assert len(wide_hits) == 4


def test_hit_sources_are_distinct_in_rank_order() -> None:
    store = _store_with_axes()
    hits = store.similarity_search([1.0, 0.0], top_k=3)

    assert hit_sources(hits) == [
        {"title": "Title a", "source": "https://example.test/a"},
        {"title": "Title b", "source": "https://example.test/b"},
    ]
