"""Ingest pipeline: parse -> tag -> chunk -> embed -> upsert."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from loyalty_assistant.ingest.chunker import TokenTextSplitter
from loyalty_assistant.ingest.embedder import Embedder
from loyalty_assistant.ingest.parser import ParserRegistry
from loyalty_assistant.retrieval.vector_store import VectorStore
from loyalty_assistant.types import DocumentChunk, ReferenceDocument, ReferenceLibrary

DELTA_KEY = "delta_medallion"
UNITED_KEY = "united_premier"

DELTA_SOURCE_URL = "https://www.delta.com/us/en/skymiles/medallion-program/qualify-for-status"
UNITED_SOURCE_URL = "https://www.united.com/en/us/fly/mileageplus/premier/qualify.html"


def default_reference_documents(documents_dir: str | Path) -> list[ReferenceDocument]:
    """The two program documents the assistant is built around."""

    base = Path(documents_dir)
    return [
        ReferenceDocument(
            key=DELTA_KEY,
            path=base / "How to Get Medallion Status _ Delta Air Lines.pdf",
            source_url=DELTA_SOURCE_URL,
            title="Delta SkyMiles Medallion Status Qualification",
        ),
        ReferenceDocument(
            key=UNITED_KEY,
            path=base / "How to Earn Premier Status _ United Airlines.pdf",
            source_url=UNITED_SOURCE_URL,
            title="United MileagePlus Premier Status Qualification",
        ),
    ]


@dataclass(slots=True)
class IngestResult:
    document: ReferenceDocument
    chunks: list[DocumentChunk]
    text: str


@dataclass(slots=True)
class LoadReport:
    """Outcome of startup ingestion across all reference documents."""

    library: ReferenceLibrary
    loaded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    chunk_count: int = 0


class IngestPipeline:
    """Coordinates parser/splitter/embedder/vector store stages."""

    def __init__(
        self,
        parser_registry: ParserRegistry,
        splitter: TokenTextSplitter,
        embedder: Embedder,
        vector_store: VectorStore,
    ) -> None:
        self._parser_registry = parser_registry
        self._splitter = splitter
        self._embedder = embedder
        self._vector_store = vector_store

    def ingest_document(self, document: ReferenceDocument) -> IngestResult:
        """Ingest one reference document and return its chunks and full text."""

        logger.info("Loading document: {}", document.title)
        parsed = self._parser_registry.parse_path(document.path, doc_id=document.key)
        parsed.metadata.update({"source": document.source_url, "title": document.title})

        chunks = self._splitter.chunk_document(parsed)
        embeddings = self._embedder.embed_documents([chunk.text for chunk in chunks])
        self._vector_store.upsert(chunks, embeddings)
        logger.info(
            "Loaded {} pages from {}, split into {} chunks",
            len(parsed.pages),
            document.title,
            len(chunks),
        )
        return IngestResult(document=document, chunks=chunks, text=parsed.text)

    def ingest_all(self, documents: list[ReferenceDocument]) -> LoadReport:
        """Ingest documents concurrently, one task each, and wait for all of them.

        A failing document is logged and reported in ``failed``; the others
        still complete and the returned library simply lacks its text.
        """

        texts: dict[str, str] = {}
        report = LoadReport(library=ReferenceLibrary())
        if not documents:
            return report

        logger.info("Starting to load {} reference documents", len(documents))
        with ThreadPoolExecutor(
            max_workers=len(documents), thread_name_prefix="ingest"
        ) as pool:
            futures = {pool.submit(self.ingest_document, doc): doc for doc in documents}
            for future in as_completed(futures):
                document = futures[future]
                try:
                    result = future.result()
                except Exception:
                    logger.exception("Error loading document: {}", document.title)
                    report.failed.append(document.key)
                    continue
                texts[document.key] = result.text
                report.loaded.append(document.key)
                report.chunk_count += len(result.chunks)

        report.library = ReferenceLibrary(texts)
        report.loaded.sort()
        report.failed.sort()
        logger.info(
            "Reference loading finished: {} loaded, {} failed, {} chunks",
            len(report.loaded),
            len(report.failed),
            report.chunk_count,
        )
        return report
