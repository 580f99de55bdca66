"""Startup wiring: ingest references, register tools, pick the responder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from loyalty_assistant.agent.fallback import OfflineResponder
from loyalty_assistant.agent.guardrail import InputGuardrail
from loyalty_assistant.agent.memory import ConversationMemory
from loyalty_assistant.agent.orchestrator import ChatOrchestrator
from loyalty_assistant.agent.registry import ToolRegistry
from loyalty_assistant.agent.tools import register_loyalty_tools, register_weather_tools
from loyalty_assistant.config import Settings
from loyalty_assistant.ingest.chunker import TokenTextSplitter
from loyalty_assistant.ingest.embedder import Embedder, HashingEmbedder, OpenAIEmbedder
from loyalty_assistant.ingest.parser import ParserRegistry
from loyalty_assistant.ingest.pipeline import IngestPipeline, LoadReport, default_reference_documents
from loyalty_assistant.obs.tracing import TraceStore
from loyalty_assistant.retrieval.retriever import ContextRetriever
from loyalty_assistant.retrieval.vector_store import InMemoryVectorStore
from loyalty_assistant.types import ReferenceDocument
from loyalty_assistant.weather.client import AviationWeatherClient
from loyalty_assistant.weather.gateway import AviationWeatherGateway, WeatherSource


@dataclass(slots=True)
class Assistant:
    """Everything the HTTP layer needs, built once per process."""

    settings: Settings
    responder: ChatOrchestrator | OfflineResponder
    retriever: ContextRetriever
    vector_store: InMemoryVectorStore
    tool_registry: ToolRegistry
    memory: ConversationMemory
    trace_store: TraceStore
    load_report: LoadReport

    @property
    def mode(self) -> str:
        return "llm" if isinstance(self.responder, ChatOrchestrator) else "offline"


def build_assistant(
    settings: Settings | None = None,
    *,
    llm: Any | None = None,
    classifier: Any | None = None,
    embedder: Embedder | None = None,
    splitter: TokenTextSplitter | None = None,
    weather_source: WeatherSource | None = None,
    documents: list[ReferenceDocument] | None = None,
) -> Assistant:
    """Build the assistant; reference ingestion completes before this returns.

    Chat models are created from ``settings`` when an OpenAI key is configured
    and none are passed in. Without a chat model the offline responder is used.
    """

    settings = settings or Settings()
    embedder = embedder or _create_embedder(settings)
    vector_store = InMemoryVectorStore()
    pipeline = IngestPipeline(
        ParserRegistry(),
        splitter or TokenTextSplitter(settings.chunking),
        embedder,
        vector_store,
    )
    if documents is None:
        documents = default_reference_documents(settings.documents_dir)
    report = pipeline.ingest_all(documents)

    registry = ToolRegistry()
    register_loyalty_tools(registry, report.library)
    gateway = AviationWeatherGateway(
        weather_source
        or AviationWeatherClient(
            settings.weather_base_url, timeout=settings.weather_timeout_seconds
        )
    )
    register_weather_tools(registry, gateway)

    retriever = ContextRetriever(vector_store, embedder, settings.retrieval)
    memory = ConversationMemory(settings.agent.memory_window)
    trace_store = TraceStore()

    if llm is None and settings.llm_configured:
        llm = _create_chat_model(settings, temperature=settings.chat_temperature)
        classifier = classifier or _create_chat_model(settings, temperature=0.0)

    responder: ChatOrchestrator | OfflineResponder
    if llm is None:
        logger.warning("No chat model configured; answering from reference excerpts only")
        responder = OfflineResponder(retriever=retriever, memory=memory, trace_store=trace_store)
    else:
        responder = ChatOrchestrator(
            llm=llm,
            retriever=retriever,
            tool_registry=registry,
            memory=memory,
            trace_store=trace_store,
            guardrail=InputGuardrail(classifier),
            config=settings.agent,
        )

    return Assistant(
        settings=settings,
        responder=responder,
        retriever=retriever,
        vector_store=vector_store,
        tool_registry=registry,
        memory=memory,
        trace_store=trace_store,
        load_report=report,
    )


def _create_embedder(settings: Settings) -> Embedder:
    if not settings.llm_configured:
        logger.warning("OPENAI_API_KEY not set; using the hashing embedder")
        return HashingEmbedder()
    return OpenAIEmbedder(model=settings.embedding_model, api_key=settings.openai_api_key)


def _create_chat_model(settings: Settings, *, temperature: float) -> Any:
    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=settings.chat_model,
        temperature=temperature,
        timeout=settings.llm_timeout_seconds,
        api_key=settings.openai_api_key,
    )
