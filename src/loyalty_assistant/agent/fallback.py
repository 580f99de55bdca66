"""Deterministic responder used when no chat model is configured."""

from __future__ import annotations

from langchain_core.messages import AIMessage, HumanMessage
from loguru import logger

from loyalty_assistant.agent.memory import ConversationMemory
from loyalty_assistant.errors import PipelineFailure
from loyalty_assistant.obs.tracing import Timer, TraceStore
from loyalty_assistant.retrieval.retriever import ContextRetriever, hit_sources
from loyalty_assistant.types import ChatReply, ScoredChunk

NO_EVIDENCE_ANSWER = (
    "I could not find information about that in the Delta SkyMiles or "
    "United MileagePlus program documents."
)


class OfflineResponder:
    """Answers from retrieved excerpts without an LLM dependency.

    Keeps the same ``chat`` contract as ``ChatOrchestrator`` so the API does not
    care which one it is serving. Useful for local/offline environments where
    ``OPENAI_API_KEY`` is not configured. There is no guardrail and no tool use
    in this mode.
    """

    def __init__(
        self,
        *,
        retriever: ContextRetriever,
        memory: ConversationMemory,
        trace_store: TraceStore,
    ) -> None:
        self.retriever = retriever
        self.memory = memory
        self.trace_store = trace_store

    def chat(self, query: str, conversation_id: str) -> ChatReply:
        with Timer() as timer:
            try:
                hits = self.retriever.retrieve(query)
            except Exception as exc:
                logger.exception("Offline retrieval failed for conversation {}", conversation_id)
                failure = PipelineFailure()
                self.trace_store.create_record(
                    conversation_id=conversation_id,
                    question=query,
                    answer=str(failure),
                    outcome="failed",
                    sources=[],
                    tool_traces=[],
                    latency_ms=0.0,
                )
                raise failure from exc
            answer = _build_answer(hits)

        self.memory.append(
            conversation_id, HumanMessage(content=query), AIMessage(content=answer)
        )
        sources = hit_sources(hits)
        record = self.trace_store.create_record(
            conversation_id=conversation_id,
            question=query,
            answer=answer,
            outcome="answered",
            sources=sources,
            tool_traces=[],
            latency_ms=timer.elapsed_ms,
        )
        return ChatReply(
            conversation_id=conversation_id,
            answer=answer,
            rejected=False,
            sources=sources,
            trace_id=record.trace_id,
            latency_ms=record.latency_ms,
        )


def _build_answer(hits: list[ScoredChunk]) -> str:
    if not hits:
        return NO_EVIDENCE_ANSWER

    lines = ["Here is what the program documents say:"]
    for idx, hit in enumerate(hits, start=1):
        snippet = _truncate(" ".join(hit.chunk.text.split()), 300)
        title = hit.chunk.metadata.get("title", hit.chunk.doc_id)
        lines.append(f"{idx}. {snippet} [{title}]")
    return "\n".join(lines)


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
