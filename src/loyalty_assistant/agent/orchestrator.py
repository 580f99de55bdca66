"""Guarded, retrieval-augmented, tool-calling chat pipeline."""

from __future__ import annotations

from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from loguru import logger

from loyalty_assistant.agent.guardrail import REJECTION_MESSAGE, InputGuardrail
from loyalty_assistant.agent.memory import ConversationMemory
from loyalty_assistant.agent.messages import message_text, tool_calls_of
from loyalty_assistant.agent.registry import ToolRegistry
from loyalty_assistant.config import AgentConfig
from loyalty_assistant.errors import PipelineFailure, ToolLoopLimitError
from loyalty_assistant.obs.tracing import Timer, TraceStore
from loyalty_assistant.retrieval.retriever import ContextRetriever, hit_sources
from loyalty_assistant.types import ChatReply, ScoredChunk, ToolTrace

NO_CONTEXT_NOTICE = "No reference excerpts matched this question."

_SYSTEM_PROMPT = """
You are a helpful airline loyalty program assistant specializing in Delta SkyMiles
and United MileagePlus programs.

You have access to tools that provide:
- Delta SkyMiles Medallion qualification requirements
- United MileagePlus Premier qualification requirements
- A comparison between both programs
- Live aviation weather (METAR observations and TAF forecasts) by ICAO airport code

Rules:
1) Answer from the reference excerpts below and from tool outputs, and cite the
   title of the document you used.
2) If neither the excerpts nor the tools contain the answer, say that you could
   not find it in the program documents. Never invent requirements, thresholds,
   or dates.
3) A tool result shaped like {{"error": "..."}} means the data is unavailable;
   tell the user so instead of guessing.

Reference excerpts:
{context}
""".strip()

_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", _SYSTEM_PROMPT),
        MessagesPlaceholder(variable_name="chat_history", optional=True),
        ("human", "{question}"),
    ]
)


class ChatOrchestrator:
    """Runs one request through guardrail, retrieval, model and tools.

    States per request::

        RECEIVED -> GUARDRAIL_CHECK -> REJECTED
                                    -> CONTEXT_RETRIEVAL -> MODEL_CALL (0..N tool rounds) -> RESPONDED

    A rejected query never reaches the model or any tool. Tool rounds are
    capped by ``AgentConfig.max_tool_rounds``; any failure after the guardrail
    is logged and re-raised as ``PipelineFailure``; it is traced with outcome
    ``failed`` and leaves memory untouched.
    """

    def __init__(
        self,
        *,
        llm: Any,
        retriever: ContextRetriever,
        tool_registry: ToolRegistry,
        memory: ConversationMemory,
        trace_store: TraceStore,
        guardrail: InputGuardrail | None = None,
        config: AgentConfig | None = None,
    ) -> None:
        self.llm = llm
        self.retriever = retriever
        self.tool_registry = tool_registry
        self.memory = memory
        self.trace_store = trace_store
        self.guardrail = guardrail or InputGuardrail(None)
        self.config = config or AgentConfig()

        tools = self.tool_registry.as_langchain_tools()
        self._model = self.llm.bind_tools(tools) if tools else self.llm

    def chat(self, query: str, conversation_id: str) -> ChatReply:
        logger.debug("Processing query for conversation {}", conversation_id)
        tool_traces: list[ToolTrace] = []
        timer = Timer()
        try:
            with timer:
                verdict = self.guardrail.evaluate(query)
                if verdict.accepted:
                    answer, hits = self._respond(query, conversation_id, tool_traces)
                else:
                    answer, hits = REJECTION_MESSAGE, []
        except PipelineFailure as exc:
            self.trace_store.create_record(
                conversation_id=conversation_id,
                question=query,
                answer=str(exc),
                outcome="failed",
                sources=[],
                tool_traces=tool_traces,
                latency_ms=timer.elapsed_ms,
            )
            raise

        sources = hit_sources(hits)
        record = self.trace_store.create_record(
            conversation_id=conversation_id,
            question=query,
            answer=answer,
            outcome="answered" if verdict.accepted else "rejected",
            sources=sources,
            tool_traces=tool_traces,
            latency_ms=timer.elapsed_ms,
        )
        return ChatReply(
            conversation_id=conversation_id,
            answer=answer,
            rejected=not verdict.accepted,
            sources=sources,
            tool_traces=tool_traces,
            trace_id=record.trace_id,
            latency_ms=record.latency_ms,
        )

    def _respond(
        self, query: str, conversation_id: str, tool_traces: list[ToolTrace]
    ) -> tuple[str, list[ScoredChunk]]:
        try:
            hits = self.retriever.retrieve(query)
            messages = _PROMPT.format_messages(
                context=format_context(hits),
                chat_history=self.memory.history(conversation_id),
                question=query,
            )
            answer = self._complete(messages, tool_traces)
        except Exception as exc:
            logger.exception("Error processing query for conversation {}", conversation_id)
            raise PipelineFailure() from exc

        self.memory.append(
            conversation_id, HumanMessage(content=query), AIMessage(content=answer)
        )
        logger.debug("Received response from model for conversation {}", conversation_id)
        return answer, hits

    def _complete(self, messages: list[BaseMessage], tool_traces: list[ToolTrace]) -> str:
        max_rounds = self.config.max_tool_rounds
        for round_number in range(max_rounds + 1):
            logger.debug(
                "Model request (round {}): {} messages, last: {!r}",
                round_number,
                len(messages),
                message_text(messages[-1])[:200],
            )
            response = self._model.invoke(messages)
            tool_calls = tool_calls_of(response)
            logger.debug(
                "Model response (round {}): tool calls {}, text: {!r}",
                round_number,
                [call.get("name") for call in tool_calls],
                message_text(response)[:200],
            )
            if not tool_calls:
                return message_text(response)
            if round_number == max_rounds:
                break

            messages.append(response)
            for call in tool_calls:
                name = str(call.get("name", ""))
                output = self.tool_registry.dispatch(
                    name, dict(call.get("args") or {}), observer=tool_traces.append
                )
                messages.append(
                    ToolMessage(content=output, tool_call_id=str(call.get("id") or name), name=name)
                )

        raise ToolLoopLimitError(f"Model requested tools for more than {max_rounds} rounds")


def format_context(hits: list[ScoredChunk]) -> str:
    if not hits:
        return NO_CONTEXT_NOTICE
    blocks = []
    for hit in hits:
        metadata = hit.chunk.metadata
        header = f"[{hit.rank}] {metadata.get('title', hit.chunk.doc_id)}"
        if metadata.get("source"):
            header += f" ({metadata['source']})"
        blocks.append(f"{header}\n{hit.chunk.text}")
    return "\n\n".join(blocks)
