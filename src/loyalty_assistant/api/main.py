"""FastAPI entrypoint for chat, conversation, debug and trace endpoints."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from loyalty_assistant.bootstrap import Assistant, build_assistant
from loyalty_assistant.config import Settings
from loyalty_assistant.errors import PipelineFailure
from loyalty_assistant.obs.logging import configure_logging


class ChatRequest(BaseModel):
    query: str = Field(min_length=1)
    conversation_id: str | None = Field(default=None, min_length=1)

    @field_validator("query")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a question.")
        return value


class DebugSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    top_k: int | None = Field(default=None, ge=1, le=100)
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)


def create_app(assistant: Assistant | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the app; without a prebuilt assistant one is built at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if assistant is None:
            app_settings = settings or Settings()
            configure_logging(app_settings.log_level, json_logs=app_settings.log_json)
            app.state.assistant = await run_in_threadpool(build_assistant, app_settings)
        else:
            app.state.assistant = assistant
        logger.info("Assistant ready in {} mode", app.state.assistant.mode)
        yield

    app = FastAPI(title="Airline Loyalty Assistant", version="0.1.0", lifespan=lifespan)

    def _assistant(request: Request) -> Assistant:
        return request.app.state.assistant

    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        current = _assistant(request)
        report = current.load_report
        return {
            "status": "ok",
            "mode": current.mode,
            "documents_loaded": report.loaded,
            "documents_failed": report.failed,
            "chunk_count": report.chunk_count,
        }

    @app.post("/conversations")
    def new_conversation() -> dict[str, str]:
        conversation_id = str(uuid.uuid4())
        logger.debug("Started new conversation with ID: {}", conversation_id)
        return {"conversation_id": conversation_id}

    @app.post("/chat")
    def chat(request: Request, payload: ChatRequest) -> dict[str, Any]:
        conversation_id = payload.conversation_id or str(uuid.uuid4())
        try:
            reply = _assistant(request).responder.chat(payload.query, conversation_id)
        except PipelineFailure as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return asdict(reply)

    @app.post("/debug/search")
    def debug_search(request: Request, payload: DebugSearchRequest) -> dict[str, Any]:
        current = _assistant(request)
        defaults = current.settings.retrieval
        top_k = defaults.debug_top_k if payload.top_k is None else payload.top_k
        threshold = defaults.debug_threshold if payload.threshold is None else payload.threshold
        hits = current.retriever.retrieve(payload.query, top_k=top_k, similarity_threshold=threshold)
        logger.info("Found {} documents for debug query", len(hits))
        return {
            "query": payload.query,
            "top_k": top_k,
            "threshold": threshold,
            "result_count": len(hits),
            "items": [
                {
                    "chunk_id": hit.chunk.chunk_id,
                    "content": hit.chunk.text[:500],
                    "metadata": {key: str(value) for key, value in hit.chunk.metadata.items()},
                    "score": hit.score,
                }
                for hit in hits
            ],
        }

    @app.get("/debug/stats")
    def debug_stats(request: Request) -> dict[str, Any]:
        return _assistant(request).vector_store.stats()

    @app.get("/traces")
    def traces(request: Request, limit: int = 20) -> dict[str, Any]:
        records = [asdict(record) for record in _assistant(request).trace_store.list_recent(limit=limit)]
        return {"items": records}

    @app.get("/traces/{trace_id}")
    def trace_detail(request: Request, trace_id: str) -> dict[str, Any]:
        try:
            record = _assistant(request).trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Trace not found: {trace_id}") from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics(request: Request) -> dict[str, Any]:
        return _assistant(request).trace_store.summary()

    return app


app = create_app()
