"""FastAPI entrypoint for ingest/chat/search endpoints."""

from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from docqa_agent.config import AppSettings
from docqa_agent.context import AppContext, build_context
from docqa_agent.errors import GenerationError, IngestionError, ToolFailure
from docqa_agent.obs.tracing import configure_logging

logger = logging.getLogger(__name__)


class IngestRequest(BaseModel):
    text: str | None = None
    source_kind: Literal["pdf", "audio", "text"] = "text"
    document_name: str | None = None


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)


class SourceSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    top_k: int = Field(default=3, ge=1, le=20)


def create_app(context: AppContext | None = None) -> FastAPI:
    """Build the HTTP surface around one `AppContext`."""

    if context is None:
        settings = AppSettings()
        configure_logging(settings.log_level)
        context = build_context(settings)

    app = FastAPI(title="Document Q&A Agent", version="0.1.0")
    app.state.context = context

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "llm_configured": context.llm_configured,
            "indexed_passages": len(context.index),
        }

    @app.post("/ingest")
    def ingest(request: IngestRequest) -> dict[str, Any]:
        try:
            passages = context.ingest(
                request.text,
                source_kind=request.source_kind,
                document_name=request.document_name,
            )
        except IngestionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "status": "success",
            "message": f"{request.source_kind} processed and added to knowledge base",
            "passages_created": len(passages),
        }

    @app.post("/chat")
    def chat(request: ChatRequest) -> dict[str, Any]:
        try:
            reply = context.ask(request.message)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except GenerationError as exc:
            logger.error("Chat generation failed: %s", exc)
            raise HTTPException(
                status_code=502, detail="Failed to process chat message"
            ) from exc
        except Exception as exc:
            logger.exception("Chat error")
            raise HTTPException(
                status_code=500, detail="Failed to process chat message"
            ) from exc
        return reply.model_dump(by_alias=True, mode="json")

    @app.post("/sources/search")
    def source_search(request: SourceSearchRequest) -> dict[str, Any]:
        try:
            hits = context.search_passages(request.query, request.top_k)
        except ToolFailure as exc:
            logger.error("Source search failed: %s", exc)
            raise HTTPException(status_code=502, detail="Failed to search sources") from exc
        return {
            "items": [
                {
                    "rank": hit.rank,
                    "score": hit.score,
                    "content": hit.passage.content,
                    "metadata": hit.passage.metadata,
                }
                for hit in hits
            ]
        }

    return app


app = create_app()
