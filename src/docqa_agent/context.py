"""Application context wiring every component once at startup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from docqa_agent.agent.answering import ChatContextAnswerer, ContextAnswerer, ExtractiveAnswerer
from docqa_agent.agent.orchestrator import AgentOrchestrator
from docqa_agent.agent.registry import Toolkit
from docqa_agent.agent.tools import KnowledgeTool, RetrievalTool
from docqa_agent.config import AppSettings
from docqa_agent.ingest.chunker import CharacterChunker
from docqa_agent.ingest.embedder import Embedder, HashingEmbedder, LangChainEmbedder
from docqa_agent.ingest.pipeline import IngestPipeline, SourceKind
from docqa_agent.obs.evaluator import ResponseEvaluator
from docqa_agent.obs.tracing import run_with_timeout
from docqa_agent.retrieval.vector_store import InMemoryVectorIndex, VectorIndex
from docqa_agent.types import AgentResponse, Evaluation, Passage, QueryReply, ScoredPassage

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppContext:
    """Holds the shared components; the index is the only mutable state."""

    index: VectorIndex
    pipeline: IngestPipeline
    toolkit: Toolkit
    orchestrator: AgentOrchestrator
    evaluator: ResponseEvaluator
    llm_configured: bool = False
    call_timeout_seconds: float = 30.0

    def ingest(
        self,
        text: str | None,
        *,
        source_kind: SourceKind = "text",
        document_name: str | None = None,
    ) -> list[Passage]:
        return self.pipeline.ingest_text(
            text, source_kind=source_kind, document_name=document_name
        )

    def submit_query(self, text: str) -> AgentResponse:
        return self.orchestrator.submit_query(text)

    def search_passages(self, query: str, k: int) -> list[ScoredPassage]:
        """Scored passages for `query`; raises `ToolFailure` on error or timeout."""
        return run_with_timeout(
            "source_search",
            self.index.similarity_search,
            self.call_timeout_seconds,
            query,
            k,
        )

    def score_response(self, question: str, answer: str, tools_used: list[str]) -> Evaluation:
        return self.evaluator.evaluate(question, answer, tools_used)

    def ask(self, text: str) -> QueryReply:
        """Answer a question and attach its evaluation."""
        response = self.submit_query(text)
        answer = response.answer or ""
        evaluation = self.score_response(response.question, answer, response.tools_used)
        return QueryReply(
            answer=answer,
            tools_used=response.tools_used,
            source=response.source,
            evaluation=evaluation,
        )


def build_context(
    settings: AppSettings | None = None,
    *,
    chat_model: Any | None = None,
    knowledge_model: Any | None = None,
    evaluator_model: Any | None = None,
    embedder: Embedder | None = None,
    index: VectorIndex | None = None,
) -> AppContext:
    """Construct the component graph.

    Explicit arguments win; otherwise OpenAI-backed models are created when
    an API key is configured, and the offline deterministic components are
    used when it is not.
    """

    settings = settings or AppSettings()
    agent_config = settings.agent()
    timeout = agent_config.call_timeout_seconds

    if settings.llm_configured:
        chat_model = chat_model or _create_chat_model(settings, settings.chat_model)
        knowledge_model = knowledge_model or _create_chat_model(settings, settings.knowledge_model)
        evaluator_model = evaluator_model or _create_chat_model(settings, settings.evaluator_model)
        embedder = embedder or _create_embedder(settings)

    embedder = embedder or HashingEmbedder()
    if index is None:
        index = InMemoryVectorIndex(embedder, timeout_seconds=timeout)
    pipeline = IngestPipeline(CharacterChunker(settings.chunking()), index)

    toolkit = Toolkit(
        retrieval=RetrievalTool(
            index, top_k=settings.retrieval().top_k, timeout_seconds=timeout
        ),
        knowledge=KnowledgeTool(knowledge_model, timeout_seconds=timeout),
    )
    answerer: ContextAnswerer = (
        ChatContextAnswerer(chat_model, timeout_seconds=timeout)
        if chat_model is not None
        else ExtractiveAnswerer()
    )
    orchestrator = AgentOrchestrator(toolkit=toolkit, answerer=answerer)
    evaluator = ResponseEvaluator(evaluator_model, settings.evaluator())

    logger.info(
        "Context built: chat_model=%s knowledge_model=%s evaluator_model=%s",
        chat_model is not None,
        knowledge_model is not None,
        evaluator_model is not None,
    )
    return AppContext(
        index=index,
        pipeline=pipeline,
        toolkit=toolkit,
        orchestrator=orchestrator,
        evaluator=evaluator,
        llm_configured=chat_model is not None,
        call_timeout_seconds=timeout,
    )


def _create_chat_model(settings: AppSettings, model: str) -> Any:
    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=model,
        temperature=0,
        api_key=settings.openai_api_key,
        timeout=settings.call_timeout_seconds,
        max_retries=0,
    )


def _create_embedder(settings: AppSettings) -> Embedder:
    from langchain_openai import OpenAIEmbeddings

    return LangChainEmbedder(
        OpenAIEmbeddings(
            model=settings.embedding_model,
            api_key=settings.openai_api_key,
            timeout=settings.call_timeout_seconds,
            max_retries=0,
        )
    )
