"""The two tool capabilities available to the orchestrator."""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field, ValidationError

from docqa_agent.errors import ToolFailure
from docqa_agent.obs.tracing import run_with_timeout
from docqa_agent.retrieval.vector_store import VectorIndex
from docqa_agent.types import KnowledgeResult, RetrievalResult, ToolName

logger = logging.getLogger(__name__)

_KNOWLEDGE_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "You are a knowledgeable assistant. Answer the question directly and "
            "concisely from your general knowledge.",
        ),
        ("human", "{question}"),
    ]
)


class RetrievalInput(BaseModel):
    query: str = Field(min_length=1, description="The search query to find in documents")


class KnowledgeInput(BaseModel):
    question: str = Field(
        min_length=1, description="The question to answer using general knowledge"
    )


class RetrievalTool:
    """Searches uploaded documents through the vector index.

    Never raises: backend errors, timeouts and malformed index output all
    come back as `found=False` with the reason in `diagnostic`.
    """

    name = ToolName.RETRIEVAL
    description = (
        "Search through uploaded documents to find relevant information. Use this "
        "when the user asks about their uploaded PDFs or audio files."
    )
    args_schema = RetrievalInput

    def __init__(
        self,
        index: VectorIndex,
        *,
        top_k: int = 3,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.index = index
        self.top_k = top_k
        self.timeout_seconds = timeout_seconds

    def invoke(self, data: RetrievalInput) -> RetrievalResult:
        try:
            raw = run_with_timeout(
                self.name.value,
                self._search_serialized,
                self.timeout_seconds,
                data.query,
            )
            return _validate_json(self.name, RetrievalResult, raw)
        except ToolFailure as exc:
            logger.warning("Retrieval failed, treating as not found: %s", exc.reason)
            return RetrievalResult.not_found(f"Error searching documents: {exc.reason}")

    def _search_serialized(self, query: str) -> str:
        return self.index.search(query, self.top_k).model_dump_json()


class KnowledgeTool:
    """Answers from the language model's own knowledge, without documents.

    There is no fallback below this tool, so failures are raised as
    `ToolFailure` and never retried.
    """

    name = ToolName.KNOWLEDGE
    description = (
        "Answer questions using AI general knowledge. Use this when documents do "
        "not contain the answer or for general questions."
    )
    args_schema = KnowledgeInput

    def __init__(self, llm: Any | None, *, timeout_seconds: float = 30.0) -> None:
        self.llm = llm
        self.timeout_seconds = timeout_seconds
        self._chain = _KNOWLEDGE_PROMPT | llm | StrOutputParser() if llm is not None else None

    def invoke(self, data: KnowledgeInput) -> KnowledgeResult:
        if self._chain is None:
            raise ToolFailure(self.name.value, "no language model configured")
        raw = run_with_timeout(
            self.name.value,
            self._answer_serialized,
            self.timeout_seconds,
            data.question,
        )
        return _validate_json(self.name, KnowledgeResult, raw)

    def _answer_serialized(self, question: str) -> str:
        answer = self._chain.invoke({"question": question})
        return KnowledgeResult(answer=answer).model_dump_json()


def _validate_json(tool: ToolName, schema: type[BaseModel], raw: str) -> Any:
    try:
        return schema.model_validate_json(raw)
    except ValidationError as exc:
        raise ToolFailure(tool.value, f"invalid output: {exc.error_count()} error(s)") from exc
