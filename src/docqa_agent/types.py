"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


@dataclass(frozen=True, slots=True)
class Passage:
    """A bounded span of ingested document text."""

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ScoredPassage:
    """A similarity search hit."""

    passage: Passage
    score: float
    rank: int = 0


class ToolName(str, Enum):
    RETRIEVAL = "vector_search"
    KNOWLEDGE = "general_knowledge"


class AnswerSource(str, Enum):
    DOCUMENTS = "documents"
    AI_KNOWLEDGE = "AI knowledge"
    UNKNOWN = "unknown"


class AgentState(str, Enum):
    START = "start"
    RETRIEVING = "retrieving"
    DOCUMENT_ANSWER = "document_answer"
    FALLBACK_KNOWLEDGE = "fallback_knowledge"
    DONE = "done"
    FAILED = "failed"


class RetrievalResult(BaseModel):
    """Output schema of the retrieval tool."""

    model_config = ConfigDict(frozen=True)

    found: bool
    passages: list[str] = Field(default_factory=list)
    diagnostic: str | None = None

    @model_validator(mode="after")
    def _found_matches_passages(self) -> "RetrievalResult":
        if self.found != bool(self.passages):
            raise ValueError("found must be true exactly when passages are present")
        return self

    @classmethod
    def not_found(cls, diagnostic: str | None = None) -> "RetrievalResult":
        return cls(found=False, passages=[], diagnostic=diagnostic)


class KnowledgeResult(BaseModel):
    """Output schema of the knowledge tool."""

    model_config = ConfigDict(frozen=True)

    answer: str
    source: Literal["AI knowledge"] = "AI knowledge"


@dataclass(slots=True)
class ToolCall:
    """One executed tool step in a reasoning trace."""

    tool: ToolName
    input: dict[str, Any]
    output: dict[str, Any]
    latency_ms: float = 0.0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class AgentResponse:
    """Result of one orchestrator run.

    `tools_used` and `source` are derived from the trace and are never set
    directly.
    """

    question: str
    answer: str | None
    trace: list[ToolCall] = field(default_factory=list)
    states: list[AgentState] = field(default_factory=list)

    @property
    def tools_used(self) -> list[str]:
        names: list[str] = []
        for call in self.trace:
            if call.tool.value not in names:
                names.append(call.tool.value)
        return names

    @property
    def source(self) -> AnswerSource:
        if self.answer is None:
            return AnswerSource.UNKNOWN
        for call in self.trace:
            if call.tool is ToolName.KNOWLEDGE and call.succeeded:
                return AnswerSource.AI_KNOWLEDGE
        for call in self.trace:
            if call.tool is ToolName.RETRIEVAL and call.output.get("found"):
                return AnswerSource.DOCUMENTS
        return AnswerSource.UNKNOWN


class Evaluation(BaseModel):
    """Rubric scores for one answered question."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    relevance: int = Field(ge=1, le=5)
    clarity: int = Field(ge=1, le=5)
    tool_effectiveness: int = Field(ge=1, le=5, alias="toolEffectiveness")
    feedback: str = ""

    @classmethod
    def neutral(cls, feedback: str) -> "Evaluation":
        return cls(relevance=3, clarity=3, tool_effectiveness=3, feedback=feedback)


class QueryReply(BaseModel):
    """Response surface handed to the HTTP layer."""

    model_config = ConfigDict(populate_by_name=True)

    answer: str
    tools_used: list[str] = Field(alias="toolsUsed")
    source: AnswerSource
    evaluation: Evaluation
