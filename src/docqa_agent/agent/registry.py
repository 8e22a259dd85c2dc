"""Closed toolkit holding the retrieval and knowledge tools."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from langchain_core.tools import StructuredTool

from docqa_agent.agent.tools import (
    KnowledgeInput,
    KnowledgeTool,
    RetrievalInput,
    RetrievalTool,
)
from docqa_agent.errors import ToolFailure
from docqa_agent.obs.tracing import Timer
from docqa_agent.types import KnowledgeResult, RetrievalResult, ToolCall


class Toolkit:
    """Executes the two tools and records each execution as a `ToolCall`.

    There is no lookup by name: callers pick the variant through
    `search_documents` or `ask_knowledge`, each typed with its own input and
    output schema.
    """

    def __init__(self, retrieval: RetrievalTool, knowledge: KnowledgeTool) -> None:
        self.retrieval = retrieval
        self.knowledge = knowledge
        self._observer: Callable[[ToolCall], None] | None = None

    def set_observer(self, observer: Callable[[ToolCall], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def search_documents(self, query: str) -> tuple[RetrievalResult, ToolCall]:
        data = RetrievalInput(query=query)
        with Timer() as timer:
            result = self.retrieval.invoke(data)
        call = ToolCall(
            tool=self.retrieval.name,
            input=data.model_dump(),
            output=result.model_dump(),
            latency_ms=timer.elapsed_ms,
            error=result.diagnostic if not result.found else None,
        )
        self._notify(call)
        return result, call

    def ask_knowledge(self, question: str) -> tuple[KnowledgeResult | None, ToolCall]:
        """Run the knowledge tool; a failure is returned in `ToolCall.error`."""
        data = KnowledgeInput(question=question)
        result: KnowledgeResult | None = None
        error: str | None = None
        with Timer() as timer:
            try:
                result = self.knowledge.invoke(data)
            except ToolFailure as exc:
                error = exc.reason
        call = ToolCall(
            tool=self.knowledge.name,
            input=data.model_dump(),
            output=result.model_dump() if result is not None else {},
            latency_ms=timer.elapsed_ms,
            error=error,
        )
        self._notify(call)
        return result, call

    def as_langchain_tools(self) -> list[StructuredTool]:
        """Export both tools for LangChain tool-calling runtimes.

        Outputs are JSON strings in the same shape recorded in traces.
        """

        def _search(**kwargs: Any) -> str:
            result, _ = self.search_documents(RetrievalInput(**kwargs).query)
            return result.model_dump_json()

        def _knowledge(**kwargs: Any) -> str:
            result, call = self.ask_knowledge(KnowledgeInput(**kwargs).question)
            if result is None:
                raise ToolFailure(call.tool.value, call.error or "failed")
            return result.model_dump_json()

        return [
            StructuredTool.from_function(
                name=self.retrieval.name.value,
                description=self.retrieval.description,
                args_schema=RetrievalInput,
                func=_search,
            ),
            StructuredTool.from_function(
                name=self.knowledge.name.value,
                description=self.knowledge.description,
                args_schema=KnowledgeInput,
                func=_knowledge,
            ),
        ]

    def _notify(self, call: ToolCall) -> None:
        if self._observer is not None:
            self._observer(call)
