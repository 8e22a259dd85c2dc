"""Context-conditioned answer generation."""

from __future__ import annotations

from typing import Any, Protocol

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from docqa_agent.obs.tracing import run_with_timeout

ANSWER_STEP = "document_answer"

_CONTEXT_PROMPT = ChatPromptTemplate.from_template(
    """Answer the question based on the provided context.

Context: {context}

Question: {input}"""
)


class ContextAnswerer(Protocol):
    def answer(self, question: str, passages: list[str]) -> str:
        """Produce an answer grounded in `passages`."""


class ChatContextAnswerer:
    """Stuffs retrieved passages into a prompt and asks the chat model.

    Failures and timeouts are raised as `ToolFailure`; the orchestrator turns
    them into a query failure.
    """

    def __init__(self, llm: Any, *, timeout_seconds: float = 30.0) -> None:
        self.timeout_seconds = timeout_seconds
        self._chain = _CONTEXT_PROMPT | llm | StrOutputParser()

    def answer(self, question: str, passages: list[str]) -> str:
        context = "\n\n".join(passages)
        return run_with_timeout(
            ANSWER_STEP,
            self._chain.invoke,
            self.timeout_seconds,
            {"context": context, "input": question},
        )


class ExtractiveAnswerer:
    """Answers by quoting the best passages; used when no chat model is configured."""

    def __init__(self, max_passages: int = 3) -> None:
        self.max_passages = max_passages

    def answer(self, question: str, passages: list[str]) -> str:
        del question  # extractive answers do not depend on phrasing.
        snippets = [" ".join(p.split()) for p in passages[: self.max_passages] if p.strip()]
        if not snippets:
            return "No verifiable evidence was found in the indexed documents."
        if len(snippets) == 1:
            return snippets[0]
        return "\n".join(f"{idx}. {snippet}" for idx, snippet in enumerate(snippets, start=1))
