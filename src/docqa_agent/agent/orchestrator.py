"""Retrieval-first agent loop with a single knowledge fallback."""

from __future__ import annotations

import logging

from docqa_agent.agent.answering import ContextAnswerer
from docqa_agent.agent.registry import Toolkit
from docqa_agent.errors import GenerationError, ToolFailure
from docqa_agent.types import AgentResponse, AgentState

logger = logging.getLogger(__name__)


class AgentOrchestrator:
    """Runs one query through `START -> RETRIEVING -> (DOCUMENT_ANSWER |
    FALLBACK_KNOWLEDGE) -> DONE`.

    Policy:
    - Retrieval always runs first, with the question as the query.
    - If retrieval finds passages, the answer is generated from them and the
      knowledge tool is not called, even when that generation fails.
    - Otherwise the knowledge tool is called exactly once.

    At most two tool calls happen per query and nothing is kept between
    calls to `submit_query`.
    """

    def __init__(self, *, toolkit: Toolkit, answerer: ContextAnswerer) -> None:
        self.toolkit = toolkit
        self.answerer = answerer

    def submit_query(self, question: str) -> AgentResponse:
        """Answer one question.

        Raises:
            ValueError: the question is blank.
            GenerationError: the step that should have produced the answer
                failed. `exc.response` carries the partial trace with source
                `unknown`.
        """

        question = question.strip() if question else ""
        if not question:
            raise ValueError("question is required")

        response = AgentResponse(question=question, answer=None, states=[AgentState.START])
        logger.info("Query started: %r", question)

        response.states.append(AgentState.RETRIEVING)
        retrieval, call = self.toolkit.search_documents(question)
        response.trace.append(call)
        logger.info(
            "Retrieval finished: found=%s passages=%d latency_ms=%.1f",
            retrieval.found,
            len(retrieval.passages),
            call.latency_ms,
        )

        if retrieval.found:
            response.states.append(AgentState.DOCUMENT_ANSWER)
            try:
                answer = self.answerer.answer(question, retrieval.passages)
            except ToolFailure as exc:
                raise self._failure(
                    response, f"Document answer generation failed: {exc.reason}"
                ) from exc
        else:
            response.states.append(AgentState.FALLBACK_KNOWLEDGE)
            knowledge, call = self.toolkit.ask_knowledge(question)
            response.trace.append(call)
            if knowledge is None:
                raise self._failure(response, f"Knowledge tool failed: {call.error}")
            answer = knowledge.answer

        response.answer = answer
        response.states.append(AgentState.DONE)
        logger.info(
            "Query finished: source=%s tools=%s",
            response.source.value,
            response.tools_used,
        )
        return response

    @staticmethod
    def _failure(response: AgentResponse, message: str) -> GenerationError:
        response.states.append(AgentState.FAILED)
        logger.error("Query failed: %s", message)
        return GenerationError(message, response)
