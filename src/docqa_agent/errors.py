"""Error taxonomy for ingestion, tool execution and generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docqa_agent.types import AgentResponse


class DocQAError(Exception):
    """Base class for errors raised by the document Q&A pipeline."""


class IngestionError(DocQAError):
    """Source text was empty or unreadable; nothing was written to the index."""


class ToolFailure(DocQAError):
    """An external call behind a tool failed, timed out, or returned invalid output."""

    def __init__(self, tool: str, reason: str) -> None:
        super().__init__(f"{tool}: {reason}")
        self.tool = tool
        self.reason = reason


class GenerationError(DocQAError):
    """Answer generation failed; fatal for the current query.

    `response` holds the partial agent response (trace so far, source
    `unknown`) so callers can still inspect which tools ran.
    """

    def __init__(self, message: str, response: "AgentResponse") -> None:
        super().__init__(message)
        self.response = response
