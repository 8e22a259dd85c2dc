"""Ingestion pipeline: extracted text -> chunk -> index."""

from __future__ import annotations

import logging
from typing import Any, Literal

from docqa_agent.errors import IngestionError, ToolFailure
from docqa_agent.ingest.chunker import CharacterChunker
from docqa_agent.retrieval.vector_store import VectorIndex
from docqa_agent.types import Passage

logger = logging.getLogger(__name__)

SourceKind = Literal["pdf", "audio", "text"]


class IngestPipeline:
    """Turns text from the upstream extractors into indexed passages.

    PDF text and audio transcripts arrive as plain text (or `None` when the
    extractor failed). Every ingestion appends to the same index, so the
    corpus grows across uploads within a session.
    """

    def __init__(self, chunker: CharacterChunker, index: VectorIndex) -> None:
        self._chunker = chunker
        self._index = index

    def ingest_text(
        self,
        text: str | None,
        *,
        source_kind: SourceKind = "text",
        document_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> list[Passage]:
        """Chunk and index one extracted document.

        Raises:
            IngestionError: the text is missing, empty or whitespace-only, or
                the passages could not be embedded (failure or timeout). The index is left
                untouched.
        """

        base_metadata: dict[str, Any] = {**(metadata or {}), "source_kind": source_kind}
        if document_name:
            base_metadata["document_name"] = document_name

        passages = self._chunker.split(text, base_metadata)
        if not passages:
            raise IngestionError(f"No text could be extracted from the {source_kind} source")

        try:
            self._index.add(passages)
        except ToolFailure as exc:
            logger.warning("Indexing %s source failed: %s", source_kind, exc.reason)
            raise IngestionError(
                f"Could not index the {source_kind} source: {exc.reason}"
            ) from exc
        logger.info(
            "Ingested %s source %r into %d passages",
            source_kind,
            document_name or "<unnamed>",
            len(passages),
        )
        return passages
