"""Fixed-size sliding-window chunking over characters."""

from __future__ import annotations

from typing import Any

from docqa_agent.config import ChunkingConfig
from docqa_agent.types import Passage


class CharacterChunker:
    """Splits extracted text into overlapping fixed-size passages.

    Windows are `max_size` characters long and advance by
    `stride = max_size - overlap`, so every passage after the first starts
    with the trailing `overlap` characters of its predecessor. The last
    window may be shorter than `max_size`. A window is only emitted when it
    contributes characters beyond the previous window's tail, and windows that
    hold only whitespace (long blank runs in extracted PDF text) are dropped;
    `chunk_index` counts emitted passages only.

    The output is a pure function of `(text, config)`.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    def split(
        self,
        text: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> list[Passage]:
        """Split `text` into ordered passages.

        Returns an empty list for missing, empty or whitespace-only text;
        callers treat that as "nothing ingested".
        """

        if not text or not text.strip():
            return []

        size = self.config.max_size
        stride = size - self.config.overlap
        base_metadata = dict(metadata or {})

        passages: list[Passage] = []
        start = 0
        while True:
            end = min(start + size, len(text))
            content = text[start:end]
            if content.strip():
                passages.append(
                    Passage(
                        content=content,
                        metadata={
                            **base_metadata,
                            "chunk_index": len(passages),
                            "start": start,
                            "end": end,
                        },
                    )
                )
            if end >= len(text):
                break
            start += stride
        return passages
