"""Vector index interfaces and concrete adapters."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from math import sqrt
from typing import Any, Protocol

from docqa_agent.ingest.embedder import Embedder
from docqa_agent.obs.tracing import run_with_timeout
from docqa_agent.types import Passage, RetrievalResult, ScoredPassage

logger = logging.getLogger(__name__)


class VectorIndex(Protocol):
    """Minimal index contract needed by ingestion and retrieval."""

    def add(self, passages: list[Passage]) -> None:
        """Append passages to the searchable corpus."""

    def similarity_search(self, query: str, k: int) -> list[ScoredPassage]:
        """Return up to `k` hits ranked by similarity, best first."""

    def search(self, query: str, k: int = 3) -> RetrievalResult:
        """Return up to `k` passage texts as a retrieval result."""

    def __len__(self) -> int:
        """Number of stored passages."""


@dataclass(frozen=True, slots=True)
class _StoredVector:
    passage: Passage
    embedding: list[float]


class InMemoryVectorIndex:
    """Append-only in-process index.

    Writers build their records first and then swap in a new tuple under a
    lock; readers grab the current tuple without locking, so a search never
    sees a half-written batch. Embedding runs under a deadline before the
    swap, so a batch whose embedding times out is never written. Ranking is
    a stable sort on cosine similarity, which keeps earlier-inserted passages
    ahead on ties.
    """

    def __init__(self, embedder: Embedder, *, timeout_seconds: float = 30.0) -> None:
        self._embedder = embedder
        self._timeout_seconds = timeout_seconds
        self._records: tuple[_StoredVector, ...] = ()
        self._write_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def add(self, passages: list[Passage]) -> None:
        if not passages:
            return
        embeddings = run_with_timeout(
            "embedding",
            self._embedder.embed_documents,
            self._timeout_seconds,
            [p.content for p in passages],
        )
        if len(passages) != len(embeddings):
            raise ValueError("passages and embeddings must have the same length")
        batch = tuple(
            _StoredVector(passage=passage, embedding=embedding)
            for passage, embedding in zip(passages, embeddings, strict=True)
        )
        with self._write_lock:
            self._records = self._records + batch
            total = len(self._records)
        logger.info("Indexed %d passages (total=%d)", len(batch), total)

    def similarity_search(self, query: str, k: int) -> list[ScoredPassage]:
        records = self._records
        if not records or k <= 0:
            return []
        query_embedding = self._embedder.embed_query(query)
        ranked = sorted(
            (
                (_cosine_similarity(query_embedding, record.embedding), record.passage)
                for record in records
            ),
            key=lambda item: item[0],
            reverse=True,
        )
        return [
            ScoredPassage(passage=passage, score=score, rank=i + 1)
            for i, (score, passage) in enumerate(ranked[:k])
        ]

    def search(self, query: str, k: int = 3) -> RetrievalResult:
        return _to_result(self.similarity_search(query, k))


class LangChainVectorIndex:
    """Adapter over any `langchain_core` vector store (Qdrant, FAISS, ...).

    Persistence and transport belong to the wrapped store; this class only
    maps it onto the `VectorIndex` contract. A write that overruns its deadline
    is reported as failed but may still land in the backing store.
    """

    def __init__(self, store: Any, *, timeout_seconds: float = 30.0) -> None:
        self._store = store
        self._timeout_seconds = timeout_seconds
        self._count = 0
        self._write_lock = threading.Lock()

    def __len__(self) -> int:
        return self._count

    def add(self, passages: list[Passage]) -> None:
        if not passages:
            return
        with self._write_lock:
            run_with_timeout(
                "embedding",
                self._store.add_texts,
                self._timeout_seconds,
                texts=[p.content for p in passages],
                metadatas=[dict(p.metadata) for p in passages],
            )
            self._count += len(passages)

    def similarity_search(self, query: str, k: int) -> list[ScoredPassage]:
        if k <= 0:
            return []
        docs_and_scores = self._store.similarity_search_with_score(query, k=k)
        return [
            ScoredPassage(
                passage=Passage(content=doc.page_content, metadata=dict(doc.metadata)),
                score=float(score),
                rank=rank,
            )
            for rank, (doc, score) in enumerate(docs_and_scores, start=1)
        ]

    def search(self, query: str, k: int = 3) -> RetrievalResult:
        return _to_result(self.similarity_search(query, k))


def _to_result(hits: list[ScoredPassage]) -> RetrievalResult:
    if not hits:
        return RetrievalResult.not_found()
    return RetrievalResult(found=True, passages=[hit.passage.content for hit in hits])


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
