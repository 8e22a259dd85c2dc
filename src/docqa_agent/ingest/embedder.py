"""Embedding backends: an offline feature-hashing model and a LangChain adapter."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from hashlib import blake2b
from math import sqrt
from typing import Any

_WORD_PATTERN = re.compile(r"\w+", flags=re.UNICODE)
_HASH_PERSON = b"docqa-hashing"


class Embedder(ABC):
    """Turns passages and questions into vectors for the index."""

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed passages, one vector per input, in order."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed a question."""


class HashingEmbedder(Embedder):
    """Signed feature hashing over lowercase words, normalized to unit length.

    Runs offline and is deterministic, so it backs local runs without an API
    key as well as the tests. Text without any word characters (a run of
    punctuation, symbols) is hashed character by character instead; only
    empty or blank text maps to the zero vector.
    """

    def __init__(self, dimension: int = 256) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for feature in _features(text):
            slot, sign = self._slot(feature)
            vector[slot] += sign
        return _unit(vector)

    def _slot(self, feature: str) -> tuple[int, float]:
        digest = blake2b(feature.encode("utf-8"), digest_size=8, person=_HASH_PERSON).digest()
        slot = int.from_bytes(digest[:4], "little") % self.dimension
        return slot, (-1.0 if digest[4] & 1 else 1.0)


class LangChainEmbedder(Embedder):
    """Adapts any `langchain_core` embeddings model, e.g. `OpenAIEmbeddings`."""

    def __init__(self, embeddings: Any) -> None:
        self._embeddings = embeddings

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [list(vector) for vector in self._embeddings.embed_documents(texts)]

    def embed_query(self, text: str) -> list[float]:
        return list(self._embeddings.embed_query(text))


def _features(text: str) -> list[str]:
    words = [word.lower() for word in _WORD_PATTERN.findall(text)]
    if words:
        return words
    symbols = [char for char in text if not char.isspace()]
    if not symbols:
        return []
    # the whole symbol run as one extra feature keeps short runs distinct
    return symbols + ["".join(symbols)]


def _unit(vector: list[float]) -> list[float]:
    norm = sqrt(sum(value * value for value in vector))
    if norm == 0:
        return vector
    return [value / norm for value in vector]
