import pytest
from pydantic import ValidationError

from docqa_agent.config import ChunkingConfig
from docqa_agent.ingest.chunker import CharacterChunker


def _make_text(length: int = 1234) -> str:
    alphabet = "abcdefghijklmnopqrstuvwxyz0123456789"
    return "".join(alphabet[i % len(alphabet)] for i in range(length))


def test_chunker_size_bounds_and_overlap() -> None:
    chunker = CharacterChunker(ChunkingConfig(max_size=500, overlap=50))
    text = _make_text(1234)

    passages = chunker.split(text, {"source_kind": "pdf"})

    assert len(passages) == 3
    assert all(len(p.content) <= 500 for p in passages)
    assert all(len(p.content) == 500 for p in passages[:-1])
    for previous, current in zip(passages, passages[1:]):
        assert current.content[:50] == previous.content[-50:]
    assert passages[-1].content.endswith(text[-10:])


def test_chunker_preserves_order_and_metadata() -> None:
    chunker = CharacterChunker(ChunkingConfig(max_size=10, overlap=2))
    text = "The capital of France is Paris."

    passages = chunker.split(text, {"document_name": "geo.pdf"})

    assert [p.metadata["chunk_index"] for p in passages] == list(range(len(passages)))
    assert all(p.metadata["document_name"] == "geo.pdf" for p in passages)
    assert passages[0].metadata["start"] == 0
    assert passages[-1].metadata["end"] == len(text)
    rebuilt = passages[0].content + "".join(p.content[2:] for p in passages[1:])
    assert rebuilt == text


def test_chunker_is_deterministic() -> None:
    chunker = CharacterChunker()
    text = "Data governance requires strict access control. " * 40

    assert chunker.split(text) == chunker.split(text)


def test_short_text_is_single_passage() -> None:
    passages = CharacterChunker().split("The capital of France is Paris.")

    assert len(passages) == 1
    assert passages[0].content == "The capital of France is Paris."


def test_text_of_exactly_max_size_is_not_split() -> None:
    passages = CharacterChunker(ChunkingConfig(max_size=20, overlap=5)).split("x" * 20)

    assert len(passages) == 1


@pytest.mark.parametrize("text", ["", "   ", "\n\t\n", None])
def test_empty_text_yields_no_passages(text) -> None:
    assert CharacterChunker().split(text) == []


def test_overlap_must_be_smaller_than_size() -> None:
    with pytest.raises(ValidationError):
        ChunkingConfig(max_size=50, overlap=50)


def test_blank_runs_do_not_become_passages() -> None:
    chunker = CharacterChunker(ChunkingConfig(max_size=20, overlap=5))
    text = "Intro paragraph." + " " * 60 + "Closing paragraph."

    passages = chunker.split(text, {"source_kind": "pdf"})

    assert all(p.content.strip() for p in passages)
    assert [p.metadata["start"] for p in passages] == [0, 15, 60, 75]
    assert [p.metadata["chunk_index"] for p in passages] == [0, 1, 2, 3]
    assert passages[-1].content.endswith("Closing paragraph.")
