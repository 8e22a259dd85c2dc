import time

import pytest
from langchain_core.language_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from docqa_agent.agent.answering import ChatContextAnswerer, ExtractiveAnswerer
from docqa_agent.agent.orchestrator import AgentOrchestrator
from docqa_agent.agent.registry import Toolkit
from docqa_agent.agent.tools import KnowledgeTool, RetrievalTool
from docqa_agent.config import ChunkingConfig
from docqa_agent.errors import GenerationError
from docqa_agent.ingest.chunker import CharacterChunker
from docqa_agent.ingest.embedder import HashingEmbedder
from docqa_agent.ingest.pipeline import IngestPipeline
from docqa_agent.retrieval.vector_store import InMemoryVectorIndex
from docqa_agent.types import AgentState, AnswerSource, RetrievalResult, ToolName


class _CountingModel:
    """Wraps a fake chat model and records every prompt it receives."""

    def __init__(self, *responses: str) -> None:
        self.prompts: list[str] = []
        self._model = FakeListChatModel(responses=list(responses))
        self.runnable = RunnableLambda(self._call)

    def _call(self, prompt_value):
        self.prompts.append(prompt_value.to_string())
        return self._model.invoke(prompt_value)


class _BrokenIndex:
    def __len__(self) -> int:
        return 0

    def add(self, passages):
        raise AssertionError("query-time code must not write")

    def similarity_search(self, query, k):
        raise ConnectionError("qdrant unreachable")

    def search(self, query, k=3):
        raise ConnectionError("qdrant unreachable")


def _failing(_prompt):
    raise RuntimeError("model unavailable")


def _slow(_prompt):
    time.sleep(0.5)
    return "too late"


def _build(index, *, chat_model=None, knowledge_model=None, timeout=2.0) -> AgentOrchestrator:
    toolkit = Toolkit(
        retrieval=RetrievalTool(index, top_k=3, timeout_seconds=timeout),
        knowledge=KnowledgeTool(knowledge_model, timeout_seconds=timeout),
    )
    answerer = (
        ChatContextAnswerer(chat_model, timeout_seconds=timeout)
        if chat_model is not None
        else ExtractiveAnswerer()
    )
    return AgentOrchestrator(toolkit=toolkit, answerer=answerer)


def _ingested_index(text: str) -> InMemoryVectorIndex:
    index = InMemoryVectorIndex(HashingEmbedder())
    IngestPipeline(CharacterChunker(ChunkingConfig()), index).ingest_text(
        text, source_kind="pdf", document_name="geography.pdf"
    )
    return index


def test_document_answer_when_passages_are_found() -> None:
    index = _ingested_index("The capital of France is Paris.")
    chat = _CountingModel("The capital of France is Paris.")
    knowledge = _CountingModel("should not be used")
    orchestrator = _build(index, chat_model=chat.runnable, knowledge_model=knowledge.runnable)

    response = orchestrator.submit_query("What is the capital of France?")

    retrieval = RetrievalResult.model_validate(response.trace[0].output)
    assert retrieval.found is True
    assert response.source is AnswerSource.DOCUMENTS
    assert "Paris" in response.answer
    assert response.tools_used == [ToolName.RETRIEVAL.value]
    assert knowledge.prompts == []
    assert "Context: The capital of France is Paris." in chat.prompts[0]
    assert "Question: What is the capital of France?" in chat.prompts[0]
    assert response.states == [
        AgentState.START,
        AgentState.RETRIEVING,
        AgentState.DOCUMENT_ANSWER,
        AgentState.DONE,
    ]


def test_offline_extractive_answer_quotes_passage() -> None:
    index = _ingested_index("The capital of France is Paris.")
    orchestrator = _build(index)

    response = orchestrator.submit_query("What is the capital of France?")

    assert response.source is AnswerSource.DOCUMENTS
    assert response.answer == "The capital of France is Paris."


def test_empty_index_falls_back_to_knowledge_once() -> None:
    index = InMemoryVectorIndex(HashingEmbedder())
    knowledge = _CountingModel("Paris is the capital of France.")
    orchestrator = _build(index, knowledge_model=knowledge.runnable)

    response = orchestrator.submit_query("What is the capital of France?")

    assert response.trace[0].tool is ToolName.RETRIEVAL
    assert response.trace[0].output["found"] is False
    assert response.source is AnswerSource.AI_KNOWLEDGE
    assert response.answer == "Paris is the capital of France."
    assert len(knowledge.prompts) == 1
    assert [call.tool for call in response.trace] == [ToolName.RETRIEVAL, ToolName.KNOWLEDGE]
    assert response.tools_used == ["vector_search", "general_knowledge"]
    assert AgentState.FALLBACK_KNOWLEDGE in response.states


def test_retrieval_backend_error_drives_fallback() -> None:
    knowledge = _CountingModel("Paris.")
    orchestrator = _build(_BrokenIndex(), knowledge_model=knowledge.runnable)

    response = orchestrator.submit_query("What is the capital of France?")

    assert response.source is AnswerSource.AI_KNOWLEDGE
    assert "qdrant unreachable" in response.trace[0].output["diagnostic"]
    assert response.trace[0].error is not None


def test_both_failing_reports_unknown_source() -> None:
    orchestrator = _build(_BrokenIndex(), knowledge_model=RunnableLambda(_failing))

    with pytest.raises(GenerationError) as exc_info:
        orchestrator.submit_query("What is the capital of France?")

    partial = exc_info.value.response
    assert partial.source is AnswerSource.UNKNOWN
    assert partial.answer is None
    assert partial.tools_used == ["vector_search", "general_knowledge"]
    assert partial.states[-1] is AgentState.FAILED


def test_context_generation_failure_does_not_fall_back() -> None:
    index = _ingested_index("The capital of France is Paris.")
    knowledge = _CountingModel("Paris.")
    orchestrator = _build(
        index, chat_model=RunnableLambda(_failing), knowledge_model=knowledge.runnable
    )

    with pytest.raises(GenerationError) as exc_info:
        orchestrator.submit_query("What is the capital of France?")

    assert knowledge.prompts == []
    assert exc_info.value.response.tools_used == ["vector_search"]
    assert exc_info.value.response.source is AnswerSource.UNKNOWN


def test_knowledge_timeout_ends_in_generation_error() -> None:
    orchestrator = _build(
        InMemoryVectorIndex(HashingEmbedder()), knowledge_model=RunnableLambda(_slow), timeout=0.05
    )

    with pytest.raises(GenerationError) as exc_info:
        orchestrator.submit_query("What is the capital of France?")

    partial = exc_info.value.response
    assert partial.source is AnswerSource.UNKNOWN
    assert "timed out" in partial.trace[-1].error
    assert partial.states[-1] is AgentState.FAILED


def test_document_answer_timeout_ends_in_generation_error() -> None:
    index = _ingested_index("The capital of France is Paris.")
    knowledge = _CountingModel("Paris.")
    orchestrator = _build(
        index,
        chat_model=RunnableLambda(_slow),
        knowledge_model=knowledge.runnable,
        timeout=0.05,
    )

    with pytest.raises(GenerationError, match="timed out"):
        orchestrator.submit_query("What is the capital of France?")

    assert knowledge.prompts == []

def test_orchestrator_keeps_no_state_between_queries() -> None:
    index = InMemoryVectorIndex(HashingEmbedder())
    knowledge = _CountingModel("first", "second")
    orchestrator = _build(index, knowledge_model=knowledge.runnable)

    first = orchestrator.submit_query("Question one?")
    second = orchestrator.submit_query("Question two?")

    assert len(first.trace) == 2
    assert len(second.trace) == 2
    assert (first.answer, second.answer) == ("first", "second")
    assert "Question one?" not in knowledge.prompts[1]


@pytest.mark.parametrize("question", ["", "   "])
def test_blank_question_is_rejected(question) -> None:
    orchestrator = _build(InMemoryVectorIndex(HashingEmbedder()))

    with pytest.raises(ValueError):
        orchestrator.submit_query(question)
