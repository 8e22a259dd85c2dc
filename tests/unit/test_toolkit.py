import json

from langchain_core.language_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from docqa_agent.agent.registry import Toolkit
from docqa_agent.agent.tools import KnowledgeTool, RetrievalTool
from docqa_agent.ingest.embedder import HashingEmbedder
from docqa_agent.retrieval.vector_store import InMemoryVectorIndex
from docqa_agent.types import Passage, ToolName


def _toolkit(knowledge_model=None) -> Toolkit:
    index = InMemoryVectorIndex(HashingEmbedder())
    index.add([Passage(content="Company policy requires encrypting customer data at rest.")])
    return Toolkit(
        retrieval=RetrievalTool(index),
        knowledge=KnowledgeTool(knowledge_model or FakeListChatModel(responses=["42"])),
    )


def test_tool_observer_captures_latency_and_payload() -> None:
    toolkit = _toolkit()

    observed = []
    toolkit.set_observer(observed.append)
    result, call = toolkit.search_documents("customer data policy")
    toolkit.set_observer(None)

    assert result.found is True
    assert len(observed) == 1
    assert observed[0] is call
    assert call.tool is ToolName.RETRIEVAL
    assert call.input == {"query": "customer data policy"}
    assert call.output["found"] is True
    assert call.latency_ms >= 0.0
    assert call.error is None


def test_knowledge_failure_is_recorded_on_the_call() -> None:
    def _boom(_prompt):
        raise TimeoutError("upstream")

    toolkit = _toolkit(RunnableLambda(_boom))

    result, call = toolkit.ask_knowledge("What is the meaning of life?")

    assert result is None
    assert call.tool is ToolName.KNOWLEDGE
    assert call.output == {}
    assert "upstream" in call.error


def test_tools_export_as_langchain_structured_tools() -> None:
    toolkit = _toolkit()

    tools = {tool.name: tool for tool in toolkit.as_langchain_tools()}

    assert set(tools) == {"vector_search", "general_knowledge"}
    search_output = json.loads(tools["vector_search"].invoke({"query": "encrypt customer data"}))
    assert search_output["found"] is True
    knowledge_output = json.loads(tools["general_knowledge"].invoke({"question": "Answer?"}))
    assert knowledge_output == {"answer": "42", "source": "AI knowledge"}
