"""Document question-answering agent package."""

from .config import AgentConfig, AppSettings, ChunkingConfig, EvaluatorConfig, RetrievalConfig

__all__ = [
    "AgentConfig",
    "AppSettings",
    "ChunkingConfig",
    "EvaluatorConfig",
    "RetrievalConfig",
]
