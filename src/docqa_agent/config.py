"""Configuration models for the document Q&A agent."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingConfig(BaseModel):
    """Configures fixed-size character chunking with overlap."""

    max_size: int = Field(default=500, ge=1)
    overlap: int = Field(default=50, ge=0)

    @model_validator(mode="after")
    def _overlap_below_size(self) -> "ChunkingConfig":
        if self.overlap >= self.max_size:
            raise ValueError("overlap must be less than max_size")
        return self


class RetrievalConfig(BaseModel):
    """Configures nearest-neighbour passage retrieval."""

    top_k: int = Field(default=3, ge=1, le=20)


class AgentConfig(BaseModel):
    """Configures the orchestrator's external calls."""

    call_timeout_seconds: float = Field(default=30.0, gt=0.0)


class EvaluatorConfig(BaseModel):
    """Configures the rubric evaluator."""

    call_timeout_seconds: float = Field(default=30.0, gt=0.0)


class AppSettings(BaseSettings):
    """Process-level settings read from the environment or a `.env` file."""

    model_config = SettingsConfigDict(
        env_prefix="DOCQA_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    chat_model: str = "gpt-4o-mini"
    knowledge_model: str = "gpt-4o-mini"
    evaluator_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-large"

    chunk_size: int = 500
    chunk_overlap: int = 50
    top_k: int = 3
    call_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    @property
    def llm_configured(self) -> bool:
        return bool(self.openai_api_key)

    def chunking(self) -> ChunkingConfig:
        return ChunkingConfig(max_size=self.chunk_size, overlap=self.chunk_overlap)

    def retrieval(self) -> RetrievalConfig:
        return RetrievalConfig(top_k=self.top_k)

    def agent(self) -> AgentConfig:
        return AgentConfig(call_timeout_seconds=self.call_timeout_seconds)

    def evaluator(self) -> EvaluatorConfig:
        return EvaluatorConfig(call_timeout_seconds=self.call_timeout_seconds)
