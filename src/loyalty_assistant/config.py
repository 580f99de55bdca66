"""Configuration models for the loyalty assistant."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingConfig(BaseModel):
    """Configures token-bounded splitting of reference pages."""

    chunk_size_tokens: int = Field(default=800, ge=16)
    min_chunk_chars: int = Field(default=350, ge=0)
    min_chunk_length_to_embed: int = Field(default=5, ge=1)
    max_num_chunks: int = Field(default=10000, ge=1)
    encoding_name: str = "cl100k_base"


class RetrievalConfig(BaseModel):
    """Configures similarity search for prompt context and the debug path."""

    top_k: int = Field(default=3, ge=1)
    similarity_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    debug_top_k: int = Field(default=5, ge=1)
    debug_threshold: float = Field(default=0.0, ge=0.0, le=1.0)


class AgentConfig(BaseModel):
    """Configures the chat loop and conversation memory."""

    max_tool_rounds: int = Field(default=5, ge=1)
    memory_window: int = Field(default=20, ge=2)


class Settings(BaseSettings):
    """Environment-driven settings (prefix ``LOYALTY_``)."""

    model_config = SettingsConfigDict(
        env_prefix="LOYALTY_",
        env_file=".env",
        extra="ignore",
    )

    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("LOYALTY_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    chat_model: str = "gpt-4o-mini"
    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    embedding_model: str = "text-embedding-3-small"
    llm_timeout_seconds: float = Field(default=60.0, gt=0.0)

    weather_base_url: str = "https://aviationweather.gov/api/data"
    weather_timeout_seconds: float = Field(default=10.0, gt=0.0)

    documents_dir: Path = Path("data/pdf")

    log_level: str = "INFO"
    log_json: bool = False

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)

    @property
    def llm_configured(self) -> bool:
        return bool(self.openai_api_key)
