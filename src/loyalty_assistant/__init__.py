"""Airline loyalty assistant package."""

from .config import AgentConfig, ChunkingConfig, RetrievalConfig, Settings

__all__ = ["AgentConfig", "ChunkingConfig", "RetrievalConfig", "Settings"]
