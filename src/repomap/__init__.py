"""Repository map index and tool-calling search."""

from .config import AgentConfig, IndexingConfig, SearchConfig

__all__ = ["AgentConfig", "IndexingConfig", "SearchConfig"]
