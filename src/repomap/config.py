"""Configuration models for the repository map index."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from repomap.errors import IndexingError

DEFAULT_AGENT_PROMPT = "You are a helpful assistant that can use tools to help the user."

DEFAULT_INDEXING_PROMPT = """
You produce a compact repository map for a single source file.

Return three fields:
- content: the repo map. Start with `@@ <file path>`, then one `│` line per
  top-level symbol (class, function, constant, export) with its signature,
  and `⋮...` between unrelated sections.
- description: one paragraph describing what the code does and why it exists.
- keywords: at most 5 short tags, separated by commas.

Do not include code bodies or commentary outside the three fields.
""".strip()


class SearchConfig(BaseModel):
    """Configures query guards and per-term lookup behavior."""

    max_query_length: int = Field(default=100, ge=1)
    per_term_limit: int = Field(default=3, ge=1)
    concurrent_lookups: bool = False


class IndexingConfig(BaseModel):
    """Configures which files are summarized and how much text is sent."""

    include_suffixes: tuple[str, ...] = ()
    max_file_chars: int = Field(default=60_000, ge=1)
    max_keywords: int = Field(default=5, ge=1)
    system_prompt: str = DEFAULT_INDEXING_PROMPT


class AgentConfig(BaseModel):
    """Configures the tool-calling conversation loop."""

    max_iterations: int = Field(default=8, ge=1)
    system_prompt: str = DEFAULT_AGENT_PROMPT


class Settings(BaseSettings):
    """Process settings loaded from `REPOMAP_*` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REPOMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_path: Path = Field(default=Path("indexing.sqlite"))
    data_dir: Path = Field(default=Path("."))
    log_level: str = Field(default="INFO")
    llm_model: str = Field(default="gpt-4o-mini")
    llm_base_url: str | None = None
    llm_api_key: str | None = None
    indexing_prompt_path: Path | None = None

    def indexing_config(self) -> IndexingConfig:
        if self.indexing_prompt_path is None:
            return IndexingConfig()
        try:
            prompt = self.indexing_prompt_path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise IndexingError(
                f"Cannot read indexing prompt {self.indexing_prompt_path}: {exc}"
            ) from exc
        return IndexingConfig(system_prompt=prompt)
