"""
TagLint Configuration — pydantic-settings based.

All settings are read from environment variables or .env file.
Only the service layers read these; the core takes explicit arguments.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application-wide settings sourced from environment variables."""

    # ── Definitions ──
    tag_definitions_path: str | None = Field(
        default=None,
        description="Tag definitions JSON; packaged definitions when unset",
    )
    rules_path: str | None = Field(
        default=None, description="Rule catalog JSON; packaged rules when unset"
    )

    # ── Matching ──
    skip_untagged: bool = Field(
        default=True,
        description="Skip rules without a tag condition (False: they always apply)",
    )
    sort_by_priority: bool = Field(default=True, description="Order violations by priority")
    min_priority: int = Field(default=0, description="Drop violations below this priority")
    max_results: int | None = Field(
        default=None, description="Cap on violations per file (None: no cap)"
    )

    # ── Analysis ──
    parse_syntax_summary: bool = Field(
        default=True,
        description="Run tree-sitter to enable metric and node tag tiers",
    )
    max_file_size_bytes: int = Field(
        default=500_000, description="Max file size to accept (bytes)"
    )
    batch_max_concurrency: int = Field(
        default=4, description="Files analyzed concurrently per batch"
    )

    # ── Logging ──
    log_level: str = Field(default="INFO", description="Root log level")

    # ── Server ──
    port: int = Field(default=5001, description="Server port")
    host: str = Field(default="0.0.0.0", description="Server bind host")
    cors_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Shared settings instance
settings = Settings()
