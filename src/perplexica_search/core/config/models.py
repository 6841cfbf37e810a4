"""
Pydantic configuration models for perplexica-search.

These models provide type-safe configuration with validation for:
- The remote Perplexica endpoint
- Batch execution (retries, delay, checkpoints, resume)
- Logging
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


DEFAULT_BASE_URL = "http://localhost:3000"


# =============================================================================
# Enums
# =============================================================================


class OptimizationMode(str, Enum):
    """Answer quality/latency trade-off requested from Perplexica."""

    SPEED = "speed"
    BALANCED = "balanced"


# =============================================================================
# Client Configuration
# =============================================================================


class ClientConfig(BaseModel):
    """Connection settings for a Perplexica instance."""

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the running Perplexica instance",
    )
    timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        le=900.0,
        description="Per-request timeout in seconds",
    )
    mode: OptimizationMode = Field(
        default=OptimizationMode.SPEED,
        description="Default optimisation mode for searches",
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise the URL so path joins never produce '//'."""
        v = v.strip()
        if not v:
            raise ValueError("base_url must not be empty")
        return v.rstrip("/")


# =============================================================================
# Batch Configuration
# =============================================================================


class BatchConfig(BaseModel):
    """Settings for a batch run over many queries."""

    delay: float = Field(
        default=2.0,
        ge=0,
        description="Seconds to sleep between queries",
    )
    checkpoint_every: int | None = Field(
        default=25,
        ge=1,
        description="Write a checkpoint every N queries (None disables)",
    )
    checkpoint_file: Path | None = Field(
        default=None,
        description="CSV checkpoint path",
    )
    resume_from: int | None = Field(
        default=None,
        ge=1,
        description="1-based query position to resume from",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Additional attempts after the first for each query",
    )
    mode: OptimizationMode = Field(
        default=OptimizationMode.SPEED,
        description="Optimisation mode passed to every search",
    )
    verbose: bool = Field(
        default=False,
        description="Log each query and every retry attempt",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from perplexica.yaml.
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
