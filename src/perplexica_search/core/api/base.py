"""
Perplexica API data structures and errors.

Typed request/response shapes for the ``/api/search`` and
``/api/providers`` endpoints, the uniform ``QueryResult`` every search
resolves to, and the exception hierarchy raised by the client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from perplexica_search.core.config.models import OptimizationMode


# =============================================================================
# Results
# =============================================================================


@dataclass
class QueryResult:
    """Outcome of one query: an answer and the URLs backing it.

    ``message`` is always a string; an empty string means no usable
    answer, whatever the cause.
    """

    message: str = ""
    sources: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the answer is non-empty."""
        return len(self.message) > 0


@dataclass
class AttemptOutcome:
    """Result of a single search attempt.

    A failed attempt carries an empty ``QueryResult`` and the error text,
    so retry logic inspects a value instead of trapping exceptions.
    """

    result: QueryResult
    attempt: int = 1
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def ok(self) -> bool:
        """True when the attempt produced a non-empty answer."""
        return not self.failed and self.result.ok

    @classmethod
    def failure(cls, error: str, attempt: int = 1) -> "AttemptOutcome":
        return cls(result=QueryResult(), attempt=attempt, error=error)


# =============================================================================
# Wire models
# =============================================================================


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ModelRef(_WireModel):
    """A model reference as Perplexica expects it in a search body."""

    provider_id: str = Field(alias="providerId")
    key: str


class ModelSelection(_WireModel):
    """Chat and embedding model pair sent with every search."""

    chat_model: ModelRef = Field(alias="chatModel")
    embedding_model: ModelRef = Field(alias="embeddingModel")


class ModelInfo(_WireModel):
    key: str
    name: str | None = None


class Provider(_WireModel):
    """A configured model provider (OpenAI, Ollama, ...)."""

    id: str
    name: str | None = None
    chat_models: list[ModelInfo] = Field(default_factory=list, alias="chatModels")
    embedding_models: list[ModelInfo] = Field(default_factory=list, alias="embeddingModels")

    @field_validator("chat_models", "embedding_models", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class ProvidersResponse(_WireModel):
    providers: list[Provider] = Field(default_factory=list)

    @field_validator("providers", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class SearchRequest(_WireModel):
    """Body of ``POST /api/search``. Field order matches the wire format."""

    chat_model: ModelRef = Field(alias="chatModel")
    embedding_model: ModelRef = Field(alias="embeddingModel")
    optimization_mode: OptimizationMode = Field(alias="optimizationMode")
    sources: list[str] = Field(default_factory=lambda: ["web"])
    query: str
    stream: bool = False

    def to_payload(self) -> dict[str, Any]:
        """Serialise with the camelCase keys the API expects."""
        return self.model_dump(by_alias=True, mode="json")


class SourceMetadata(_WireModel):
    url: str = ""

    @field_validator("url", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class SearchSource(_WireModel):
    metadata: SourceMetadata = Field(default_factory=SourceMetadata)

    @field_validator("metadata", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class SearchResponse(_WireModel):
    """Body returned by ``POST /api/search``.

    Absent fields take the documented defaults: ``message`` becomes ``""``
    and ``sources`` becomes ``[]``.
    """

    message: str = ""
    sources: list[SearchSource] = Field(default_factory=list)

    @field_validator("message", mode="before")
    @classmethod
    def none_message(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("sources", mode="before")
    @classmethod
    def none_sources(cls, v: Any) -> Any:
        return [] if v is None else v

    def to_result(self) -> QueryResult:
        """Collapse to a QueryResult, dropping sources without a URL."""
        urls = [s.metadata.url for s in self.sources]
        return QueryResult(message=self.message, sources=[u for u in urls if u])


# =============================================================================
# Errors
# =============================================================================


class PerplexicaError(Exception):
    """Base exception for client errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class FetchError(PerplexicaError):
    """Transport failure, non-2xx status or malformed response body."""
    pass


class ProviderConfigError(PerplexicaError):
    """No usable provider/model is configured in Perplexica.

    A setup problem rather than a transient one; never retried.
    """
    pass
