"""Perplexica API client and data structures."""

from .base import (
    AttemptOutcome,
    FetchError,
    ModelRef,
    ModelSelection,
    PerplexicaError,
    Provider,
    ProviderConfigError,
    QueryResult,
    SearchRequest,
    SearchResponse,
)
from .client import SearchClient, default_models

__all__ = [
    "AttemptOutcome",
    "FetchError",
    "ModelRef",
    "ModelSelection",
    "PerplexicaError",
    "Provider",
    "ProviderConfigError",
    "QueryResult",
    "SearchClient",
    "SearchRequest",
    "SearchResponse",
    "default_models",
]
