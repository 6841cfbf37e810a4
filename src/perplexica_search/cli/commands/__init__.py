"""CLI command modules."""

from . import batch, providers, search

__all__ = [
    "batch",
    "providers",
    "search",
]
