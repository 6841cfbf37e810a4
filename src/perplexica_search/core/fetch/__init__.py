"""Fetch utilities - retries with backoff."""

from .retries import BACKOFF_STEP, DEFAULT_MAX_RETRIES, attempt_search, search_with_retry

__all__ = [
    "BACKOFF_STEP",
    "DEFAULT_MAX_RETRIES",
    "attempt_search",
    "search_with_retry",
]
