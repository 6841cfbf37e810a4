"""
Helpers for feeding search answers to an LLM.

``ask`` implements the search-first pattern: the answer is embedded in the
prompt, so the model always reasons over live results instead of deciding
whether to call a tool.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

from perplexica_search.core.api.base import QueryResult
from perplexica_search.core.api.client import SearchClient
from perplexica_search.core.config.models import OptimizationMode
from perplexica_search.core.fetch.retries import DEFAULT_MAX_RETRIES, search_with_retry


class ChatSession(Protocol):
    """Anything with a ``chat(prompt)`` method (e.g. an LLM chat object)."""

    def chat(self, prompt: str) -> Any: ...


def format_answer(result: QueryResult) -> str:
    """Render an answer followed by a bulleted list of its sources."""
    if not result.sources:
        return result.message
    bullets = "\n".join(f"- {url}" for url in result.sources)
    return f"{result.message}\n\nSources:\n{bullets}"


def build_grounded_prompt(query: str, result: QueryResult) -> str:
    """Wrap a question and its search results into a grounded prompt."""
    return (
        "Answer the following question using only the search results provided below. "
        "Do not rely on prior knowledge.\n\n"
        f"Question: {query}\n\n"
        f"Search results:\n{format_answer(result)}"
    )


def ask(
    query: str,
    chat: ChatSession,
    client: SearchClient | None = None,
    *,
    mode: OptimizationMode | str | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
    verbose: bool = False,
    sleep: Callable[[float], None] | None = None,
) -> Any:
    """Search Perplexica, then ask ``chat`` to answer from the results.

    Returns:
        Whatever ``chat.chat()`` returns
    """
    result = search_with_retry(
        client or SearchClient(),
        query,
        max_retries=max_retries,
        mode=mode,
        verbose=verbose,
        sleep=sleep,
    )
    return chat.chat(build_grounded_prompt(query, result))
