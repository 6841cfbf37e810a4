"""
Retry utilities with tenacity.

Wraps a single search in a bounded retry loop with linear backoff.
An empty answer counts as a failure, and transport errors are folded
into an empty result so a query never raises once retries run out.
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import TYPE_CHECKING, Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)

from perplexica_search.core.api.base import AttemptOutcome, FetchError, QueryResult
from perplexica_search.core.config.models import OptimizationMode
from perplexica_search.core.logging import get_contextual_logger

if TYPE_CHECKING:
    from perplexica_search.core.api.client import SearchClient

logger = logging.getLogger(__name__)


DEFAULT_MAX_RETRIES = 2
BACKOFF_STEP = 5.0  # seconds; attempt k is followed by k * BACKOFF_STEP


def attempt_search(
    client: SearchClient,
    query: str,
    *,
    mode: OptimizationMode | str | None = None,
    verbose: bool = False,
    attempt: int = 1,
) -> AttemptOutcome:
    """Run one search attempt and report it as an AttemptOutcome.

    Transport and response errors become a failed outcome. Configuration
    errors (``ProviderConfigError``) are not caught.
    """
    try:
        result = client.search(query, mode=mode, verbose=verbose)
    except FetchError as e:
        logger.debug("Attempt %d for %r failed: %s", attempt, query[:60], e)
        return AttemptOutcome.failure(str(e), attempt=attempt)
    return AttemptOutcome(result=result, attempt=attempt)


def search_with_retry(
    client: SearchClient,
    query: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    mode: OptimizationMode | str | None = None,
    verbose: bool = False,
    *,
    backoff_step: float = BACKOFF_STEP,
    sleep: Callable[[float], None] | None = None,
) -> QueryResult:
    """Search with automatic retry on empty or failed responses.

    Makes up to ``max_retries + 1`` attempts and waits
    ``backoff_step * attempt`` seconds between them.

    Args:
        client: Client used for every attempt
        query: Search query
        max_retries: Additional attempts after the first
        mode: Optimisation mode passed to the client
        verbose: Log the query on the first attempt and each retry after it
        backoff_step: Linear backoff increment in seconds
        sleep: Sleep function (default: ``time.sleep``)

    Returns:
        The first non-empty QueryResult, or the last empty one

    Raises:
        ValueError: If max_retries is negative
        ProviderConfigError: If no usable model is configured
    """
    if max_retries < 0:
        raise ValueError("max_retries must be >= 0")

    total = max_retries + 1
    log = get_contextual_logger("retry", query=query)
    attempts = itertools.count(1)

    def announce_retry(retry_state: RetryCallState) -> None:
        if verbose and retry_state.attempt_number > 1:
            log.info(
                "  Retrying (attempt %d/%d)",
                retry_state.attempt_number,
                total,
                extra={"attempt": retry_state.attempt_number},
            )

    def log_backoff(retry_state: RetryCallState) -> None:
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        log.debug(
            "Empty answer on attempt %d/%d, waiting %.0fs",
            retry_state.attempt_number,
            total,
            wait,
            extra={"attempt": retry_state.attempt_number},
        )

    def run_attempt() -> AttemptOutcome:
        attempt = next(attempts)
        # Only the first attempt logs the query itself
        return attempt_search(
            client,
            query,
            mode=mode,
            verbose=verbose and attempt == 1,
            attempt=attempt,
        )

    retrying = Retrying(
        stop=stop_after_attempt(total),
        wait=wait_incrementing(start=backoff_step, increment=backoff_step),
        retry=retry_if_result(lambda outcome: not outcome.ok),
        before=announce_retry,
        before_sleep=log_backoff,
        retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        sleep=sleep if sleep is not None else time.sleep,
    )

    outcome: AttemptOutcome = retrying(run_attempt)
    if not outcome.ok:
        log.debug("No answer after %d attempts", outcome.attempt)
    return outcome.result
