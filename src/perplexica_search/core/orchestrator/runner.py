"""
Batch runner orchestrator.

Runs a sequence of queries through the retrying search one at a time,
sleeping between requests, checkpointing progress at a fixed cadence and
optionally resuming from an earlier checkpoint.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Sequence

from perplexica_search.core.api.client import SearchClient
from perplexica_search.core.config.models import BatchConfig
from perplexica_search.core.fetch.retries import search_with_retry
from perplexica_search.core.logging import get_contextual_logger

from .checkpoint import CheckpointRecord, CheckpointStore

logger = logging.getLogger(__name__)


PREVIEW_CHARS = 60


@dataclass
class BatchStats:
    """Statistics for a batch run."""

    total: int = 0
    executed: int = 0
    reused: int = 0
    empty_answers: int = 0
    checkpoints_written: int = 0
    missing: int = 0

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "executed": self.executed,
            "reused": self.reused,
            "empty_answers": self.empty_answers,
            "checkpoints_written": self.checkpoints_written,
            "missing": self.missing,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class BatchResult:
    """Rows produced by a batch run, in original query order."""

    rows: list[CheckpointRecord]
    stats: BatchStats = field(default_factory=BatchStats)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[CheckpointRecord]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> CheckpointRecord:
        return self.rows[index]

    @property
    def queries(self) -> list[str]:
        return [r.query for r in self.rows]

    @property
    def messages(self) -> list[str]:
        return [r.message for r in self.rows]

    def to_dicts(self) -> list[dict[str, str]]:
        return [r.to_dict() for r in self.rows]


def _preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    return text if len(text) <= limit else text[:limit]


def _missing_positions(slots: Sequence[CheckpointRecord | None]) -> str:
    return ", ".join(str(i) for i, slot in enumerate(slots, start=1) if slot is None)


class BatchRunner:
    """Drives a query batch through ``search_with_retry``.

    Single-threaded: one query, including all of its retries, finishes
    before the next one starts. The runner's slot list is private to each
    ``run`` call.
    """

    def __init__(
        self,
        client: SearchClient,
        config: BatchConfig | None = None,
        *,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize the batch runner.

        Args:
            client: Search client (owns the endpoint)
            config: Batch settings
            sleep: Sleep function for delays and backoff (default: time.sleep)
        """
        self.client = client
        self.config = config or BatchConfig()
        self._sleep = sleep

    def _wait(self, seconds: float) -> None:
        if seconds <= 0:
            return
        (self._sleep or time.sleep)(seconds)

    def run(self, queries: Sequence[str]) -> BatchResult:
        """Execute the batch.

        Args:
            queries: Queries in submission order

        Returns:
            BatchResult with one ``{query, message}`` row per populated slot

        Raises:
            ProviderConfigError: If no usable model is configured
        """
        queries = [str(q) for q in queries]
        n = len(queries)
        cfg = self.config
        stats = BatchStats(total=n)
        slots: list[CheckpointRecord | None] = [None] * n
        store = CheckpointStore(cfg.checkpoint_file) if cfg.checkpoint_file else None

        start = cfg.resume_from or 1
        if cfg.resume_from is not None and store is not None and store.exists():
            stats.reused = self._prefill(slots, store, start)

        warned = False
        gap_warned = False
        progress = get_contextual_logger("batch")
        try:
            for i in range(start, n + 1):
                query = queries[i - 1]
                result = search_with_retry(
                    self.client,
                    query,
                    max_retries=cfg.max_retries,
                    mode=cfg.mode,
                    verbose=cfg.verbose,
                    sleep=self._sleep,
                )
                slots[i - 1] = CheckpointRecord(query=query, message=result.message)
                stats.executed += 1
                if not result.ok:
                    stats.empty_answers += 1

                progress.with_context(query=query, position=i).info(
                    "[%d/%d] %s", i, n, _preview(query)
                )

                if cfg.checkpoint_every is not None and i % cfg.checkpoint_every == 0:
                    if store is None:
                        if not warned:
                            logger.warning(
                                "checkpoint_every set but no checkpoint_file provided; "
                                "skipping save."
                            )
                            warned = True
                    elif None in slots[:i]:
                        # Resume pre-fills by position, so a snapshot with holes
                        # would shift later rows on the next resume
                        if not gap_warned:
                            logger.warning(
                                "Rows %s have no result; not overwriting %s until "
                                "rows 1..%d are complete.",
                                _missing_positions(slots[:i]),
                                store.path,
                                i,
                            )
                            gap_warned = True
                    else:
                        store.save(slots[:i])
                        stats.checkpoints_written += 1

                if i < n:
                    self._wait(cfg.delay)
        finally:
            stats.finished_at = datetime.now(timezone.utc)

        rows = [r for r in slots if r is not None]
        stats.missing = n - len(rows)
        if stats.missing:
            logger.warning(
                "%d of %d rows have no result (resume_from=%s, reused=%d); "
                "they are left out of the result",
                stats.missing,
                n,
                cfg.resume_from,
                stats.reused,
            )

        return BatchResult(rows=rows, stats=stats)

    def _prefill(
        self,
        slots: list[CheckpointRecord | None],
        store: CheckpointStore,
        start: int,
    ) -> int:
        """Fill the slots before ``start`` from the checkpoint, by position."""
        previous = store.load()
        count = max(0, min(start - 1, len(previous), len(slots)))
        for i in range(count):
            slots[i] = previous[i]

        logger.info(
            "Resuming from row %d (loaded %d rows from checkpoint)",
            start,
            count,
        )
        return count


def run_batch(
    queries: Sequence[str],
    *,
    client: SearchClient | None = None,
    config: BatchConfig | None = None,
    sleep: Callable[[float], None] | None = None,
    **overrides: Any,
) -> BatchResult:
    """Convenience function to run a batch with keyword overrides.

    Args:
        queries: Queries in submission order
        client: Search client (default: local instance)
        config: Base batch settings
        sleep: Sleep function for delays and backoff
        **overrides: BatchConfig fields to override (e.g. ``delay=0``)

    Returns:
        BatchResult for the run
    """
    config = config or BatchConfig()
    if overrides:
        config = BatchConfig.model_validate({**config.model_dump(), **overrides})

    runner = BatchRunner(client or SearchClient(), config, sleep=sleep)
    return runner.run(queries)
