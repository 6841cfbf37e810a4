"""
CSV checkpoint storage for batch runs.

A checkpoint is the full set of completed ``query,message`` rows in
original query order. Each save overwrites the previous snapshot.
"""

from __future__ import annotations

import csv
import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


CHECKPOINT_COLUMNS = ("query", "message")


@dataclass
class CheckpointRecord:
    """One completed query and the answer it received."""

    query: str
    message: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class CheckpointStore:
    """Reads and writes the checkpoint CSV at a fixed path."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, rows: Iterable[CheckpointRecord]) -> int:
        """Overwrite the checkpoint with ``rows``.

        The rows go to a temporary file beside the checkpoint, which then
        replaces it, so an interrupted save leaves the previous snapshot.

        Returns:
            Number of data rows written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        count = 0
        with tempfile.NamedTemporaryFile(
            "w",
            newline="",
            encoding="utf-8",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            try:
                writer = csv.writer(f)
                writer.writerow(CHECKPOINT_COLUMNS)
                for row in rows:
                    writer.writerow([row.query, row.message])
                    count += 1
            except BaseException:
                f.close()
                os.unlink(f.name)
                raise
        os.replace(f.name, self.path)

        logger.info(
            "  Checkpoint saved (%d rows) -> %s",
            count,
            self.path,
            extra={"checkpoint_file": str(self.path)},
        )
        return count

    def load(self) -> list[CheckpointRecord]:
        """Read the checkpoint in file order.

        A missing file yields no rows. Columns are located by header name;
        a file without ``query``/``message`` headers is read by position.
        Extra columns are ignored.
        """
        if not self.path.exists():
            return []

        with open(self.path, "r", newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                return []

            names = [h.strip().lower() for h in header]
            query_idx = names.index("query") if "query" in names else 0
            message_idx = names.index("message") if "message" in names else 1

            records = []
            for row in reader:
                if not row:
                    continue
                records.append(CheckpointRecord(
                    query=row[query_idx] if query_idx < len(row) else "",
                    message=row[message_idx] if message_idx < len(row) else "",
                ))

        logger.debug("Loaded %d rows from %s", len(records), self.path)
        return records


def save_checkpoint(rows: Iterable[CheckpointRecord], path: Path | str) -> int:
    """Write ``rows`` to the checkpoint at ``path``."""
    return CheckpointStore(path).save(rows)


def load_checkpoint(path: Path | str) -> list[CheckpointRecord]:
    """Read the checkpoint at ``path`` (empty if it does not exist)."""
    return CheckpointStore(path).load()
