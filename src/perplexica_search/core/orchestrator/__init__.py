"""Orchestrator - batch runs, checkpointing, resume."""

from .checkpoint import CheckpointRecord, CheckpointStore, load_checkpoint, save_checkpoint
from .runner import BatchResult, BatchRunner, BatchStats, run_batch

__all__ = [
    "BatchResult",
    "BatchRunner",
    "BatchStats",
    "CheckpointRecord",
    "CheckpointStore",
    "load_checkpoint",
    "run_batch",
    "save_checkpoint",
]
