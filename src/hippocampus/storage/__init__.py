"""Storage layer: episode stores and the idempotent write guard."""

from src.hippocampus.storage.base import EpisodeStore
from src.hippocampus.storage.idempotency import (
    UNIQUE_VIOLATION_CODE,
    IdempotentEpisodeWriter,
    PersistOutcome,
    PersistResult,
    collect_existing_pr_numbers,
    is_unique_violation_error,
)
from src.hippocampus.storage.memory import InMemoryEpisodeStore
from src.hippocampus.storage.postgres import PostgresConfig, PostgresEpisodeStore

__all__ = [
    # Base interface
    "EpisodeStore",
    # Idempotent writes
    "UNIQUE_VIOLATION_CODE",
    "IdempotentEpisodeWriter",
    "PersistOutcome",
    "PersistResult",
    "collect_existing_pr_numbers",
    "is_unique_violation_error",
    # Backends
    "InMemoryEpisodeStore",
    "PostgresConfig",
    "PostgresEpisodeStore",
]
