"""Idempotent persistence guard for imported episodes.

Two layers keep an import scope free of duplicate PR episodes:

1. A pre-check against the set of PR numbers already stored.
2. The store's own uniqueness constraint. Concurrent importers can both
   pass the pre-check; the loser gets a unique violation (SQLSTATE 23505),
   which is treated exactly like "already exists".

Any other failure propagates to the caller unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from src.hippocampus.console import debug
from src.hippocampus.memory.models import Episode
from src.hippocampus.storage.base import EpisodeStore

UNIQUE_VIOLATION_CODE = "23505"


class PersistOutcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"


@dataclass
class PersistResult:
    outcome: PersistOutcome
    episode: Episode

    @property
    def created(self) -> bool:
        return self.outcome is PersistOutcome.CREATED


def _read_field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def collect_existing_pr_numbers(rows: Iterable[Any] | None) -> set[int]:
    """PR numbers present in ``rows``; nulls and non-integers are ignored."""
    numbers: set[int] = set()
    for row in rows or ():
        value = _read_field(row, "source_pr_number")
        if isinstance(value, int) and not isinstance(value, bool):
            numbers.add(value)
    return numbers


def is_unique_violation_error(error: Any) -> bool:
    """True if ``error`` carries the unique-violation code."""
    if error is None:
        return False
    code = _read_field(error, "code")
    if code is None:
        return False
    return str(code) == UNIQUE_VIOLATION_CODE


class IdempotentEpisodeWriter:
    """Writes episodes at most once per (repo_id, source_pr_number).

    Holds no cache: the set of existing PR numbers is supplied per call,
    so concurrent sessions never share it.
    """

    def __init__(self, store: EpisodeStore):
        self.store = store

    async def existing_pr_numbers(self, repo_id: str) -> set[int]:
        """Read the current import scope and collect its PR numbers."""
        rows = await self.store.list_episode_rows(repo_id)
        return collect_existing_pr_numbers(rows)

    async def try_persist(
        self,
        episode: Episode,
        existing_pr_numbers: set[int],
    ) -> PersistResult:
        """Insert ``episode`` unless its PR number is already stored.

        Raises whatever the store raised for anything but a unique violation.
        """
        pr_number = episode.source_pr_number
        if pr_number is not None and pr_number in existing_pr_numbers:
            debug("Store", f"Skipping PR #{pr_number} in {episode.repo_id}: already imported")
            return PersistResult(PersistOutcome.DUPLICATE, episode)

        try:
            stored = await self.store.insert_episode(episode)
        except Exception as e:
            if not is_unique_violation_error(e):
                raise
            debug("Store", f"Skipping PR #{pr_number} in {episode.repo_id}: concurrent insert won")
            return PersistResult(PersistOutcome.DUPLICATE, episode)

        return PersistResult(PersistOutcome.CREATED, stored)
