"""In-memory episode store.

Process-local fallback used when no database is configured, and in tests.
It enforces the same uniqueness contract as the PostgreSQL store.
"""

from __future__ import annotations

import copy
from typing import Any

from src.hippocampus.errors import StoreError
from src.hippocampus.memory.models import Episode
from src.hippocampus.storage.base import EpisodeStore
from src.hippocampus.storage.idempotency import UNIQUE_VIOLATION_CODE


class InMemoryEpisodeStore(EpisodeStore):
    """Dict-backed store keyed by import scope."""

    name = "memory"

    def __init__(self):
        self._episodes: dict[str, list[Episode]] = {}
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def list_episode_rows(self, repo_id: str) -> list[dict[str, Any]]:
        return [
            {"id": e.id, "source_pr_number": e.source_pr_number}
            for e in self._episodes.get(repo_id, [])
        ]

    async def insert_episode(self, episode: Episode) -> Episode:
        """Insert a copy of ``episode``.

        Raises StoreError 23505 if the scope already holds its PR number.
        """
        scope = self._episodes.setdefault(episode.repo_id, [])
        if episode.source_pr_number is not None and any(
            e.source_pr_number == episode.source_pr_number for e in scope
        ):
            raise StoreError(
                f"duplicate key value violates unique constraint "
                f"(repo_id, source_pr_number)=({episode.repo_id}, {episode.source_pr_number})",
                code=UNIQUE_VIOLATION_CODE,
            )

        stored = copy.deepcopy(episode)
        scope.append(stored)
        return copy.deepcopy(stored)

    async def list_episodes(self, repo_id: str) -> list[Episode]:
        episodes = [copy.deepcopy(e) for e in self._episodes.get(repo_id, [])]
        return sorted(episodes, key=_pr_order)

    async def count(self, repo_id: str = "") -> int:
        if repo_id:
            return len(self._episodes.get(repo_id, []))
        return sum(len(scope) for scope in self._episodes.values())


def _pr_order(episode: Episode) -> tuple[int, int, float]:
    # Episodes without a PR number sort last, oldest first
    if episode.source_pr_number is None:
        return (1, 0, episode.created_at)
    return (0, episode.source_pr_number, episode.created_at)
