"""Abstract base class for episode stores."""

from abc import ABC, abstractmethod
from typing import Any

from src.hippocampus.memory.models import Episode


class EpisodeStore(ABC):
    """Interface every episode backend implements.

    Backends must enforce uniqueness of ``(repo_id, source_pr_number)``
    themselves and report a violation as ``StoreError(code="23505")``.
    """

    name: str = "abstract"

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the storage."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the storage."""
        pass

    @abstractmethod
    async def list_episode_rows(self, repo_id: str) -> list[dict[str, Any]]:
        """Rows of one import scope, each exposing ``source_pr_number``."""
        pass

    @abstractmethod
    async def insert_episode(self, episode: Episode) -> Episode:
        """Insert a new episode and return it as stored."""
        pass

    @abstractmethod
    async def list_episodes(self, repo_id: str) -> list[Episode]:
        """All episodes of one import scope, ordered by PR number."""
        pass

    @abstractmethod
    async def count(self, repo_id: str = "") -> int:
        """Number of stored episodes, optionally for one scope."""
        pass
