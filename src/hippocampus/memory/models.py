"""Episode model - a discrete memory record reconstructed from the import stream."""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from src.hippocampus.memory.taxonomy import PatternKey
from src.hippocampus.stream.events import ImportEvent, ImportEventType, event_pr_number


@dataclass
class Episode:
    """A memory record derived from one upstream pull request.

    ``repo_id`` is the import scope; inside one scope a given
    ``source_pr_number`` exists at most once.
    """
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    repo_id: str = ""
    title: str = ""
    triggers: list[str] = field(default_factory=list)
    source_pr_number: int | None = None

    # Narrative fields produced by the (external) encoder
    what_happened: str = ""
    the_pattern: str = ""
    the_fix: str = ""
    why_it_matters: str = ""
    salience_score: float = 0.0
    source_url: str = ""

    pattern_key: PatternKey | None = None
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for storage and wire payloads."""
        return {
            "id": self.id,
            "repo_id": self.repo_id,
            "title": self.title,
            "triggers": list(self.triggers),
            "source_pr_number": self.source_pr_number,
            "what_happened": self.what_happened,
            "the_pattern": self.the_pattern,
            "the_fix": self.the_fix,
            "why_it_matters": self.why_it_matters,
            "salience_score": self.salience_score,
            "source_url": self.source_url,
            "pattern_key": self.pattern_key.value if self.pattern_key else None,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], repo_id: str = "") -> Episode:
        """Deserialize from dictionary.

        Unknown pattern keys are dropped rather than trusted; the caller
        reclassifies.
        """
        pattern_key = data.get("pattern_key")
        triggers = data.get("triggers") or []
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            repo_id=str(data.get("repo_id") or repo_id),
            title=str(data.get("title") or ""),
            triggers=[str(t) for t in triggers if isinstance(t, str)],
            source_pr_number=_pr_number(data.get("source_pr_number")),
            what_happened=str(data.get("what_happened") or ""),
            the_pattern=str(data.get("the_pattern") or ""),
            the_fix=str(data.get("the_fix") or ""),
            why_it_matters=str(data.get("why_it_matters") or ""),
            salience_score=_number(data.get("salience_score"), 0.0),
            source_url=str(data.get("source_url") or ""),
            pattern_key=PatternKey.parse(pattern_key),
            created_at=_number(data.get("created_at"), time.time()),
        )

    @classmethod
    def from_event(cls, event: ImportEvent, repo_id: str = "") -> Episode:
        """Build an episode from an ``episode_created`` event."""
        if event.kind is not ImportEventType.EPISODE_CREATED:
            raise ValueError(f"Not an episode_created event: {event.type!r}")

        payload = event.get("episode")
        episode = cls.from_dict(payload if isinstance(payload, dict) else {}, repo_id=repo_id)
        if episode.source_pr_number is None:
            episode.source_pr_number = event_pr_number(event)
        if repo_id:
            episode.repo_id = repo_id
        return episode

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def summarize(self, max_length: int = 60) -> str:
        """Short display line for feeds and the CLI."""
        title = self.title[:max_length]
        if len(self.title) > max_length:
            title += "..."
        pr = f"#{self.source_pr_number}" if self.source_pr_number is not None else "#?"
        return f"{pr} {title}"


def _pr_number(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)
