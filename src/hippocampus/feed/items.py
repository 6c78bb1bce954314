"""Feed items handed to the rendering layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.hippocampus.memory.taxonomy import PatternKey, pattern_label_for_key
from src.hippocampus.storage.idempotency import PersistOutcome
from src.hippocampus.stream.events import ImportEvent


@dataclass
class FeedItem:
    """One event ready for display, with its classification and pacing."""
    id: str
    event: ImportEvent
    index: int
    delay: float
    pattern_key: PatternKey | None = None
    outcome: PersistOutcome | None = None

    @property
    def pattern_label(self) -> str | None:
        if self.pattern_key is None:
            return None
        return pattern_label_for_key(self.pattern_key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.event.type,
            "data": self.event.data,
            "index": self.index,
            "delay": self.delay,
            "pattern_key": self.pattern_key.value if self.pattern_key else None,
            "pattern_label": self.pattern_label,
            "outcome": self.outcome.value if self.outcome else None,
        }


def feed_item_id(event: ImportEvent, index: int) -> str:
    """Stable id: episode id when the event carries one, else type and position."""
    episode = event.get("episode")
    if isinstance(episode, dict) and isinstance(episode.get("id"), str) and episode["id"]:
        return f"{event.type}-{episode['id']}"
    return f"{event.type}-{index}"
