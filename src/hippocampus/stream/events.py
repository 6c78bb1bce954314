"""Import event types carried on the import stream."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ImportEventType(str, Enum):
    """Recognized event types. Anything else is UNRECOGNIZED."""
    CONNECTING = "connecting"
    PR_FOUND = "pr_found"
    REPLAY_MANIFEST = "replay_manifest"   # Control marker, never content
    ENCODING_START = "encoding_start"
    EPISODE_CREATED = "episode_created"
    EPISODE_SKIPPED = "episode_skipped"
    ENCODING_ERROR = "encoding_error"
    COMPLETE = "complete"
    UNRECOGNIZED = "__unrecognized__"


_KNOWN_TYPES = {
    member.value: member
    for member in ImportEventType
    if member is not ImportEventType.UNRECOGNIZED
}


@dataclass(frozen=True)
class ImportEvent:
    """A single decoded event.

    ``type`` keeps the raw tag exactly as it arrived so unrecognized events
    pass through untouched; ``kind`` is the closed enum view of it.
    """
    type: str
    data: Any = field(default_factory=dict)

    @property
    def kind(self) -> ImportEventType:
        return _KNOWN_TYPES.get(self.type, ImportEventType.UNRECOGNIZED)

    @property
    def is_recognized(self) -> bool:
        return self.kind is not ImportEventType.UNRECOGNIZED

    def get(self, name: str, default: Any = None) -> Any:
        """Read a key from ``data`` when it is a mapping."""
        if isinstance(self.data, dict):
            return self.data.get(name, default)
        return default

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": self.data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def of(cls, kind: ImportEventType, **data: Any) -> ImportEvent:
        """Build a recognized event from keyword payload fields."""
        if kind is ImportEventType.UNRECOGNIZED:
            raise ValueError("UNRECOGNIZED has no wire type")
        return cls(type=kind.value, data=data)


def event_pr_number(event: ImportEvent) -> int | None:
    """PR number an event refers to, from ``pr_number`` or ``episode.source_pr_number``."""
    value = _as_int(event.get("pr_number"))
    if value is not None:
        return value
    episode = event.get("episode")
    if isinstance(episode, dict):
        return _as_int(episode.get("source_pr_number"))
    return None


_INT_PATTERN = re.compile(r"-?[0-9]+")


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_PATTERN.fullmatch(value.strip()):
        return int(value.strip())
    return None
