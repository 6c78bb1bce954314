"""Stream Mode Resolver - live vs replay detection for one import session.

The mode is a three-state lattice. ``unknown`` is the only state that can
change; once ``live`` or ``replay`` is reached the session keeps it.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from src.hippocampus.stream.events import ImportEvent, ImportEventType

REPLAY_MODE_MARKER = "import_replay"

LIVE_SIGNAL_TYPES = frozenset({
    ImportEventType.CONNECTING,
    ImportEventType.ENCODING_START,
    ImportEventType.EPISODE_CREATED,
    ImportEventType.EPISODE_SKIPPED,
    ImportEventType.ENCODING_ERROR,
    ImportEventType.COMPLETE,
})


class StreamMode(str, Enum):
    """Resolved mode of an import session."""
    UNKNOWN = "unknown"
    LIVE = "live"
    REPLAY = "replay"

    @property
    def is_resolved(self) -> bool:
        return self is not StreamMode.UNKNOWN


def is_replay_manifest(event: ImportEvent) -> bool:
    """True for a replay_manifest whose ``data.mode`` is the replay marker."""
    return (
        event.kind is ImportEventType.REPLAY_MANIFEST
        and event.get("mode") == REPLAY_MODE_MARKER
    )


def has_replay_manifest(events: Iterable[ImportEvent]) -> bool:
    return any(is_replay_manifest(event) for event in events)


def has_live_signal(events: Iterable[ImportEvent]) -> bool:
    return any(event.kind in LIVE_SIGNAL_TYPES for event in events)


def strip_replay_manifest(events: Iterable[ImportEvent]) -> list[ImportEvent]:
    """Drop every replay_manifest event, keeping the order of the rest."""
    return [
        event for event in events
        if event.kind is not ImportEventType.REPLAY_MANIFEST
    ]


def resolve_stream_mode(
    current: StreamMode,
    events: Iterable[ImportEvent],
) -> StreamMode:
    """Next mode given the current mode and a newly decoded batch.

    A replay marker outranks liveness signals in the same batch.
    """
    if current.is_resolved:
        return current

    batch = list(events)
    if has_replay_manifest(batch):
        return StreamMode.REPLAY
    if has_live_signal(batch):
        return StreamMode.LIVE
    return StreamMode.UNKNOWN
