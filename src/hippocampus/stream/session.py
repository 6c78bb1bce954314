"""Import session - the per-session read loop state.

One ImportSession exists per import stream. It threads the decoder
remainder and the stream mode from one chunk to the next, and holds
events back while the mode is still unknown so downstream consumers
see a replayed import and a live one through the same ordered feed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.hippocampus.stream.decoder import FRAME_BOUNDARY, decode_frames
from src.hippocampus.stream.events import ImportEvent
from src.hippocampus.stream.mode import (
    StreamMode,
    resolve_stream_mode,
    strip_replay_manifest,
)


@dataclass
class SessionUpdate:
    """What one chunk produced for downstream consumers."""
    events: list[ImportEvent] = field(default_factory=list)
    mode: StreamMode = StreamMode.UNKNOWN
    mode_changed: bool = False


class ImportSession:
    """Feeds raw chunks through the decoder and the mode resolver.

    Chunks must be fed in arrival order from a single task.
    """

    def __init__(self, session_id: str = ""):
        self.session_id = session_id
        self.mode = StreamMode.UNKNOWN
        self.remainder = ""
        self._held: list[ImportEvent] = []
        self._closed = False

    @property
    def held_count(self) -> int:
        return len(self._held)

    def feed(self, chunk: str) -> SessionUpdate:
        """Decode ``chunk`` and return the events now ready for use."""
        if self._closed:
            raise RuntimeError(f"Import session {self.session_id!r} is closed")

        batch = decode_frames(self.remainder + chunk)
        self.remainder = batch.remainder
        return self._advance(batch.events)

    def close(self) -> SessionUpdate:
        """Flush the remainder and release everything still held.

        A stream that ends without a final blank line still delivers its
        last frame.
        """
        if self._closed:
            return SessionUpdate(mode=self.mode)

        tail = self.remainder
        self.remainder = ""
        events = []
        if tail.strip():
            events = decode_frames(tail + FRAME_BOUNDARY).events

        update = self._advance(events)
        if self._held:
            update.events = update.events + strip_replay_manifest(self._held)
            self._held = []
        self._closed = True
        return update

    def _advance(self, events: list[ImportEvent]) -> SessionUpdate:
        previous = self.mode
        self.mode = resolve_stream_mode(previous, events)
        update = SessionUpdate(mode=self.mode, mode_changed=self.mode != previous)

        if not self.mode.is_resolved:
            self._held.extend(events)
            return update

        released = self._held + events
        self._held = []
        update.events = strip_replay_manifest(released)
        return update
