"""Frame Decoder - turns an accumulating SSE text buffer into import events.

Frames are separated by a blank line. Inside a frame, only lines that start
with ``data: `` carry payload; several such lines are joined with ``\\n``.
The trailing segment after the last boundary is never parsed, it is handed
back as the remainder for the caller to prepend to the next chunk.

Decoding is best-effort per frame: a malformed frame is dropped and the
rest of the buffer is still decoded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from src.hippocampus.stream.events import ImportEvent

FRAME_BOUNDARY = "\n\n"
DATA_PREFIX = "data: "


class WireEvent(BaseModel):
    """Shape every payload must have to become an ImportEvent."""
    model_config = ConfigDict(extra="allow")

    type: StrictStr
    data: Any


@dataclass
class DecodedBatch:
    """Events decoded from one buffer plus the unconsumed tail."""
    events: list[ImportEvent] = field(default_factory=list)
    remainder: str = ""


def decode_frames(buffer: str) -> DecodedBatch:
    """Decode every complete frame in ``buffer``.

    Pure: the same buffer always yields the same batch.
    """
    segments = buffer.split(FRAME_BOUNDARY)
    remainder = segments.pop()

    events = []
    for segment in segments:
        event = decode_frame(segment)
        if event is not None:
            events.append(event)

    return DecodedBatch(events=events, remainder=remainder)


def decode_frame(frame: str) -> ImportEvent | None:
    """Decode a single frame, or return None if it carries no valid event."""
    frame = frame.strip()
    if not frame:
        return None

    data_lines = [
        line[len(DATA_PREFIX):]
        for line in frame.split("\n")
        if line.startswith(DATA_PREFIX)
    ]
    if not data_lines:
        return None

    try:
        payload = json.loads("\n".join(data_lines))
    except (ValueError, RecursionError):
        return None

    if not isinstance(payload, dict):
        return None

    try:
        wire = WireEvent.model_validate(payload)
    except ValidationError:
        return None

    return ImportEvent(type=wire.type, data=wire.data)


def encode_frame(event: ImportEvent) -> str:
    """Serialize an event as one complete SSE frame."""
    return f"{DATA_PREFIX}{event.to_json()}{FRAME_BOUNDARY}"
