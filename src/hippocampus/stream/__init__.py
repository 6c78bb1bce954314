"""Import stream handling: wire events, frame decoding, and stream mode."""

from src.hippocampus.stream.events import ImportEvent, ImportEventType, event_pr_number
from src.hippocampus.stream.decoder import (
    DATA_PREFIX,
    FRAME_BOUNDARY,
    DecodedBatch,
    decode_frame,
    decode_frames,
    encode_frame,
)
from src.hippocampus.stream.mode import (
    LIVE_SIGNAL_TYPES,
    REPLAY_MODE_MARKER,
    StreamMode,
    has_live_signal,
    has_replay_manifest,
    is_replay_manifest,
    resolve_stream_mode,
    strip_replay_manifest,
)
from src.hippocampus.stream.session import ImportSession, SessionUpdate

__all__ = [
    # Events
    "ImportEvent",
    "ImportEventType",
    "event_pr_number",
    # Decoder
    "DATA_PREFIX",
    "FRAME_BOUNDARY",
    "DecodedBatch",
    "decode_frame",
    "decode_frames",
    "encode_frame",
    # Mode
    "LIVE_SIGNAL_TYPES",
    "REPLAY_MODE_MARKER",
    "StreamMode",
    "has_live_signal",
    "has_replay_manifest",
    "is_replay_manifest",
    "resolve_stream_mode",
    "strip_replay_manifest",
    # Session
    "ImportSession",
    "SessionUpdate",
]
