"""Stagger scheduling for feed entry animations.

The delay is a pure function of ``(event_id, index)`` so a replayed
import renders with the same pacing as its original live run.
"""

from __future__ import annotations

import math
import numbers
from decimal import Decimal
from typing import Any

BASE_STAGGER_SECONDS = 0.12
MAX_JITTER_MS = 150


def stable_string_hash(value: str) -> int:
    """32-bit signed shift-and-subtract hash, identical on every platform."""
    h = 0
    for ch in value:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h >= 0x80000000 else h


def _sanitize_index(index: Any) -> float:
    if isinstance(index, bool) or not isinstance(index, (numbers.Real, Decimal)):
        return 0.0
    try:
        value = float(index)
    except (OverflowError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def entry_delay(event_id: str, index: Any) -> float:
    """Seconds to wait before showing the feed item at ``index``."""
    base = _sanitize_index(index) * BASE_STAGGER_SECONDS
    jitter_ms = abs(stable_string_hash(event_id)) % (MAX_JITTER_MS + 1)
    return base + jitter_ms / 1000
