"""Feed presentation helpers: stagger delays and feed items."""

from src.hippocampus.feed.delay import (
    BASE_STAGGER_SECONDS,
    MAX_JITTER_MS,
    entry_delay,
    stable_string_hash,
)
from src.hippocampus.feed.items import FeedItem, feed_item_id

__all__ = [
    "BASE_STAGGER_SECONDS",
    "MAX_JITTER_MS",
    "entry_delay",
    "stable_string_hash",
    "FeedItem",
    "feed_item_id",
]
