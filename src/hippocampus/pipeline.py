"""Import pipeline - one ingestion cycle per received chunk.

raw chunk -> decoder -> mode resolver -> control markers stripped
-> taxonomy (episode_created) -> idempotent write -> stagger delay
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.hippocampus.console import debug, log
from src.hippocampus.feed import FeedItem, entry_delay, feed_item_id
from src.hippocampus.memory import Episode, map_to_pattern_key
from src.hippocampus.storage import IdempotentEpisodeWriter, PersistOutcome
from src.hippocampus.stream import (
    ImportEvent,
    ImportEventType,
    REPLAY_MODE_MARKER,
    ImportSession,
    SessionUpdate,
    StreamMode,
)


@dataclass
class PipelineStats:
    events: int = 0
    episodes: int = 0
    created: int = 0
    duplicates: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "events": self.events,
            "episodes": self.episodes,
            "created": self.created,
            "duplicates": self.duplicates,
        }


class ImportPipeline:
    """Processes one import stream for one repository.

    Not shared between sessions: create one pipeline per stream.

    Events released by the session are consumed one at a time. If the store
    fails partway through a batch, the failing event and everything after it
    stay pending, and the items already built stay ready; the next
    ``process`` or ``finish`` call retries the pending events first.
    """

    def __init__(self, writer: IdempotentEpisodeWriter, repo_id: str, session_id: str = ""):
        self.writer = writer
        self.repo_id = repo_id
        self.session = ImportSession(session_id or repo_id)
        self.stats = PipelineStats()
        self._pending: list[ImportEvent] = []
        self._ready: list[FeedItem] = []

    @property
    def mode(self) -> StreamMode:
        return self.session.mode

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def process(self, chunk: str) -> list[FeedItem]:
        """Feed one raw chunk and return the feed items it released."""
        return await self._handle(self.session.feed(chunk))

    async def finish(self) -> list[FeedItem]:
        """Close the stream and process anything still pending."""
        return await self._handle(self.session.close())

    async def _handle(self, update: SessionUpdate) -> list[FeedItem]:
        if update.mode_changed:
            log("Import", f"{self.repo_id}: stream mode resolved to {update.mode.value}")

        self._pending.extend(update.events)

        # Recomputed per batch; never cached across calls
        existing: set[int] | None = None
        while self._pending:
            event = self._pending[0]
            pattern_key = None
            outcome = None

            if event.kind is ImportEventType.EPISODE_CREATED:
                episode = Episode.from_event(event, repo_id=self.repo_id)
                episode.pattern_key = map_to_pattern_key(episode)
                pattern_key = episode.pattern_key

                if self.mode is StreamMode.LIVE:
                    if existing is None:
                        existing = await self.writer.existing_pr_numbers(self.repo_id)
                    outcome = await self._persist(episode, existing)
                self.stats.episodes += 1

            self._pending.pop(0)
            index = self.stats.events
            self.stats.events += 1
            item_id = feed_item_id(event, index)
            self._ready.append(FeedItem(
                id=item_id,
                event=event,
                index=index,
                delay=entry_delay(item_id, index),
                pattern_key=pattern_key,
                outcome=outcome,
            ))

        items, self._ready = self._ready, []
        return items

    async def _persist(self, episode: Episode, existing: set[int]) -> PersistOutcome:
        result = await self.writer.try_persist(episode, existing)
        if result.created:
            self.stats.created += 1
            if episode.source_pr_number is not None:
                existing.add(episode.source_pr_number)
        else:
            self.stats.duplicates += 1
        debug("Import", f"{episode.summarize()} -> {result.outcome.value}")
        return result.outcome

    def summary(self) -> dict[str, Any]:
        return {
            "repo_id": self.repo_id,
            "mode": self.mode.value,
            **self.stats.to_dict(),
        }


async def ingest_chunks(
    writer: IdempotentEpisodeWriter,
    repo_id: str,
    chunks: list[str],
) -> tuple[list[FeedItem], dict[str, Any]]:
    """Run a complete captured stream through a fresh pipeline."""
    pipeline = ImportPipeline(writer, repo_id)
    items: list[FeedItem] = []
    for chunk in chunks:
        items.extend(await pipeline.process(chunk))
    items.extend(await pipeline.finish())
    return items, pipeline.summary()


def replay_events(episodes: list[Episode], repo_id: str) -> list[ImportEvent]:
    """Events that replay a completed import of ``repo_id``.

    A scope with nothing stored yields only ``complete``.
    """
    if not episodes:
        return [ImportEvent.of(
            ImportEventType.COMPLETE,
            total=0, failed=0, skipped=0, replayed=False, repo_id=repo_id,
        )]

    events = [ImportEvent.of(ImportEventType.REPLAY_MANIFEST, mode=REPLAY_MODE_MARKER, total=len(episodes))]
    for episode in episodes:
        events.append(ImportEvent.of(
            ImportEventType.EPISODE_CREATED,
            pr_number=episode.source_pr_number,
            episode=episode.to_dict(),
        ))
    events.append(ImportEvent.of(
        ImportEventType.COMPLETE,
        total=len(episodes), failed=0, skipped=0, replayed=True, repo_id=repo_id,
    ))
    return events
