"""Hippocampus - import core for repository memory.

Reconstructs episodes from a streamed repository import, classifies them
into a fixed pattern taxonomy, and persists them at most once per pull
request.

Usage:
    from src.hippocampus.pipeline import ImportPipeline
    from src.hippocampus.storage import IdempotentEpisodeWriter, InMemoryEpisodeStore

    store = InMemoryEpisodeStore()
    await store.connect()
    pipeline = ImportPipeline(IdempotentEpisodeWriter(store), repo_id="acme/demo")

    for chunk in chunks:
        for item in await pipeline.process(chunk):
            render(item.event, delay=item.delay)
    await pipeline.finish()
"""
