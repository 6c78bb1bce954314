"""Import API.

A FastAPI app exposing stored episodes and import streams:
- Replay of a completed import as an SSE stream
- Ingestion of captured import streams pushed by workers
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

load_dotenv()

from src.hippocampus.config import create_store, load_settings
from src.hippocampus.console import log
from src.hippocampus.errors import StoreError
from src.hippocampus.memory import pattern_label_for_key, super_category_label_for_key
from src.hippocampus.pipeline import ingest_chunks, replay_events
from src.hippocampus.storage import EpisodeStore, IdempotentEpisodeWriter, InMemoryEpisodeStore
from src.hippocampus.stream import encode_frame


# Request/Response models
class IngestRequest(BaseModel):
    chunks: list[str]


class IngestResponse(BaseModel):
    summary: dict
    items: list[dict]


# Global instances
_store: EpisodeStore | None = None
_writer: IdempotentEpisodeWriter | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the configured store, falling back to memory if it is unreachable."""
    global _store, _writer

    settings = load_settings()
    store = create_store(settings)
    try:
        await store.connect()
        log("Store", f"Using {store.name} store")
    except (OSError, StoreError) as e:
        log("Store", f"{store.name} store not available: {e}", style="yellow")
        log("Store", "Continuing with in-memory store...", style="yellow")
        store = InMemoryEpisodeStore()
        await store.connect()

    _store = store
    _writer = IdempotentEpisodeWriter(store)

    yield

    await store.disconnect()
    _store = None
    _writer = None


app = FastAPI(
    title="Hippocampus Import API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_store() -> tuple[EpisodeStore, IdempotentEpisodeWriter]:
    if _store is None or _writer is None:
        raise HTTPException(status_code=503, detail="Store not initialized")
    return _store, _writer


def _store_unavailable(e: StoreError) -> HTTPException:
    return HTTPException(status_code=503, detail={"code": e.code, "message": e.message})


@app.get("/api/health")
async def health():
    store, _ = _require_store()
    return {"status": "ok", "store": store.name}


@app.get("/api/repos/{repo_id:path}/episodes")
async def list_episodes(repo_id: str):
    """Stored episodes of one repository, in PR order."""
    store, _ = _require_store()
    try:
        episodes = await store.list_episodes(repo_id)
    except StoreError as e:
        raise _store_unavailable(e)

    result = []
    for episode in episodes:
        data = episode.to_dict()
        if episode.pattern_key:
            data["pattern_label"] = pattern_label_for_key(episode.pattern_key)
            data["super_category"] = super_category_label_for_key(episode.pattern_key)
        else:
            data["pattern_label"] = None
            data["super_category"] = None
        result.append(data)
    return {"repo_id": repo_id, "episodes": result}


@app.get("/api/repos/{repo_id:path}/replay")
async def replay(repo_id: str):
    """Replay a completed import as an event stream (SSE format)."""
    store, _ = _require_store()
    try:
        episodes = await store.list_episodes(repo_id)
    except StoreError as e:
        raise _store_unavailable(e)

    events = replay_events(episodes, repo_id)

    async def generate():
        for event in events:
            yield encode_frame(event)

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "Connection": "keep-alive",
        },
    )


@app.post("/api/repos/{repo_id:path}/ingest", response_model=IngestResponse)
async def ingest(repo_id: str, request: IngestRequest):
    """Run a captured import stream through the pipeline."""
    _, writer = _require_store()
    try:
        items, summary = await ingest_chunks(writer, repo_id, request.chunks)
    except StoreError as e:
        raise _store_unavailable(e)

    return IngestResponse(summary=summary, items=[item.to_dict() for item in items])


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8765")))
