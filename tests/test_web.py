"""Tests for the import API."""

import json

import pytest
from fastapi.testclient import TestClient

from src.hippocampus.stream import ImportSession, StreamMode, decode_frames
from src.hippocampus.web.app import app

REPO = "acme/api"


def frame(event_type: str, **data) -> str:
    return f"data: {json.dumps({'type': event_type, 'data': data})}\n\n"


LIVE_STREAM = (
    frame("encoding_start", pr_number=1)
    + frame("episode_created", pr_number=1, episode={
        "id": "ep-1",
        "title": "Stop forwarding bearer tokens to downstream APIs",
        "source_pr_number": 1,
    })
    + frame("complete", total=1, failed=0, skipped=0)
)


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("HIPPOCAMPUS_STORE", "memory")
    with TestClient(app) as test_client:
        yield test_client


class TestImportApi:
    """Tests for the HTTP endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "store": "memory"}

    def test_ingest_then_list(self, client):
        response = client.post(f"/api/repos/{REPO}/ingest", json={"chunks": [LIVE_STREAM]})

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["created"] == 1
        assert body["summary"]["mode"] == "live"
        assert [item["type"] for item in body["items"]] == [
            "encoding_start", "episode_created", "complete",
        ]
        assert body["items"][1]["pattern_key"] == "auth-token-handling"

        listed = client.get(f"/api/repos/{REPO}/episodes").json()
        assert listed["repo_id"] == REPO
        assert len(listed["episodes"]) == 1
        assert listed["episodes"][0]["pattern_label"] == "Auth token handling"
        assert listed["episodes"][0]["super_category"] == "Security"

    def test_second_ingest_is_idempotent(self, client):
        client.post(f"/api/repos/{REPO}/ingest", json={"chunks": [LIVE_STREAM]})

        body = client.post(f"/api/repos/{REPO}/ingest", json={"chunks": [LIVE_STREAM]}).json()

        assert body["summary"]["created"] == 0
        assert body["summary"]["duplicates"] == 1
        assert len(client.get(f"/api/repos/{REPO}/episodes").json()["episodes"]) == 1

    def test_replay_stream(self, client):
        client.post(f"/api/repos/{REPO}/ingest", json={"chunks": [LIVE_STREAM]})

        response = client.get(f"/api/repos/{REPO}/replay")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        batch = decode_frames(response.text)
        assert batch.remainder == ""
        assert [event.type for event in batch.events] == [
            "replay_manifest", "episode_created", "complete",
        ]
        assert batch.events[-1].get("replayed") is True

        session = ImportSession()
        assert session.feed(response.text).mode is StreamMode.REPLAY

    def test_replay_of_empty_scope(self, client):
        response = client.get("/api/repos/acme/empty/replay")

        events = decode_frames(response.text).events
        assert [event.type for event in events] == ["complete"]
        assert events[0].get("total") == 0
        assert events[0].get("replayed") is False

    def test_replayed_stream_is_not_written_back(self, client):
        client.post(f"/api/repos/{REPO}/ingest", json={"chunks": [LIVE_STREAM]})
        replayed = client.get(f"/api/repos/{REPO}/replay").text

        body = client.post("/api/repos/acme/copy/ingest", json={"chunks": [replayed]}).json()

        assert body["summary"]["mode"] == "replay"
        assert body["summary"]["created"] == 0
        assert client.get("/api/repos/acme/copy/episodes").json()["episodes"] == []

    def test_ingest_rejects_bad_body(self, client):
        response = client.post(f"/api/repos/{REPO}/ingest", json={"chunks": "nope"})
        assert response.status_code == 422
