"""Tests for import stream decoding, mode resolution, and sessions."""

import json

import pytest

from src.hippocampus.stream import (
    DecodedBatch,
    ImportEvent,
    ImportEventType,
    ImportSession,
    StreamMode,
    decode_frames,
    encode_frame,
    event_pr_number,
    has_live_signal,
    has_replay_manifest,
    resolve_stream_mode,
    strip_replay_manifest,
)


def frame(event_type: str, **data) -> str:
    return f"data: {json.dumps({'type': event_type, 'data': data})}\n\n"


class TestImportEvent:
    """Tests for the ImportEvent model."""

    def test_recognized_kind(self):
        event = ImportEvent(type="episode_created", data={"pr_number": 3})
        assert event.kind is ImportEventType.EPISODE_CREATED
        assert event.is_recognized

    def test_unrecognized_passes_through(self):
        event = ImportEvent(type="snippets_extracted", data={"snippet_count": 4})
        assert event.kind is ImportEventType.UNRECOGNIZED
        assert event.type == "snippets_extracted"
        assert event.data == {"snippet_count": 4}

    def test_get_on_non_mapping_data(self):
        event = ImportEvent(type="complete", data=[1, 2])
        assert event.get("total") is None
        assert event.get("total", 0) == 0

    def test_pr_number_lookup(self):
        assert event_pr_number(ImportEvent("encoding_start", {"pr_number": 12})) == 12
        assert event_pr_number(ImportEvent("encoding_start", {"pr_number": "12"})) == 12
        nested = ImportEvent("episode_created", {"episode": {"source_pr_number": 7}})
        assert event_pr_number(nested) == 7
        assert event_pr_number(ImportEvent("complete", {"total": 1})) is None

    @pytest.mark.parametrize("raw", ["--5", "²", "1.5", "12abc", "", " - "])
    def test_pr_number_rejects_non_integer_strings(self, raw):
        assert event_pr_number(ImportEvent("encoding_start", {"pr_number": raw})) is None

    def test_pr_number_accepts_signed_strings(self):
        assert event_pr_number(ImportEvent("encoding_start", {"pr_number": " -3 "})) == -3

    def test_of_builds_wire_type(self):
        event = ImportEvent.of(ImportEventType.COMPLETE, total=2)
        assert event.to_dict() == {"type": "complete", "data": {"total": 2}}

        with pytest.raises(ValueError):
            ImportEvent.of(ImportEventType.UNRECOGNIZED)


class TestFrameDecoder:
    """Tests for decode_frames."""

    def test_complete_events_and_remainder(self):
        """Complete frames decode; the partial trailing frame is kept verbatim."""
        buffer = "\n".join([
            'data: {"type":"encoding_start","data":{"pr_number":12}}',
            "",
            'data: {"type":"episode_created","data":{"episode":{"id":"ep-1"}}}',
            "",
            'data: {"type":"partial","data":{"x":1}}',
        ])

        batch = decode_frames(buffer)

        assert [e.type for e in batch.events] == ["encoding_start", "episode_created"]
        assert batch.remainder == 'data: {"type":"partial","data":{"x":1}}'

    def test_one_frame_then_partial(self):
        buffer = frame("encoding_start", pr_number=1) + 'data: {"type":"compl'

        batch = decode_frames(buffer)

        assert len(batch.events) == 1
        assert batch.remainder == 'data: {"type":"compl'

    def test_invalid_json_is_dropped(self):
        batch = decode_frames("data: invalid-json\n\n")
        assert batch.events == []
        assert batch.remainder == ""

    def test_malformed_frame_does_not_discard_others(self):
        buffer = (
            frame("encoding_start", pr_number=1)
            + "data: {broken\n\n"
            + frame("complete", total=1)
        )

        batch = decode_frames(buffer)

        assert [e.type for e in batch.events] == ["encoding_start", "complete"]

    @pytest.mark.parametrize("payload", [
        '[1, 2, 3]',
        '"just a string"',
        '{"type": 5, "data": {}}',
        '{"type": "complete"}',
        '{"data": {"total": 1}}',
    ])
    def test_invalid_shapes_are_dropped(self, payload):
        batch = decode_frames(f"data: {payload}\n\n")
        assert batch.events == []

    def test_null_data_is_kept(self):
        batch = decode_frames('data: {"type":"connecting","data":null}\n\n')
        assert batch.events == [ImportEvent(type="connecting", data=None)]

    def test_multiline_payload(self):
        buffer = 'data: {"type": "encoding_start",\ndata:  "data": {"pr_number": 9}}\n\n'

        batch = decode_frames(buffer)

        assert len(batch.events) == 1
        assert batch.events[0].get("pr_number") == 9

    def test_non_data_lines_are_ignored(self):
        buffer = 'event: message\nid: 4\n: keepalive\ndata: {"type":"complete","data":{}}\n\n'

        batch = decode_frames(buffer)

        assert [e.type for e in batch.events] == ["complete"]

    def test_frame_without_data_lines(self):
        batch = decode_frames(": ping\n\n")
        assert batch.events == []

    def test_empty_buffer(self):
        assert decode_frames("") == DecodedBatch(events=[], remainder="")

    def test_decoding_is_deterministic(self):
        buffer = frame("pr_found", count=2) + frame("encoding_start", pr_number=1) + "data: {"
        assert decode_frames(buffer) == decode_frames(buffer)

    def test_encode_frame_is_decodable(self):
        event = ImportEvent.of(ImportEventType.EPISODE_CREATED, pr_number=4, episode={"title": "x"})

        batch = decode_frames(encode_frame(event))

        assert batch.events == [event]
        assert batch.remainder == ""


class TestStreamMode:
    """Tests for live/replay resolution."""

    def test_unknown_when_only_pr_found(self):
        events = [ImportEvent("pr_found", {"count": 2})]
        assert resolve_stream_mode(StreamMode.UNKNOWN, events) is StreamMode.UNKNOWN
        assert not has_live_signal(events)

    def test_replay_manifest_after_pr_found(self):
        first = resolve_stream_mode(StreamMode.UNKNOWN, [ImportEvent("pr_found", {"count": 2})])
        manifest = [ImportEvent("replay_manifest", {"mode": "import_replay"})]
        second = resolve_stream_mode(first, manifest)

        assert first is StreamMode.UNKNOWN
        assert second is StreamMode.REPLAY
        assert has_replay_manifest(manifest)

    def test_manifest_with_other_mode_is_not_replay(self):
        events = [ImportEvent("replay_manifest", {"mode": "something_else"})]
        assert not has_replay_manifest(events)
        assert resolve_stream_mode(StreamMode.UNKNOWN, events) is StreamMode.UNKNOWN

    @pytest.mark.parametrize("event_type", [
        "connecting",
        "encoding_start",
        "episode_created",
        "episode_skipped",
        "encoding_error",
        "complete",
    ])
    def test_live_signals(self, event_type):
        events = [ImportEvent(event_type, {})]
        assert has_live_signal(events)
        assert resolve_stream_mode(StreamMode.UNKNOWN, events) is StreamMode.LIVE

    def test_replay_marker_outranks_live_signal_in_same_batch(self):
        events = [
            ImportEvent("encoding_start", {"pr_number": 1}),
            ImportEvent("replay_manifest", {"mode": "import_replay"}),
        ]
        assert resolve_stream_mode(StreamMode.UNKNOWN, events) is StreamMode.REPLAY

    def test_live_is_sticky(self):
        live = resolve_stream_mode(StreamMode.UNKNOWN, [ImportEvent("encoding_start", {})])
        later = resolve_stream_mode(live, [ImportEvent("replay_manifest", {"mode": "import_replay"})])

        assert live is StreamMode.LIVE
        assert later is StreamMode.LIVE

    def test_replay_is_sticky(self):
        assert resolve_stream_mode(StreamMode.REPLAY, [ImportEvent("encoding_start", {})]) is StreamMode.REPLAY
        assert resolve_stream_mode(StreamMode.REPLAY, []) is StreamMode.REPLAY

    def test_empty_batch_keeps_unknown(self):
        assert resolve_stream_mode(StreamMode.UNKNOWN, []) is StreamMode.UNKNOWN

    def test_strip_preserves_order(self):
        events = [
            ImportEvent("pr_found", {"count": 2}),
            ImportEvent("replay_manifest", {"mode": "import_replay"}),
            ImportEvent("encoding_start", {"pr_number": 1}),
            ImportEvent("episode_created", {"pr_number": 1, "episode": {"id": "ep-1"}}),
            ImportEvent("complete", {"total": 1}),
        ]

        stripped = strip_replay_manifest(events)

        assert [e.type for e in stripped] == ["pr_found", "encoding_start", "episode_created", "complete"]


class TestImportSession:
    """Tests for the per-session read loop state."""

    def test_frame_split_across_chunks(self):
        session = ImportSession("s1")
        full = frame("encoding_start", pr_number=1) + frame("complete", total=1)
        cut = len(frame("encoding_start", pr_number=1)) + 10

        first = session.feed(full[:cut])
        second = session.feed(full[cut:])

        assert [e.type for e in first.events] == ["encoding_start"]
        assert first.mode is StreamMode.LIVE
        assert first.mode_changed
        assert [e.type for e in second.events] == ["complete"]
        assert not second.mode_changed
        assert session.remainder == ""

    def test_events_held_until_mode_resolves(self):
        session = ImportSession()

        first = session.feed(frame("pr_found", count=2))
        assert first.events == []
        assert session.held_count == 1

        second = session.feed(frame("replay_manifest", mode="import_replay") + frame("episode_created", pr_number=1))

        assert second.mode is StreamMode.REPLAY
        assert [e.type for e in second.events] == ["pr_found", "episode_created"]
        assert session.held_count == 0

    def test_close_releases_held_events(self):
        session = ImportSession()
        session.feed(frame("pr_found", count=0))

        update = session.close()

        assert update.mode is StreamMode.UNKNOWN
        assert [e.type for e in update.events] == ["pr_found"]

    def test_close_decodes_unterminated_tail(self):
        session = ImportSession()
        session.feed(frame("encoding_start", pr_number=1))
        session.feed('data: {"type":"complete","data":{"total":1}}')

        update = session.close()

        assert [e.type for e in update.events] == ["complete"]

    def test_feed_after_close_fails(self):
        session = ImportSession("done")
        session.close()

        with pytest.raises(RuntimeError):
            session.feed(frame("complete"))

    def test_sessions_are_independent(self):
        live = ImportSession("a")
        replay = ImportSession("b")

        live.feed(frame("encoding_start", pr_number=1))
        replay.feed(frame("replay_manifest", mode="import_replay"))

        assert live.mode is StreamMode.LIVE
        assert replay.mode is StreamMode.REPLAY
