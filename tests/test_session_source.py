from __future__ import annotations

import json

from presence.core.models import PlaybackState
from presence.core.session_source import SnapshotFileSource


def test_missing_snapshot_has_no_sessions(tmp_path):
    assert SnapshotFileSource(str(tmp_path / "nope.json")).read_sessions() == []


def test_malformed_snapshot_has_no_sessions(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text("{not json")
    assert SnapshotFileSource(str(path)).read_sessions() == []

    path.write_text(json.dumps({"package": "x"}))
    assert SnapshotFileSource(str(path)).read_sessions() == []


def test_sessions_are_read_in_order(tmp_path):
    (tmp_path / "cover.png").write_bytes(b"art")
    path = tmp_path / "sessions.json"
    path.write_text(
        json.dumps(
            [
                {
                    "package": "com.spotify.music",
                    "state": "Playing",
                    "position_ms": 30000,
                    "metadata": {"title": "Song", "duration_ms": 180000, "artist": "Band", "art_path": "cover.png"},
                },
                {"package": "org.videolan.vlc", "state": "buffering"},
            ]
        )
    )

    first, second = SnapshotFileSource(str(path)).read_sessions()

    assert first.package == "com.spotify.music"
    assert first.state == PlaybackState.PLAYING
    assert first.position_ms == 30000
    assert first.metadata.title == "Song"
    assert first.metadata.duration_ms == 180000
    assert first.metadata.fields == {"artist": "Band"}
    assert first.metadata.art == b"art"

    assert second.state == PlaybackState.UNKNOWN
    assert second.metadata is None


def test_bad_entries_are_skipped(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text(
        json.dumps(
            [
                "junk",
                {"state": "playing"},
                {"package": "a", "position_ms": "late"},
                {"package": "b", "metadata": {"title": "Ok", "art_path": "missing.png"}},
            ]
        )
    )

    sessions = SnapshotFileSource(str(path)).read_sessions()

    assert [s.package for s in sessions] == ["b"]
    assert sessions[0].metadata.art is None


def test_non_finite_numbers_skip_only_their_entry(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text('[{"package": "a", "position_ms": Infinity}, {"package": "b", "metadata": {"title": "Ok"}}]')

    sessions = SnapshotFileSource(str(path)).read_sessions()

    assert [s.package for s in sessions] == ["b"]
