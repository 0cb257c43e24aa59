from __future__ import annotations

import dataclasses
import threading

from presence.core.config import get_default_config
from presence.core.icons import AssetIconProvider
from presence.core.models import EMPTY_PRESENCE, MediaSession, Metadata, PlaybackState, PresenceDescriptor, Timestamps
from presence.core.poller import PresencePoller, presence_changed
from presence.core.presence_builder import PresenceBuilder
from presence.core.metadata_resolver import FieldMetadataResolver


SPOTIFY = "com.spotify.music"


class Clock:
    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now


def _poller(tmp_path, sessions: list[MediaSession], clock: Clock) -> PresencePoller:
    config = get_default_config(str(tmp_path))
    config.media.enabled_apps = frozenset({SPOTIFY})
    builder = PresenceBuilder(FieldMetadataResolver(), AssetIconProvider("1"), clock=clock)
    return PresencePoller(config, lambda: sessions, builder=builder)


def _playing(title: str) -> MediaSession:
    return MediaSession(
        package=SPOTIFY,
        state=PlaybackState.PLAYING,
        position_ms=0,
        metadata=Metadata(title=title, duration_ms=200_000),
    )


def test_presence_changed_ignores_clock_drift():
    base = PresenceDescriptor(name="Spotify", identity="a::b", timestamps=Timestamps(start=0, end=100_000))
    drifted = dataclasses.replace(base, timestamps=Timestamps(start=1_500, end=101_500))
    seeked = dataclasses.replace(base, timestamps=Timestamps(start=60_000, end=160_000))

    assert not presence_changed(base, drifted)
    assert presence_changed(base, seeked)
    assert presence_changed(base, dataclasses.replace(base, timestamps=None))
    assert presence_changed(base, dataclasses.replace(base, details="Other"))


def test_poll_emits_only_on_change(tmp_path):
    sessions = [_playing("Song")]
    clock = Clock(1_000_000)
    poller = _poller(tmp_path, sessions, clock)
    updates: list[PresenceDescriptor] = []
    clears: list[bool] = []
    _ = poller.presence_updated.connect(updates.append)
    _ = poller.presence_cleared.connect(lambda: clears.append(True))

    first = poller.poll_once()
    clock.now += 1_000
    _ = poller.poll_once()

    assert first.identity == f"Song::{SPOTIFY}"
    assert updates == [first]

    sessions[0] = _playing("Next")
    _ = poller.poll_once()
    assert [u.identity for u in updates] == [f"Song::{SPOTIFY}", f"Next::{SPOTIFY}"]

    sessions.clear()
    assert poller.poll_once().is_empty()
    assert clears == [True]


def test_failing_source_clears_presence(tmp_path):
    config = get_default_config(str(tmp_path))

    def broken() -> list[MediaSession]:
        raise OSError("bridge went away")

    poller = PresencePoller(config, broken)
    assert poller.poll_once().is_empty()


def test_config_change_applies_on_next_poll(tmp_path):
    clock = Clock(0)
    poller = _poller(tmp_path, [_playing("Song")], clock)
    assert poller.poll_once().name == "Spotify"

    new_config = get_default_config(str(tmp_path))
    new_config.media.enabled_apps = frozenset({SPOTIFY})
    new_config.media.show_song_as_title = True
    poller.on_config_changed(new_config)

    assert poller.poll_once().name == "Song"


class FlakyBuilder:
    def __init__(self):
        self.calls = 0
        self.recovered = threading.Event()

    def build(self, sessions, config):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("first build blows up")
        self.recovered.set()
        return EMPTY_PRESENCE


def test_polling_thread_survives_a_failing_build(tmp_path, monkeypatch):
    monkeypatch.setattr("presence.core.poller.IDLE_BACKOFF_SECONDS", 0.0)
    config = get_default_config(str(tmp_path))
    config.source.poll_interval_ms = 0
    builder = FlakyBuilder()
    poller = PresencePoller(config, lambda: [], builder=builder)  # type: ignore[arg-type]

    poller.start()
    try:
        assert builder.recovered.wait(timeout=5.0)
    finally:
        poller.stop()

    assert builder.calls >= 2
