# pyright: reportUnknownMemberType=false

import dataclasses
import logging
import threading
from collections.abc import Callable
from typing import final

from PySide6.QtCore import QObject, Signal

from presence.core.icons import AssetIconProvider
from presence.core.metadata_resolver import FieldMetadataResolver
from presence.core.models import AppConfig, EMPTY_PRESENCE, MediaSession, PresenceDescriptor
from presence.core.presence_builder import PresenceBuilder


MIN_POLL_INTERVAL_SECONDS = 0.25
IDLE_BACKOFF_SECONDS = 10.0
# Progress windows that moved less than this are the same playback, not a seek.
TIMESTAMP_TOLERANCE_MS = 2000

log = logging.getLogger(__name__)


def _poll_interval(config: AppConfig) -> float:
    return max(MIN_POLL_INTERVAL_SECONDS, config.source.poll_interval_ms / 1000.0)


def _make_builder(config: AppConfig) -> PresenceBuilder:
    return PresenceBuilder(
        resolver=FieldMetadataResolver(art_size=config.media.art_size),
        icons=AssetIconProvider(config.client.application_id),
    )


def presence_changed(old: PresenceDescriptor, new: PresenceDescriptor) -> bool:
    """True if the two descriptors differ by more than the clock drift of their progress windows."""

    if dataclasses.replace(old, timestamps=None) != dataclasses.replace(new, timestamps=None):
        return True
    if old.timestamps is None or new.timestamps is None:
        return old.timestamps != new.timestamps
    return (
        abs(old.timestamps.start - new.timestamps.start) > TIMESTAMP_TOLERANCE_MS
        or abs(old.timestamps.end - new.timestamps.end) > TIMESTAMP_TOLERANCE_MS
    )


@final
class PresencePoller(QObject):
    """
    Periodically reads the active sessions and rebuilds the presence on a
    background thread, emitting only when the result actually changes.
    """

    presence_updated = Signal(object)
    presence_cleared = Signal()

    def __init__(
        self,
        config: AppConfig,
        read_sessions: Callable[[], list[MediaSession]],
        builder: PresenceBuilder | None = None,
    ):
        super().__init__()
        self._config = config
        self._read_sessions = read_sessions
        self._builder = builder or _make_builder(config)
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._last: PresenceDescriptor = EMPTY_PRESENCE
        self._poll_interval = _poll_interval(config)

    def poll_once(self) -> PresenceDescriptor:
        """Builds the current presence and emits it if it differs from the last one."""

        try:
            sessions = self._read_sessions()
        except Exception as e:
            log.error(f"Failed to read media sessions: {e}")
            sessions = []

        # Builds see a snapshot of the media settings, never one being edited.
        media_config = dataclasses.replace(self._config.media)
        current = self._builder.build(sessions, media_config)

        if presence_changed(self._last, current):
            if current.is_empty():
                log.info("Nothing is playing anymore, clearing presence.")
                self.presence_cleared.emit()
            else:
                log.info(f"Presence changed: {current.identity}")
                self.presence_updated.emit(current)
            self._last = current

        return current

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_polling_loop, name="presence-poller", daemon=True)
        self._thread.start()
        log.info(f"Presence polling started every {self._poll_interval:.2f}s.")

    def _run_polling_loop(self):
        while not self._stop_event.is_set():
            try:
                current = self.poll_once()
            except Exception:
                log.exception("Presence poll failed, retrying on the next tick.")
                current = EMPTY_PRESENCE
            sleep_duration = max(IDLE_BACKOFF_SECONDS, self._poll_interval) if current.is_empty() else self._poll_interval
            _ = self._stop_event.wait(sleep_duration)

    def stop(self) -> None:
        """Stops the background polling thread."""

        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)

    def on_config_changed(self, new_config: AppConfig):
        """Swaps in the new settings; the next poll builds with them."""

        log.info(f"Configuration changed. Updating poll interval to {new_config.source.poll_interval_ms}ms.")
        self._config = new_config
        self._builder = _make_builder(new_config)
        self._poll_interval = _poll_interval(new_config)
