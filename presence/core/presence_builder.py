import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, final

from presence.core.icons import IconProvider
from presence.core.metadata_resolver import MetadataResolver
from presence.core.models import (
    BitmapIcon,
    EMPTY_PRESENCE,
    IconRef,
    MediaConfig,
    MediaSession,
    Metadata,
    PlaybackState,
    PresenceDescriptor,
    Timestamps,
)


IDENTITY_SEPARATOR = "::"
CAPTION_SEPARATOR = "|"

log = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def select_session(sessions: Iterable[MediaSession], config: MediaConfig) -> MediaSession | None:
    """
    Returns the first session that is enabled, not hidden by pause, and has a
    title. Later sessions are never looked at once one matches.
    """

    for session in sessions:
        if session.package not in config.enabled_apps:
            continue
        if config.hide_on_pause and session.state in (PlaybackState.PAUSED, PlaybackState.STOPPED):
            continue
        if session.metadata is None or session.metadata.title is None:
            continue
        return session
    return None


def compute_timestamps(session: MediaSession, now_ms: int) -> Timestamps | None:
    duration = session.metadata.duration_ms if session.metadata else None
    if session.state != PlaybackState.PLAYING or not duration:
        return None

    position = session.position_ms or 0
    return Timestamps(start=now_ms - position, end=now_ms + duration - position)


@dataclass
class _Draft:
    large_image: IconRef | None = None
    small_image: IconRef | None = None
    small_text: str | None = None


@final
class PresenceBuilder:
    """
    Turns the list of active media sessions into a single presence descriptor.

    Image fields are settled by three ordered steps, each one allowed to
    overwrite what the previous one produced:
      1. app icon as the large image, if enabled;
      2. cover art as the large image, pushing the app icon to the small slot;
      3. playback-state glyph as the small image, if enabled.
    """

    def __init__(
        self,
        resolver: MetadataResolver,
        icons: IconProvider,
        clock: Callable[[], int] = _now_ms,
    ):
        self._resolver = resolver
        self._icons = icons
        self._clock = clock

    def build(self, sessions: Iterable[MediaSession], config: MediaConfig) -> PresenceDescriptor:
        session = select_session(sessions, config)
        if session is None or session.metadata is None or session.metadata.title is None:
            return EMPTY_PRESENCE

        metadata = session.metadata
        title = metadata.title
        # Name must stay populated in the app-as-title layout, so the package id stands in.
        app_name = self._resolve(self._icons.app_name, session.package) or session.package

        author = self._resolve(self._resolver.get_artist_or_author, metadata) if config.show_artist else None
        album = self._resolve(self._resolver.get_album, metadata) if config.show_album else None
        timestamps = compute_timestamps(session, self._clock())

        draft = _Draft()
        self._apply_app_icon(draft, session, config)
        self._apply_cover_art(draft, metadata, title, app_name)
        self._apply_playback_glyph(draft, session, config)

        if config.show_song_as_title:
            name, details, state, large_text = title, author, album, app_name
        else:
            name, details, state, large_text = app_name, title, author, album

        return PresenceDescriptor(
            name=name,
            details=details,
            state=state,
            large_image=draft.large_image,
            small_image=draft.small_image,
            large_text=large_text,
            small_text=draft.small_text,
            identity=f"{title}{IDENTITY_SEPARATOR}{session.package}",
            timestamps=timestamps,
        )

    def _apply_app_icon(self, draft: _Draft, session: MediaSession, config: MediaConfig):
        if config.show_app_icon:
            draft.large_image = self._resolve(self._icons.app_icon, session.package)

    def _apply_cover_art(self, draft: _Draft, metadata: Metadata, title: str, app_name: str):
        art = self._resolve(self._resolver.get_cover_art, metadata)
        if not art:
            return

        # The caption always names the album when one is known, whatever the album toggle says.
        artists = self._resolve(self._resolver.get_album_artists, metadata) or ""
        album = self._resolve(self._resolver.get_album, metadata) or title

        draft.small_image = draft.large_image
        draft.small_text = app_name
        draft.large_image = BitmapIcon(data=art, caption=f"{artists}{CAPTION_SEPARATOR}{album}")

    def _apply_playback_glyph(self, draft: _Draft, session: MediaSession, config: MediaConfig):
        if config.show_playback_state_icon:
            draft.small_image = self._resolve(self._icons.playback_glyph, session.state)
            draft.small_text = None

    def _resolve(self, lookup: Callable[[Any], Any], arg: object) -> Any:
        """Runs a collaborator lookup, turning any failure into an absent value."""

        try:
            return lookup(arg)
        except Exception as e:
            log.error(f"Lookup {getattr(lookup, '__name__', lookup)} failed for {arg!r}: {e}")
            return None
