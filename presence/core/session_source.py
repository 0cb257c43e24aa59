# pyright: reportAny=false

import json
import logging
import os
from typing import final

from presence.core.models import MediaSession, Metadata, PlaybackState


METADATA_TEXT_FIELDS = ("artist", "author", "writer", "album", "album_artist")

log = logging.getLogger(__name__)


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"expected an integer, got {value!r}")
    try:
        return int(value)  # pyright: ignore[reportArgumentType]
    except OverflowError as e:
        raise ValueError(f"expected a finite integer, got {value!r}") from e


def _parse_state(value: object) -> PlaybackState:
    try:
        return PlaybackState(str(value).lower())
    except ValueError:
        return PlaybackState.UNKNOWN


@final
class SnapshotFileSource:
    """
    Reads the ordered list of active media sessions from a JSON snapshot
    written by a platform bridge. The file holds an array, most recently
    active session first.
    """

    def __init__(self, path: str):
        self.path = path

    def _load_art(self, art_path: str) -> bytes | None:
        if not os.path.isabs(art_path):
            art_path = os.path.join(os.path.dirname(self.path), art_path)
        try:
            with open(art_path, "rb") as f:
                return f.read()
        except OSError as e:
            log.warning(f"Failed to read cover art at {art_path}: {e}")
            return None

    def _parse_metadata(self, raw: object) -> Metadata | None:
        if not isinstance(raw, dict):
            return None

        title = raw.get("title")
        fields = {key: str(raw[key]) for key in METADATA_TEXT_FIELDS if raw.get(key) is not None}
        art_path = raw.get("art_path")

        return Metadata(
            title=str(title) if title is not None else None,
            duration_ms=_optional_int(raw.get("duration_ms")),
            fields=fields,
            art=self._load_art(str(art_path)) if art_path else None,
        )

    def _parse_session(self, raw: dict) -> MediaSession:
        package = raw.get("package")
        if not isinstance(package, str) or not package:
            raise ValueError("session is missing its 'package'")

        return MediaSession(
            package=package,
            state=_parse_state(raw.get("state")),
            position_ms=_optional_int(raw.get("position_ms")),
            metadata=self._parse_metadata(raw.get("metadata")),
        )

    def read_sessions(self) -> list[MediaSession]:
        """Returns the sessions in file order, or an empty list if the snapshot is missing or unreadable."""

        if not os.path.exists(self.path):
            log.debug(f"No session snapshot at {self.path}.")
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.warning(f"Failed to read session snapshot {self.path}: {e}")
            return []

        if not isinstance(data, list):
            log.warning(f"Session snapshot {self.path} is not a list, ignoring it.")
            return []

        sessions: list[MediaSession] = []
        for index, raw in enumerate(data):
            if not isinstance(raw, dict):
                log.warning(f"Skipping session #{index}: not an object.")
                continue
            try:
                sessions.append(self._parse_session(raw))
            except (ValueError, TypeError) as e:
                log.warning(f"Skipping session #{index}: {e}")
        return sessions
