# pyright: reportUnknownMemberType=false

import io
import logging
from typing import Protocol, final

from PIL import Image, UnidentifiedImageError

from presence.core.models import Metadata


KEY_ARTIST = "artist"
KEY_AUTHOR = "author"
KEY_WRITER = "writer"
KEY_ALBUM = "album"
KEY_ALBUM_ARTIST = "album_artist"

log = logging.getLogger(__name__)


class MetadataResolver(Protocol):
    def get_artist_or_author(self, metadata: Metadata) -> str | None: ...

    def get_album(self, metadata: Metadata) -> str | None: ...

    def get_album_artists(self, metadata: Metadata) -> str | None: ...

    def get_cover_art(self, metadata: Metadata) -> bytes | None: ...


def _first_field(metadata: Metadata, *keys: str) -> str | None:
    for key in keys:
        value = metadata.fields.get(key)
        if value and value.strip():
            return value.strip()
    return None


@final
class FieldMetadataResolver:
    """
    Resolves display fields from the string fields carried by a session's
    metadata. Cover art is re-encoded as a square-bounded PNG thumbnail so
    that every bitmap handed downstream has a known format and size.
    """

    def __init__(self, art_size: int = 512):
        self._art_size = art_size

    def get_artist_or_author(self, metadata: Metadata) -> str | None:
        return _first_field(metadata, KEY_ARTIST, KEY_AUTHOR, KEY_WRITER)

    def get_album(self, metadata: Metadata) -> str | None:
        return _first_field(metadata, KEY_ALBUM)

    def get_album_artists(self, metadata: Metadata) -> str | None:
        return _first_field(metadata, KEY_ALBUM_ARTIST, KEY_ARTIST)

    def get_cover_art(self, metadata: Metadata) -> bytes | None:
        """Returns PNG bytes for the session's art, or None if there is none or it can't be decoded."""

        if not metadata.art:
            return None

        try:
            with Image.open(io.BytesIO(metadata.art)) as img:
                img = img.convert("RGBA")
                if self._art_size > 0:
                    img.thumbnail((self._art_size, self._art_size), Image.Resampling.LANCZOS)
                out = io.BytesIO()
                img.save(out, format="PNG")
                return out.getvalue()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            log.warning(f"Failed to decode cover art ({len(metadata.art)} bytes): {e}")
            return None
