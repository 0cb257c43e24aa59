from dataclasses import dataclass, field
from enum import Enum


class PlaybackState(str, Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Metadata:
    title: str | None = None
    duration_ms: int | None = None
    fields: dict[str, str] = field(default_factory=dict)  # artist, author, writer, album, album_artist
    art: bytes | None = None


@dataclass(frozen=True)
class MediaSession:
    package: str
    state: PlaybackState = PlaybackState.UNKNOWN
    position_ms: int | None = None
    metadata: Metadata | None = None


@dataclass(frozen=True)
class AssetIcon:
    asset_id: str


@dataclass(frozen=True)
class ApplicationIcon:
    package: str


@dataclass(frozen=True)
class BitmapIcon:
    data: bytes
    caption: str


IconRef = AssetIcon | ApplicationIcon | BitmapIcon


@dataclass(frozen=True)
class Timestamps:
    start: int
    end: int


@dataclass(frozen=True)
class PresenceDescriptor:
    name: str | None = None
    details: str | None = None
    state: str | None = None
    large_image: IconRef | None = None
    small_image: IconRef | None = None
    large_text: str | None = None
    small_text: str | None = None
    identity: str | None = None
    timestamps: Timestamps | None = None

    def is_empty(self) -> bool:
        return self == EMPTY_PRESENCE


EMPTY_PRESENCE = PresenceDescriptor()


@dataclass
class ClientConfig:
    application_id: str


@dataclass
class SourceConfig:
    snapshot_path: str
    poll_interval_ms: int


@dataclass
class MediaConfig:
    enabled_apps: frozenset[str] = frozenset()
    hide_on_pause: bool = False
    show_artist: bool = False
    show_album: bool = False
    show_app_icon: bool = False
    show_playback_state_icon: bool = False
    show_song_as_title: bool = False
    art_size: int = 512


@dataclass
class AppConfig:
    client: ClientConfig
    source: SourceConfig
    media: MediaConfig
    data_directory: str
    config_path: str
