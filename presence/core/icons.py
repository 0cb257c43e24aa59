from typing import Protocol, final

from presence.core.models import ApplicationIcon, AssetIcon, PlaybackState


PLAY_ASSET = "1300361266212241430.png"
PAUSE_ASSET = "1300361619490209802.png"
STOP_ASSET = "1300361702621188160.png"

# Well-known package names for friendly display
KNOWN_APPS: dict[str, str] = {
    "com.spotify.music": "Spotify",
    "com.google.android.apps.youtube.music": "YouTube Music",
    "com.google.android.youtube": "YouTube",
    "com.google.android.apps.podcasts": "Google Podcasts",
    "org.videolan.vlc": "VLC",
    "com.plexapp.android": "Plex",
    "com.aspiro.tidal": "Tidal",
    "com.amazon.mp3": "Amazon Music",
    "com.apple.android.music": "Apple Music",
    "com.pandora.android": "Pandora",
    "com.soundcloud.android": "SoundCloud",
    "deezer.android.app": "Deezer",
    "au.com.shiftyjelly.pocketcasts": "Pocket Casts",
    "tunein.player": "TuneIn",
}


class IconProvider(Protocol):
    def playback_glyph(self, state: PlaybackState) -> AssetIcon: ...

    def app_icon(self, package: str) -> ApplicationIcon: ...

    def app_name(self, package: str) -> str: ...


@final
class AssetIconProvider:
    """
    Hands out the fixed playback-state glyphs hosted under the application's
    asset namespace, and application icons/names keyed by package.
    """

    def __init__(self, application_id: str, app_names: dict[str, str] | None = None):
        self._application_id = application_id
        self._app_names = KNOWN_APPS if app_names is None else app_names

    def _asset(self, name: str) -> AssetIcon:
        return AssetIcon(f"app-assets/{self._application_id}/{name}")

    def playback_glyph(self, state: PlaybackState) -> AssetIcon:
        if state == PlaybackState.PLAYING:
            return self._asset(PLAY_ASSET)
        if state == PlaybackState.STOPPED:
            return self._asset(STOP_ASSET)
        # Paused, and the fallback for anything unrecognized
        return self._asset(PAUSE_ASSET)

    def app_icon(self, package: str) -> ApplicationIcon:
        return ApplicationIcon(package)

    def app_name(self, package: str) -> str:
        return self._app_names.get(package) or package
