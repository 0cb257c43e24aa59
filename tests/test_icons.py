from __future__ import annotations

from presence.core.icons import AssetIconProvider
from presence.core.models import ApplicationIcon, AssetIcon, PlaybackState


def test_glyphs_are_namespaced_by_application():
    icons = AssetIconProvider("777")
    assert icons.playback_glyph(PlaybackState.PLAYING) == AssetIcon("app-assets/777/1300361266212241430.png")
    assert icons.playback_glyph(PlaybackState.STOPPED) == AssetIcon("app-assets/777/1300361702621188160.png")


def test_unknown_state_uses_pause_glyph():
    icons = AssetIconProvider("777")
    assert icons.playback_glyph(PlaybackState.UNKNOWN) == icons.playback_glyph(PlaybackState.PAUSED)


def test_app_name_and_icon():
    icons = AssetIconProvider("777", app_names={"org.example.player": "Example"})
    assert icons.app_name("org.example.player") == "Example"
    assert icons.app_name("org.unknown") == "org.unknown"
    assert icons.app_icon("org.unknown") == ApplicationIcon("org.unknown")
    assert AssetIconProvider("1").app_name("com.spotify.music") == "Spotify"
