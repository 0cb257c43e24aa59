# pyright: reportAny=false, reportUnknownMemberType=false

import logging
import os
import sys

import toml

from presence.core.models import AppConfig, ClientConfig, MediaConfig, SourceConfig


APP_NAME = "MediaPresence"
CONFIG_FILE_NAME = "config.toml"
SNAPSHOT_FILE_NAME = "sessions.json"
DEFAULT_POLL_INTERVAL = 5000
DEFAULT_ART_SIZE = 512

log = logging.getLogger(__name__)


def user_data_dir() -> str:
    home = os.path.expanduser("~")
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA", os.path.join(home, "AppData", "Roaming"))
    else:
        base = os.environ.get("XDG_CONFIG_HOME", os.path.join(home, ".config"))
    return os.path.join(base, APP_NAME)


def get_default_config(data_directory: str | None = None) -> AppConfig:
    data_directory = data_directory or user_data_dir()

    return AppConfig(
        client=ClientConfig(application_id=""),
        source=SourceConfig(
            snapshot_path=os.path.join(data_directory, SNAPSHOT_FILE_NAME),
            poll_interval_ms=DEFAULT_POLL_INTERVAL,
        ),
        media=MediaConfig(art_size=DEFAULT_ART_SIZE),
        data_directory=data_directory,
        config_path=os.path.join(data_directory, CONFIG_FILE_NAME),
    )


def save_config(config: AppConfig):
    media = config.media
    config_to_save = {
        "client": {
            "application_id": config.client.application_id,
        },
        "source": {
            "snapshot_path": config.source.snapshot_path,
            "poll_interval_ms": config.source.poll_interval_ms,
        },
        "media": {
            "enabled_apps": sorted(media.enabled_apps),
            "hide_on_pause": media.hide_on_pause,
            "show_artist": media.show_artist,
            "show_album": media.show_album,
            "show_app_icon": media.show_app_icon,
            "show_playback_state_icon": media.show_playback_state_icon,
            "show_song_as_title": media.show_song_as_title,
            "art_size": media.art_size,
        },
    }

    try:
        os.makedirs(os.path.dirname(config.config_path), exist_ok=True)
        with open(config.config_path, "w") as f:
            _ = toml.dump(config_to_save, f)
    except (IOError, OSError) as e:
        log.error(f"Failed to save configuration to {config.config_path}: {e}")


def _read_bool(section: dict, key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise TypeError(f"'{key}' must be a boolean, got {value!r}")
    return value


def _load_media_section(section: dict, media: MediaConfig) -> MediaConfig:
    apps = section.get("enabled_apps", sorted(media.enabled_apps))
    if not isinstance(apps, list):
        raise TypeError("'enabled_apps' must be a list of package names")

    return MediaConfig(
        enabled_apps=frozenset(str(app) for app in apps),
        hide_on_pause=_read_bool(section, "hide_on_pause", media.hide_on_pause),
        show_artist=_read_bool(section, "show_artist", media.show_artist),
        show_album=_read_bool(section, "show_album", media.show_album),
        show_app_icon=_read_bool(section, "show_app_icon", media.show_app_icon),
        show_playback_state_icon=_read_bool(section, "show_playback_state_icon", media.show_playback_state_icon),
        show_song_as_title=_read_bool(section, "show_song_as_title", media.show_song_as_title),
        art_size=int(section.get("art_size", media.art_size)),
    )


def load_config(data_directory: str | None = None) -> AppConfig:
    """
    Loads configuration from the user's file, safely falling back to defaults
    for any missing or invalid values. Creates the file if it doesn't exist.
    """

    config = get_default_config(data_directory)

    if not os.path.exists(config.config_path):
        save_config(config)
        return config

    # A broken file must not stop the presence from running; defaults are used instead.
    try:
        with open(config.config_path, "r") as f:
            user_config = toml.load(f)
    except toml.TomlDecodeError as e:
        log.warning(f"Failed to decode config file, using defaults. Error: {e}")
        return config

    client_section = user_config.get("client", {})
    if isinstance(client_section, dict):
        config.client.application_id = str(client_section.get("application_id", config.client.application_id))

    source_section = user_config.get("source", {})
    if isinstance(source_section, dict):
        try:
            config.source.snapshot_path = str(source_section.get("snapshot_path", config.source.snapshot_path))
            config.source.poll_interval_ms = int(source_section.get("poll_interval_ms", config.source.poll_interval_ms))
        except (ValueError, TypeError):
            log.warning("Invalid value in 'source' section of config, using defaults for affected keys.")

    media_section = user_config.get("media", {})
    if isinstance(media_section, dict):
        try:
            config.media = _load_media_section(media_section, config.media)
        except (ValueError, TypeError) as e:
            log.warning(f"Invalid value in 'media' section of config, using defaults. Error: {e}")

    return config
