# pyright: reportUnknownMemberType=false, reportAttributeAccessIssue=false, reportOptionalMemberAccess=false

import logging
from logging.handlers import RotatingFileHandler
import os
import signal
import sys
from typing import final

from PySide6.QtCore import QCoreApplication, QObject

from presence.core.config import APP_NAME, user_data_dir, load_config
from presence.core.models import AppConfig, PresenceDescriptor
from presence.core.poller import PresencePoller
from presence.core.session_source import SnapshotFileSource


APP_DISPLAY_NAME = "Media Presence"
LOG_FILE_NAME = "presence.log"
LOG_FILE_MAX_BYTES = 1 * 1024 * 1024
LOG_FILE_BACKUPS = 5
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_LEVEL_ENV = "MEDIA_PRESENCE_LOG_LEVEL"
DEFAULT_LOG_LEVEL = logging.INFO

log = logging.getLogger(__name__)


@final
class PresenceApp(QObject):
    """
    Manages the lifecycle of the presence service: configuration, the session
    snapshot source and the poller that turns sessions into presence updates.
    """

    def __init__(self):
        super().__init__()
        log.info("Starting initialization.")
        self.config = self._load_initial_config()
        log.info("Initial configuration has been loaded.")

        self.source = SnapshotFileSource(self.config.source.snapshot_path)
        log.info(f"Reading media sessions from {self.source.path}.")

        self.poller = PresencePoller(self.config, self.source.read_sessions)
        log.info("PresencePoller has been created with the initial configuration.")

        if not self.config.media.enabled_apps:
            log.warning("No media apps are enabled; presence will stay empty until 'enabled_apps' is configured.")

        self._connect_signals()
        self._setup_shutdown_hooks()

    def _load_initial_config(self) -> AppConfig:
        try:
            log.info("Loading presence configuration...")
            return load_config()
        except Exception:
            log.exception("Fatal error: Failed to load configuration.")
            sys.exit(1)

    def _connect_signals(self):
        _ = self.poller.presence_updated.connect(self._on_presence_updated)
        _ = self.poller.presence_cleared.connect(self._on_presence_cleared)
        log.info("Application signals connected.")

    def _setup_shutdown_hooks(self):
        QCoreApplication.instance().aboutToQuit.connect(self._on_about_to_quit)  # pyright: ignore[reportUnusedCallResult]
        _ = signal.signal(signal.SIGINT, self._on_os_signal)
        _ = signal.signal(signal.SIGTERM, self._on_os_signal)

        log.info("Shutdown hooks registered.")

    def run(self):
        """Starts polling for media sessions."""

        log.info("Performing initial presence build...")
        _ = self.poller.poll_once()
        self.poller.start()

    def _on_presence_updated(self, presence: PresenceDescriptor):
        """Hands a new presence to the broadcasting side; for now it is only logged."""

        log.info(f"Presence: name={presence.name!r} details={presence.details!r} state={presence.state!r}")

    def _on_presence_cleared(self):
        log.info("Presence cleared.")

    def _on_about_to_quit(self):
        """Cleans up all resources before the application exits."""

        log.info("Shutdown sequence initiated...")
        self.poller.stop()
        log.info(f"--- Stopped {APP_DISPLAY_NAME} ---")

    def _on_os_signal(self, *_args):
        log.info("OS shutdown signal received, quitting application.")
        QCoreApplication.instance().quit()


def _resolve_log_level(name: str | None) -> int | None:
    if not name:
        return DEFAULT_LOG_LEVEL
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else None


def setup_logging(log_directory: str | None = None) -> logging.Handler | None:
    """
    Routes every logger to the console and to a rotating file in the data
    directory. The level comes from MEDIA_PRESENCE_LOG_LEVEL (INFO by default).
    Returns the file handler, or None if the file could not be opened.
    """

    log_formatter = logging.Formatter(LOG_FORMAT)
    level_name = os.environ.get(LOG_LEVEL_ENV)

    root_logger = logging.getLogger()
    level = _resolve_log_level(level_name)
    root_logger.setLevel(DEFAULT_LOG_LEVEL if level is None else level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    root_logger.addHandler(console_handler)

    if level is None:
        root_logger.warning(f"Unknown log level {level_name!r} in {LOG_LEVEL_ENV}, using INFO.")

    log_directory = log_directory or user_data_dir()
    try:
        os.makedirs(log_directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_directory, LOG_FILE_NAME),
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        root_logger.error(f"Failed to set up file logging in {log_directory}: {e}")
        return None

    file_handler.setFormatter(log_formatter)
    root_logger.addHandler(file_handler)
    return file_handler


def main() -> None:
    _ = setup_logging()
    log.info(f"--- Starting {APP_DISPLAY_NAME} ---")

    app = QCoreApplication(sys.argv)
    app.setApplicationName(APP_NAME)

    presence_app = PresenceApp()
    presence_app.run()

    log.info("Entering Qt main event loop...")
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
