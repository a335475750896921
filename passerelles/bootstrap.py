"""Bootstrap logic that prepares runtime directories and seeds the JSON documents."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import AppConfig, load_config
from .services.documents import initialize_document
from .services.seed import default_content, default_speakers

LOGGER = logging.getLogger(__name__)


class Bootstrapper:
    """High level object orchestrating initialization steps."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    @property
    def config(self) -> AppConfig:
        return self._config

    def initialize(self) -> bool:
        """Run all bootstrap tasks.

        Returns ``False`` when a step failed. Failures are logged and never
        raised so the server can still start and report storage errors per
        request.
        """

        LOGGER.debug("Starting bootstrap sequence")
        directories_ready = self._ensure_directories()
        documents_ready = self._ensure_documents()
        if directories_ready and documents_ready:
            LOGGER.info("Bootstrap completed successfully")
            return True
        LOGGER.error("Bootstrap completed with errors; see messages above")
        return False

    def _ensure_directories(self) -> bool:
        ready = True
        for path in (self._config.data_root, self._config.uploads_root):
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as error:
                LOGGER.error("Could not create directory %s: %s", path, error)
                ready = False
            else:
                LOGGER.debug("Ensured directory exists: %s", path)
        if not self._config.public_root.is_dir():
            LOGGER.warning("Public site directory %s is missing", self._config.public_root)
        return ready

    def _ensure_documents(self) -> bool:
        speakers_ready = initialize_document(self._config.speakers_file, default_speakers())
        content_ready = initialize_document(self._config.content_file, default_content())
        return speakers_ready and content_ready


def initialize_app(config_path: Path | None = None) -> AppConfig:
    """Convenience helper that loads configuration and runs initialization."""

    config = load_config(config_path=config_path)
    Bootstrapper(config).initialize()
    return config


__all__ = ["Bootstrapper", "initialize_app"]
