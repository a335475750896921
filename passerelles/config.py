"""Configuration loading utilities for the Passerelles CMS backend."""

from __future__ import annotations

import contextlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple


LOGGER = logging.getLogger(__name__)


_PERMISSION_SENTINEL = ".passerelles_write_check"


def _ensure_writable_directory(path: Path) -> bool:
    """Probe a data or uploads directory by writing a throwaway sentinel file."""

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False

    test_file = path / _PERMISSION_SENTINEL
    try:
        with test_file.open("w", encoding="utf-8") as handle:
            handle.write("ok")
    except OSError:
        return False
    finally:
        with contextlib.suppress(OSError):
            test_file.unlink()

    return True


def _select_writable_directory(
    preferred: Path,
    *,
    label: str,
    fallbacks: Iterable[Path] = (),
) -> Tuple[Path, bool]:
    """Pick the data or uploads directory.

    Data falls back to ``~/.passerelles/data`` and uploads to
    ``<data_root>/_uploads``. If neither candidate is writable the configured
    path is kept and the document writes report the failure.
    """

    preferred = preferred.resolve()
    if _ensure_writable_directory(preferred):
        return preferred, False

    for fallback in fallbacks:
        candidate = fallback.resolve()
        if candidate == preferred:
            continue
        if _ensure_writable_directory(candidate):
            LOGGER.warning(
                "Preferred %s directory '%s' is not writable; using fallback '%s'.",
                label,
                preferred,
                candidate,
            )
            return candidate, True

    LOGGER.warning(
        "%s directory '%s' is not writable and no fallback is available.",
        label.capitalize(),
        preferred,
    )
    return preferred, False


@dataclass(frozen=True)
class AppConfig:
    """Runtime paths for the speaker and content documents and uploads."""

    data_root: Path
    uploads_root: Path
    public_root: Path

    @property
    def speakers_file(self) -> Path:
        return self.data_root / "speakers.json"

    @property
    def content_file(self) -> Path:
        return self.data_root / "content.json"

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any], *, base_path: Path) -> "AppConfig":
        preferred_data = (base_path / mapping["data_root"]).resolve()
        data_fallback = Path.home() / ".passerelles" / "data"
        data_root, _ = _select_writable_directory(
            preferred_data,
            label="data",
            fallbacks=(data_fallback,),
        )

        preferred_uploads = (base_path / mapping["uploads_root"]).resolve()
        uploads_root, _ = _select_writable_directory(
            preferred_uploads,
            label="uploads",
            fallbacks=(data_root / "_uploads",),
        )

        # The public site is read-only content shipped with the project.
        public_root = (base_path / mapping.get("public_root", "public")).resolve()

        return cls(data_root=data_root, uploads_root=uploads_root, public_root=public_root)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the application configuration from ``config/default.json`` by default."""

    base_path = Path(__file__).resolve().parent.parent
    if config_path is None:
        config_path = base_path / "config" / "default.json"

    with config_path.open("r", encoding="utf-8") as config_file:
        raw_config = json.load(config_file)

    return AppConfig.from_mapping(raw_config, base_path=base_path)


__all__ = ["AppConfig", "load_config"]
