"""Persistence of speaker photo uploads."""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import os
import random
import re
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from fastapi import UploadFile


LOGGER = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gif"})
_ALLOWED_CONTENT_TYPE = re.compile(r"jpeg|jpg|png|gif")

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
_DEFAULT_UPLOAD_CHUNK_SIZE = 64 * 1024
_RANDOM_SUFFIX_CEILING = 1_000_000_000

UPLOAD_URL_PREFIX = "/uploads"


class UploadError(RuntimeError):
    """Base class for rejected uploads."""


class UnsupportedFileTypeError(UploadError):
    """Raised when the extension or declared content type is not an image."""


class UploadTooLargeError(UploadError):
    """Raised when an upload exceeds the configured size ceiling."""


def get_max_upload_bytes() -> int:
    """Return the upload ceiling in bytes; ``0`` disables the check."""

    raw = (os.environ.get("PASSERELLES_MAX_UPLOAD_BYTES") or "").strip()
    if not raw:
        return DEFAULT_MAX_UPLOAD_BYTES
    try:
        return max(int(raw), 0)
    except ValueError:
        LOGGER.warning("Ignoring invalid PASSERELLES_MAX_UPLOAD_BYTES value %r", raw)
        return DEFAULT_MAX_UPLOAD_BYTES


def is_allowed_image(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Return ``True`` when both the extension and the content type look like an image."""

    extension = Path(filename or "").suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        return False
    return bool(_ALLOWED_CONTENT_TYPE.search((content_type or "").lower()))


def build_upload_name(
    original_name: Optional[str],
    *,
    timestamp_ms: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Return ``<millis>-<random>`` followed by the original extension."""

    millis = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    source = rng if rng is not None else random
    suffix = source.randint(0, _RANDOM_SUFFIX_CEILING)
    extension = Path(original_name or "").suffix
    return f"{millis}-{suffix}{extension}"


def _copy_limited(
    source: BinaryIO,
    target: Path,
    *,
    max_bytes: int,
    chunk_size: int = _DEFAULT_UPLOAD_CHUNK_SIZE,
) -> int:
    """Copy *source* to *target*, stopping once more than *max_bytes* were seen."""

    if hasattr(source, "seek"):
        with contextlib.suppress(OSError, ValueError):
            source.seek(0)

    written = 0
    with target.open("wb") as buffer:
        if max_bytes <= 0:
            shutil.copyfileobj(source, buffer, length=chunk_size)
            return buffer.tell()
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise UploadTooLargeError(f"File exceeds the {max_bytes} byte limit")
            buffer.write(chunk)
    return written


@dataclass(frozen=True)
class StoredUpload:
    filename: str
    url: str
    path: Path
    size: int


class ImageUploadStore:
    """Write accepted image uploads under a fixed directory."""

    def __init__(
        self,
        root: Path,
        *,
        max_bytes: Optional[int] = None,
        url_prefix: str = UPLOAD_URL_PREFIX,
    ) -> None:
        self._root = root
        self._max_bytes = get_max_upload_bytes() if max_bytes is None else max_bytes
        self._url_prefix = url_prefix.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def check(self, filename: Optional[str], content_type: Optional[str], size: Optional[int]) -> None:
        """Raise before anything is written when the upload is unacceptable."""

        if not is_allowed_image(filename, content_type):
            raise UnsupportedFileTypeError("Only image files are allowed!")
        if self._max_bytes > 0 and size is not None and size > self._max_bytes:
            raise UploadTooLargeError(f"File exceeds the {self._max_bytes} byte limit")

    async def save(self, upload: UploadFile) -> StoredUpload:
        self.check(upload.filename, upload.content_type, getattr(upload, "size", None))

        self._root.mkdir(parents=True, exist_ok=True)
        filename = build_upload_name(upload.filename)
        target = self._root / filename

        loop = asyncio.get_running_loop()
        copy_operation = functools.partial(
            _copy_limited, upload.file, target, max_bytes=self._max_bytes
        )
        try:
            size = await loop.run_in_executor(None, copy_operation)
        except (UploadError, OSError):
            with contextlib.suppress(OSError):
                target.unlink()
            raise

        LOGGER.info("Stored upload %s (%d bytes) as %s", upload.filename, size, filename)
        return StoredUpload(
            filename=filename,
            url=f"{self._url_prefix}/{filename}",
            path=target,
            size=size,
        )


__all__ = [
    "ALLOWED_EXTENSIONS",
    "DEFAULT_MAX_UPLOAD_BYTES",
    "ImageUploadStore",
    "StoredUpload",
    "UnsupportedFileTypeError",
    "UploadError",
    "UploadTooLargeError",
    "build_upload_name",
    "get_max_upload_bytes",
    "is_allowed_image",
]
