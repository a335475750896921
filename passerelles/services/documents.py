"""Whole-document JSON persistence for the speaker and content files."""

from __future__ import annotations

import asyncio
import copy
import functools
import json
import logging
from pathlib import Path
from typing import Any, Callable, TypeVar


LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_INDENT = 2


def _serialize(value: Any) -> str:
    return json.dumps(value, indent=_INDENT, ensure_ascii=False)


def initialize_document(path: Path, default: Any) -> bool:
    """Seed *path* with *default* unless the file already exists.

    Safe to call on every startup. Failures are logged and reported through
    the return value; they never propagate.
    """

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            LOGGER.debug("Document already present: %s", path)
            return True
        path.write_text(_serialize(default), encoding="utf-8")
    except (OSError, TypeError, ValueError):
        LOGGER.exception("Error initializing document %s", path)
        return False

    LOGGER.info("Seeded document %s", path)
    return True


def read_document(path: Path, empty: Any = None) -> Any:
    """Return the parsed contents of *path*, or a copy of *empty* on failure.

    A missing file, unreadable file or invalid JSON all yield *empty*; callers
    must read that as "unavailable" rather than "confirmed empty".
    """

    try:
        raw = path.read_text(encoding="utf-8")
        return json.loads(raw)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as error:
        LOGGER.error("Error reading document %s: %s", path, error)
        return copy.deepcopy(empty)


def write_document(path: Path, value: Any) -> bool:
    """Overwrite *path* with *value* as pretty-printed JSON."""

    try:
        payload = _serialize(value)
    except (TypeError, ValueError):
        LOGGER.exception("Document for %s is not JSON serialisable", path)
        return False

    try:
        path.write_text(payload, encoding="utf-8")
    except OSError:
        LOGGER.exception("Error writing document %s", path)
        return False

    LOGGER.debug("Wrote document %s (%d bytes)", path, len(payload))
    return True


class JsonDocument:
    """A single JSON file accessed as a whole from async request handlers.

    Blocking file I/O runs in the loop's default executor. ``lock`` must be
    held across a read-modify-write sequence so concurrent mutations on the
    same document are applied one after another.
    """

    def __init__(self, path: Path, *, empty: Any = None) -> None:
        self._path = path
        self._empty = empty
        self.lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def _run(self, operation: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(operation, *args))

    async def read(self) -> Any:
        return await self._run(read_document, self._path, self._empty)

    async def write(self, value: Any) -> bool:
        return await self._run(write_document, self._path, value)


__all__ = ["JsonDocument", "initialize_document", "read_document", "write_document"]
