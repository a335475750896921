"""Locale dictionary of page copy, replaced as a whole on every write."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .documents import JsonDocument


LOGGER = logging.getLogger(__name__)


class ContentRepository:
    """Read and replace the ``{locale: {key: text}}`` document."""

    def __init__(self, document: JsonDocument) -> None:
        self._document = document

    @property
    def document(self) -> JsonDocument:
        return self._document

    async def get(self) -> Optional[Any]:
        """Return the stored document, or ``None`` when it cannot be read."""

        return await self._document.read()

    async def replace(self, content: Any) -> bool:
        # No merge: locales and keys absent from *content* disappear.
        async with self._document.lock:
            saved = await self._document.write(content)
        if saved:
            locales = sorted(content) if isinstance(content, dict) else []
            LOGGER.info("Replaced page content (locales: %s)", ", ".join(locales) or "none")
        return saved


__all__ = ["ContentRepository"]
