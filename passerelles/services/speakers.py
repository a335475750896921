"""Speaker roster stored as a single JSON array."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .documents import JsonDocument


LOGGER = logging.getLogger(__name__)

ARRAY_FIELDS = ("topics", "keyTopics")

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


class SpeakerError(RuntimeError):
    """Base class for speaker repository failures."""


class SpeakerValidationError(SpeakerError, ValueError):
    """Raised when a request body cannot be read as a speaker."""


class SpeakerNotFoundError(SpeakerError, LookupError):
    """Raised when no speaker carries the requested id."""

    def __init__(self, speaker_id: Optional[int]) -> None:
        super().__init__(f"Speaker {speaker_id} not found")
        self.speaker_id = speaker_id


class SpeakerPersistError(SpeakerError):
    """Raised when the roster could not be written back to disk."""


def parse_speaker_id(raw: Any) -> Optional[int]:
    """Return the leading integer of *raw*, or ``None`` when there is none.

    ``"7"`` and ``"7-sarah"`` both resolve to ``7``.
    """

    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    match = _LEADING_INTEGER.match(str(raw))
    if match is None:
        return None
    return int(match.group(1))


def _record_id(record: Any) -> Optional[int]:
    if not isinstance(record, dict):
        return None
    value = record.get("id")
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def next_speaker_id(speakers: List[Any]) -> int:
    """Return max(existing ids) + 1, or 1 for an empty roster."""

    ids = [value for value in (_record_id(record) for record in speakers) if value is not None]
    return max(ids) + 1 if ids else 1


@dataclass
class SpeakerInput:
    """A request body split into plain fields and array-shaped fields.

    ``arrays`` only holds the array fields that were supplied as lists; any
    other value for those keys is dropped here so the merge step never sees it.
    """

    fields: Dict[str, Any] = field(default_factory=dict)
    arrays: Dict[str, List[Any]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "SpeakerInput":
        if not isinstance(payload, Mapping):
            raise SpeakerValidationError("Speaker payload must be a JSON object")

        fields: Dict[str, Any] = {}
        arrays: Dict[str, List[Any]] = {}
        for key, value in payload.items():
            if key == "id":
                continue
            if key in ARRAY_FIELDS:
                if isinstance(value, list):
                    arrays[key] = list(value)
                continue
            fields[str(key)] = value
        return cls(fields=fields, arrays=arrays)

    def build_new(self, speaker_id: int) -> Dict[str, Any]:
        record: Dict[str, Any] = {"id": speaker_id, **self.fields}
        for key in ARRAY_FIELDS:
            record[key] = list(self.arrays.get(key, []))
        return record

    def merge_into(self, existing: Dict[str, Any]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {**existing, **self.fields}
        merged["id"] = existing["id"]
        for key in ARRAY_FIELDS:
            if key in self.arrays:
                merged[key] = list(self.arrays[key])
        return merged


class SpeakerRepository:
    """CRUD helpers over the speakers document."""

    def __init__(self, document: JsonDocument) -> None:
        self._document = document

    @property
    def document(self) -> JsonDocument:
        return self._document

    async def _load(self) -> List[Any]:
        speakers = await self._document.read()
        if not isinstance(speakers, list):
            LOGGER.warning(
                "Speaker document %s does not hold a list; treating it as empty",
                self._document.path,
            )
            return []
        return speakers

    @staticmethod
    def _find_index(speakers: List[Any], speaker_id: Optional[int]) -> int:
        if speaker_id is None:
            return -1
        for index, record in enumerate(speakers):
            if _record_id(record) == speaker_id:
                return index
        return -1

    async def list(self) -> List[Any]:
        return await self._load()

    async def get(self, speaker_id: Optional[int]) -> Dict[str, Any]:
        speakers = await self._load()
        index = self._find_index(speakers, speaker_id)
        if index == -1:
            raise SpeakerNotFoundError(speaker_id)
        return speakers[index]

    async def create(self, data: SpeakerInput) -> Dict[str, Any]:
        async with self._document.lock:
            speakers = await self._load()
            record = data.build_new(next_speaker_id(speakers))
            speakers.append(record)
            if not await self._document.write(speakers):
                raise SpeakerPersistError("Failed to create speaker")
        return record

    async def update(self, speaker_id: Optional[int], data: SpeakerInput) -> Dict[str, Any]:
        async with self._document.lock:
            speakers = await self._load()
            index = self._find_index(speakers, speaker_id)
            if index == -1:
                raise SpeakerNotFoundError(speaker_id)
            updated = data.merge_into(speakers[index])
            speakers[index] = updated
            if not await self._document.write(speakers):
                raise SpeakerPersistError("Failed to update speaker")
        return updated

    async def delete(self, speaker_id: Optional[int]) -> None:
        async with self._document.lock:
            speakers = await self._load()
            remaining = [record for record in speakers if _record_id(record) != speaker_id]
            if speaker_id is None or len(remaining) == len(speakers):
                raise SpeakerNotFoundError(speaker_id)
            if not await self._document.write(remaining):
                raise SpeakerPersistError("Failed to delete speaker")


__all__ = [
    "ARRAY_FIELDS",
    "SpeakerError",
    "SpeakerInput",
    "SpeakerNotFoundError",
    "SpeakerPersistError",
    "SpeakerRepository",
    "SpeakerValidationError",
    "next_speaker_id",
    "parse_speaker_id",
]
