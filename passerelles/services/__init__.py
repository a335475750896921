"""Storage services behind the HTTP API."""

from .content import ContentRepository
from .documents import JsonDocument, initialize_document, read_document, write_document
from .speakers import (
    SpeakerInput,
    SpeakerNotFoundError,
    SpeakerPersistError,
    SpeakerRepository,
    SpeakerValidationError,
    parse_speaker_id,
)
from .uploads import (
    ImageUploadStore,
    StoredUpload,
    UnsupportedFileTypeError,
    UploadError,
    UploadTooLargeError,
)

__all__ = [
    "ContentRepository",
    "ImageUploadStore",
    "JsonDocument",
    "SpeakerInput",
    "SpeakerNotFoundError",
    "SpeakerPersistError",
    "SpeakerRepository",
    "SpeakerValidationError",
    "StoredUpload",
    "UnsupportedFileTypeError",
    "UploadError",
    "UploadTooLargeError",
    "initialize_document",
    "parse_speaker_id",
    "read_document",
    "write_document",
]
