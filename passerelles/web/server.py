"""FastAPI application serving the speaker roster, page copy and photo uploads."""

from __future__ import annotations

import contextvars
import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, File, HTTPException, Request, UploadFile
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Receive, Scope, Send

from ..config import AppConfig
from ..services.content import ContentRepository
from ..services.documents import JsonDocument
from ..services.speakers import (
    SpeakerInput,
    SpeakerNotFoundError,
    SpeakerPersistError,
    SpeakerRepository,
    SpeakerValidationError,
    parse_speaker_id,
)
from ..services.uploads import (
    UPLOAD_URL_PREFIX,
    ImageUploadStore,
    UnsupportedFileTypeError,
    UploadTooLargeError,
)


_ADMIN_PAGE = "admin.html"

_REQUEST_ID_VAR: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "passerelles_request_id",
    default=None,
)


class MessageResponse(BaseModel):
    message: str


class ContentSavedResponse(BaseModel):
    message: str
    content: Any


class UploadResponse(BaseModel):
    url: str
    filename: str


def _new_correlation_id() -> str:
    return uuid.uuid4().hex


class RequestContextMiddleware:
    """Assign a correlation identifier to each request and expose it via contextvars."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = _new_correlation_id()
        scope_state = scope.setdefault("state", {})
        if isinstance(scope_state, dict):
            scope_state["request_id"] = request_id

        token = _REQUEST_ID_VAR.set(request_id)
        try:
            await self.app(scope, receive, send)
        finally:
            _REQUEST_ID_VAR.reset(token)


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that tags records with the current request id."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple[Any, Dict[str, Any]]:  # type: ignore[override]
        extra: Dict[str, Any] = dict(self.extra)
        provided = kwargs.get("extra")
        if isinstance(provided, dict):
            extra.update(provided)
        request_id = _REQUEST_ID_VAR.get()
        if request_id:
            extra.setdefault("request_id", request_id)
        kwargs["extra"] = extra
        return msg, kwargs


LOGGER = ContextualLoggerAdapter(logging.getLogger(__name__), {})


def _log_event(message: str, *, level: int = logging.INFO, **context: Any) -> None:
    details = ", ".join(
        f"{key}={value}" for key, value in context.items() if value is not None
    )
    LOGGER.log(level, f"{message} ({details})" if details else message)


def _normalize_root_path(value: Optional[str]) -> str:
    if value is None:
        return ""
    normalized = value.strip().rstrip("/")
    if not normalized:
        return ""
    if not normalized.startswith("/"):
        normalized = f"/{normalized}"
    return normalized


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"error": "..."}``."""

    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


async def _request_body_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    LOGGER.warning("Rejected request body for %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


def create_app(
    config: AppConfig,
    *,
    root_path: str | None = None,
    upload_store: ImageUploadStore | None = None,
) -> FastAPI:
    """Return a configured FastAPI application."""

    app = FastAPI(
        title="Passerelles CMS",
        description="Speaker roster, page copy and photo uploads for the Passerelles site",
        root_path=_normalize_root_path(root_path),
    )
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_body_error_handler)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    speakers = SpeakerRepository(JsonDocument(config.speakers_file, empty=[]))
    content = ContentRepository(JsonDocument(config.content_file, empty=None))
    uploads = upload_store or ImageUploadStore(config.uploads_root)
    app.state.config = config
    app.state.speakers = speakers
    app.state.content = content
    app.state.uploads = uploads

    def _read_speaker_input(payload: Any) -> SpeakerInput:
        if payload is None:
            payload = {}
        try:
            return SpeakerInput.from_payload(payload)
        except SpeakerValidationError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error

    # ------------------------------------------------------------------
    # Speakers
    # ------------------------------------------------------------------
    @app.get("/api/speakers")
    async def list_speakers() -> List[Any]:
        records = await speakers.list()
        _log_event("Listed speakers", count=len(records))
        return records

    @app.get("/api/speakers/{speaker_id}")
    async def get_speaker(speaker_id: str) -> Dict[str, Any]:
        try:
            return await speakers.get(parse_speaker_id(speaker_id))
        except SpeakerNotFoundError as error:
            raise HTTPException(status_code=404, detail="Speaker not found") from error

    @app.post("/api/speakers", status_code=status.HTTP_201_CREATED)
    async def create_speaker(payload: Any = Body(None)) -> Dict[str, Any]:
        data = _read_speaker_input(payload)
        try:
            record = await speakers.create(data)
        except SpeakerPersistError as error:
            raise HTTPException(status_code=500, detail="Failed to create speaker") from error
        _log_event("Created speaker", speaker_id=record["id"])
        return record

    @app.put("/api/speakers/{speaker_id}")
    async def update_speaker(speaker_id: str, payload: Any = Body(None)) -> Dict[str, Any]:
        data = _read_speaker_input(payload)
        parsed_id = parse_speaker_id(speaker_id)
        try:
            record = await speakers.update(parsed_id, data)
        except SpeakerNotFoundError as error:
            raise HTTPException(status_code=404, detail="Speaker not found") from error
        except SpeakerPersistError as error:
            raise HTTPException(status_code=500, detail="Failed to update speaker") from error
        _log_event("Updated speaker", speaker_id=parsed_id)
        return record

    @app.delete("/api/speakers/{speaker_id}")
    async def delete_speaker(speaker_id: str) -> MessageResponse:
        parsed_id = parse_speaker_id(speaker_id)
        try:
            await speakers.delete(parsed_id)
        except SpeakerNotFoundError as error:
            raise HTTPException(status_code=404, detail="Speaker not found") from error
        except SpeakerPersistError as error:
            raise HTTPException(status_code=500, detail="Failed to delete speaker") from error
        _log_event("Deleted speaker", speaker_id=parsed_id)
        return MessageResponse(message="Speaker deleted successfully")

    # ------------------------------------------------------------------
    # Page content
    # ------------------------------------------------------------------
    @app.get("/api/content")
    async def get_content() -> Any:
        document = await content.get()
        if document is None:
            raise HTTPException(status_code=500, detail="Failed to read content")
        return document

    async def _replace_content(payload: Any) -> ContentSavedResponse:
        if not await content.replace(payload):
            raise HTTPException(status_code=500, detail="Failed to update content")
        _log_event("Replaced content")
        return ContentSavedResponse(message="Content updated successfully", content=payload)

    @app.put("/api/content")
    async def update_content(payload: Any = Body(...)) -> ContentSavedResponse:
        return await _replace_content(payload)

    @app.post("/api/save-content")
    async def save_content(payload: Any = Body(...)) -> ContentSavedResponse:
        return await _replace_content(payload)

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------
    @app.post("/api/upload")
    async def upload_image(image: Optional[UploadFile] = File(None)) -> UploadResponse:
        if image is None or not image.filename:
            raise HTTPException(status_code=400, detail="No file uploaded")

        _log_event("Uploading image", filename=image.filename, content_type=image.content_type)
        try:
            stored = await uploads.save(image)
        except UnsupportedFileTypeError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        except UploadTooLargeError as error:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="File too large",
            ) from error
        except OSError as error:
            LOGGER.exception("Failed to store upload %s", image.filename)
            raise HTTPException(status_code=500, detail="Failed to store upload") from error
        finally:
            await image.close()

        return UploadResponse(url=stored.url, filename=stored.filename)

    # ------------------------------------------------------------------
    # Static site
    # ------------------------------------------------------------------
    @app.get("/admin")
    async def admin_panel() -> FileResponse:
        page = config.public_root / _ADMIN_PAGE
        if not page.is_file():
            raise HTTPException(status_code=404, detail="Admin panel not found")
        return FileResponse(page)

    app.mount(
        UPLOAD_URL_PREFIX,
        StaticFiles(directory=uploads.root, check_dir=False),
        name="uploads",
    )
    if config.public_root.is_dir():
        app.mount(
            "/",
            StaticFiles(directory=config.public_root, html=True),
            name="public",
        )
    else:
        LOGGER.warning("Public site directory %s is missing; not serving it", config.public_root)

    return app


__all__ = ["create_app"]
