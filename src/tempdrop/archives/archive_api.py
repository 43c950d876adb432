"""HTTP routes for uploading, deleting and downloading archives."""

from __future__ import annotations

import logging
import mimetypes

from fastapi import APIRouter, Request, status
from fastapi.responses import FileResponse, JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from ..exceptions import (
    ArchiveNotFoundError,
    BlobNotFoundError,
    InputError,
    RepositoryError,
    StorageError,
    UnsafeNameError,
    UploadTooLargeError,
)
from .archive_schemas import DeleteResponse, ErrorResponse, UploadResponse
from .archive_service import NOT_FOUND_MESSAGE, ArchiveService

logger = logging.getLogger(__name__)

FORM_URLENCODED = "application/x-www-form-urlencoded"
TOKEN_HEADER = "X-Token"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _base_url(request: Request, configured: str | None) -> str:
    if configured:
        return configured
    origin = request.headers.get("origin")
    if origin:
        return origin
    return f"https://{request.headers.get('host', request.url.netloc)}"


def build_archive_router(
    service: ArchiveService, *, public_base_url: str | None = None
) -> APIRouter:
    router = APIRouter(prefix="/api", tags=["archives"])

    @router.post("/upload")
    async def upload_or_delete(request: Request) -> JSONResponse:
        """Multipart bodies upload a file; form-encoded bodies delete one."""
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(FORM_URLENCODED):
            return await _delete(request)
        return await _upload(request)

    async def _upload(request: Request) -> JSONResponse:
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            return _error(status.HTTP_400_BAD_REQUEST, "No file provided")
        if (
            service.max_upload_bytes is not None
            and upload.size is not None
            and upload.size > service.max_upload_bytes
        ):
            return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "File too large")

        expires = form.get("expires")
        try:
            receipt = await run_in_threadpool(
                service.upload,
                await upload.read(),
                base_url=_base_url(request, public_base_url),
                original_filename=upload.filename,
                long_name=form.get("secret") == "true",
                expires=expires if isinstance(expires, str) else None,
            )
        except UploadTooLargeError:
            return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "File too large")
        except InputError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except StorageError:
            logger.exception("archive.upload.write_failed")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save file")
        except RepositoryError:
            logger.exception("archive.upload.database_failed")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error")
        finally:
            await upload.close()

        body = UploadResponse.from_receipt(receipt)
        return JSONResponse(
            content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
            headers={TOKEN_HEADER: receipt.delete_token},
        )

    async def _delete(request: Request) -> JSONResponse:
        form = await request.form()
        token = form.get("delete")
        try:
            await run_in_threadpool(service.delete, token if isinstance(token, str) else None)
        except ArchiveNotFoundError:
            return _error(status.HTTP_400_BAD_REQUEST, NOT_FOUND_MESSAGE)
        except InputError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except (StorageError, RepositoryError):
            logger.exception("archive.delete.failed")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete file")
        return JSONResponse(content=DeleteResponse().model_dump())

    return router


def build_download_router(service: ArchiveService) -> APIRouter:
    router = APIRouter(tags=["downloads"])

    @router.get("/{name}")
    def download(name: str):
        try:
            path = service.open_blob(name)
        except (UnsafeNameError, BlobNotFoundError):
            return _error(status.HTTP_404_NOT_FOUND, "not found")
        media_type, _ = mimetypes.guess_type(path.name)
        return FileResponse(path=path, media_type=media_type or "application/octet-stream")

    return router
