"""Archive lifecycle engine: upload, manual deletion and download lookup."""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urljoin

from ..exceptions import (
    ArchiveNotFoundError,
    EmptyUploadError,
    MissingTokenError,
    NotFoundError,
    RepositoryError,
    StorageError,
    UploadTooLargeError,
)
from ..repositories.archive_repository import ArchiveRepository
from .archive_models import ArchiveRecord, UploadReceipt
from .blob_store import BlobStore
from .expiration import DEFAULT_POLICY, ExpirationPolicy, compute_expiration

_EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9_-]{1,32}$")
NOT_FOUND_MESSAGE = "File not found or already deleted"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_storage_name(long_name: bool = False) -> str:
    """Short 8-char id by default; uuid plus 16 hex chars for hard-to-guess links."""
    if long_name:
        return f"{uuid.uuid4()}-{secrets.token_hex(8)}"
    return uuid.uuid4().hex[:8]


def derive_extension(filename: str | None) -> str:
    """Return the original file's last suffix when it is a plain extension."""
    if not filename:
        return ""
    # browsers may send Windows paths in the filename field
    suffix = Path(filename.replace("\\", "/")).suffix
    if _EXTENSION_PATTERN.match(suffix):
        return suffix
    return ""


def generate_delete_token() -> str:
    return secrets.token_hex(32)


def build_file_url(base_url: str, name: str) -> str:
    base = base_url.rstrip("/") + "/"
    return urljoin(base, name)


@dataclass(slots=True)
class ArchiveService:
    """Keeps blobs and archive records consistent across upload and deletion.

    Blobs are written before their record is inserted and removed before
    their record is deleted, so the only inconsistency a crash can leave
    behind is a record whose blob is already gone. Reclamation still finds
    such records because ``expires_at`` never changes.
    """

    store: BlobStore
    repo: ArchiveRepository
    policy: ExpirationPolicy = DEFAULT_POLICY
    max_upload_bytes: int | None = None
    clock: Callable[[], datetime] = _utcnow
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def upload(
        self,
        data: bytes | None,
        *,
        base_url: str,
        original_filename: str | None = None,
        long_name: bool = False,
        expires: str | None = None,
        now: datetime | None = None,
    ) -> UploadReceipt:
        """Store ``data`` and register it; returns the download URL and delete token."""
        if not data:
            raise EmptyUploadError("No file provided")
        if self.max_upload_bytes is not None and len(data) > self.max_upload_bytes:
            raise UploadTooLargeError(
                f"File exceeds the maximum upload size of {self.max_upload_bytes} bytes"
            )

        uploaded_at = now or self.clock()
        name = generate_storage_name(long_name) + derive_extension(original_filename)
        self.store.put(name, data)

        expires_at, advisory = compute_expiration(uploaded_at, expires, policy=self.policy)
        record = ArchiveRecord(
            id=uuid.uuid4().hex,
            name=name,
            uploaded_at=uploaded_at,
            expires_at=expires_at,
            delete_token=generate_delete_token(),
        )
        try:
            self.repo.insert(record)
        except RepositoryError:
            self._discard_orphan(name)
            raise

        self.log.info(
            "archive.upload.stored",
            extra={
                "archive_id": record.id,
                "blob_name": name,
                "size_bytes": len(data),
                "expires_at": expires_at.isoformat(),
                "clamped": advisory is not None,
            },
        )
        return UploadReceipt(
            record=record,
            file_url=build_file_url(base_url, name),
            advisory=advisory,
        )

    def delete(self, token: str | None) -> ArchiveRecord:
        """Remove the archive owned by ``token``: blob first, then record."""
        if not token:
            raise MissingTokenError("Missing delete token")
        try:
            record = self.repo.find_by_token(token)
        except NotFoundError:
            raise ArchiveNotFoundError(NOT_FOUND_MESSAGE) from None

        if not self.store.delete(record.name):
            self.log.info(
                "archive.delete.blob_missing",
                extra={"archive_id": record.id, "blob_name": record.name},
            )
        try:
            self.repo.delete_by_token(token)
        except NotFoundError:
            # reclaimed concurrently; same end state
            self.log.info("archive.delete.record_gone", extra={"archive_id": record.id})

        self.log.info(
            "archive.delete.completed",
            extra={"archive_id": record.id, "blob_name": record.name},
        )
        return record

    def open_blob(self, name: str) -> Path:
        """Resolve a stored blob for download."""
        return self.store.open(name)

    def _discard_orphan(self, name: str) -> None:
        try:
            self.store.delete(name)
        except StorageError:
            self.log.error("archive.upload.orphan_left", extra={"blob_name": name})
        else:
            self.log.warning("archive.upload.rolled_back", extra={"blob_name": name})
