"""Domain level exceptions and helpers for storage and repository layers."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import exc as sa_exc

__all__ = [
    "AppError",
    "InputError",
    "EmptyUploadError",
    "UploadTooLargeError",
    "MissingTokenError",
    "ArchiveNotFoundError",
    "UnsafeNameError",
    "StorageError",
    "BlobWriteError",
    "BlobDeleteError",
    "BlobNotFoundError",
    "RepositoryError",
    "NotFoundError",
    "IntegrityConstraintViolation",
    "DatabaseOperationError",
    "handle_sqlalchemy_errors",
]


class AppError(Exception):
    """Base class for application specific errors."""


class InputError(AppError):
    """Raised for caller mistakes; never retried."""


class EmptyUploadError(InputError):
    """Raised when an upload carries no file or zero bytes."""


class UploadTooLargeError(InputError):
    """Raised when an upload exceeds the configured size cap."""


class MissingTokenError(InputError):
    """Raised when a deletion request has no token."""


class ArchiveNotFoundError(InputError):
    """Raised when a token matches no archive (never existed or already deleted)."""


class UnsafeNameError(InputError):
    """Raised when a storage name would escape the storage root."""


class StorageError(AppError):
    """Base class for blob storage failures."""


class BlobWriteError(StorageError):
    """Raised when a blob cannot be written."""


class BlobDeleteError(StorageError):
    """Raised when a blob exists but cannot be removed."""


class BlobNotFoundError(StorageError):
    """Raised when a blob requested for reading is absent."""


class RepositoryError(AppError):
    """Base class for persistence layer failures."""


class NotFoundError(RepositoryError):
    """Raised when a record could not be located."""


class IntegrityConstraintViolation(RepositoryError):
    """Raised when a database constraint is violated."""


class DatabaseOperationError(RepositoryError):
    """Raised for unexpected database errors."""


@dataclass(slots=True)
class _EntityContext:
    """Internal helper describing the entity for error messages."""

    entity: str | None = None

    def format(self, message: str) -> str:
        if self.entity:
            return f"{self.entity}: {message}"
        return message


def _translate_sqlalchemy_error(exc: Exception, *, context: _EntityContext) -> RepositoryError:
    cause = type(exc).__name__
    if isinstance(exc, sa_exc.IntegrityError):
        return IntegrityConstraintViolation(context.format(f"integrity constraint violated ({cause})"))
    if isinstance(exc, sa_exc.DBAPIError):
        return DatabaseOperationError(context.format(f"database operation failed ({cause})"))
    return RepositoryError(context.format(f"database error ({cause})"))


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into domain specific ones.

    Only the SQLAlchemy error class is kept. The original exception is not
    chained, so statements and bound parameters (delete tokens among them)
    never reach a logged traceback.
    """

    context = _EntityContext(entity)
    try:
        yield
    except sa_exc.SQLAlchemyError as exc:
        raise _translate_sqlalchemy_error(exc, context=context) from None
