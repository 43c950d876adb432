"""Filesystem storage for uploaded blobs."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import BlobDeleteError, BlobNotFoundError, BlobWriteError, UnsafeNameError

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,254}$")


@dataclass(slots=True)
class BlobStore:
    """Flat namespace of blobs under ``root``; names never leave it."""

    root: Path
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def ensure_structure(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def resolve(self, name: str) -> Path:
        """Return the path for ``name`` or raise :class:`UnsafeNameError`."""
        if not name or not _NAME_PATTERN.match(name) or ".." in name:
            raise UnsafeNameError("invalid storage name")
        root = self.root.resolve()
        path = (root / name).resolve()
        if path.parent != root:
            raise UnsafeNameError("invalid storage name")
        return path

    def put(self, name: str, data: bytes) -> Path:
        """Write ``data`` under ``name``; an existing blob is never replaced."""
        path = self.resolve(name)
        try:
            with path.open("xb") as sink:
                sink.write(data)
        except FileExistsError:
            raise BlobWriteError(f"blob '{name}' already exists") from None
        except OSError as exc:
            path.unlink(missing_ok=True)
            self.log.warning("blob.put.failed", extra={"blob_name": name, "errno": exc.errno})
            raise BlobWriteError(f"failed to write blob '{name}' (errno {exc.errno})") from None
        return path

    def exists(self, name: str) -> bool:
        try:
            return self.resolve(name).is_file()
        except UnsafeNameError:
            return False

    def open(self, name: str) -> Path:
        """Return the on-disk path of an existing blob for streaming."""
        path = self.resolve(name)
        if not path.is_file():
            raise BlobNotFoundError(f"blob '{name}' not found")
        return path

    def delete(self, name: str) -> bool:
        """Remove a blob. Returns ``False`` when it was already absent."""
        path = self.resolve(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            self.log.warning("blob.delete.failed", extra={"blob_name": name, "errno": exc.errno})
            raise BlobDeleteError(f"failed to delete blob '{name}' (errno {exc.errno})") from None
        return True
