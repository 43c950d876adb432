"""Persistence repositories."""

from .archive_repository import ArchiveRepository

__all__ = ["ArchiveRepository"]
