"""Database models and schema helpers."""

from .db_init import init_db
from .db_models import ArchiveModel, Base

__all__ = ["ArchiveModel", "Base", "init_db"]
