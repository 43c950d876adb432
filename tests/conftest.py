from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("TEMPDROP_DISABLE_RECLAIMER", "1")

from tempdrop.archives.blob_store import BlobStore  # noqa: E402
from tempdrop.config import create_session_factory  # noqa: E402
from tempdrop.db.db_init import init_db  # noqa: E402
from tempdrop.logging import HANDLER_NAME  # noqa: E402
from tempdrop.repositories.archive_repository import ArchiveRepository  # noqa: E402


@pytest.fixture(autouse=True)
def _detach_json_handler():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)


@pytest.fixture()
def session_factory(tmp_path: Path) -> sessionmaker[Session]:
    engine, factory = create_session_factory(f"sqlite:///{(tmp_path / 'tempdrop-test.db').as_posix()}")
    init_db(engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def archive_repo(session_factory) -> ArchiveRepository:
    return ArchiveRepository(session_factory)


@pytest.fixture()
def blob_store(tmp_path: Path) -> BlobStore:
    store = BlobStore(tmp_path / "uploads")
    store.ensure_structure()
    return store
