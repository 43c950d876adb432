"""Smoke-check imports for the public modules."""

from __future__ import annotations

from importlib import import_module
from types import ModuleType

import pytest

MODULES_AND_SYMBOLS = [
    ("tempdrop.main", "create_app"),
    ("tempdrop.config", "load_config"),
    ("tempdrop.dependencies", "include_routers"),
    ("tempdrop.lifecycle", "run_periodic_reclamation"),
    ("tempdrop.lifecycle", "reclamation_once"),
    ("tempdrop.archives.archive_api", "build_archive_router"),
    ("tempdrop.archives.archive_api", "build_download_router"),
    ("tempdrop.archives.archive_service", "ArchiveService"),
    ("tempdrop.archives.archive_cleanup", "reclaim_expired_archives"),
    ("tempdrop.archives.blob_store", "BlobStore"),
    ("tempdrop.archives.expiration", "compute_expiration"),
    ("tempdrop.repositories", "ArchiveRepository"),
    ("tempdrop.db", "ArchiveModel"),
]


@pytest.mark.parametrize(("module_name", "symbol"), MODULES_AND_SYMBOLS)
def test_importable_symbols(module_name: str, symbol: str) -> None:
    module: ModuleType = import_module(module_name)
    assert hasattr(module, symbol), f"{module_name} missing {symbol}"
