"""Dependency wiring helpers."""

from fastapi import FastAPI

from .archives.archive_api import build_archive_router, build_download_router
from .archives.archive_service import ArchiveService
from .archives.blob_store import BlobStore
from .config import AppConfig
from .repositories.archive_repository import ArchiveRepository


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers and attach services."""
    archive_repo = ArchiveRepository(config.session_factory)
    blob_store = BlobStore(config.storage_root)
    blob_store.ensure_structure()
    archive_service = ArchiveService(
        store=blob_store,
        repo=archive_repo,
        policy=config.expiration_policy,
        max_upload_bytes=config.max_upload_bytes,
    )

    app.state.config = config
    app.state.archive_repo = archive_repo
    app.state.blob_store = blob_store
    app.state.archive_service = archive_service

    app.include_router(
        build_archive_router(archive_service, public_base_url=config.public_base_url)
    )
    # catch-all "/{name}" goes last
    app.include_router(build_download_router(archive_service))
