"""Reclamation of expired archives."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from ..exceptions import AppError
from ..repositories.archive_repository import ArchiveRepository
from .archive_models import ArchiveRecord
from .blob_store import BlobStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReclamationReport:
    scanned: int = 0
    reclaimed: int = 0
    blobs_missing: int = 0
    failures: int = 0
    aborted: bool = False


def reclaim_expired_archives(
    repo: ArchiveRepository,
    store: BlobStore,
    reference_time: datetime | None = None,
    *,
    limit: int | None = None,
) -> ReclamationReport:
    """Delete blob then record for every archive expired at ``reference_time``.

    Expired records are fetched in pages of ``limit`` rows, each page starting
    after the last record of the previous one, so records kept by earlier
    failures never hide the ones behind them. A failing registry query
    propagates; failures on individual archives are logged and counted
    without stopping the pass. When the blob cannot be removed the record is
    kept so the next pass retries it.
    """
    now = reference_time or datetime.now(timezone.utc)
    report = ReclamationReport()
    cursor: ArchiveRecord | None = None
    while True:
        page = repo.list_expired(now, limit=limit, after=cursor)
        if not page:
            break
        report.scanned += len(page)
        for record in page:
            _reclaim_one(repo, store, record, report)
        if limit is None or len(page) < limit:
            break
        cursor = page[-1]
    return report


def _reclaim_one(
    repo: ArchiveRepository, store: BlobStore, record: ArchiveRecord, report: ReclamationReport
) -> None:
    try:
        if not store.delete(record.name):
            report.blobs_missing += 1
            logger.info(
                "archive.reclaim.blob_missing",
                extra={"archive_id": record.id, "blob_name": record.name},
            )
        repo.delete_by_id(record.id)
    except AppError:
        report.failures += 1
        logger.exception(
            "archive.reclaim.failed",
            extra={"archive_id": record.id, "blob_name": record.name},
        )
        return
    report.reclaimed += 1
    logger.info(
        "archive.reclaim.removed",
        extra={"archive_id": record.id, "blob_name": record.name},
    )
