"""Lifecycle helpers wiring background reclamation for FastAPI startup."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from .archives.archive_cleanup import ReclamationReport, reclaim_expired_archives
from .archives.blob_store import BlobStore
from .exceptions import RepositoryError
from .repositories.archive_repository import ArchiveRepository


logger = logging.getLogger(__name__)


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


def reclamation_once(
    *,
    repo: ArchiveRepository,
    store: BlobStore,
    now: datetime | None = None,
    batch_size: int | None = None,
) -> ReclamationReport:
    """Run a single reclamation pass; a failing registry query aborts it."""

    current = now or _default_clock()
    try:
        return reclaim_expired_archives(repo, store, current, limit=batch_size)
    except RepositoryError as exc:
        logger.warning("Reclamation pass aborted: %s", exc)
        return ReclamationReport(aborted=True)


async def run_periodic_reclamation(
    *,
    repo: ArchiveRepository,
    store: BlobStore,
    shutdown_event: asyncio.Event,
    interval_seconds: float = 1.0,
    batch_size: int | None = None,
    clock: Callable[[], datetime] | None = None,
) -> None:
    """Execute reclamation passes until ``shutdown_event`` is signalled."""

    interval = max(0.01, float(interval_seconds))
    tick = clock or _default_clock
    try:
        while not shutdown_event.is_set():
            now = tick()
            try:
                report = await asyncio.to_thread(
                    reclamation_once,
                    repo=repo,
                    store=store,
                    now=now,
                    batch_size=batch_size,
                )
            except Exception:  # pragma: no cover
                logger.exception("Reclamation iteration failed")
            else:
                if report.reclaimed or report.failures:
                    logger.info(
                        "Reclaimed %s archives (%s failures, %s blobs already missing)",
                        report.reclaimed,
                        report.failures,
                        report.blobs_missing,
                    )
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
    except asyncio.CancelledError:  # pragma: no cover - shutdown path
        logger.info("Reclamation loop cancelled")
        raise
    logger.info("Reclamation loop stopped")


__all__ = [
    "reclamation_once",
    "run_periodic_reclamation",
]
