"""Cron entry point for reclaiming expired archives."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime, timezone

from tempdrop.archives.archive_cleanup import reclaim_expired_archives
from tempdrop.archives.blob_store import BlobStore
from tempdrop.config import load_config
from tempdrop.logging import configure_logging
from tempdrop.repositories.archive_repository import ArchiveRepository


@dataclass(slots=True)
class CleanupSummary:
    expired: int
    reclaimed: int
    failures: int
    dry_run: bool


def perform_cleanup(*, dry_run: bool, reference_time: datetime | None = None) -> CleanupSummary:
    """Execute one reclamation pass and return summary counters."""
    config = load_config()
    repo = ArchiveRepository(config.session_factory)
    store = BlobStore(config.storage_root)

    now = reference_time or datetime.now(timezone.utc)

    if dry_run:
        expired = repo.count_expired(now)
        return CleanupSummary(expired=expired, reclaimed=0, failures=0, dry_run=True)

    report = reclaim_expired_archives(repo, store, now, limit=config.reclaimer.batch_size)
    return CleanupSummary(
        expired=report.scanned,
        reclaimed=report.reclaimed,
        failures=report.failures,
        dry_run=False,
    )


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reclaim expired archives.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    configure_logging()
    try:
        summary = perform_cleanup(dry_run=args.dry_run)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, expired={summary.expired}", file=sys.stdout)
    else:
        print(
            f"cleanup done, expired={summary.expired}, reclaimed={summary.reclaimed}, "
            f"failures={summary.failures}",
            file=sys.stdout,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
