"""Cron entry point for deleting blobs no database row references.

Compensating deletes are best-effort, so a failed delete after a rolled back
transaction or a replaced logo leaves a blob behind. This sweep reconciles
storage with the database. Blobs younger than ``--min-age-seconds`` are left
alone: they may belong to an upload whose transaction has not committed yet.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog

from src.vintage.db.querier import PooledConnection, Querier
from src.vintage.infrastructure.blob_storage import LocalBlobStorage
from src.vintage.main import bootstrap

logger = structlog.get_logger(__name__)

DEFAULT_MIN_AGE_SECONDS = 3600.0

REFERENCED_MEDIA_SQL = """
SELECT logo_url AS url FROM brands WHERE logo_url IS NOT NULL
UNION SELECT logo_url FROM shops WHERE logo_url IS NOT NULL
UNION SELECT avatar_url FROM accounts WHERE avatar_url IS NOT NULL
UNION SELECT thumbnail_url FROM products WHERE thumbnail_url IS NOT NULL
UNION SELECT url FROM product_images
"""


@dataclass(slots=True)
class SweepSummary:
    scanned: int
    orphaned: int
    removed: int
    failed: int
    dry_run: bool


def find_orphans(querier: Querier, storage: LocalBlobStorage, *, older_than: datetime) -> list[str]:
    """Return unreferenced blobs last modified before ``older_than``."""

    cutoff = older_than.timestamp()
    referenced = {row["url"] for row in querier.query_many(REFERENCED_MEDIA_SQL)}
    return [
        reference
        for reference in storage.iter_references()
        if reference not in referenced and storage.path_for(reference).stat().st_mtime < cutoff
    ]


def perform_sweep(
    *,
    dry_run: bool,
    min_age_seconds: float = DEFAULT_MIN_AGE_SECONDS,
    reference_time: datetime | None = None,
) -> SweepSummary:
    container = bootstrap()
    storage = container.storage
    if not isinstance(storage, LocalBlobStorage):
        raise RuntimeError("orphan sweep supports local blob storage only")
    if min_age_seconds < container.config.transaction_timeout_seconds:
        raise ValueError("min age must not be shorter than the transaction timeout")

    now = reference_time or datetime.now(timezone.utc)
    querier = PooledConnection(container.engine, timeout_seconds=None)
    scanned = sum(1 for _ in storage.iter_references())
    orphans = find_orphans(querier, storage, older_than=now - timedelta(seconds=min_age_seconds))
    if dry_run:
        return SweepSummary(scanned=scanned, orphaned=len(orphans), removed=0, failed=0, dry_run=True)

    removed = failed = 0
    for reference in orphans:
        try:
            storage.delete_by_reference(reference)
        except Exception as exc:
            failed += 1
            logger.error("sweep.delete.failed", reference=reference, error=str(exc))
        else:
            removed += 1
    return SweepSummary(scanned=scanned, orphaned=len(orphans), removed=removed, failed=failed, dry_run=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete stored blobs no row references.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    parser.add_argument(
        "--min-age-seconds",
        type=float,
        default=DEFAULT_MIN_AGE_SECONDS,
        help="Skip blobs modified more recently than this; at least the transaction timeout.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_sweep(dry_run=args.dry_run, min_age_seconds=args.min_age_seconds)
    except Exception as exc:
        print(f"sweep failed: {exc}", file=sys.stderr)
        return 2

    print(
        f"sweep {'dry-run' if summary.dry_run else 'done'}, scanned={summary.scanned}, "
        f"orphaned={summary.orphaned}, removed={summary.removed}, failed={summary.failed}",
        file=sys.stdout,
    )
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
