# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.materialize",
#   "purpose": "Create target directories and download every planned entry with per-entry failure isolation",
#   "sections": [
#     {"id": "entryoutcome", "name": "EntryOutcome", "anchor": "class-entryoutcome", "kind": "class"},
#     {"id": "materializationreport", "name": "MaterializationReport", "anchor": "class-materializationreport", "kind": "class"},
#     {"id": "ensure-directory", "name": "ensure_directory", "anchor": "function-ensure-directory", "kind": "function"},
#     {"id": "materializer", "name": "Materializer", "anchor": "class-materializer", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Materializer.

Walks the planned entries in manifest order.  For each one it creates the
target directory (existing directories are fine), then asks the configured
:class:`~IntegrationDownload.fetchers.FileFetcher` to write the file.  A
directory or download failure is logged with the entry's identity and the
loop moves on; no outcome influences another entry and nothing is rolled back.

With ``concurrent_downloads > 1`` entries run on a bounded thread pool.  The
report still lists outcomes in manifest order.
"""

from __future__ import annotations

import logging
from concurrent import futures
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional, Sequence

from .cancellation import CancellationToken
from .errors import DirectoryCreationError, DownloadError, EntryError
from .fetchers import FileFetcher
from .planning import PlannedDownload, RejectedEntry

OutcomeStatus = Literal["downloaded", "failed", "skipped"]


@dataclass(frozen=True)
class EntryOutcome:
    """Result of materializing one manifest entry."""

    index: int
    file_name: str
    status: OutcomeStatus
    destination: Optional[str] = None
    error: Optional[EntryError] = None

    @property
    def ok(self) -> bool:
        return self.status == "downloaded"


@dataclass
class MaterializationReport:
    """Per-entry outcomes of a run, ordered by manifest position."""

    outcomes: List[EntryOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "downloaded")

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "failed")

    @property
    def skipped(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "skipped")

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.skipped == 0

    def add_rejected(self, rejected: Sequence[RejectedEntry]) -> None:
        """Record planner rejections as failures and restore manifest order."""

        for item in rejected:
            self.outcomes.append(
                EntryOutcome(
                    index=item.index,
                    file_name=item.entry.file_name,
                    status="failed",
                    error=item.error,
                )
            )
        self.outcomes.sort(key=lambda outcome: outcome.index)

    def summary(self) -> dict:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
        }


def ensure_directory(plan: PlannedDownload) -> Path:
    """Create ``plan.target_dir`` and any missing parents.

    Raises:
        DirectoryCreationError: If the hierarchy cannot be created, for example
            because a path component already exists as a regular file.
    """

    target = Path(plan.target_dir)
    try:
        target.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreationError(
            f"Failed to create directory structure {plan.target_dir}: {exc}",
            file_name=plan.file_name,
            directory=plan.target_dir,
        ) from exc
    return target


class Materializer:
    """Download planned entries onto local disk."""

    def __init__(
        self,
        fetcher: FileFetcher,
        logger: logging.Logger | logging.LoggerAdapter,
        *,
        concurrent_downloads: int = 1,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> None:
        self.fetcher = fetcher
        self.logger = logger
        self.concurrent_downloads = max(1, int(concurrent_downloads))
        self.cancellation_token = cancellation_token

    def _cancelled(self) -> bool:
        return self.cancellation_token is not None and self.cancellation_token.is_cancelled()

    def materialize_one(self, plan: PlannedDownload) -> EntryOutcome:
        """Create the directory and fetch a single entry; never raises ``EntryError``."""

        if self._cancelled():
            self.logger.warning(
                "skipping download after cancellation",
                extra={"stage": "download", "file": plan.file_name, "node_id": plan.entry.node_id},
            )
            return EntryOutcome(index=plan.index, file_name=plan.file_name, status="skipped")

        try:
            ensure_directory(plan)
        except DirectoryCreationError as exc:
            self.logger.error(
                "Failed to create directory structure",
                extra={
                    "stage": "directory",
                    "file": plan.file_name,
                    "node_id": plan.entry.node_id,
                    "directory": plan.target_dir,
                    "error": str(exc.__cause__ or exc),
                },
            )
            return EntryOutcome(
                index=plan.index, file_name=plan.file_name, status="failed", error=exc
            )

        self.logger.info("Downloading to: %s", plan.destination, extra={"stage": "download"})
        try:
            self.fetcher.fetch(plan.entry.url, Path(plan.destination))
        except DownloadError as exc:
            self.logger.error(
                "Download failed",
                extra={
                    "stage": "download",
                    "file": plan.file_name,
                    "node_id": plan.entry.node_id,
                    "status_code": exc.status_code,
                    "error": exc.stderr or str(exc),
                },
            )
            status: OutcomeStatus = "skipped" if exc.cancelled else "failed"
            return EntryOutcome(
                index=plan.index,
                file_name=plan.file_name,
                status=status,
                destination=plan.destination,
                error=exc,
            )

        self.logger.info(
            "Successfully downloaded: %s",
            plan.destination,
            extra={"stage": "download", "file": plan.file_name, "destination": plan.destination},
        )
        return EntryOutcome(
            index=plan.index,
            file_name=plan.file_name,
            status="downloaded",
            destination=plan.destination,
        )

    def materialize(self, plans: Sequence[PlannedDownload]) -> MaterializationReport:
        """Materialize every plan and return the ordered report."""

        if self.concurrent_downloads == 1 or len(plans) <= 1:
            outcomes = [self.materialize_one(plan) for plan in plans]
        else:
            with futures.ThreadPoolExecutor(
                max_workers=self.concurrent_downloads,
                thread_name_prefix="integration-download",
            ) as executor:
                outcomes = list(executor.map(self.materialize_one, plans))
        return MaterializationReport(outcomes=outcomes)


__all__ = [
    "EntryOutcome",
    "MaterializationReport",
    "Materializer",
    "OutcomeStatus",
    "ensure_directory",
]
