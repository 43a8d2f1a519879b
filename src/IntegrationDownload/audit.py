"""Path-mapping audit CSV.

One row per planned entry, written in manifest order before any download
starts, so the file reflects what was planned rather than what succeeded.
The canonical header is ``filename,source_path,target_path``.  The older
two-column layout (``source_path,target_path``) is still accepted for
consumers that have not migrated, but it is deprecated.
"""

from __future__ import annotations

import contextlib
import csv
import logging
import os
import tempfile
import warnings
from pathlib import Path
from typing import Iterable, List, Literal, Optional, Sequence

from .errors import AuditWriteError
from .models import PathMapping

AuditFormat = Literal["three_column", "two_column"]

AUDIT_HEADER: Sequence[str] = ("filename", "source_path", "target_path")
LEGACY_AUDIT_HEADER: Sequence[str] = ("source_path", "target_path")


def _rows(mappings: Iterable[PathMapping], audit_format: AuditFormat) -> List[List[str]]:
    if audit_format == "two_column":
        return [[m.source_path, m.target_path] for m in mappings]
    return [m.as_row() for m in mappings]


def write_path_mappings(
    path: Path,
    mappings: Sequence[PathMapping],
    *,
    audit_format: AuditFormat = "three_column",
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> Path:
    """Atomically write the audit CSV to ``path``.

    Raises:
        AuditWriteError: If the directory or file cannot be written.
    """

    if audit_format == "two_column":
        warnings.warn(
            "the two-column audit CSV layout is deprecated; use 'three_column'",
            DeprecationWarning,
            stacklevel=2,
        )
        header = LEGACY_AUDIT_HEADER
    else:
        header = AUDIT_HEADER

    resolved = path.expanduser()
    temp_name: Optional[str] = None
    try:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", newline="", dir=str(resolved.parent), delete=False
        ) as handle:
            temp_name = handle.name
            writer = csv.writer(handle, lineterminator="\n")
            writer.writerow(header)
            writer.writerows(_rows(mappings, audit_format))
            handle.flush()
            with contextlib.suppress(OSError):
                os.fsync(handle.fileno())
        Path(temp_name).replace(resolved)
    except OSError as exc:
        if temp_name is not None:
            with contextlib.suppress(OSError):
                Path(temp_name).unlink()
        raise AuditWriteError(f"Failed to write audit CSV {resolved}: {exc}") from exc

    if logger is not None:
        logger.info(
            "audit CSV written to %s",
            resolved,
            extra={"stage": "audit", "audit_path": str(resolved), "rows": len(mappings)},
        )
    return resolved


def read_path_mappings(path: Path) -> List[PathMapping]:
    """Load an audit CSV in either layout; two-column rows get an empty filename."""

    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        return [
            PathMapping(
                filename=row.get("filename") or "",
                source_path=row["source_path"],
                target_path=row["target_path"],
            )
            for row in reader
        ]


__all__ = [
    "AUDIT_HEADER",
    "LEGACY_AUDIT_HEADER",
    "AuditFormat",
    "read_path_mappings",
    "write_path_mappings",
]
