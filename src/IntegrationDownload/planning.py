# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.planning",
#   "purpose": "Derive local target directories and audit records for manifest entries",
#   "sections": [
#     {"id": "planneddownload", "name": "PlannedDownload", "anchor": "class-planneddownload", "kind": "class"},
#     {"id": "plan-entry", "name": "plan_entry", "anchor": "function-plan-entry", "kind": "function"},
#     {"id": "plan-manifest", "name": "plan_manifest", "anchor": "function-plan-manifest", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Path planning for manifest entries.

Planning is pure string manipulation: no directory is created and nothing is
read from disk.  Paths are built with ``/`` regardless of platform because the
output root is a POSIX mount inside the job container and the audit CSV is
consumed by tooling that expects forward slashes.

For an output root ``R`` and an entry with file name ``F`` and folder path
``P``:

* ``source_path`` is ``R/F``
* ``target_dir`` is ``R/P0/P1/...`` or ``R`` when ``P`` is empty
* the audit ``target_path`` is ``P0/P1/...`` or ``.`` when ``P`` is empty
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from .errors import UnsafePathError
from .models import Manifest, ManifestEntry, PathMapping

ROOT_PLACEHOLDER = "."
_SEPARATORS = ("/", "\\")
_FORBIDDEN_COMPONENTS = {"", ".", ".."}


@dataclass(frozen=True)
class PlannedDownload:
    """A manifest entry paired with its computed local paths."""

    index: int
    entry: ManifestEntry
    target_dir: str
    destination: str
    mapping: PathMapping

    @property
    def file_name(self) -> str:
        return self.entry.file_name


@dataclass(frozen=True)
class RejectedEntry:
    index: int
    entry: ManifestEntry
    error: UnsafePathError


@dataclass
class PlanResult:
    """Accepted plans in manifest order plus entries the planner refused."""

    planned: List[PlannedDownload] = field(default_factory=list)
    rejected: List[RejectedEntry] = field(default_factory=list)


def normalize_root(output_root: str) -> str:
    """Strip trailing separators from ``output_root`` (``/`` stays ``/``)."""

    stripped = output_root.rstrip("/")
    return stripped or ("/" if output_root.startswith("/") else stripped)


def _join(root: str, parts: Sequence[str]) -> str:
    if not parts:
        return root
    tail = "/".join(parts)
    if root == "/":
        return f"/{tail}"
    return f"{root}/{tail}"


def _check_component(value: str, *, kind: str, file_name: str) -> None:
    if value in _FORBIDDEN_COMPONENTS:
        raise UnsafePathError(f"{kind} {value!r} is not a valid path component", file_name=file_name)
    if any(sep in value for sep in _SEPARATORS):
        raise UnsafePathError(f"{kind} {value!r} contains a path separator", file_name=file_name)


def validate_entry(entry: ManifestEntry) -> None:
    """Reject file names and folder segments that would not map to one directory level."""

    _check_component(entry.file_name, kind="file name", file_name=entry.file_name)
    for segment in entry.path:
        _check_component(segment, kind="path segment", file_name=entry.file_name)


def target_path_for_record(path: Sequence[str]) -> str:
    return "/".join(path) if path else ROOT_PLACEHOLDER


def plan_entry(output_root: str, entry: ManifestEntry, *, index: int = 0) -> PlannedDownload:
    """Compute the target directory, destination, and audit record for one entry.

    Raises:
        UnsafePathError: If the file name or a folder segment is empty, ``.``,
            ``..``, or contains a path separator.
    """

    validate_entry(entry)
    root = normalize_root(output_root)
    target_dir = _join(root, list(entry.path))
    mapping = PathMapping(
        filename=entry.file_name,
        source_path=_join(root, [entry.file_name]),
        target_path=target_path_for_record(entry.path),
    )
    return PlannedDownload(
        index=index,
        entry=entry,
        target_dir=target_dir,
        destination=_join(target_dir, [entry.file_name]),
        mapping=mapping,
    )


def plan_manifest(output_root: str, manifest: Manifest | Iterable[ManifestEntry]) -> PlanResult:
    """Plan every entry, keeping manifest order and setting unsafe entries aside."""

    entries = manifest.data if isinstance(manifest, Manifest) else list(manifest)
    result = PlanResult()
    for index, entry in enumerate(entries):
        try:
            result.planned.append(plan_entry(output_root, entry, index=index))
        except UnsafePathError as exc:
            result.rejected.append(RejectedEntry(index=index, entry=entry, error=exc))
    return result


__all__ = [
    "ROOT_PLACEHOLDER",
    "PlanResult",
    "PlannedDownload",
    "RejectedEntry",
    "normalize_root",
    "plan_entry",
    "plan_manifest",
    "target_path_for_record",
    "validate_entry",
]
