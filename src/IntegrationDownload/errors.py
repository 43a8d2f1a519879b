"""Exception hierarchy shared across integration resolution and materialization.

The pipeline spans environment parsing, two remote lookups, path planning, and
per-file downloads.  This module groups the failure modes into a small
hierarchy so the entry point can decide which categories terminate the run
(configuration, transport, and deserialization failures) and which are merely
recorded against a single manifest entry (unsafe paths, directory creation,
and download failures).
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "IntegrationDownloadError",
    "ConfigurationError",
    "TransportError",
    "DeserializationError",
    "EntryError",
    "UnsafePathError",
    "DirectoryCreationError",
    "DownloadError",
    "AuditWriteError",
]


class IntegrationDownloadError(RuntimeError):
    """Base exception for integration resolution or materialization failures."""


class ConfigurationError(IntegrationDownloadError):
    """Raised when required environment inputs are missing or invalid."""


class TransportError(IntegrationDownloadError):
    """Raised when an HTTP request to a remote service cannot complete."""

    def __init__(self, message: str, *, service: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.service = service
        self.url = url


class DeserializationError(IntegrationDownloadError):
    """Raised when a response body cannot be parsed into the expected structure."""

    def __init__(self, message: str, *, service: str, body: bytes = b"") -> None:
        super().__init__(message)
        self.service = service
        self.body = body


class AuditWriteError(IntegrationDownloadError):
    """Raised when the path-mapping CSV cannot be written."""


class EntryError(IntegrationDownloadError):
    """Failure scoped to a single manifest entry; never aborts the batch."""

    def __init__(self, message: str, *, file_name: str = "") -> None:
        super().__init__(message)
        self.file_name = file_name


class UnsafePathError(EntryError):
    """Raised when a file name or path segment would escape the planned layout."""


class DirectoryCreationError(EntryError):
    """Raised when the target directory of an entry cannot be created."""

    def __init__(self, message: str, *, file_name: str = "", directory: str = "") -> None:
        super().__init__(message, file_name=file_name)
        self.directory = directory


class DownloadError(EntryError):
    """Raised when fetching an entry's URL to disk fails."""

    def __init__(
        self,
        message: str,
        *,
        file_name: str = "",
        status_code: Optional[int] = None,
        stderr: str = "",
        cancelled: bool = False,
    ) -> None:
        super().__init__(message, file_name=file_name)
        self.status_code = status_code
        self.stderr = stderr
        self.cancelled = cancelled
