# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.fetchers",
#   "purpose": "File fetcher capability: stream a URL to a destination path",
#   "sections": [
#     {"id": "filefetcher", "name": "FileFetcher", "anchor": "class-filefetcher", "kind": "class"},
#     {"id": "httpfilefetcher", "name": "HttpFileFetcher", "anchor": "class-httpfilefetcher", "kind": "class"},
#     {"id": "wgetfilefetcher", "name": "WgetFileFetcher", "anchor": "class-wgetfilefetcher", "kind": "class"},
#     {"id": "build-fetcher", "name": "build_fetcher", "anchor": "function-build-fetcher", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""File fetchers used by the materializer.

A fetcher writes the body behind ``url`` directly to ``destination`` and
raises :class:`~IntegrationDownload.errors.DownloadError` when it cannot.
Fetchers never retry and never remove a partially written file; the next run
overwrites it in place.

:class:`HttpFileFetcher` streams the response with HTTPX and is the default.
:class:`WgetFileFetcher` shells out to ``wget -v -O <destination> <url>`` for
hosts whose job images still rely on it; stdout and stderr are captured
separately and stderr is attached to the error on a non-zero exit.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Protocol

import httpx

from .cancellation import CancellationToken
from .errors import DownloadError
from .net import build_timeout
from .settings import DownloadConfiguration


class FileFetcher(Protocol):
    """Capability to copy one remote URL onto local disk."""

    def fetch(self, url: str, destination: Path) -> None:
        ...


class HttpFileFetcher:
    """Stream presigned URLs to disk with an HTTPX client."""

    def __init__(
        self,
        client: httpx.Client,
        config: DownloadConfiguration,
        logger: logging.Logger | logging.LoggerAdapter,
        *,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> None:
        self.client = client
        self.config = config
        self.logger = logger
        self.cancellation_token = cancellation_token

    def _cancelled(self) -> bool:
        return self.cancellation_token is not None and self.cancellation_token.is_cancelled()

    def fetch(self, url: str, destination: Path) -> None:
        file_name = destination.name
        bytes_written = 0
        try:
            with self.client.stream(
                "GET", url, timeout=build_timeout(self.config, download=True)
            ) as response:
                if response.is_error:
                    raise DownloadError(
                        f"HTTP {response.status_code} while downloading {file_name}",
                        file_name=file_name,
                        status_code=response.status_code,
                        stderr=response.reason_phrase,
                    )
                with destination.open("wb") as stream:
                    for chunk in response.iter_bytes(self.config.chunk_size_bytes):
                        if self._cancelled():
                            raise DownloadError(
                                f"Download of {file_name} was cancelled",
                                file_name=file_name,
                                cancelled=True,
                            )
                        if not chunk:
                            continue
                        stream.write(chunk)
                        bytes_written += len(chunk)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            raise DownloadError(
                f"Could not download {file_name} from {url!r}: {exc}",
                file_name=file_name,
                stderr=str(exc),
            ) from exc
        except OSError as exc:
            raise DownloadError(
                f"Failed to write {destination}: {exc}",
                file_name=file_name,
                stderr=str(exc),
            ) from exc
        self.logger.debug(
            "stream complete",
            extra={"stage": "download", "file": file_name, "bytes": bytes_written},
        )


class WgetFileFetcher:
    """Download through an external ``wget`` process."""

    def __init__(
        self,
        logger: logging.Logger | logging.LoggerAdapter,
        *,
        binary: str = "wget",
        timeout_sec: Optional[float] = None,
    ) -> None:
        self.logger = logger
        self.binary = binary
        self.timeout_sec = timeout_sec

    def command(self, url: str, destination: Path) -> list[str]:
        return [self.binary, "-v", "-O", str(destination), url]

    def fetch(self, url: str, destination: Path) -> None:
        file_name = destination.name
        try:
            completed = subprocess.run(
                self.command(url, destination),
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout_sec,
            )
        except FileNotFoundError as exc:
            raise DownloadError(
                f"{self.binary} is not installed", file_name=file_name, stderr=str(exc)
            ) from exc
        except (OSError, ValueError) as exc:
            raise DownloadError(
                f"Could not run {self.binary}: {exc}", file_name=file_name, stderr=str(exc)
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise DownloadError(
                f"{self.binary} timed out after {self.timeout_sec}s",
                file_name=file_name,
                stderr=str(exc.stderr or ""),
            ) from exc

        if completed.returncode != 0:
            raise DownloadError(
                f"{self.binary} exited with status {completed.returncode}",
                file_name=file_name,
                stderr=completed.stderr,
            )
        self.logger.debug(
            "wget output",
            extra={
                "stage": "download",
                "file": file_name,
                "stdout": completed.stdout,
                "stderr": completed.stderr,
            },
        )


def build_fetcher(
    config: DownloadConfiguration,
    client: httpx.Client,
    logger: logging.Logger | logging.LoggerAdapter,
    *,
    cancellation_token: Optional[CancellationToken] = None,
) -> FileFetcher:
    """Return the fetcher selected by ``config.fetcher``."""

    if config.fetcher == "wget":
        return WgetFileFetcher(
            logger, binary=config.wget_binary, timeout_sec=float(config.download_timeout_sec)
        )
    return HttpFileFetcher(client, config, logger, cancellation_token=cancellation_token)


__all__ = ["FileFetcher", "HttpFileFetcher", "WgetFileFetcher", "build_fetcher"]
