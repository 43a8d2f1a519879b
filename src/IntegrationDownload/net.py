# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.net",
#   "purpose": "Build the HTTPX client shared by the resolver, manifest requester, and HTTP fetcher",
#   "sections": [
#     {"id": "helpers", "name": "Client construction helpers", "anchor": "HELP", "kind": "helpers"},
#     {"id": "api", "name": "Public API", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""HTTPX client factory for the integration download pipeline.

The client is constructed once per run and passed to each component; there is
no process-wide singleton.  Presigned URLs are single-use-duration, so no
response cache is installed and redirects issued by the storage layer are
followed.
"""

from __future__ import annotations

import ssl

import certifi
import httpx

from . import __version__
from .settings import DownloadConfiguration

USER_AGENT = f"IntegrationDownload/{__version__}"

# --- Client construction helpers ----------------------------------------------


def _build_ssl_context(verify: bool) -> ssl.SSLContext:
    if not verify:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context
    context = ssl.create_default_context(cafile=certifi.where())
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


def build_timeout(config: DownloadConfiguration, *, download: bool = False) -> httpx.Timeout:
    """Return per-phase timeouts; ``download`` widens the read budget for file bodies."""

    read = float(config.download_timeout_sec if download else config.timeout_sec)
    return httpx.Timeout(
        connect=config.connect_timeout_sec,
        read=read,
        write=float(config.timeout_sec),
        pool=config.connect_timeout_sec,
    )


# --- Public API ---------------------------------------------------------------


def build_http_client(
    config: DownloadConfiguration,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create the HTTPX client used for every request of a run.

    Args:
        config: Timeout and TLS settings.
        transport: Optional transport override (``httpx.MockTransport`` in tests).

    Returns:
        Configured :class:`httpx.Client`; callers own closing it.
    """

    kwargs = {}
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.Client(
        timeout=build_timeout(config),
        follow_redirects=True,
        verify=_build_ssl_context(config.verify_tls),
        headers={"user-agent": USER_AGENT},
        **kwargs,
    )


__all__ = ["USER_AGENT", "build_http_client", "build_timeout"]
