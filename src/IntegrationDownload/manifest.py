"""Manifest Requester.

Turns a :class:`~IntegrationDownload.models.PackageReferenceSet` into the
download manifest by posting the identifiers as one JSON body to
``{host}/packages/download-manifest``.  The session token travels as the
``api_key`` query parameter, which is why request URLs are never logged
unmasked.  The returned URLs are presigned and expire, so the manifest is
consumed immediately and never cached.
"""

from __future__ import annotations

import logging

import httpx

from .models import Manifest, PackageReferenceSet
from .resolver import decode_body, send_request

MANIFEST_SERVICE = "manifest"


class ManifestRequester:
    """Request presigned download URLs for a set of packages."""

    def __init__(
        self,
        client: httpx.Client,
        api_host: str,
        session_token: str,
        logger: logging.Logger | logging.LoggerAdapter,
        *,
        strict: bool = True,
    ) -> None:
        self.client = client
        self.api_host = api_host.rstrip("/")
        self.session_token = session_token
        self.logger = logger
        self.strict = strict

    @property
    def manifest_url(self) -> str:
        return f"{self.api_host}/packages/download-manifest"

    def fetch(self, packages: PackageReferenceSet) -> bytes:
        """Return the raw manifest body; raises ``TransportError`` on network failure."""

        self.logger.debug(
            "requesting download manifest",
            extra={"stage": MANIFEST_SERVICE, "node_ids": list(packages.node_ids)},
        )
        return send_request(
            self.client,
            "POST",
            self.manifest_url,
            service=MANIFEST_SERVICE,
            logger=self.logger,
            params={"api_key": self.session_token},
            json=packages.to_payload(),
            headers={"accept": "*/*", "content-type": "application/json"},
        )

    def parse(self, body: bytes) -> Manifest:
        return decode_body(
            Manifest,
            body,
            service=MANIFEST_SERVICE,
            strict=self.strict,
            fallback=Manifest.empty(),
            logger=self.logger,
        )

    def request(self, packages: PackageReferenceSet) -> Manifest:
        manifest = self.parse(self.fetch(packages))
        self.logger.info(
            "manifest lists %d file(s)",
            len(manifest.data),
            extra={"stage": MANIFEST_SERVICE, "entry_count": len(manifest.data)},
        )
        return manifest


__all__ = ["MANIFEST_SERVICE", "ManifestRequester"]
