# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.resolver",
#   "purpose": "Resolve an integration identifier into dataset and package references via the metadata service",
#   "sections": [
#     {"id": "decode-body", "name": "decode_body", "anchor": "function-decode-body", "kind": "function"},
#     {"id": "send-request", "name": "send_request", "anchor": "function-send-request", "kind": "function"},
#     {"id": "integrationresolver", "name": "IntegrationResolver", "anchor": "class-integrationresolver", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Integration Resolver.

Issues ``GET {host}/integrations/{id}`` with a bearer session token and turns
the body into an :class:`~IntegrationDownload.models.Integration`.  Transport
failures always raise :class:`~IntegrationDownload.errors.TransportError`.
Non-2xx responses are logged and their body is handed to the decoder
unchanged; whether an undecodable body is fatal depends on ``strict``.
"""

from __future__ import annotations

import logging
from typing import Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import DeserializationError, TransportError
from .models import Integration

ModelT = TypeVar("ModelT", bound=BaseModel)

METADATA_SERVICE = "metadata"


def decode_body(
    model: Type[ModelT],
    body: bytes,
    *,
    service: str,
    strict: bool,
    fallback: ModelT,
    logger: logging.Logger | logging.LoggerAdapter,
) -> ModelT:
    """Parse ``body`` into ``model``.

    Args:
        model: Pydantic model describing the expected payload.
        body: Raw response body.
        service: Service label used in errors and log records.
        strict: When ``True`` an undecodable body raises; otherwise the error
            is logged and ``fallback`` is returned.
        fallback: Zero value returned in lenient mode.
        logger: Run logger.

    Raises:
        DeserializationError: If parsing fails and ``strict`` is set.
    """

    try:
        return model.model_validate_json(body)
    except PydanticValidationError as exc:
        message = f"Could not decode {service} response: {exc.error_count()} error(s)"
        if strict:
            raise DeserializationError(message, service=service, body=body) from exc
        logger.error(
            message,
            extra={"stage": service, "service": service, "error": str(exc), "lenient": True},
        )
        return fallback


def send_request(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    service: str,
    logger: logging.Logger | logging.LoggerAdapter,
    **kwargs,
) -> bytes:
    """Perform one request and return the raw body regardless of status.

    Raises:
        TransportError: If the request could not be completed.
    """

    try:
        response = client.request(method, url, **kwargs)
    except (httpx.TransportError, httpx.InvalidURL) as exc:
        raise TransportError(
            f"{service} request failed: {exc}", service=service, url=url
        ) from exc
    if response.is_error:
        logger.warning(
            "non-success response",
            extra={"stage": service, "service": service, "status_code": response.status_code},
        )
    logger.debug(
        "response received",
        extra={"stage": service, "status_code": response.status_code, "bytes": len(response.content)},
    )
    return response.content


class IntegrationResolver:
    """Look up integration metadata for a single run."""

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

    def integration_url(self, integration_id: str) -> str:
        return f"{self.api_host}/integrations/{quote(integration_id, safe='')}"

    def fetch(self, integration_id: str) -> bytes:
        """Return the raw metadata body for ``integration_id``."""

        return send_request(
            self.client,
            "GET",
            self.integration_url(integration_id),
            service=METADATA_SERVICE,
            logger=self.logger,
            headers={
                "accept": "application/json",
                "Authorization": f"Bearer {self.session_token}",
            },
        )

    def parse(self, body: bytes) -> Integration:
        return decode_body(
            Integration,
            body,
            service=METADATA_SERVICE,
            strict=self.strict,
            fallback=Integration.empty(),
            logger=self.logger,
        )

    def resolve(self, integration_id: str) -> Integration:
        """Fetch and decode the integration; see :func:`decode_body` for failure policy."""

        integration = self.parse(self.fetch(integration_id))
        self.logger.info(
            "resolved integration %s: dataset=%s packages=%d",
            integration_id,
            integration.dataset_id or "-",
            len(integration.package_ids),
            extra={
                "stage": METADATA_SERVICE,
                "dataset_id": integration.dataset_id,
                "application_id": integration.application_id,
                "package_count": len(integration.package_ids),
            },
        )
        return integration


__all__ = ["METADATA_SERVICE", "IntegrationResolver", "decode_body", "send_request"]
