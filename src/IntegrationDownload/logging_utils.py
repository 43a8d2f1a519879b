# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.logging_utils",
#   "purpose": "Structured logging helpers: masking, JSON formatting, correlation ids, and logger construction",
#   "sections": [
#     {"id": "mask-sensitive-data", "name": "mask_sensitive_data", "anchor": "function-mask-sensitive-data", "kind": "function"},
#     {"id": "generate-correlation-id", "name": "generate_correlation_id", "anchor": "function-generate-correlation-id", "kind": "function"},
#     {"id": "jsonformatter", "name": "JSONFormatter", "anchor": "class-jsonformatter", "kind": "class"},
#     {"id": "setup-logging", "name": "setup_logging", "anchor": "function-setup-logging", "kind": "function"},
#     {"id": "bind-logger", "name": "bind_logger", "anchor": "function-bind-logger", "kind": "function"}
#   ]
# }
# === /NAVMAP ===
"""
Structured Logging Utilities

Centralizes logging setup for the integration download pipeline.  A run builds
exactly one logger with :func:`setup_logging` and hands it to every component;
nothing in the package logs through the root logger.  Failures are written to
stderr as JSON lines (level, message, and key/value fields) while progress is
written to stdout as plain text, matching what the surrounding job runner
collects.
"""

from __future__ import annotations

import json
import logging
import re
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Optional, Tuple

from .settings import LoggingConfiguration

LOGGER_NAMESPACE = "IntegrationDownload"

_SENSITIVE_KEYS = {
    "authorization",
    "api_key",
    "apikey",
    "token",
    "session_token",
    "secret",
    "password",
}
_SENSITIVE_QUERY = re.compile(
    r"(?i)((?:api_key|apikey|token|x-amz-signature|x-amz-security-token)=)[^&\s\"']+"
)
_BEARER = re.compile(r"(?i)\bbearer\s+\S+")

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def _mask_string(value: str) -> str:
    masked = _SENSITIVE_QUERY.sub(r"\1***masked***", value)
    return _BEARER.sub("Bearer ***masked***", masked)


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Remove secrets from structured payloads prior to logging.

    Args:
        payload: Arbitrary key-value pairs that may contain credentials,
            bearer headers, or URLs carrying an ``api_key`` query parameter.

    Returns:
        Copy of the payload where secret fields are replaced with
        ``***masked***`` and credential query parameters are redacted.

    Examples:
        >>> mask_sensitive_data({"token": "secret", "status": "ok"})
        {'token': '***masked***', 'status': 'ok'}
        >>> mask_sensitive_data({"url": "https://h/x?api_key=abc"})
        {'url': 'https://h/x?api_key=***masked***'}
    """

    masked: Dict[str, object] = {}
    for key, value in payload.items():
        if key.lower() in _SENSITIVE_KEYS:
            masked[key] = "***masked***"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive_data(value)
        elif isinstance(value, str):
            masked[key] = _mask_string(value)
        else:
            masked[key] = value
    return masked


def generate_correlation_id() -> str:
    """Create a short identifier that links the log entries of one run.

    Examples:
        >>> len(generate_correlation_id())
        12
    """

    return uuid.uuid4().hex[:12]


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record.

    Examples:
        >>> formatter = JSONFormatter()
        >>> isinstance(formatter.format(logging.makeLogRecord({'msg': 'test'})), str)
        True
    """

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        log_obj: Dict[str, Any] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None),
            "integration_id": getattr(record, "integration_id", None),
            "stage": getattr(record, "stage", None),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_obj:
                continue
            log_obj[key] = value
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(log_obj), default=str)


class _BelowLevelFilter(logging.Filter):
    """Pass only records strictly below ``level``."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


class _MaskingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _mask_string(super().format(record))


def setup_logging(
    config: LoggingConfiguration,
    *,
    correlation_id: Optional[str] = None,
) -> logging.Logger:
    """Build the logger for a single pipeline run.

    Args:
        config: Logging configuration carrying the minimum level.
        correlation_id: Identifier appended to the logger name so concurrent
            runs inside one interpreter never share handlers.  Generated when
            omitted.

    Returns:
        Logger with a plain stdout handler for progress (below WARNING) and a
        JSON stderr handler for warnings and failures.

    Examples:
        >>> logger = setup_logging(LoggingConfiguration(level="INFO"), correlation_id="abc")
        >>> logger.name
        'IntegrationDownload.abc'
    """

    cid = correlation_id or generate_correlation_id()
    logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{cid}")
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_integration_download_managed", False):
            logger.removeHandler(handler)
            handler.close()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_MaskingFormatter("%(levelname)s: %(message)s"))
    stdout_handler.addFilter(_BelowLevelFilter(logging.WARNING))
    stdout_handler._integration_download_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(JSONFormatter())
    stderr_handler._integration_download_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stderr_handler)

    logger.propagate = True
    return logger


class ContextAdapter(logging.LoggerAdapter):
    """Adapter that merges bound context with per-call ``extra`` fields."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **fields: Any) -> "ContextAdapter":
        """Return a new adapter with ``fields`` added to the bound context."""

        merged = dict(self.extra or {})
        merged.update(fields)
        return ContextAdapter(self.logger, merged)


def bind_logger(
    logger: logging.Logger | logging.LoggerAdapter,
    **fields: Any,
) -> ContextAdapter:
    """Attach run context (``correlation_id``, ``integration_id``, ``stage``) to a logger."""

    if isinstance(logger, ContextAdapter):
        return logger.bind(**fields)
    return ContextAdapter(logger, fields)


__all__ = [
    "LOGGER_NAMESPACE",
    "JSONFormatter",
    "ContextAdapter",
    "bind_logger",
    "generate_correlation_id",
    "mask_sensitive_data",
    "setup_logging",
]
