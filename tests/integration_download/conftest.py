"""Shared fixtures for the integration_download test suite."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import pytest

from tests.fixtures.http_mocking import MANIFEST_HOST, METADATA_HOST, TOKEN

_OPTIONAL_VARIABLES = (
    "LOG_LEVEL",
    "STRICT_PARSING",
    "FAIL_ON_PARTIAL",
    "AUDIT_FORMAT",
    "AUDIT_FILENAME",
    "FETCHER",
    "CONCURRENT_DOWNLOADS",
    "TIMEOUT_SEC",
    "DOWNLOAD_TIMEOUT_SEC",
    "CONNECT_TIMEOUT_SEC",
    "CHUNK_SIZE_BYTES",
    "WGET_BINARY",
    "VERIFY_TLS",
)


@pytest.fixture
def run_logger() -> logging.Logger:
    """Plain logger that propagates to ``caplog``."""

    logger = logging.getLogger("tests.integration_download")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Callable[..., Path]:
    """Populate the required environment variables and return the output root.

    Keyword arguments become ``INTEGRATION_DOWNLOAD_<NAME>`` overrides.
    """

    for name in _OPTIONAL_VARIABLES:
        monkeypatch.delenv(f"INTEGRATION_DOWNLOAD_{name}", raising=False)

    def _apply(integration_id: str = "abc-1", **extra: Any) -> Path:
        output = tmp_path / "input"
        output.mkdir(exist_ok=True)
        monkeypatch.setenv("INTEGRATION_ID", integration_id)
        monkeypatch.setenv("OUTPUT_DIR", str(output))
        monkeypatch.setenv("SESSION_TOKEN", TOKEN)
        monkeypatch.setenv("PENNSIEVE_API_HOST2", METADATA_HOST)
        monkeypatch.setenv("PENNSIEVE_API_HOST", MANIFEST_HOST)
        for key, value in extra.items():
            monkeypatch.setenv(f"INTEGRATION_DOWNLOAD_{key.upper()}", str(value))
        return output

    return _apply
