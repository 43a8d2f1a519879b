"""Command-line entry point.

The command takes no options: every input comes from the environment (see
:mod:`IntegrationDownload.settings`).  It runs the pipeline once, prints a
summary line, and maps failures onto exit codes:

====  ==========================================================
0     every entry downloaded (or partial failure with
      ``INTEGRATION_DOWNLOAD_FAIL_ON_PARTIAL=false``)
1     at least one entry failed or was skipped
2     configuration error
3     a remote service could not be reached
4     a remote response could not be decoded
5     the audit CSV could not be written
====  ==========================================================
"""

from __future__ import annotations

import signal
from contextlib import contextmanager
from typing import Iterator

import typer
from rich.console import Console

from . import __version__
from .cancellation import CancellationToken
from .errors import (
    AuditWriteError,
    ConfigurationError,
    DeserializationError,
    TransportError,
)
from .logging_utils import generate_correlation_id, setup_logging
from .pipeline import run_pipeline
from .settings import LoggingConfiguration, load_settings

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_CONFIG = 2
EXIT_TRANSPORT = 3
EXIT_DESERIALIZATION = 4
EXIT_AUDIT = 5

app = typer.Typer(
    add_completion=False,
    help=(
        f"IntegrationDownload {__version__}: resolve an integration and download its files. "
        "Configured entirely through environment variables."
    ),
)

_console = Console()


@contextmanager
def _cancel_on_signals(token: CancellationToken) -> Iterator[None]:
    """Cancel ``token`` on SIGINT/SIGTERM for the duration of the block."""

    def _handler(signum, frame):  # noqa: ARG001
        token.cancel()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            previous[signum] = signal.signal(signum, _handler)
        except ValueError:
            # not on the main thread
            continue
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@app.command()
def main() -> None:
    """Resolve the integration, write file_paths.csv, and download every file."""

    correlation_id = generate_correlation_id()
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger = setup_logging(LoggingConfiguration(), correlation_id=correlation_id)
        logger.error("configuration error", extra={"stage": "config", "error": str(exc)})
        raise typer.Exit(code=EXIT_CONFIG) from exc

    logger = setup_logging(settings.logging, correlation_id=correlation_id)
    logger.info(
        "starting run for integration %s",
        settings.integration_id,
        extra={"stage": "config", "correlation_id": correlation_id, "settings": settings.masked_summary()},
    )

    token = CancellationToken()
    try:
        with _cancel_on_signals(token):
            result = run_pipeline(settings, logger, cancellation_token=token)
    except TransportError as exc:
        logger.error(
            "remote service unreachable",
            extra={"stage": exc.service, "service": exc.service, "error": str(exc)},
        )
        raise typer.Exit(code=EXIT_TRANSPORT) from exc
    except DeserializationError as exc:
        logger.error(
            "remote response could not be decoded",
            extra={"stage": exc.service, "service": exc.service, "error": str(exc)},
        )
        raise typer.Exit(code=EXIT_DESERIALIZATION) from exc
    except AuditWriteError as exc:
        logger.error("Failed to create CSV file", extra={"stage": "audit", "error": str(exc)})
        raise typer.Exit(code=EXIT_AUDIT) from exc

    report = result.report
    colour = "green" if report.ok else "yellow"
    _console.print(
        f"[{colour}]{report.succeeded}/{report.total} downloaded, "
        f"{report.failed} failed, {report.skipped} skipped[/{colour}]"
    )
    if not report.ok and settings.fail_on_partial:
        raise typer.Exit(code=EXIT_PARTIAL)


def cli_main() -> None:
    """Console-script entry point."""

    app()


__all__ = ["app", "cli_main", "main"]
