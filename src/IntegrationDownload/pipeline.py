# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.pipeline",
#   "purpose": "Wire resolver, manifest requester, planner, audit writer, and materializer into one run",
#   "sections": [
#     {"id": "pipelineresult", "name": "PipelineResult", "anchor": "class-pipelineresult", "kind": "class"},
#     {"id": "run-pipeline", "name": "run_pipeline", "anchor": "function-run-pipeline", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""End-to-end run of the integration download pipeline.

The stages run strictly in order and each one completes before the next
starts:

1. resolve the integration (metadata service),
2. request the download manifest (manifest service),
3. plan local paths,
4. write the audit CSV,
5. materialize every planned entry.

Nothing touches the filesystem before step 4, so a resolution or manifest
failure never leaves a half-written audit file behind.  Failures in steps 1
and 2 propagate to the caller; per-entry failures in steps 3 and 5 end up in
the returned :class:`~IntegrationDownload.materialize.MaterializationReport`.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from .audit import write_path_mappings
from .cancellation import CancellationToken
from .fetchers import FileFetcher, build_fetcher
from .logging_utils import bind_logger
from .manifest import ManifestRequester
from .materialize import MaterializationReport, Materializer
from .models import Integration, Manifest, PackageReferenceSet
from .net import build_http_client
from .planning import PlanResult, normalize_root, plan_manifest
from .resolver import IntegrationResolver
from .settings import IntegrationSettings


@dataclass(frozen=True)
class PipelineResult:
    """Everything a run produced, for callers and tests."""

    integration: Integration
    manifest: Manifest
    plan: PlanResult
    audit_path: Path
    report: MaterializationReport

    @property
    def ok(self) -> bool:
        return self.report.ok


def run_pipeline(
    settings: IntegrationSettings,
    logger: logging.Logger | logging.LoggerAdapter,
    *,
    client: Optional[httpx.Client] = None,
    fetcher: Optional[FileFetcher] = None,
    cancellation_token: Optional[CancellationToken] = None,
) -> PipelineResult:
    """Resolve, plan, and materialize the integration named in ``settings``.

    Args:
        settings: Validated run configuration.
        logger: Run logger created by :func:`~IntegrationDownload.logging_utils.setup_logging`.
        client: HTTP client to use; one is built from ``settings.http`` and
            closed afterwards when omitted.
        fetcher: File fetcher override; defaults to the one selected by
            ``settings.http.fetcher``.
        cancellation_token: Token checked between entries and chunks.

    Returns:
        :class:`PipelineResult` with the per-entry report.

    Raises:
        TransportError: If either remote lookup cannot complete.
        DeserializationError: If a response cannot be decoded and
            ``settings.strict_parsing`` is set.
        AuditWriteError: If the audit CSV cannot be written.
    """

    http_config = settings.http
    run_logger = bind_logger(logger, integration_id=settings.integration_id)

    with ExitStack() as stack:
        if client is None:
            client = stack.enter_context(build_http_client(http_config))

        resolver = IntegrationResolver(
            client,
            settings.metadata_api_host,
            settings.session_token,
            run_logger.bind(stage="metadata"),
            strict=settings.strict_parsing,
        )
        integration = resolver.resolve(settings.integration_id)

        requester = ManifestRequester(
            client,
            settings.manifest_api_host,
            settings.session_token,
            run_logger.bind(stage="manifest"),
            strict=settings.strict_parsing,
        )
        manifest = requester.request(PackageReferenceSet.from_integration(integration))

        output_root = normalize_root(settings.output_dir)
        plan = plan_manifest(output_root, manifest)
        plan_logger = run_logger.bind(stage="plan")
        for rejected in plan.rejected:
            plan_logger.error(
                "Rejected manifest entry",
                extra={
                    "file": rejected.entry.file_name,
                    "node_id": rejected.entry.node_id,
                    "path": list(rejected.entry.path),
                    "error": str(rejected.error),
                },
            )

        audit_path = write_path_mappings(
            Path(output_root) / settings.audit_filename,
            [planned.mapping for planned in plan.planned],
            audit_format=settings.audit_format,
            logger=run_logger.bind(stage="audit"),
        )

        download_logger = run_logger.bind(stage="download")
        if fetcher is None:
            fetcher = build_fetcher(
                http_config, client, download_logger, cancellation_token=cancellation_token
            )
        materializer = Materializer(
            fetcher,
            download_logger,
            concurrent_downloads=http_config.concurrent_downloads,
            cancellation_token=cancellation_token,
        )
        report = materializer.materialize(plan.planned)
        report.add_rejected(plan.rejected)

    summary = report.summary()
    if report.ok:
        run_logger.info(
            "materialized %d of %d file(s)", report.succeeded, report.total, extra=summary
        )
    else:
        run_logger.warning(
            "materialization finished with failures",
            extra={"stage": "summary", **summary},
        )
    return PipelineResult(
        integration=integration,
        manifest=manifest,
        plan=plan,
        audit_path=audit_path,
        report=report,
    )


__all__ = ["PipelineResult", "run_pipeline"]
