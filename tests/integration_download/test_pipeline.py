"""End-to-end pipeline runs against the in-memory services."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from IntegrationDownload.audit import read_path_mappings
from IntegrationDownload.errors import DeserializationError, TransportError
from IntegrationDownload.models import PathMapping
from IntegrationDownload.pipeline import run_pipeline
from IntegrationDownload.settings import load_settings
from tests.fixtures.http_mocking import MANIFEST_HOST, METADATA_HOST


def test_scenario_materializes_hierarchy(scenario, http_client, environment, run_logger):
    root = environment()
    result = run_pipeline(load_settings(), run_logger, client=http_client)

    assert result.ok
    assert (root / "a.csv").read_bytes() == b"a,1\n"
    assert (root / "sub" / "b.csv").read_bytes() == b"b,2\n"
    assert result.audit_path == root / "file_paths.csv"
    assert read_path_mappings(result.audit_path) == [
        PathMapping(filename="a.csv", source_path=f"{root}/a.csv", target_path="."),
        PathMapping(filename="b.csv", source_path=f"{root}/b.csv", target_path="sub"),
    ]

    (manifest_request,) = scenario.requests_to(MANIFEST_HOST)
    assert json.loads(manifest_request.content) == {"nodeIds": ["pkg-1", "pkg-2"]}
    assert len(scenario.requests_to(METADATA_HOST)) == 1


def test_trailing_slash_on_output_dir(scenario, http_client, environment, run_logger, monkeypatch):
    root = environment()
    monkeypatch.setenv("OUTPUT_DIR", f"{root}/")
    result = run_pipeline(load_settings(), run_logger, client=http_client)
    assert result.plan.planned[1].destination == f"{root}/sub/b.csv"


def test_failed_download_is_isolated(scenario, http_client, environment, run_logger, caplog):
    root = environment()
    scenario.files["https://x/b"] = 403
    caplog.set_level(logging.INFO)

    result = run_pipeline(load_settings(), run_logger, client=http_client)

    assert (root / "a.csv").exists()
    assert (root / "sub").is_dir()
    assert not result.ok
    assert result.report.summary() == {"total": 2, "succeeded": 1, "failed": 1, "skipped": 0}
    failure = next(r for r in caplog.records if r.message == "Download failed")
    assert failure.file == "b.csv"
    assert failure.status_code == 403
    assert failure.integration_id == "abc-1"
    assert len(read_path_mappings(result.audit_path)) == 2


def test_audit_exists_before_first_download(scenario, http_client, environment, run_logger):
    root = environment()
    seen = []

    class InspectingFetcher:
        def fetch(self, url: str, destination: Path) -> None:
            seen.append((root / "file_paths.csv").exists())
            destination.write_bytes(b"")

    run_pipeline(load_settings(), run_logger, client=http_client, fetcher=InspectingFetcher())
    assert seen == [True, True]


def test_manifest_transport_failure_leaves_no_audit(scenario, http_client, environment, run_logger):
    root = environment()
    scenario.fail_hosts.add("api.test")
    with pytest.raises(TransportError):
        run_pipeline(load_settings(), run_logger, client=http_client)
    assert list(root.iterdir()) == []


def test_strict_manifest_decode_failure(scenario, http_client, environment, run_logger):
    root = environment()
    scenario.manifest = b"<html>bad gateway</html>"
    with pytest.raises(DeserializationError) as excinfo:
        run_pipeline(load_settings(), run_logger, client=http_client)
    assert excinfo.value.service == "manifest"
    assert list(root.iterdir()) == []


def test_lenient_decode_failure_writes_header_only(scenario, http_client, environment, run_logger):
    root = environment(strict_parsing="false")
    scenario.manifest = b"{not json"

    result = run_pipeline(load_settings(), run_logger, client=http_client)

    assert result.ok
    assert result.report.total == 0
    assert (root / "file_paths.csv").read_text(encoding="utf-8") == (
        "filename,source_path,target_path\n"
    )
    assert scenario.requests_to("https://x") == []


def test_unsafe_entries_are_rejected_and_counted(scenario, http_client, environment, run_logger, caplog):
    root = environment()
    scenario.manifest = {
        "data": [
            {"nodeId": "pkg-1", "fileName": "a.csv", "path": [], "url": "https://x/a"},
            {"nodeId": "pkg-9", "fileName": "evil.csv", "path": ["..", "etc"], "url": "https://x/evil"},
            {"nodeId": "pkg-2", "fileName": "b.csv", "path": ["sub"], "url": "https://x/b"},
        ]
    }
    caplog.set_level(logging.ERROR)

    result = run_pipeline(load_settings(), run_logger, client=http_client)

    assert [o.status for o in result.report.outcomes] == ["downloaded", "failed", "downloaded"]
    assert [m.filename for m in read_path_mappings(result.audit_path)] == ["a.csv", "b.csv"]
    assert not (root.parent / "etc").exists()
    assert any(r.message == "Rejected manifest entry" and r.node_id == "pkg-9" for r in caplog.records)


def test_empty_integration_yields_empty_run(services, http_client, environment, run_logger):
    environment()
    services.integrations["abc-1"] = {"uuid": "abc-1", "packageIds": None}

    result = run_pipeline(load_settings(), run_logger, client=http_client)

    assert result.integration.package_ids == []
    assert result.report.total == 0
    assert result.ok
