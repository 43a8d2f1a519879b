"""Manifest Requester request shape and failure policy."""

from __future__ import annotations

import json

import pytest

from IntegrationDownload.errors import DeserializationError, TransportError
from IntegrationDownload.manifest import ManifestRequester
from IntegrationDownload.models import Manifest, PackageReferenceSet
from tests.fixtures.http_mocking import MANIFEST_HOST, TOKEN

PACKAGES = PackageReferenceSet(nodeIds=["pkg-1", "pkg-2"])


def _requester(client, logger, *, strict=True):
    return ManifestRequester(client, MANIFEST_HOST, TOKEN, logger, strict=strict)


def test_request_batches_identifiers_and_passes_token_as_query(scenario, http_client, run_logger):
    manifest = _requester(http_client, run_logger).request(PACKAGES)

    (request,) = scenario.requests
    assert request.method == "POST"
    assert request.url.path == "/packages/download-manifest"
    assert request.url.params["api_key"] == TOKEN
    assert "Authorization" not in request.headers
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {"nodeIds": ["pkg-1", "pkg-2"]}

    assert [entry.file_name for entry in manifest.data] == ["a.csv", "b.csv"]
    assert manifest.data[1].path == ["sub"]
    assert manifest.data[1].url == "https://x/b"


def test_transport_failure_raises(services, http_client, run_logger):
    services.fail_hosts.add("api.test")
    with pytest.raises(TransportError) as excinfo:
        _requester(http_client, run_logger).request(PACKAGES)
    assert excinfo.value.service == "manifest"


def test_strict_parse_failure_raises(services, http_client, run_logger):
    services.manifest = b'{"data": "oops"}'
    with pytest.raises(DeserializationError):
        _requester(http_client, run_logger).request(PACKAGES)


def test_lenient_parse_failure_yields_empty_manifest(services, http_client, run_logger):
    services.manifest = b"{truncated"
    manifest = _requester(http_client, run_logger, strict=False).request(PACKAGES)
    assert manifest == Manifest.empty()


def test_empty_package_set_still_posts(services, http_client, run_logger):
    manifest = _requester(http_client, run_logger).request(PackageReferenceSet())
    assert manifest.data == []
    assert json.loads(services.requests[0].content) == {"nodeIds": []}
