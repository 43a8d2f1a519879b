"""Environment-driven configuration."""

from __future__ import annotations

import pytest

from IntegrationDownload.errors import ConfigurationError
from IntegrationDownload.settings import DownloadConfiguration, LoggingConfiguration, load_settings
from tests.fixtures.http_mocking import MANIFEST_HOST, METADATA_HOST, TOKEN


def test_required_variables_are_read(environment):
    root = environment()
    settings = load_settings()

    assert settings.integration_id == "abc-1"
    assert settings.output_dir == str(root)
    assert settings.session_token == TOKEN
    assert settings.metadata_api_host == METADATA_HOST
    assert settings.manifest_api_host == MANIFEST_HOST
    assert settings.strict_parsing is True
    assert settings.fail_on_partial is True
    assert settings.audit_filename == "file_paths.csv"
    assert settings.audit_format == "three_column"


@pytest.mark.parametrize(
    "variable",
    ["INTEGRATION_ID", "OUTPUT_DIR", "SESSION_TOKEN", "PENNSIEVE_API_HOST", "PENNSIEVE_API_HOST2"],
)
def test_missing_variable_is_named(environment, monkeypatch, variable):
    environment()
    monkeypatch.delenv(variable)
    with pytest.raises(ConfigurationError, match=f"{variable} is required"):
        load_settings()


def test_blank_integration_id_is_rejected(environment, monkeypatch):
    environment()
    monkeypatch.setenv("INTEGRATION_ID", "   ")
    with pytest.raises(ConfigurationError):
        load_settings()


def test_host_trailing_slash_is_stripped(environment, monkeypatch):
    environment()
    monkeypatch.setenv("PENNSIEVE_API_HOST2", f"{METADATA_HOST}/")
    assert load_settings().metadata_api_host == METADATA_HOST


def test_prefixed_overrides(environment):
    environment(
        strict_parsing="false",
        fail_on_partial="false",
        fetcher="wget",
        concurrent_downloads="4",
        log_level="debug",
        audit_format="two_column",
    )
    settings = load_settings()

    assert settings.strict_parsing is False
    assert settings.fail_on_partial is False
    assert settings.audit_format == "two_column"
    assert settings.logging.level == "DEBUG"
    assert settings.http.fetcher == "wget"
    assert settings.http.concurrent_downloads == 4


def test_invalid_log_level_is_a_configuration_error(environment):
    environment(log_level="chatty")
    with pytest.raises(ConfigurationError, match="level"):
        load_settings()


def test_out_of_range_concurrency_is_rejected(environment):
    environment(concurrent_downloads="64")
    with pytest.raises(ConfigurationError):
        load_settings()


def test_overrides_take_precedence(environment, tmp_path):
    environment()
    settings = load_settings({"OUTPUT_DIR": str(tmp_path / "elsewhere")})
    assert settings.output_dir == str(tmp_path / "elsewhere")


def test_masked_summary_hides_token(environment):
    environment()
    summary = load_settings().masked_summary()
    assert summary["session_token"] == "***masked***"
    assert TOKEN not in str(summary)


def test_unset_tuning_values_use_section_defaults(environment):
    environment()
    settings = load_settings()

    assert settings.concurrent_downloads is None
    assert settings.http == DownloadConfiguration()
    assert settings.logging == LoggingConfiguration()


def test_partial_override_keeps_other_section_defaults(environment):
    environment(download_timeout_sec="900")
    http = load_settings().http

    assert http.download_timeout_sec == 900
    assert http.timeout_sec == DownloadConfiguration().timeout_sec
    assert load_settings().masked_summary()["http"]["download_timeout_sec"] == 900
