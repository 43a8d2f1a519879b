# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.settings",
#   "purpose": "Environment-driven configuration models for the integration download pipeline",
#   "sections": [
#     {"id": "loggingconfiguration", "name": "LoggingConfiguration", "anchor": "class-loggingconfiguration", "kind": "class"},
#     {"id": "downloadconfiguration", "name": "DownloadConfiguration", "anchor": "class-downloadconfiguration", "kind": "class"},
#     {"id": "integrationsettings", "name": "IntegrationSettings", "anchor": "class-integrationsettings", "kind": "class"},
#     {"id": "load-settings", "name": "load_settings", "anchor": "function-load-settings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Configuration for the integration download pipeline.

All inputs arrive through the process environment.  The five required values
keep the names used by the surrounding job runner (``INTEGRATION_ID``,
``OUTPUT_DIR``, ``SESSION_TOKEN``, ``PENNSIEVE_API_HOST`` and
``PENNSIEVE_API_HOST2``); optional tuning knobs use the
``INTEGRATION_DOWNLOAD_`` prefix.  Section models mirror the layout used by
callers: :class:`LoggingConfiguration` for handler setup and
:class:`DownloadConfiguration` for HTTP timeouts and fetcher selection.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

__all__ = [
    "ENV_PREFIX",
    "REQUIRED_ENVIRONMENT",
    "LoggingConfiguration",
    "DownloadConfiguration",
    "IntegrationSettings",
    "load_settings",
]

ENV_PREFIX = "INTEGRATION_DOWNLOAD_"
REQUIRED_ENVIRONMENT = (
    "INTEGRATION_ID",
    "OUTPUT_DIR",
    "SESSION_TOKEN",
    "PENNSIEVE_API_HOST2",
    "PENNSIEVE_API_HOST",
)


class LoggingConfiguration(BaseModel):
    """Logging-related configuration for pipeline runs."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Normalise logging levels and ensure they match the supported set."""

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return upper


class DownloadConfiguration(BaseModel):
    """HTTP and download tuning shared by the remote clients and fetchers."""

    connect_timeout_sec: float = Field(default=5.0, gt=0.0, le=60.0)
    timeout_sec: int = Field(default=30, gt=0, le=300)
    download_timeout_sec: int = Field(default=300, gt=0, le=3600)
    chunk_size_bytes: int = Field(default=1 << 20, ge=1024)
    concurrent_downloads: int = Field(default=1, ge=1, le=16)
    fetcher: Literal["http", "wget"] = "http"
    wget_binary: str = "wget"
    verify_tls: bool = True


class IntegrationSettings(BaseSettings):
    """Validated environment inputs for one pipeline run."""

    integration_id: str = Field(
        min_length=1, validation_alias=AliasChoices("INTEGRATION_ID", "integration_id")
    )
    output_dir: str = Field(min_length=1, validation_alias=AliasChoices("OUTPUT_DIR", "output_dir"))
    session_token: str = Field(
        min_length=1, validation_alias=AliasChoices("SESSION_TOKEN", "session_token")
    )
    metadata_api_host: str = Field(
        min_length=1,
        validation_alias=AliasChoices("PENNSIEVE_API_HOST2", "metadata_api_host"),
    )
    manifest_api_host: str = Field(
        min_length=1,
        validation_alias=AliasChoices("PENNSIEVE_API_HOST", "manifest_api_host"),
    )

    strict_parsing: bool = True
    fail_on_partial: bool = True
    audit_filename: str = "file_paths.csv"
    audit_format: Literal["three_column", "two_column"] = "three_column"

    # Overrides for the section models; ``None`` keeps the section default.
    log_level: Optional[str] = None
    connect_timeout_sec: Optional[float] = None
    timeout_sec: Optional[int] = None
    download_timeout_sec: Optional[int] = None
    chunk_size_bytes: Optional[int] = None
    concurrent_downloads: Optional[int] = None
    fetcher: Optional[Literal["http", "wget"]] = None
    wget_binary: Optional[str] = None
    verify_tls: Optional[bool] = None

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("metadata_api_host", "manifest_api_host")
    @classmethod
    def _strip_host(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped:
            raise ValueError("API host must not be empty")
        return stripped

    @field_validator("integration_id", "session_token", "output_dir")
    @classmethod
    def _strip_value(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("value must not be blank")
        return stripped

    def _overrides_for(self, section: type[BaseModel], **renamed: str) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name in section.model_fields:
            value = getattr(self, renamed.get(name, name), None)
            if value is not None:
                values[name] = value
        return values

    @property
    def logging(self) -> LoggingConfiguration:
        return LoggingConfiguration(**self._overrides_for(LoggingConfiguration, level="log_level"))

    @property
    def http(self) -> DownloadConfiguration:
        return DownloadConfiguration(**self._overrides_for(DownloadConfiguration))

    def masked_summary(self) -> Dict[str, Any]:
        """Return settings suitable for logging with the session token hidden."""

        payload = self.model_dump(exclude=set(DownloadConfiguration.model_fields) | {"log_level"})
        payload["logging"] = self.logging.model_dump()
        payload["http"] = self.http.model_dump()
        payload["session_token"] = "***masked***"
        return payload


def _describe_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        name = location.upper() if location else "settings"
        if error.get("type") == "missing":
            parts.append(f"{name} is required")
        else:
            parts.append(f"{name}: {error.get('msg')}")
    return "; ".join(parts)


def load_settings(overrides: Optional[Mapping[str, Any]] = None) -> IntegrationSettings:
    """Read and validate settings from the environment.

    Args:
        overrides: Optional values taking precedence over the environment,
            keyed by environment name (``OUTPUT_DIR``) or field name.

    Returns:
        Validated :class:`IntegrationSettings`.

    Raises:
        ConfigurationError: If required inputs are missing or any value is
            invalid.  Section models are validated eagerly so a bad
            ``INTEGRATION_DOWNLOAD_LOG_LEVEL`` is reported here rather than at
            logger construction.
    """

    try:
        settings = IntegrationSettings(_env_file=None, **dict(overrides or {}))
        _ = (settings.logging, settings.http)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {_describe_errors(exc)}") from exc
    return settings
