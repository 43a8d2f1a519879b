# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload",
#   "purpose": "Package initialization for IntegrationDownload",
#   "sections": [
#     {
#       "id": "getattr",
#       "name": "__getattr__",
#       "anchor": "function-getattr",
#       "kind": "function"
#     },
#     {
#       "id": "dir",
#       "name": "__dir__",
#       "anchor": "function-dir",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Public API for resolving integrations and materializing their files.

This facade exposes the pipeline entry point, the settings loader, and the
data model so job runners can drive a run programmatically instead of through
the ``integration-download`` console script.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple

__version__ = "0.1.0"

_EXPORTS: Dict[str, Tuple[str, str]] = {
    "Integration": (".models", "Integration"),
    "Manifest": (".models", "Manifest"),
    "ManifestEntry": (".models", "ManifestEntry"),
    "PackageReferenceSet": (".models", "PackageReferenceSet"),
    "PathMapping": (".models", "PathMapping"),
    "IntegrationSettings": (".settings", "IntegrationSettings"),
    "load_settings": (".settings", "load_settings"),
    "setup_logging": (".logging_utils", "setup_logging"),
    "plan_entry": (".planning", "plan_entry"),
    "plan_manifest": (".planning", "plan_manifest"),
    "Materializer": (".materialize", "Materializer"),
    "MaterializationReport": (".materialize", "MaterializationReport"),
    "HttpFileFetcher": (".fetchers", "HttpFileFetcher"),
    "WgetFileFetcher": (".fetchers", "WgetFileFetcher"),
    "PipelineResult": (".pipeline", "PipelineResult"),
    "run_pipeline": (".pipeline", "run_pipeline"),
    "IntegrationDownloadError": (".errors", "IntegrationDownloadError"),
    "TransportError": (".errors", "TransportError"),
    "DeserializationError": (".errors", "DeserializationError"),
    "DownloadError": (".errors", "DownloadError"),
}

__all__ = ["__version__", *_EXPORTS]


def __getattr__(name: str) -> Any:
    """Lazily import API exports so ``import IntegrationDownload`` stays cheap."""

    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    module = import_module(target[0], __name__)
    value = getattr(module, target[1])
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    """Expose lazily-populated attributes in ``dir()`` results."""

    return sorted(set(globals()) | set(_EXPORTS))
