# === NAVMAP v1 ===
# {
#   "module": "IntegrationDownload.models",
#   "purpose": "Wire models for integrations and download manifests plus derived audit records",
#   "sections": [
#     {"id": "wire", "name": "Wire Models", "anchor": "WIRE", "kind": "api"},
#     {"id": "records", "name": "Derived Records", "anchor": "REC", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Data model for the integration download pipeline.

The metadata service describes an :class:`Integration`; the manifest service
returns a :class:`Manifest` of :class:`ManifestEntry` items.  Both are parsed
with pydantic using the camelCase field names of the JSON wire format.  Absent
or ``null`` fields decode to zero values (empty string, ``0``, empty list) and
unknown fields are ignored, so a sparse payload still yields a usable object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "Integration",
    "PackageReferenceSet",
    "ManifestEntry",
    "Manifest",
    "PathMapping",
]

_WIRE_CONFIG = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

# --- Wire Models --------------------------------------------------------------


class Integration(BaseModel):
    """Unit of work binding a dataset to the package identifiers to download."""

    uuid: str = ""
    application_id: int = Field(default=0, alias="applicationId")
    dataset_id: str = Field(default="", alias="datasetId")
    package_ids: List[str] = Field(default_factory=list, alias="packageIds")
    params: Any = None

    model_config = _WIRE_CONFIG

    @field_validator("uuid", "dataset_id", mode="before")
    @classmethod
    def _null_string(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("application_id", mode="before")
    @classmethod
    def _null_int(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("package_ids", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def empty(cls) -> "Integration":
        """Return the zero-valued integration used when parsing is lenient."""

        return cls()


class PackageReferenceSet(BaseModel):
    """Package identifiers wrapped for transmission to the manifest service."""

    node_ids: List[str] = Field(default_factory=list, alias="nodeIds")

    model_config = _WIRE_CONFIG

    @classmethod
    def from_integration(cls, integration: Integration) -> "PackageReferenceSet":
        return cls(node_ids=list(integration.package_ids))

    def to_payload(self) -> dict:
        """Serialize to the ``{"nodeIds": [...]}`` request body."""

        return self.model_dump(by_alias=True)


class ManifestEntry(BaseModel):
    """One downloadable remote file.

    ``file_name`` is the leaf component and ``path`` lists the folders above
    it, outermost first.  An empty ``path`` places the file at the root.
    """

    node_id: str = Field(default="", alias="nodeId")
    file_name: str = Field(default="", alias="fileName")
    path: List[str] = Field(default_factory=list)
    url: str = ""

    model_config = _WIRE_CONFIG

    @field_validator("node_id", "file_name", "url", mode="before")
    @classmethod
    def _null_string(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("path", mode="before")
    @classmethod
    def _null_path(cls, value: Any) -> Any:
        return [] if value is None else value


class Manifest(BaseModel):
    """Ordered manifest entries as returned by one download-manifest request."""

    data: List[ManifestEntry] = Field(default_factory=list)

    model_config = _WIRE_CONFIG

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def empty(cls) -> "Manifest":
        return cls()


# --- Derived Records ----------------------------------------------------------


@dataclass(frozen=True)
class PathMapping:
    """Audit row linking a downloaded file to its original hierarchy.

    Attributes:
        filename: Leaf file name from the manifest entry.
        source_path: ``<root>/<filename>`` as recorded for audit.
        target_path: Folder path joined with ``/``, or ``.`` for the root.
    """

    filename: str
    source_path: str
    target_path: str

    def as_row(self) -> List[str]:
        return [self.filename, self.source_path, self.target_path]
