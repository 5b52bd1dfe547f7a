"""Schema of the ``jx.lock`` document, validated with Pydantic.

The lock file is TOML::

    format_version = "1.0"

    [dependencies."org.slf4j:slf4j-api:1.7.36"]
    group_id = "org.slf4j"
    artifact_id = "slf4j-api"
    version = "1.7.36"
    scope = "compile"
    checksum = "sha256:..."
    source_url = "https://repo1.maven.org/maven2/org/slf4j/..."
    size = 41125
    dependencies = []

    [metadata]
    created_at = "2024-01-01T00:00:00Z"
    updated_at = "2024-01-01T00:00:00Z"
    total_dependencies = 1
    total_size = 41125
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from jxdeps.model import Scope

LOCK_FORMAT_VERSION = "1.0"


class LockEntryModel(BaseModel):
    """One ``[dependencies."<key>"]`` table."""

    group_id: str = Field(min_length=1)
    artifact_id: str = Field(min_length=1)
    version: str = Field(min_length=1)
    classifier: Optional[str] = None
    scope: str = Scope.COMPILE.value
    checksum: str = ""
    source_url: str = ""
    size: int = Field(default=0, ge=0)
    dependencies: List[str] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("scope")
    @classmethod
    def validate_scope(cls, v: str) -> str:
        valid = {scope.value for scope in Scope}
        if v.lower() not in valid:
            raise ValueError(f"Invalid scope '{v}'. Valid scopes: {sorted(valid)}")
        return v.lower()


class LockMetadataModel(BaseModel):
    created_at: str
    updated_at: str
    total_dependencies: int = Field(default=0, ge=0)
    total_size: int = Field(default=0, ge=0)

    model_config = {"extra": "ignore"}


class LockDocument(BaseModel):
    """Top-level lock document.

    Attributes:
        format_version: ``<major>.<minor>``; only major version 1 is readable.
        dependencies: Entries keyed by coordinate key.
        metadata: Timestamps and totals; absent in hand-written files.
    """

    format_version: str = LOCK_FORMAT_VERSION
    dependencies: Dict[str, LockEntryModel] = Field(default_factory=dict)
    metadata: Optional[LockMetadataModel] = None

    @field_validator("format_version")
    @classmethod
    def validate_format_version(cls, v: str) -> str:
        major = v.split(".", 1)[0]
        if major != LOCK_FORMAT_VERSION.split(".", 1)[0]:
            raise ValueError(
                f"Unsupported lock format version '{v}' (supported: {LOCK_FORMAT_VERSION})"
            )
        return v


__all__ = ["LOCK_FORMAT_VERSION", "LockDocument", "LockEntryModel", "LockMetadataModel"]
