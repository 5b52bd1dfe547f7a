"""Configuration schema definitions using Pydantic for validation.

Settings are grouped by the component that consumes them. Every field has
a default, so an empty configuration is valid.
"""

from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

from jxdeps.lock.store import DEFAULT_LOCK_FILENAME
from jxdeps.resolve.maven_central import MAVEN_CENTRAL


class ResolverSettings(BaseModel):
    """Configuration for dependency resolution.

    Attributes:
        metadata_timeout: Seconds to wait for a single metadata lookup.
        max_workers: Threads used for parallel metadata lookups.
        repository_url: Maven-layout repository for metadata and artifacts.
        include_optional: Follow transitive dependencies marked optional.
        offline: Use the built-in static metadata instead of the repository.
    """

    metadata_timeout: float = Field(default=30.0, gt=0, le=600)
    max_workers: int = Field(default=8, ge=1, le=64)
    repository_url: str = MAVEN_CENTRAL
    include_optional: bool = False
    offline: bool = False

    @field_validator("repository_url")
    @classmethod
    def validate_repository_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"repository_url must be an http(s) URL, got '{v}'")
        return v.rstrip("/")


class LockSettings(BaseModel):
    """Configuration for the lock file.

    Attributes:
        filename: Lock file name, relative to the project directory.
        require_complete: Refuse to save a lock with dangling edges.
    """

    filename: str = DEFAULT_LOCK_FILENAME
    require_complete: bool = True

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("lock filename must not be empty")
        return v


class FetchSettings(BaseModel):
    """Configuration for artifact downloads.

    Attributes:
        enabled: Download artifacts during ``resolve``.
        cache_dir: Shared download cache.
        timeout: Per-request download timeout in seconds.
        lib_dir: Project directory the classpath points into.
    """

    enabled: bool = False
    cache_dir: Path = Field(default_factory=lambda: Path("~/.jx/cache"))
    timeout: float = Field(default=300.0, gt=0, le=3600)
    lib_dir: Path = Path("lib")


class ClasspathSettings(BaseModel):
    include_test_scope: bool = False


class JxSettings(BaseModel):
    """Top-level configuration.

    Attributes:
        resolver: Resolution settings.
        lock: Lock file settings.
        fetch: Artifact download settings.
        classpath: Classpath builder settings.
    """

    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    lock: LockSettings = Field(default_factory=LockSettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    classpath: ClasspathSettings = Field(default_factory=ClasspathSettings)

    model_config = {"extra": "forbid"}

    @classmethod
    def default(cls) -> "JxSettings":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JxSettings":
        """Create settings from a dictionary.

        Raises:
            ValidationError: If the configuration is invalid.
        """
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
