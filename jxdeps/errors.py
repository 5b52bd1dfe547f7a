"""Exception hierarchy shared by the resolver, lock store and adapters.

Errors fall into a few families:

* ``ParseError`` - malformed user input (coordinates, exclusions).
* ``ResolveError`` - a ``Resolver.resolve`` call could not complete. All of
  these are fatal for the call that raised them and leave the resolver memo
  untouched, so the caller may simply retry.
* ``LockFileError`` - the persisted lock file is unreadable or inconsistent.
* ``ConfigurationError`` - a project config file is missing or malformed.
* ``FetchError`` - an artifact could not be downloaded.

Version conflicts are deliberately *not* exceptions; see
``jxdeps.model.VersionConflict``.
"""

from __future__ import annotations

from typing import Sequence


class JxDepsError(Exception):
    """Base class for every error raised by jxdeps."""


# =============================================================================
# Parsing
# =============================================================================


class ParseError(JxDepsError):
    """User supplied text could not be parsed."""


class InvalidCoordinateError(ParseError):
    """A dependency string is not ``group:artifact[:version]``."""

    def __init__(self, value: str, reason: str = "") -> None:
        self.value = value
        message = f"Invalid dependency coordinate {value!r}"
        if reason:
            message = f"{message}: {reason}"
        message += " (expected group:artifact or group:artifact:version)"
        super().__init__(message)


# =============================================================================
# Resolution
# =============================================================================


class ResolveError(JxDepsError):
    """Base class for failures that abort a whole resolve call."""


class CycleError(ResolveError):
    """A coordinate was reached again while it was still being expanded.

    Attributes:
        key: Coordinate key that closed the cycle.
        path: Expansion path from the first occurrence of ``key`` back to it.
    """

    def __init__(self, key: str, path: Sequence[str] = ()) -> None:
        self.key = key
        self.path = list(path)
        if self.path:
            detail = " -> ".join(self.path)
        else:
            detail = key
        super().__init__(f"Dependency cycle detected: {detail}")


class MetadataTimeoutError(ResolveError):
    """The metadata source did not answer for a coordinate in time."""

    def __init__(self, coordinate: str, timeout: float) -> None:
        self.coordinate = coordinate
        self.timeout = timeout
        super().__init__(
            f"Metadata lookup for {coordinate} timed out after {timeout:g}s"
        )


class MetadataLookupError(ResolveError):
    """The metadata source raised while looking up a coordinate."""

    def __init__(self, coordinate: str, cause: BaseException) -> None:
        self.coordinate = coordinate
        self.cause = cause
        super().__init__(f"Metadata lookup for {coordinate} failed: {cause}")


class UnpinnedVersionError(ResolveError):
    """A spec carries no version and the metadata source knows no release."""

    def __init__(self, group: str, artifact: str) -> None:
        self.group = group
        self.artifact = artifact
        super().__init__(
            f"No version given for {group}:{artifact} and no release is known"
        )


# =============================================================================
# Lock file
# =============================================================================


class LockFileError(JxDepsError):
    """The lock file exists but cannot be read as a valid lock document."""


class LockIntegrityError(LockFileError):
    """Refusing to persist a lock store whose edges point at missing entries."""

    def __init__(self, dangling: Sequence[tuple[str, str]]) -> None:
        self.dangling = list(dangling)
        sample = ", ".join(f"{src} -> {dst}" for src, dst in self.dangling[:5])
        more = "" if len(self.dangling) <= 5 else f" (+{len(self.dangling) - 5} more)"
        super().__init__(f"Lock store has dangling edges: {sample}{more}")


# =============================================================================
# Project configuration and fetching
# =============================================================================


class ConfigurationError(JxDepsError):
    """A project configuration file is missing, unsupported or malformed."""


class FetchError(JxDepsError):
    """An artifact could not be downloaded from the repository."""


__all__ = [
    "ConfigurationError",
    "CycleError",
    "FetchError",
    "InvalidCoordinateError",
    "JxDepsError",
    "LockFileError",
    "LockIntegrityError",
    "MetadataLookupError",
    "MetadataTimeoutError",
    "ParseError",
    "ResolveError",
    "UnpinnedVersionError",
]
