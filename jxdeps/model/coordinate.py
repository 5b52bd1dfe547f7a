"""Coordinate, scope, exclusion and dependency spec types.

A ``Coordinate`` names one artifact (``group:artifact:version[:classifier]``);
a ``DependencySpec`` is what a project declares: a coordinate plus the scope
it is needed in, exclusions to prune from its transitive closure and whether
it is optional.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Tuple

from jxdeps.errors import InvalidCoordinateError, ParseError

WILDCARD = "*"


class Scope(str, Enum):
    """Declared usage context of a dependency."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    TEST = "test"
    PROVIDED = "provided"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Scope":
        """Parse a scope name case-insensitively; ``None`` means compile."""
        if value is None or not str(value).strip():
            return cls.COMPILE
        normalized = str(value).strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ParseError(
                f"Invalid scope {value!r}. Valid scopes: {valid}"
            ) from None


@dataclass(frozen=True)
class Coordinate:
    """Immutable identifier of a single artifact.

    Attributes:
        group: Maven groupId.
        artifact: Maven artifactId.
        version: Version string, ``None`` when unpinned.
        classifier: Optional classifier (``sources``, ``jdk8`` ...).
    """

    group: str
    artifact: str
    version: Optional[str] = None
    classifier: Optional[str] = None

    def __post_init__(self) -> None:
        raw = f"{self.group}:{self.artifact}"
        if self.version is not None:
            raw = f"{raw}:{self.version}"
        for name in ("group", "artifact"):
            value = getattr(self, name)
            if not value or not value.strip():
                raise InvalidCoordinateError(raw, f"empty {name}")
            if ":" in value:
                raise InvalidCoordinateError(raw, f"{name} contains ':'")
        for name in ("version", "classifier"):
            value = getattr(self, name)
            if value is None:
                continue
            if not value.strip():
                raise InvalidCoordinateError(raw, f"empty {name}")
            if ":" in value:
                raise InvalidCoordinateError(raw, f"{name} contains ':'")

    @property
    def key(self) -> str:
        """Identity key ``group:artifact:version[:classifier]``."""
        if self.version is None:
            base = f"{self.group}:{self.artifact}"
            return f"{base}:{WILDCARD}:{self.classifier}" if self.classifier else base
        base = f"{self.group}:{self.artifact}:{self.version}"
        return f"{base}:{self.classifier}" if self.classifier else base

    @property
    def name(self) -> Tuple[str, str]:
        """The (group, artifact) pair, independent of version."""
        return (self.group, self.artifact)

    @property
    def is_pinned(self) -> bool:
        return self.version is not None

    @property
    def filename(self) -> str:
        """Jar file name as laid out in a Maven repository."""
        if self.version is None:
            raise ValueError(f"Cannot derive a file name for unpinned {self.key}")
        if self.classifier:
            return f"{self.artifact}-{self.version}-{self.classifier}.jar"
        return f"{self.artifact}-{self.version}.jar"

    def repository_path(self) -> str:
        """Relative path of the jar inside a Maven-layout repository."""
        return "/".join(
            [self.group.replace(".", "/"), self.artifact, str(self.version), self.filename]
        )

    def with_version(self, version: Optional[str]) -> "Coordinate":
        return replace(self, version=version)

    def conflicts_with(self, other: "Coordinate") -> bool:
        """True when both name the same artifact at different versions."""
        return self.name == other.name and self.version != other.version

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        return parse_coordinate(text)

    def __str__(self) -> str:
        return self.key


def parse_coordinate(text: str) -> Coordinate:
    """Parse ``group:artifact`` or ``group:artifact:version``.

    Args:
        text: User supplied dependency string.

    Returns:
        Coordinate: Parsed coordinate; ``version`` is ``None`` for two fields.

    Raises:
        InvalidCoordinateError: Wrong field count or an empty field.
    """
    if text is None:
        raise InvalidCoordinateError("", "no value")
    parts = [part.strip() for part in str(text).strip().split(":")]
    if len(parts) not in (2, 3):
        raise InvalidCoordinateError(text, f"found {len(parts)} field(s)")
    if any(not part for part in parts):
        raise InvalidCoordinateError(text, "empty field")
    if len(parts) == 2:
        return Coordinate(parts[0], parts[1])
    return Coordinate(parts[0], parts[1], parts[2])


@dataclass(frozen=True)
class Exclusion:
    """A (group, artifact) pair pruned from a transitive expansion.

    Either field may be ``*`` to match anything.
    """

    group: str
    artifact: str

    def matches(self, coordinate: Coordinate) -> bool:
        group_ok = self.group == WILDCARD or self.group == coordinate.group
        artifact_ok = self.artifact == WILDCARD or self.artifact == coordinate.artifact
        return group_ok and artifact_ok

    @classmethod
    def parse(cls, text: str) -> "Exclusion":
        parts = [part.strip() for part in str(text).split(":")]
        if len(parts) != 2 or not all(parts):
            raise InvalidCoordinateError(text, "exclusions are group:artifact")
        return cls(parts[0], parts[1])

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}"


@dataclass(frozen=True)
class DependencySpec:
    """A dependency as declared by a project or reported by a metadata source."""

    coordinate: Coordinate
    scope: Scope = Scope.COMPILE
    exclusions: FrozenSet[Exclusion] = field(default_factory=frozenset)
    optional: bool = False

    @property
    def key(self) -> str:
        return self.coordinate.key

    def excludes(self, coordinate: Coordinate) -> bool:
        return any(exclusion.matches(coordinate) for exclusion in self.exclusions)

    def with_coordinate(self, coordinate: Coordinate) -> "DependencySpec":
        return replace(self, coordinate=coordinate)

    @classmethod
    def of(
        cls,
        text: str,
        scope: Scope | str | None = None,
        exclusions: Iterable[str | Exclusion] = (),
        optional: bool = False,
        classifier: Optional[str] = None,
    ) -> "DependencySpec":
        """Build a spec from a coordinate string.

        Example:
            >>> DependencySpec.of("junit:junit:4.13.2", scope="test").scope
            <Scope.TEST: 'test'>
        """
        coordinate = parse_coordinate(text)
        if classifier:
            coordinate = replace(coordinate, classifier=classifier)
        parsed_scope = scope if isinstance(scope, Scope) else Scope.parse(scope)
        parsed_exclusions = frozenset(
            item if isinstance(item, Exclusion) else Exclusion.parse(item)
            for item in exclusions
        )
        return cls(
            coordinate=coordinate,
            scope=parsed_scope,
            exclusions=parsed_exclusions,
            optional=optional,
        )


__all__ = [
    "WILDCARD",
    "Coordinate",
    "DependencySpec",
    "Exclusion",
    "Scope",
    "parse_coordinate",
]
