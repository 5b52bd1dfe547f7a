"""Resolution results: lock entries, conflicts and display trees."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, List, Optional, Tuple

from jxdeps.model.coordinate import Coordinate, Scope


@dataclass(frozen=True)
class ResolvedDependency:
    """A fully resolved dependency, as recorded in the lock file.

    Attributes:
        coordinate: Pinned coordinate.
        scope: Widest scope any path requested it in.
        checksum: ``<algorithm>:<hex digest>`` of the artifact, empty until fetched.
        source_url: Where the artifact is downloaded from.
        transitive_edges: Keys of the dependencies this one requires.
        size: Artifact size in bytes, 0 until fetched.
    """

    coordinate: Coordinate
    scope: Scope = Scope.COMPILE
    checksum: str = ""
    source_url: str = ""
    transitive_edges: FrozenSet[str] = field(default_factory=frozenset)
    size: int = 0

    @property
    def key(self) -> str:
        return self.coordinate.key

    @property
    def classifier(self) -> Optional[str]:
        return self.coordinate.classifier

    def with_edges(self, edges: Iterable[str]) -> "ResolvedDependency":
        return replace(self, transitive_edges=frozenset(edges))

    def with_artifact(
        self, checksum: str, size: int, source_url: Optional[str] = None
    ) -> "ResolvedDependency":
        """Return a copy carrying the fetched artifact's checksum and size."""
        return replace(
            self,
            checksum=checksum,
            size=size,
            source_url=self.source_url if source_url is None else source_url,
        )


@dataclass(frozen=True)
class VersionConflict:
    """Several versions of the same (group, artifact) were resolved.

    Informational only: resolution still succeeds and the caller decides
    what to do about it.
    """

    group: str
    artifact: str
    versions: Tuple[str, ...]

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact} resolved at versions {', '.join(self.versions)}"


@dataclass
class TreeNode:
    """One node of a rendered dependency tree.

    ``repeated`` marks a node that was already shown elsewhere in the forest;
    such nodes carry no children.
    """

    key: str
    dependency: Optional[ResolvedDependency]
    depth: int = 0
    children: List["TreeNode"] = field(default_factory=list)
    repeated: bool = False

    def walk(self) -> Iterable["TreeNode"]:
        yield self
        for child in self.children:
            yield from child.walk()


__all__ = ["ResolvedDependency", "TreeNode", "VersionConflict"]
