"""Persistent lock store (``jx.lock``).

The store maps coordinate keys to ``ResolvedDependency`` entries and keeps a
small metadata block (timestamps and totals). Serialization is
deterministic: entry keys, entry fields and edge lists are always written in
the same order, so saving an unchanged store reproduces the file byte for
byte. Writes go to a temporary sibling file that is then renamed over the
target.
"""

from __future__ import annotations

import logging
import os
import tempfile
import tomllib
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple, Union

import networkx as nx
import tomli_w
from pydantic import ValidationError

from jxdeps.errors import JxDepsError, LockFileError, LockIntegrityError
from jxdeps.graph import build_graph, topological_order
from jxdeps.lock.document import LOCK_FORMAT_VERSION, LockDocument
from jxdeps.model import Coordinate, ResolvedDependency, Scope, TreeNode

logger = logging.getLogger("jxdeps.lock.store")

DEFAULT_LOCK_FILENAME = "jx.lock"

Clock = Callable[[], datetime]
CoordinateLike = Union[Coordinate, str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """RFC 3339 UTC timestamp with second precision."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class LockMetadata:
    created_at: str
    updated_at: str
    total_dependencies: int = 0
    total_size: int = 0


def _key_of(coordinate: CoordinateLike) -> str:
    if isinstance(coordinate, Coordinate):
        return coordinate.key
    return coordinate


class LockStore:
    """In-memory view of a lock file.

    Args:
        path: File the store was loaded from; ``save()`` defaults to it.
        clock: Time source for ``created_at``/``updated_at``.
    """

    def __init__(self, path: Optional[Path] = None, clock: Optional[Clock] = None) -> None:
        self.path = Path(path) if path is not None else None
        self.format_version = LOCK_FORMAT_VERSION
        self._clock = clock or utc_now
        self._entries: Dict[str, ResolvedDependency] = {}
        now = format_timestamp(self._clock())
        self.metadata = LockMetadata(created_at=now, updated_at=now)

    # ------------------------------------------------------------- loading

    @classmethod
    def load(cls, path: Union[str, Path], clock: Optional[Clock] = None) -> "LockStore":
        """Load a lock file.

        A missing file yields an empty store bound to ``path``.

        Raises:
            LockFileError: The file exists but is not a valid lock document.
        """
        path = Path(path)
        if not path.exists():
            logger.info("No lock file at %s; starting with an empty store", path)
            return cls(path, clock)

        text = path.read_text(encoding="utf-8")
        store = cls.loads(text, clock=clock, origin=str(path))
        store.path = path
        logger.info("Loaded %d lock entries from %s", len(store), path)
        return store

    @classmethod
    def loads(
        cls, text: str, clock: Optional[Clock] = None, origin: str = "<string>"
    ) -> "LockStore":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise LockFileError(f"{origin}: not valid TOML: {exc}") from exc

        try:
            document = LockDocument.model_validate(data)
        except ValidationError as exc:
            raise LockFileError(f"{origin}: invalid lock document: {exc}") from exc

        store = cls(clock=clock)
        store.format_version = document.format_version
        for key, entry in document.dependencies.items():
            try:
                coordinate = Coordinate(
                    entry.group_id, entry.artifact_id, entry.version, entry.classifier
                )
                scope = Scope.parse(entry.scope)
            except JxDepsError as exc:
                raise LockFileError(f"{origin}: entry {key!r}: {exc}") from exc
            if coordinate.key != key:
                raise LockFileError(
                    f"{origin}: entry {key!r} describes {coordinate.key!r}"
                )
            store._entries[key] = ResolvedDependency(
                coordinate=coordinate,
                scope=scope,
                checksum=entry.checksum,
                source_url=entry.source_url,
                transitive_edges=frozenset(entry.dependencies),
                size=entry.size,
            )

        if document.metadata is not None:
            store.metadata = LockMetadata(
                created_at=document.metadata.created_at,
                updated_at=document.metadata.updated_at,
            )
        store._recount()
        return store

    # -------------------------------------------------------------- saving

    def to_document(self) -> Dict[str, Any]:
        dependencies: Dict[str, Any] = {}
        for key in sorted(self._entries):
            dep = self._entries[key]
            table: Dict[str, Any] = {
                "group_id": dep.coordinate.group,
                "artifact_id": dep.coordinate.artifact,
                "version": dep.coordinate.version,
            }
            if dep.classifier is not None:
                table["classifier"] = dep.classifier
            table.update(
                scope=dep.scope.value,
                checksum=dep.checksum,
                source_url=dep.source_url,
                size=dep.size,
                dependencies=sorted(dep.transitive_edges),
            )
            dependencies[key] = table

        return {
            "format_version": self.format_version,
            "dependencies": dependencies,
            "metadata": {
                "created_at": self.metadata.created_at,
                "updated_at": self.metadata.updated_at,
                "total_dependencies": self.metadata.total_dependencies,
                "total_size": self.metadata.total_size,
            },
        }

    def dumps(self) -> str:
        return tomli_w.dumps(self.to_document())

    def save(self, path: Optional[Union[str, Path]] = None, *, require_complete: bool = True) -> Path:
        """Write the store atomically.

        Args:
            path: Target file; defaults to the path the store was loaded from.
            require_complete: Refuse to save when an edge points at a key
                that has no entry.

        Returns:
            Path: The file written.

        Raises:
            LockIntegrityError: ``require_complete`` and dangling edges exist.
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise LockFileError("No path given and the store was not loaded from a file")

        dangling = self.dangling_edges()
        if dangling:
            if require_complete:
                raise LockIntegrityError(dangling)
            logger.warning("Saving lock file with %d dangling edge(s)", len(dangling))

        _atomic_write(target, self.dumps())
        self.path = target
        logger.info("Wrote %d lock entries to %s", len(self), target)
        return target

    # ------------------------------------------------------------ mutation

    def _recount(self) -> None:
        self.metadata.total_dependencies = len(self._entries)
        self.metadata.total_size = sum(dep.size for dep in self._entries.values())

    def _touch(self) -> None:
        self.metadata.updated_at = format_timestamp(self._clock())
        self._recount()

    def upsert(self, dependency: ResolvedDependency) -> None:
        if self._entries.get(dependency.key) == dependency:
            return
        self._entries[dependency.key] = dependency
        self._touch()

    def remove(self, coordinate: CoordinateLike) -> bool:
        """Remove an entry; returns whether anything was removed."""
        key = _key_of(coordinate)
        if self._entries.pop(key, None) is None:
            return False
        self._touch()
        return True

    def get(self, coordinate: CoordinateLike) -> Optional[ResolvedDependency]:
        return self._entries.get(_key_of(coordinate))

    def contains(self, coordinate: CoordinateLike) -> bool:
        return _key_of(coordinate) in self._entries

    def find(self, group: str, artifact: str) -> List[ResolvedDependency]:
        """All entries for ``group:artifact``, any version."""
        return [
            dep for key, dep in sorted(self._entries.items())
            if dep.coordinate.name == (group, artifact)
        ]

    def clear(self) -> None:
        if self._entries:
            self._entries.clear()
            self._touch()

    # ------------------------------------------------------------- queries

    @property
    def entries(self) -> Dict[str, ResolvedDependency]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ResolvedDependency]:
        for key in sorted(self._entries):
            yield self._entries[key]

    def __contains__(self, coordinate: object) -> bool:
        if isinstance(coordinate, (Coordinate, str)):
            return self.contains(coordinate)
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LockStore):
            return NotImplemented
        return (
            self.format_version == other.format_version
            and self._entries == other._entries
            and self.metadata == other.metadata
        )

    __hash__ = None  # type: ignore[assignment]

    def dangling_edges(self) -> List[Tuple[str, str]]:
        return sorted(
            (key, edge)
            for key, dep in self._entries.items()
            for edge in dep.transitive_edges
            if edge not in self._entries
        )

    def to_graph(self) -> nx.DiGraph:
        return build_graph({key: dep.transitive_edges for key, dep in self._entries.items()})

    def resolution_order(self) -> List[str]:
        """Entry keys with dependencies before dependents."""
        order, _warnings = topological_order(self.to_graph())
        return order

    def dependency_tree(self) -> List[TreeNode]:
        """Rebuild the dependency forest from the stored edges.

        Roots are entries nothing else depends on. Each entry is expanded at
        most once; later occurrences become leaves with ``repeated=True``.
        Entries only reachable through a cycle are appended as extra roots.
        """
        incoming: Set[str] = set()
        for dep in self._entries.values():
            incoming.update(dep.transitive_edges)
        roots = sorted(key for key in self._entries if key not in incoming)

        visited: Set[str] = set()
        forest = [self._tree_node(key, 0, visited) for key in roots]
        for key in sorted(self._entries):
            if key not in visited:
                forest.append(self._tree_node(key, 0, visited))
        return forest

    def _tree_node(self, key: str, depth: int, visited: Set[str]) -> TreeNode:
        dep = self._entries[key]
        if key in visited:
            return TreeNode(key=key, dependency=dep, depth=depth, repeated=True)
        visited.add(key)
        node = TreeNode(key=key, dependency=dep, depth=depth)
        for edge in sorted(dep.transitive_edges):
            if edge not in self._entries:
                logger.warning("Lock entry %s depends on %s, which is not locked", key, edge)
                continue
            node.children.append(self._tree_node(edge, depth + 1, visited))
        return node


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


__all__ = ["DEFAULT_LOCK_FILENAME", "LockMetadata", "LockStore", "format_timestamp", "utc_now"]
