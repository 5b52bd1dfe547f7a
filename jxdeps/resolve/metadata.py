"""Metadata sources: where the resolver learns about transitive dependencies.

The resolver never talks to a registry directly. It asks a
``MetadataSource`` two questions:

* ``transitive_of(coordinate)`` - the direct dependencies of an artifact.
  An empty list is a valid (if possibly incomplete) answer.
* ``latest_version(group, artifact)`` - the release to use when a spec does
  not pin a version. ``None`` means "unknown".

Implementations may block (network I/O); the resolver runs them on worker
threads and bounds each call with a timeout. Retrying flaky lookups is the
source's own business.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from jxdeps.model import Coordinate, DependencySpec, latest_release

logger = logging.getLogger("jxdeps.resolve.metadata")


class MetadataSource(ABC):
    """Answers dependency metadata questions for the resolver."""

    NAME: str = "base"

    @abstractmethod
    def transitive_of(self, coordinate: Coordinate) -> List[DependencySpec]:
        """Return the direct dependencies declared by ``coordinate``.

        Args:
            coordinate: A pinned coordinate.

        Returns:
            List[DependencySpec]: Direct dependencies; may be empty.
        """
        raise NotImplementedError

    def latest_version(self, group: str, artifact: str) -> Optional[str]:
        """Return the newest release of ``group:artifact`` or ``None``."""
        return None


TableEntry = Union[str, Tuple[str, str], DependencySpec]


def _to_spec(entry: TableEntry) -> DependencySpec:
    if isinstance(entry, DependencySpec):
        return entry
    if isinstance(entry, tuple):
        text, scope = entry
        return DependencySpec.of(text, scope=scope)
    return DependencySpec.of(entry)


class StaticMetadataSource(MetadataSource):
    """Offline source backed by an in-memory table.

    Table keys are either ``group:artifact:version`` (exact) or
    ``group:artifact`` (any version); exact keys win. Values are coordinate
    strings, ``(coordinate, scope)`` tuples or ready-made specs.

    Example:
        >>> source = StaticMetadataSource({"junit:junit": ["org.hamcrest:hamcrest-core:1.3"]})
        >>> [s.key for s in source.transitive_of(Coordinate("junit", "junit", "4.13.2"))]
        ['org.hamcrest:hamcrest-core:1.3']
    """

    NAME = "static"

    def __init__(
        self,
        table: Optional[Mapping[str, Sequence[TableEntry]]] = None,
        releases: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        self._table: Dict[str, List[DependencySpec]] = {
            key: [_to_spec(entry) for entry in entries]
            for key, entries in (table or {}).items()
        }
        self._releases: Dict[str, List[str]] = defaultdict(list)
        for key, versions in (releases or {}).items():
            self._releases[key].extend(versions)
        # Versions mentioned anywhere in the table count as known releases.
        for key, specs in self._table.items():
            parts = key.split(":")
            if len(parts) == 3:
                self._releases[f"{parts[0]}:{parts[1]}"].append(parts[2])
            for spec in specs:
                coord = spec.coordinate
                if coord.version is not None:
                    self._releases[f"{coord.group}:{coord.artifact}"].append(coord.version)

    @classmethod
    def sample(cls) -> "StaticMetadataSource":
        """Source preloaded with a handful of well-known Java libraries."""
        return cls(SAMPLE_TRANSITIVES)

    def transitive_of(self, coordinate: Coordinate) -> List[DependencySpec]:
        exact = self._table.get(coordinate.key)
        if exact is None and coordinate.version is not None:
            exact = self._table.get(f"{coordinate.group}:{coordinate.artifact}:{coordinate.version}")
        if exact is None:
            exact = self._table.get(f"{coordinate.group}:{coordinate.artifact}", [])
        logger.debug("Static metadata for %s: %d dependencies", coordinate, len(exact))
        return list(exact)

    def latest_version(self, group: str, artifact: str) -> Optional[str]:
        return latest_release(self._releases.get(f"{group}:{artifact}", ()))

    def known_artifacts(self) -> Iterable[str]:
        return sorted(self._table)


# Sample data for offline use; the version numbers are illustrative only.
SAMPLE_TRANSITIVES: Dict[str, List[TableEntry]] = {
    "org.springframework:spring-core": [
        "org.springframework:spring-jcl:5.3.0",
    ],
    "org.springframework:spring-beans": [
        "org.springframework:spring-core:5.3.0",
    ],
    "org.springframework:spring-context": [
        "org.springframework:spring-core:5.3.0",
        "org.springframework:spring-beans:5.3.0",
    ],
    "org.springframework:spring-web": [
        "org.springframework:spring-core:5.3.0",
        "org.springframework:spring-beans:5.3.0",
        "org.springframework:spring-context:5.3.0",
    ],
    "org.springframework.boot:spring-boot-starter": [
        "org.springframework.boot:spring-boot:2.7.0",
        "org.springframework.boot:spring-boot-autoconfigure:2.7.0",
        "org.springframework.boot:spring-boot-starter-logging:2.7.0",
        "org.springframework:spring-core:5.3.0",
        "org.springframework:spring-context:5.3.0",
    ],
    "com.fasterxml.jackson.core:jackson-databind": [
        "com.fasterxml.jackson.core:jackson-core:2.13.0",
        "com.fasterxml.jackson.core:jackson-annotations:2.13.0",
    ],
    "org.hibernate:hibernate-core": [
        "org.hibernate.common:hibernate-commons-annotations:5.1.2",
        "org.jboss.logging:jboss-logging:3.4.1",
        "org.javassist:javassist:3.27.0",
        "antlr:antlr:2.7.7",
    ],
    "junit:junit": ["org.hamcrest:hamcrest-core:1.3"],
    "org.mockito:mockito-core": ["org.objenesis:objenesis:3.2"],
    "org.mockito:mockito-junit-jupiter": [
        "org.mockito:mockito-core:4.5.1",
        "org.junit.jupiter:junit-jupiter-api:5.8.2",
    ],
    "ch.qos.logback:logback-classic": [
        "ch.qos.logback:logback-core:1.2.11",
        "org.slf4j:slf4j-api:1.7.36",
    ],
    "org.apache.commons:commons-lang3": [],
    "org.apache.commons:commons-text": ["org.apache.commons:commons-lang3:3.12.0"],
    "mysql:mysql-connector-java": ["com.google.protobuf:protobuf-java:3.11.4"],
    "org.postgresql:postgresql": ["org.checkerframework:checker-qual:3.12.0"],
    "org.mongodb:mongodb-driver-sync": [
        "org.mongodb:mongodb-driver-core:4.4.0",
        "org.mongodb:bson:4.4.0",
    ],
    "org.mongodb:mongodb-driver-core": ["org.mongodb:bson:4.4.0"],
    "org.elasticsearch.client:elasticsearch-rest-high-level-client": [
        "org.elasticsearch:elasticsearch:7.17.0",
        "org.elasticsearch.client:elasticsearch-rest-client:7.17.0",
        "org.apache.httpcomponents:httpclient:4.5.13",
    ],
    "org.apache.kafka:kafka-clients": [
        "com.github.luben:zstd-jni:1.5.0",
        "org.lz4:lz4-java:1.8.0",
    ],
}


__all__ = ["SAMPLE_TRANSITIVES", "MetadataSource", "StaticMetadataSource"]
