"""Edit operations on a project's declared dependencies.

These back the ``add``, ``remove`` and ``update`` commands. Each operation
detects the project's config file, edits the declared spec list and writes
it back through the same adapter.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from jxdeps.adapters.base import AdapterRegistry, ConfigAdapter
from jxdeps.adapters.jx import JxTomlAdapter
from jxdeps.errors import ConfigurationError, UnpinnedVersionError
from jxdeps.model import Coordinate, DependencySpec, Scope, parse_coordinate
from jxdeps.resolve.metadata import MetadataSource

logger = logging.getLogger("jxdeps.adapters.edit")

CoordinateLike = Union[Coordinate, str]


def _coordinate(value: CoordinateLike) -> Coordinate:
    return value if isinstance(value, Coordinate) else parse_coordinate(value)


def detect_adapter(project_dir: Path) -> ConfigAdapter:
    """Return the adapter for the project's config file.

    Raises:
        ConfigurationError: None of ``jx.toml``, ``pom.xml`` or
            ``build.gradle`` exists in ``project_dir``.
    """
    adapter = AdapterRegistry.get_instance().detect(Path(project_dir))
    if adapter is None:
        names = ", ".join(AdapterRegistry.get_instance().names())
        raise ConfigurationError(
            f"No project configuration found in {project_dir} (looked for: {names})"
        )
    return adapter


def read_project_specs(project_dir: Path) -> List[DependencySpec]:
    return detect_adapter(project_dir).read_specs(Path(project_dir))


def add_dependency(
    project_dir: Path,
    coordinate: CoordinateLike,
    scope: Scope = Scope.COMPILE,
) -> DependencySpec:
    """Declare a dependency, replacing any entry for the same group:artifact.

    A project without any config file gets a new ``jx.toml``.
    """
    project_dir = Path(project_dir)
    adapter = AdapterRegistry.get_instance().detect(project_dir)
    if adapter is None:
        adapter = JxTomlAdapter()
        specs: List[DependencySpec] = []
    else:
        specs = adapter.read_specs(project_dir)

    new_spec = DependencySpec(coordinate=_coordinate(coordinate), scope=scope)
    for index, spec in enumerate(specs):
        if spec.coordinate.name == new_spec.coordinate.name:
            logger.info("Replacing %s with %s in %s", spec.key, new_spec.key, adapter.FILENAME)
            specs[index] = new_spec
            break
    else:
        logger.info("Adding %s to %s", new_spec.key, adapter.FILENAME)
        specs.append(new_spec)

    adapter.write_specs(project_dir, specs)
    return new_spec


def remove_dependency(project_dir: Path, coordinate: CoordinateLike) -> bool:
    """Remove matching declarations; returns whether anything was removed.

    ``group:artifact`` matches every version, ``group:artifact:version``
    only that version.
    """
    project_dir = Path(project_dir)
    target = _coordinate(coordinate)
    adapter = detect_adapter(project_dir)
    specs = adapter.read_specs(project_dir)

    def matches(spec: DependencySpec) -> bool:
        if spec.coordinate.name != target.name:
            return False
        return target.version is None or spec.coordinate.version == target.version

    kept = [spec for spec in specs if not matches(spec)]
    if len(kept) == len(specs):
        logger.info("%s is not declared in %s", target, adapter.FILENAME)
        return False

    adapter.write_specs(project_dir, kept)
    logger.info("Removed %s from %s", target, adapter.FILENAME)
    return True


def update_dependencies(
    project_dir: Path,
    source: MetadataSource,
    only: Optional[CoordinateLike] = None,
    latest: bool = False,
) -> List[Tuple[DependencySpec, DependencySpec]]:
    """Pin declared dependencies to newer versions.

    Without ``latest`` only unpinned specs are pinned; with it every spec
    (or just ``only``) moves to ``source.latest_version``. Specs the source
    knows nothing about are left alone.

    Returns:
        List of (old, new) spec pairs that changed.

    Raises:
        ConfigurationError: ``only`` names a dependency that is not declared.
        UnpinnedVersionError: An unpinned spec has no known release.
    """
    project_dir = Path(project_dir)
    adapter = detect_adapter(project_dir)
    specs = adapter.read_specs(project_dir)
    target = _coordinate(only) if only is not None else None

    if target is not None and not any(s.coordinate.name == target.name for s in specs):
        raise ConfigurationError(f"{target} is not declared in {adapter.FILENAME}")

    changes: List[Tuple[DependencySpec, DependencySpec]] = []
    for index, spec in enumerate(specs):
        coordinate = spec.coordinate
        if target is not None and coordinate.name != target.name:
            continue
        if coordinate.version is not None and not latest:
            continue

        newest = source.latest_version(coordinate.group, coordinate.artifact)
        if newest is None:
            if coordinate.version is None:
                raise UnpinnedVersionError(coordinate.group, coordinate.artifact)
            logger.warning("No release information for %s; keeping %s", spec.key, coordinate.version)
            continue
        if newest == coordinate.version:
            continue

        updated = spec.with_coordinate(coordinate.with_version(newest))
        logger.info("Updating %s -> %s", spec.key, updated.key)
        specs[index] = updated
        changes.append((spec, updated))

    if changes:
        adapter.write_specs(project_dir, specs)
    return changes


__all__ = [
    "add_dependency",
    "detect_adapter",
    "read_project_specs",
    "remove_dependency",
    "update_dependencies",
]
