"""End-to-end flows: sync a project's lock file and build its classpath.

``sync_project`` wires the pieces together::

    ConfigAdapter.read_specs -> Resolver.resolve -> LockStore (upsert/remove)
        -> ArtifactFetcher in resolution order -> LockStore.save
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from jxdeps.adapters import read_project_specs
from jxdeps.config import JxSettings, load_project_settings
from jxdeps.fetch import ArtifactFetcher, MavenRepositoryFetcher
from jxdeps.lock import LockStore
from jxdeps.lock.store import Clock
from jxdeps.model import ResolvedDependency, Scope, VersionConflict
from jxdeps.resolve import MavenCentralMetadataSource, MetadataSource, Resolver, StaticMetadataSource

logger = logging.getLogger("jxdeps.pipeline")


@dataclass
class SyncReport:
    """Outcome of ``sync_project``.

    Attributes:
        dependencies: Resolved entries, in discovery order.
        order: Keys in install order (dependencies first).
        conflicts: Version conflicts found; informational.
        removed: Lock keys dropped because nothing requires them any more.
        lock_path: Lock file written.
        fetched: Number of artifacts obtained through the fetcher.
        warnings: Cycle warnings raised while ordering.
    """

    dependencies: List[ResolvedDependency]
    order: List[str]
    conflicts: List[VersionConflict]
    removed: List[str]
    lock_path: Path
    fetched: int = 0
    warnings: List[str] = field(default_factory=list)


def build_source(settings: JxSettings) -> MetadataSource:
    resolver_settings = settings.resolver
    if resolver_settings.offline:
        logger.info("Offline mode: using built-in static metadata")
        return StaticMetadataSource.sample()
    return MavenCentralMetadataSource(
        repository_url=resolver_settings.repository_url,
        timeout=resolver_settings.metadata_timeout,
        include_optional=resolver_settings.include_optional,
    )


def build_resolver(settings: JxSettings, source: MetadataSource) -> Resolver:
    resolver_settings = settings.resolver
    return Resolver(
        source,
        timeout=resolver_settings.metadata_timeout,
        max_workers=resolver_settings.max_workers,
        repository_url=resolver_settings.repository_url,
        include_optional=resolver_settings.include_optional,
    )


def build_fetcher(settings: JxSettings) -> ArtifactFetcher:
    return MavenRepositoryFetcher(
        cache_dir=settings.fetch.cache_dir,
        repository_url=settings.resolver.repository_url,
        timeout=settings.fetch.timeout,
    )


def lock_path_for(project_dir: Path, settings: JxSettings) -> Path:
    return Path(project_dir) / settings.lock.filename


def _lib_dir(project_dir: Path, settings: JxSettings) -> Path:
    lib_dir = Path(settings.fetch.lib_dir).expanduser()
    return lib_dir if lib_dir.is_absolute() else Path(project_dir) / lib_dir


def sync_project(
    project_dir: Path,
    settings: Optional[JxSettings] = None,
    source: Optional[MetadataSource] = None,
    fetcher: Optional[ArtifactFetcher] = None,
    clock: Optional[Clock] = None,
) -> SyncReport:
    """Resolve the project's declared dependencies and rewrite its lock file.

    Lock entries no longer reachable from the declared specs are dropped.
    When ``fetcher`` is given, every artifact is fetched in install order,
    copied into the project's lib directory and its checksum/size recorded;
    otherwise checksums already in the lock are carried over.

    Raises:
        ConfigurationError: No readable project config.
        ResolveError: Resolution failed; the lock file is left untouched.
        LockFileError: The existing lock file is corrupt.
        FetchError: An artifact download failed; the lock file is left untouched.
    """
    project_dir = Path(project_dir)
    settings = settings or load_project_settings(project_dir)
    specs = read_project_specs(project_dir)
    logger.info("Syncing %d declared dependencies in %s", len(specs), project_dir)

    resolver = build_resolver(settings, source or build_source(settings))
    resolved = resolver.resolve(specs)
    conflicts = resolver.detect_conflicts()
    order = resolver.resolution_order()

    lock_path = lock_path_for(project_dir, settings)
    store = LockStore.load(lock_path, clock=clock)
    wanted: Dict[str, ResolvedDependency] = {dep.key: dep for dep in resolved}

    lib_dir = _lib_dir(project_dir, settings)
    removed = [key for key in sorted(store.entries) if key not in wanted]
    stale_jars = []
    for key in removed:
        stale = store.get(key)
        if stale is not None:
            stale_jars.append(lib_dir / stale.coordinate.filename)
        store.remove(key)
        logger.info("Removed %s from the lock file", key)

    fetched = 0
    for key in order:
        dep = wanted.get(key)
        if dep is None:
            continue
        previous = store.get(key)
        if fetcher is not None:
            artifact = fetcher.fetch(dep.coordinate)
            lib_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(artifact.path, lib_dir / dep.coordinate.filename)
            dep = dep.with_artifact(artifact.checksum, artifact.size)
            fetched += 1
        elif previous is not None and previous.checksum:
            dep = dep.with_artifact(previous.checksum, previous.size)
        store.upsert(dep)

    store.save(lock_path, require_complete=settings.lock.require_complete)
    if fetcher is not None:
        for jar in stale_jars:
            jar.unlink(missing_ok=True)
    return SyncReport(
        dependencies=[store.get(dep.key) or dep for dep in resolved],
        order=order,
        conflicts=conflicts,
        removed=removed,
        lock_path=lock_path,
        fetched=fetched,
        warnings=list(resolver.order_warnings),
    )


def build_classpath(
    store: LockStore, lib_dir: Path, include_test: bool = False
) -> List[Path]:
    """Jar paths for every locked dependency, dependencies first.

    Test-scoped entries are left out unless ``include_test``.
    """
    paths = []
    for key in store.resolution_order():
        dep = store.get(key)
        if dep is None:
            continue
        if dep.scope is Scope.TEST and not include_test:
            continue
        paths.append(Path(lib_dir) / dep.coordinate.filename)
    return paths


def project_classpath(
    project_dir: Path, settings: Optional[JxSettings] = None, include_test: Optional[bool] = None
) -> List[Path]:
    project_dir = Path(project_dir)
    settings = settings or load_project_settings(project_dir)
    if include_test is None:
        include_test = settings.classpath.include_test_scope
    store = LockStore.load(lock_path_for(project_dir, settings))
    return build_classpath(store, _lib_dir(project_dir, settings), include_test)


__all__ = [
    "SyncReport",
    "build_classpath",
    "build_fetcher",
    "build_resolver",
    "build_source",
    "lock_path_for",
    "project_classpath",
    "sync_project",
]
