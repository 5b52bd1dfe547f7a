"""End-to-end sync and classpath tests with an offline source and a fake fetcher."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List

import pytest

from jxdeps.adapters import remove_dependency
from jxdeps.errors import CycleError, FetchError
from jxdeps.fetch import ArtifactFetcher, FetchedArtifact, file_checksum
from jxdeps.lock import LockStore
from jxdeps.model import Coordinate, Scope
from jxdeps.pipeline import build_classpath, project_classpath, sync_project
from jxdeps.resolve import StaticMetadataSource

PROJECT = """\
[project]
name = "demo"

[dependencies]
"app:web" = "1.0"
"test:junit" = { version = "4.13.2", scope = "test" }
"""

TABLE = {
    "app:web:1.0": ["lib:core:2.0", "lib:log:1.1"],
    "lib:log:1.1": ["lib:core:2.0"],
    "test:junit": ["test:hamcrest:1.3"],
}


def fixed_clock() -> datetime:
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeFetcher(ArtifactFetcher):
    """Writes a small fake jar per coordinate into the cache."""

    NAME = "fake"

    def __init__(self, cache_dir: Path, fail_on: str = "") -> None:
        super().__init__(cache_dir)
        self.fail_on = fail_on
        self.fetched: List[str] = []

    def fetch(self, coordinate: Coordinate) -> FetchedArtifact:
        if coordinate.key == self.fail_on:
            raise FetchError(f"cannot fetch {coordinate}")
        path = self.cache_path(coordinate)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(coordinate.key.encode("utf-8"))
        self.fetched.append(coordinate.key)
        return FetchedArtifact(path=path, checksum=file_checksum(path), size=path.stat().st_size)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "jx.toml").write_text(PROJECT, encoding="utf-8")
    return root


def test_sync_writes_lock_for_whole_closure(project: Path) -> None:
    report = sync_project(project, source=StaticMetadataSource(TABLE), clock=fixed_clock)

    store = LockStore.load(report.lock_path)
    assert report.lock_path == project / "jx.lock"
    assert sorted(store.entries) == [
        "app:web:1.0",
        "lib:core:2.0",
        "lib:log:1.1",
        "test:hamcrest:1.3",
        "test:junit:4.13.2",
    ]
    assert store.get("test:hamcrest:1.3").scope is Scope.TEST
    assert store.get("app:web:1.0").transitive_edges == {"lib:core:2.0", "lib:log:1.1"}
    assert store.get("lib:core:2.0").source_url.endswith(
        "/lib/core/2.0/core-2.0.jar"
    )
    assert report.order.index("lib:core:2.0") < report.order.index("app:web:1.0")
    assert report.conflicts == []
    assert report.removed == []
    assert report.fetched == 0
    assert store.dangling_edges() == []


def test_sync_is_stable(project: Path) -> None:
    source = StaticMetadataSource(TABLE)
    first = sync_project(project, source=source, clock=fixed_clock)
    text = first.lock_path.read_text(encoding="utf-8")

    sync_project(project, source=source, clock=fixed_clock)

    assert first.lock_path.read_text(encoding="utf-8") == text


def test_sync_drops_unreachable_entries(project: Path) -> None:
    source = StaticMetadataSource(TABLE)
    sync_project(project, source=source, clock=fixed_clock)

    remove_dependency(project, "test:junit")
    report = sync_project(project, source=source, clock=fixed_clock)

    assert report.removed == ["test:hamcrest:1.3", "test:junit:4.13.2"]
    assert "test:junit:4.13.2" not in LockStore.load(report.lock_path)


def test_sync_reports_conflicts(project: Path) -> None:
    (project / "jx.toml").write_text(
        '[dependencies]\n"app:web" = "1.0"\n"lib:core" = "1.0"\n', encoding="utf-8"
    )
    report = sync_project(project, source=StaticMetadataSource(TABLE), clock=fixed_clock)

    assert [(c.group, c.artifact, c.versions) for c in report.conflicts] == [
        ("lib", "core", ("1.0", "2.0"))
    ]
    store = LockStore.load(report.lock_path)
    assert "lib:core:1.0" in store and "lib:core:2.0" in store


def test_failed_resolve_leaves_lock_untouched(project: Path) -> None:
    source = StaticMetadataSource(TABLE)
    sync_project(project, source=source, clock=fixed_clock)
    lock = project / "jx.lock"
    before = lock.read_text(encoding="utf-8")

    cyclic = StaticMetadataSource({**TABLE, "lib:core:2.0": ["app:web:1.0"]})
    with pytest.raises(CycleError):
        sync_project(project, source=cyclic, clock=fixed_clock)

    assert lock.read_text(encoding="utf-8") == before


def test_sync_with_fetcher_records_checksums(project: Path, tmp_path: Path) -> None:
    fetcher = FakeFetcher(tmp_path / "cache")
    report = sync_project(
        project, source=StaticMetadataSource(TABLE), fetcher=fetcher, clock=fixed_clock
    )

    assert report.fetched == 5
    # Dependencies are fetched before the artifacts that need them.
    assert fetcher.fetched.index("lib:core:2.0") < fetcher.fetched.index("lib:log:1.1")
    store = LockStore.load(report.lock_path)
    core = store.get("lib:core:2.0")
    assert core.checksum.startswith("sha256:")
    assert core.size == len(b"lib:core:2.0")
    assert (project / "lib" / "core-2.0.jar").read_bytes() == b"lib:core:2.0"
    assert store.metadata.total_size == sum(dep.size for dep in store)


def test_sync_without_fetcher_keeps_checksums(project: Path, tmp_path: Path) -> None:
    source = StaticMetadataSource(TABLE)
    sync_project(project, source=source, fetcher=FakeFetcher(tmp_path / "cache"), clock=fixed_clock)
    checksum = LockStore.load(project / "jx.lock").get("lib:core:2.0").checksum

    sync_project(project, source=source, clock=fixed_clock)

    assert LockStore.load(project / "jx.lock").get("lib:core:2.0").checksum == checksum


def test_fetch_failure_leaves_lock_untouched(project: Path, tmp_path: Path) -> None:
    with pytest.raises(FetchError):
        sync_project(
            project,
            source=StaticMetadataSource(TABLE),
            fetcher=FakeFetcher(tmp_path / "cache", fail_on="app:web:1.0"),
            clock=fixed_clock,
        )
    assert not (project / "jx.lock").exists()


def test_stale_jars_are_deleted(project: Path, tmp_path: Path) -> None:
    source = StaticMetadataSource(TABLE)
    fetcher = FakeFetcher(tmp_path / "cache")
    sync_project(project, source=source, fetcher=fetcher, clock=fixed_clock)
    assert (project / "lib" / "junit-4.13.2.jar").exists()

    remove_dependency(project, "test:junit")
    sync_project(project, source=source, fetcher=fetcher, clock=fixed_clock)

    assert not (project / "lib" / "junit-4.13.2.jar").exists()
    assert (project / "lib" / "core-2.0.jar").exists()


def test_classpath_skips_test_scope(project: Path) -> None:
    sync_project(project, source=StaticMetadataSource(TABLE), clock=fixed_clock)
    lib = project / "lib"

    paths = project_classpath(project)
    assert paths == [lib / "core-2.0.jar", lib / "log-1.1.jar", lib / "web-1.0.jar"]

    with_tests = build_classpath(LockStore.load(project / "jx.lock"), lib, include_test=True)
    assert {p.name for p in with_tests} == {
        "core-2.0.jar",
        "log-1.1.jar",
        "web-1.0.jar",
        "junit-4.13.2.jar",
        "hamcrest-1.3.jar",
    }
    assert with_tests.index(lib / "hamcrest-1.3.jar") < with_tests.index(lib / "junit-4.13.2.jar")
