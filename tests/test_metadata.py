"""Metadata source tests (static table and Maven repository over a fake session)."""

from __future__ import annotations

from typing import Dict, List, Tuple

import pytest
import requests

from jxdeps.model import Coordinate, DependencySpec, Scope
from jxdeps.resolve import MavenCentralMetadataSource, StaticMetadataSource

REPO = "https://repo.example.com/maven2"


class FakeResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Serves canned responses keyed by URL; anything else is a 404."""

    def __init__(self, pages: Dict[str, Tuple[int, str]]) -> None:
        self.pages = pages
        self.requested: List[str] = []

    def get(self, url: str, timeout: float = None, **kwargs) -> FakeResponse:
        self.requested.append(url)
        status, text = self.pages.get(url, (404, ""))
        return FakeResponse(status, text)


POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>org.example</groupId>
  <artifactId>lib</artifactId>
  <version>1.2.0</version>
  <properties>
    <slf4j.version>1.7.36</slf4j.version>
  </properties>
  <dependencyManagement>
    <dependencies>
      <dependency>
        <groupId>com.google.guava</groupId>
        <artifactId>guava</artifactId>
        <version>32.1.2-jre</version>
      </dependency>
    </dependencies>
  </dependencyManagement>
  <dependencies>
    <dependency>
      <groupId>org.slf4j</groupId>
      <artifactId>slf4j-api</artifactId>
      <version>${slf4j.version}</version>
    </dependency>
    <dependency>
      <groupId>com.google.guava</groupId>
      <artifactId>guava</artifactId>
      <exclusions>
        <exclusion>
          <groupId>com.google.code.findbugs</groupId>
          <artifactId>jsr305</artifactId>
        </exclusion>
      </exclusions>
    </dependency>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>sibling</artifactId>
      <version>${project.version}</version>
      <scope>runtime</scope>
    </dependency>
    <dependency>
      <groupId>junit</groupId>
      <artifactId>junit</artifactId>
      <version>4.13.2</version>
      <scope>test</scope>
    </dependency>
    <dependency>
      <groupId>javax.servlet</groupId>
      <artifactId>servlet-api</artifactId>
      <version>2.5</version>
      <scope>provided</scope>
    </dependency>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>extras</artifactId>
      <version>1.0</version>
      <optional>true</optional>
    </dependency>
  </dependencies>
</project>
"""

METADATA = """<metadata>
  <groupId>org.example</groupId>
  <artifactId>lib</artifactId>
  <versioning>
    <latest>1.3.0-SNAPSHOT</latest>
    <release>1.2.0</release>
    <versions>
      <version>1.1.0</version>
      <version>1.2.0</version>
    </versions>
  </versioning>
</metadata>
"""

POM_URL = f"{REPO}/org/example/lib/1.2.0/lib-1.2.0.pom"
METADATA_URL = f"{REPO}/org/example/lib/maven-metadata.xml"


def test_static_source_exact_key_wins() -> None:
    source = StaticMetadataSource(
        {
            "g:a": ["x:any:1"],
            "g:a:2.0": [("x:exact:1", "runtime")],
        }
    )
    assert [s.key for s in source.transitive_of(Coordinate("g", "a", "1.0"))] == ["x:any:1"]
    exact = source.transitive_of(Coordinate("g", "a", "2.0"))
    assert [s.key for s in exact] == ["x:exact:1"]
    assert exact[0].scope is Scope.RUNTIME
    assert source.transitive_of(Coordinate("unknown", "thing", "1")) == []


def test_static_source_latest_from_table_and_releases() -> None:
    source = StaticMetadataSource({"g:a:1.0": [], "h:b": ["g:a:1.5"]}, releases={"g:a": ["1.2"]})
    assert source.latest_version("g", "a") == "1.5"
    assert source.latest_version("nope", "nope") is None


def test_sample_source_is_acyclic_and_known() -> None:
    source = StaticMetadataSource.sample()
    assert "junit:junit" in source.known_artifacts()
    deps = source.transitive_of(Coordinate("junit", "junit", "4.13.2"))
    assert [d.key for d in deps] == ["org.hamcrest:hamcrest-core:1.3"]


def test_maven_source_reads_pom_dependencies() -> None:
    session = FakeSession({POM_URL: (200, POM)})
    source = MavenCentralMetadataSource(REPO, session=session)

    specs = source.transitive_of(Coordinate("org.example", "lib", "1.2.0"))
    by_name = {(s.coordinate.group, s.coordinate.artifact): s for s in specs}

    assert session.requested == [POM_URL]
    assert set(by_name) == {
        ("org.slf4j", "slf4j-api"),
        ("com.google.guava", "guava"),
        ("org.example", "sibling"),
    }
    assert by_name[("org.slf4j", "slf4j-api")].coordinate.version == "1.7.36"
    guava = by_name[("com.google.guava", "guava")]
    assert guava.coordinate.version == "32.1.2-jre"
    assert [str(e) for e in guava.exclusions] == ["com.google.code.findbugs:jsr305"]
    sibling = by_name[("org.example", "sibling")]
    assert sibling.coordinate.version == "1.2.0"
    assert sibling.scope is Scope.RUNTIME


def test_maven_source_optional_opt_in() -> None:
    session = FakeSession({POM_URL: (200, POM)})
    source = MavenCentralMetadataSource(REPO, include_optional=True, session=session)
    specs = source.transitive_of(Coordinate("org.example", "lib", "1.2.0"))
    optional = [s for s in specs if s.optional]
    assert [s.key for s in optional] == ["org.example:extras:1.0"]


def test_maven_source_missing_pom_is_empty() -> None:
    source = MavenCentralMetadataSource(REPO, session=FakeSession({}))
    assert source.transitive_of(Coordinate("org.example", "lib", "1.2.0")) == []


def test_maven_source_malformed_pom_is_empty() -> None:
    session = FakeSession({POM_URL: (200, "<project><dependencies>")})
    source = MavenCentralMetadataSource(REPO, session=session)
    assert source.transitive_of(Coordinate("org.example", "lib", "1.2.0")) == []


def test_maven_source_server_error_propagates() -> None:
    session = FakeSession({POM_URL: (503, "")})
    source = MavenCentralMetadataSource(REPO, session=session)
    with pytest.raises(requests.HTTPError):
        source.transitive_of(Coordinate("org.example", "lib", "1.2.0"))


def test_maven_source_requires_pinned_coordinate() -> None:
    source = MavenCentralMetadataSource(REPO, session=FakeSession({}))
    with pytest.raises(ValueError):
        source.transitive_of(Coordinate("org.example", "lib"))


def test_maven_source_latest_version_is_cached() -> None:
    session = FakeSession({METADATA_URL: (200, METADATA)})
    source = MavenCentralMetadataSource(REPO, session=session)

    assert source.latest_version("org.example", "lib") == "1.2.0"
    assert source.latest_version("org.example", "lib") == "1.2.0"
    assert session.requested == [METADATA_URL]


def test_maven_source_latest_version_falls_back_to_versions() -> None:
    metadata = METADATA.replace("<release>1.2.0</release>", "")
    session = FakeSession({METADATA_URL: (200, metadata)})
    source = MavenCentralMetadataSource(REPO, session=session)
    assert source.latest_version("org.example", "lib") == "1.2.0"


def test_maven_source_unknown_artifact_has_no_latest() -> None:
    source = MavenCentralMetadataSource(REPO, session=FakeSession({}))
    assert source.latest_version("org.example", "nothing") is None


def test_spec_equality_from_pom_matches_declared() -> None:
    session = FakeSession({POM_URL: (200, POM)})
    source = MavenCentralMetadataSource(REPO, session=session)
    specs = source.transitive_of(Coordinate("org.example", "lib", "1.2.0"))
    assert DependencySpec.of("org.slf4j:slf4j-api:1.7.36") in specs
