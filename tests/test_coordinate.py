"""Coordinate, spec and version helper tests."""

from __future__ import annotations

import pytest

from jxdeps.errors import InvalidCoordinateError, ParseError
from jxdeps.model import (
    Coordinate,
    DependencySpec,
    Exclusion,
    Scope,
    latest_release,
    parse_coordinate,
    sort_versions,
)


def test_parse_three_fields() -> None:
    """group:artifact:version parses into a pinned coordinate."""
    coord = parse_coordinate("org.slf4j:slf4j-api:1.7.36")
    assert coord == Coordinate("org.slf4j", "slf4j-api", "1.7.36")
    assert coord.key == "org.slf4j:slf4j-api:1.7.36"
    assert coord.is_pinned


def test_parse_two_fields_leaves_version_unset() -> None:
    coord = parse_coordinate("junit:junit")
    assert coord.version is None
    assert coord.key == "junit:junit"
    assert not coord.is_pinned


@pytest.mark.parametrize("text", ["g", "g:a:1.0:extra", "g::1.0", ":a", "", "g:a:"])
def test_parse_rejects_malformed(text: str) -> None:
    """Wrong field counts and empty fields raise InvalidCoordinateError."""
    with pytest.raises(InvalidCoordinateError) as excinfo:
        parse_coordinate(text)
    assert isinstance(excinfo.value, ParseError)
    assert excinfo.value.value == text


def test_parse_strips_whitespace() -> None:
    assert parse_coordinate(" g : a : 1.0 ").key == "g:a:1.0"


def test_key_includes_classifier() -> None:
    coord = Coordinate("net.java.dev.jna", "jna", "5.13.0", "jpms")
    assert coord.key == "net.java.dev.jna:jna:5.13.0:jpms"
    assert coord.filename == "jna-5.13.0-jpms.jar"


def test_repository_path_uses_maven_layout() -> None:
    coord = Coordinate("org.apache.commons", "commons-lang3", "3.12.0")
    assert coord.repository_path() == (
        "org/apache/commons/commons-lang3/3.12.0/commons-lang3-3.12.0.jar"
    )


def test_filename_requires_version() -> None:
    with pytest.raises(ValueError):
        _ = Coordinate("g", "a").filename


def test_conflicts_with_same_artifact_other_version() -> None:
    a = Coordinate("a", "b", "1.0")
    assert a.conflicts_with(Coordinate("a", "b", "2.0"))
    assert not a.conflicts_with(Coordinate("a", "b", "1.0"))
    assert not a.conflicts_with(Coordinate("a", "c", "2.0"))


def test_scope_parse() -> None:
    assert Scope.parse(None) is Scope.COMPILE
    assert Scope.parse("Test") is Scope.TEST
    with pytest.raises(ParseError):
        Scope.parse("import-ish")


def test_exclusion_wildcards() -> None:
    coord = Coordinate("commons-logging", "commons-logging", "1.2")
    assert Exclusion("commons-logging", "commons-logging").matches(coord)
    assert Exclusion("commons-logging", "*").matches(coord)
    assert Exclusion("*", "*").matches(coord)
    assert not Exclusion("org.slf4j", "*").matches(coord)
    with pytest.raises(InvalidCoordinateError):
        Exclusion.parse("only-group")


def test_spec_of_builds_scope_and_exclusions() -> None:
    spec = DependencySpec.of(
        "org.springframework:spring-core:5.3.0",
        scope="runtime",
        exclusions=["org.springframework:spring-jcl"],
    )
    assert spec.scope is Scope.RUNTIME
    assert spec.excludes(Coordinate("org.springframework", "spring-jcl", "5.3.0"))
    assert not spec.optional


def test_version_ordering_is_semantic() -> None:
    assert sort_versions(["1.10.0", "1.2.0", "1.9.1"]) == ["1.2.0", "1.9.1", "1.10.0"]


def test_latest_release_skips_snapshots_and_prereleases() -> None:
    versions = ["2.0.0-SNAPSHOT", "1.5.0", "2.0.0rc1", "1.4.9"]
    assert latest_release(versions) == "1.5.0"
    assert latest_release([]) is None
