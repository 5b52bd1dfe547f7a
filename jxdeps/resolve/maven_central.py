"""Metadata source backed by a Maven-layout HTTP repository."""

from __future__ import annotations

import logging
import threading
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

import requests

from jxdeps import pom
from jxdeps.model import Coordinate, DependencySpec, Scope, latest_release
from jxdeps.resolve.metadata import MetadataSource

logger = logging.getLogger("jxdeps.resolve.maven_central")

MAVEN_CENTRAL = "https://repo1.maven.org/maven2"

# Maven does not propagate these scopes to dependents.
_NON_TRANSITIVE_SCOPES = {Scope.TEST, Scope.PROVIDED, Scope.SYSTEM}


class MavenCentralMetadataSource(MetadataSource):
    """Read dependency metadata from artifact POMs in a Maven repository.

    ``transitive_of`` downloads ``<artifact>-<version>.pom`` and returns its
    project-level dependencies, minus test/provided/system scoped ones and,
    unless ``include_optional`` is set, optional ones. ``latest_version``
    reads ``maven-metadata.xml``.

    Parent POM inheritance is not followed: versions managed only by a parent
    or an imported BOM come back unpinned and are pinned by the resolver.
    """

    NAME = "maven"

    def __init__(
        self,
        repository_url: str = MAVEN_CENTRAL,
        timeout: float = 30.0,
        include_optional: bool = False,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.repository_url = repository_url.rstrip("/")
        self.timeout = timeout
        self.include_optional = include_optional
        self._session = session or requests.Session()
        self._latest_cache: Dict[str, Optional[str]] = {}
        self._cache_lock = threading.Lock()

    def _artifact_base(self, group: str, artifact: str) -> str:
        return "/".join([self.repository_url, group.replace(".", "/"), artifact])

    def pom_url(self, coordinate: Coordinate) -> str:
        base = self._artifact_base(coordinate.group, coordinate.artifact)
        return f"{base}/{coordinate.version}/{coordinate.artifact}-{coordinate.version}.pom"

    def _get(self, url: str) -> Optional[str]:
        """GET ``url``; ``None`` on 404, raises on any other failure."""
        logger.debug("GET %s", url)
        response = self._session.get(url, timeout=self.timeout)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.text

    def transitive_of(self, coordinate: Coordinate) -> List[DependencySpec]:
        if coordinate.version is None:
            raise ValueError(f"Cannot look up metadata for unpinned {coordinate}")

        url = self.pom_url(coordinate)
        text = self._get(url)
        if text is None:
            logger.warning("No POM published for %s (%s)", coordinate, url)
            return []

        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            logger.warning("Malformed POM for %s: %s", coordinate, exc)
            return []

        specs = []
        for spec in pom.read_dependencies(root):
            if spec.scope in _NON_TRANSITIVE_SCOPES:
                continue
            if spec.optional and not self.include_optional:
                continue
            specs.append(spec)

        logger.info("%s declares %d transitive dependencies", coordinate, len(specs))
        return specs

    def latest_version(self, group: str, artifact: str) -> Optional[str]:
        cache_key = f"{group}:{artifact}"
        with self._cache_lock:
            if cache_key in self._latest_cache:
                return self._latest_cache[cache_key]

        url = f"{self._artifact_base(group, artifact)}/maven-metadata.xml"
        text = self._get(url)
        latest = None
        if text is not None:
            try:
                latest = _latest_from_metadata(ET.fromstring(text))
            except ET.ParseError as exc:
                logger.warning("Malformed maven-metadata.xml for %s: %s", cache_key, exc)

        with self._cache_lock:
            self._latest_cache[cache_key] = latest
        return latest


def _latest_from_metadata(root: ET.Element) -> Optional[str]:
    versioning = root.find("versioning")
    if versioning is None:
        return None
    release = versioning.findtext("release")
    if release and release.strip():
        return release.strip()
    versions = [
        (v.text or "").strip()
        for v in versioning.findall("versions/version")
        if v.text and v.text.strip()
    ]
    return latest_release(versions)


__all__ = ["MAVEN_CENTRAL", "MavenCentralMetadataSource"]
