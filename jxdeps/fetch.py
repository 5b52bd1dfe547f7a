"""Artifact fetchers: download resolved jars into a local cache."""

from __future__ import annotations

import hashlib
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from jxdeps.errors import FetchError
from jxdeps.model import Coordinate
from jxdeps.resolve.maven_central import MAVEN_CENTRAL

logger = logging.getLogger("jxdeps.fetch")

CHUNK_SIZE = 8192


@dataclass(frozen=True)
class FetchedArtifact:
    """A jar available on local disk.

    Attributes:
        path: Cached file.
        checksum: ``sha256:<hex>`` digest of the file.
        size: File size in bytes.
    """

    path: Path
    checksum: str
    size: int


def file_checksum(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return f"sha256:{digest.hexdigest()}"


class ArtifactFetcher(ABC):
    """Makes the artifact of a resolved coordinate available locally."""

    NAME: str = "base"

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir).expanduser()

    def cache_path(self, coordinate: Coordinate) -> Path:
        """``<cache_dir>/<group>/<artifact>/<artifact>-<version>[-classifier].jar``."""
        return self.cache_dir / coordinate.group / coordinate.artifact / coordinate.filename

    @abstractmethod
    def fetch(self, coordinate: Coordinate) -> FetchedArtifact:
        """Return the local artifact for a pinned coordinate.

        Raises:
            FetchError: The artifact could not be obtained.
        """
        raise NotImplementedError


class MavenRepositoryFetcher(ArtifactFetcher):
    """Download jars from a Maven-layout repository with ``requests``.

    Files already present in the cache are reused without a request.
    Downloads are streamed to a ``.part`` file and renamed into place once
    complete, so an interrupted download never leaves a truncated jar.
    """

    NAME = "maven"

    def __init__(
        self,
        cache_dir: Path,
        repository_url: str = MAVEN_CENTRAL,
        timeout: float = 300,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(cache_dir)
        self.repository_url = repository_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def artifact_url(self, coordinate: Coordinate) -> str:
        return f"{self.repository_url}/{coordinate.repository_path()}"

    def fetch(self, coordinate: Coordinate) -> FetchedArtifact:
        if not coordinate.is_pinned:
            raise FetchError(f"Cannot fetch unpinned coordinate {coordinate}")

        target = self.cache_path(coordinate)
        if target.is_file():
            logger.debug("Using cached %s", target)
        else:
            self.download(self.artifact_url(coordinate), target)

        return FetchedArtifact(
            path=target, checksum=file_checksum(target), size=target.stat().st_size
        )

    def download(self, url: str, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + ".part")

        logger.info("Downloading %s", url)
        try:
            with self._session.get(url, timeout=self.timeout, stream=True) as response:
                response.raise_for_status()
                with partial.open("wb") as out:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        out.write(chunk)
        except requests.RequestException as exc:
            partial.unlink(missing_ok=True)
            logger.error("Failed to download %s: %s", url, exc)
            raise FetchError(f"Failed to download {url}: {exc}") from exc
        except OSError:
            partial.unlink(missing_ok=True)
            raise

        os.replace(partial, target)
        logger.info("Downloaded to %s", target)


__all__ = [
    "ArtifactFetcher",
    "FetchedArtifact",
    "MavenRepositoryFetcher",
    "file_checksum",
]
