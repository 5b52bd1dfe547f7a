"""Artifact fetcher tests over a fake streaming session."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, List

import pytest
import requests

from jxdeps.errors import FetchError
from jxdeps.fetch import MavenRepositoryFetcher, file_checksum
from jxdeps.model import Coordinate

REPO = "https://repo.example.com/maven2"
COORD = Coordinate("org.slf4j", "slf4j-api", "1.7.36")
JAR_URL = f"{REPO}/org/slf4j/slf4j-api/1.7.36/slf4j-api-1.7.36.jar"
PAYLOAD = b"PK\x03\x04" + b"x" * 20000


class FakeStreamResponse:
    def __init__(self, status_code: int, body: bytes = b"", fail_after: int = -1) -> None:
        self.status_code = status_code
        self.body = body
        self.fail_after = fail_after

    def __enter__(self) -> "FakeStreamResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size: int = 1):
        for index, start in enumerate(range(0, len(self.body), chunk_size)):
            if index == self.fail_after:
                raise requests.ConnectionError("connection reset")
            yield self.body[start : start + chunk_size]


class FakeSession:
    def __init__(self, responses: Dict[str, FakeStreamResponse]) -> None:
        self.responses = responses
        self.requested: List[str] = []

    def get(self, url: str, timeout: float = None, stream: bool = False) -> FakeStreamResponse:
        self.requested.append(url)
        assert stream
        return self.responses.get(url, FakeStreamResponse(404))


def test_artifact_url_and_cache_layout(tmp_path: Path) -> None:
    fetcher = MavenRepositoryFetcher(tmp_path, REPO + "/", session=FakeSession({}))
    assert fetcher.artifact_url(COORD) == JAR_URL
    assert fetcher.cache_path(COORD) == tmp_path / "org.slf4j" / "slf4j-api" / "slf4j-api-1.7.36.jar"


def test_fetch_downloads_and_checksums(tmp_path: Path) -> None:
    session = FakeSession({JAR_URL: FakeStreamResponse(200, PAYLOAD)})
    fetcher = MavenRepositoryFetcher(tmp_path, REPO, session=session)

    artifact = fetcher.fetch(COORD)

    assert artifact.path.read_bytes() == PAYLOAD
    assert artifact.size == len(PAYLOAD)
    assert artifact.checksum == "sha256:" + hashlib.sha256(PAYLOAD).hexdigest()
    assert artifact.checksum == file_checksum(artifact.path)


def test_cached_artifact_is_reused(tmp_path: Path) -> None:
    session = FakeSession({JAR_URL: FakeStreamResponse(200, PAYLOAD)})
    fetcher = MavenRepositoryFetcher(tmp_path, REPO, session=session)

    first = fetcher.fetch(COORD)
    second = fetcher.fetch(COORD)

    assert first == second
    assert session.requested == [JAR_URL]


def test_http_error_raises_fetch_error(tmp_path: Path) -> None:
    fetcher = MavenRepositoryFetcher(tmp_path, REPO, session=FakeSession({}))

    with pytest.raises(FetchError):
        fetcher.fetch(COORD)
    assert not fetcher.cache_path(COORD).exists()


def test_interrupted_download_leaves_no_partial_file(tmp_path: Path) -> None:
    session = FakeSession({JAR_URL: FakeStreamResponse(200, PAYLOAD, fail_after=1)})
    fetcher = MavenRepositoryFetcher(tmp_path, REPO, session=session)

    with pytest.raises(FetchError):
        fetcher.fetch(COORD)

    folder = fetcher.cache_path(COORD).parent
    assert list(folder.iterdir()) == []


def test_unpinned_coordinate_cannot_be_fetched(tmp_path: Path) -> None:
    fetcher = MavenRepositoryFetcher(tmp_path, REPO, session=FakeSession({}))
    with pytest.raises(FetchError):
        fetcher.fetch(Coordinate("org.slf4j", "slf4j-api"))
