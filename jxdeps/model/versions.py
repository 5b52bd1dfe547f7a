"""Version ordering helpers.

Maven versions are not PEP 440, but most release numbers in the wild are
close enough that ``packaging`` orders them correctly. Anything it rejects
is ordered after the PEP 440 versions by a token-wise comparison.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple, Union

from packaging.version import InvalidVersion, Version

_TOKEN_RE = re.compile(r"\d+|[A-Za-z]+")

SortKey = Tuple[int, Union[Version, Tuple[Tuple[int, Union[int, str]], ...]]]


def version_sort_key(version: str) -> SortKey:
    try:
        return (0, Version(version))
    except InvalidVersion:
        tokens = tuple(
            (0, int(tok)) if tok.isdigit() else (1, tok.lower())
            for tok in _TOKEN_RE.findall(version)
        )
        return (1, tokens)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Sort distinct versions from oldest to newest."""
    return sorted(set(versions), key=version_sort_key)


def is_snapshot(version: str) -> bool:
    return version.upper().endswith("-SNAPSHOT")


def latest_release(versions: Iterable[str]) -> Optional[str]:
    """Newest version that is neither a snapshot nor a pre-release."""
    candidates = []
    for version in versions:
        if is_snapshot(version):
            continue
        key = version_sort_key(version)
        if key[0] == 0 and key[1].is_prerelease:  # type: ignore[union-attr]
            continue
        candidates.append(version)
    if not candidates:
        return None
    return sort_versions(candidates)[-1]


__all__ = ["is_snapshot", "latest_release", "sort_versions", "version_sort_key"]
