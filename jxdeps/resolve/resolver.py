"""Dependency resolver.

Turns declared ``DependencySpec`` objects into a conflict-checked,
cycle-free, ordered set of ``ResolvedDependency`` entries.

Resolution is a depth-first expansion over the metadata source. Each call
to ``resolve`` works on a private staging area and only merges it into the
resolver's memo once the whole call has succeeded, so a cycle or a metadata
timeout never leaves half-resolved entries behind.

A node that was already expanded under a scope at least as wide and a
subset of the current exclusions is not looked up again. Its memoized
children are re-walked instead, applying the exclusions and scope of the
current path, so the result of a call never depends on what earlier calls
resolved.

Graph mutation is strictly sequential. The only parallel work is metadata
lookup: when a node is expanded, lookups for all of its children are
started at once on daemon threads, one future per coordinate key, and the
depth-first walk then waits on them one at a time with a timeout.
"""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx

from jxdeps.errors import (
    CycleError,
    MetadataLookupError,
    MetadataTimeoutError,
    ResolveError,
    UnpinnedVersionError,
)
from jxdeps.graph import build_graph, find_version_conflicts, topological_order
from jxdeps.model import (
    Coordinate,
    DependencySpec,
    Exclusion,
    ResolvedDependency,
    Scope,
    VersionConflict,
)
from jxdeps.resolve.maven_central import MAVEN_CENTRAL
from jxdeps.resolve.metadata import MetadataSource

logger = logging.getLogger("jxdeps.resolve.resolver")

# Lower rank wins when the same artifact is reached through several scopes.
_SCOPE_RANK = {
    Scope.COMPILE: 0,
    Scope.RUNTIME: 1,
    Scope.PROVIDED: 2,
    Scope.SYSTEM: 3,
    Scope.TEST: 4,
}

Expansion = Tuple[Scope, FrozenSet[Exclusion]]
# Child spec -> pinned key of every child a node was expanded into.
Links = Dict[DependencySpec, str]


def effective_scope(parent: Optional[Scope], declared: Scope) -> Scope:
    """Scope a transitive dependency inherits from the path that reached it."""
    if parent is None:
        return declared
    if parent in (Scope.TEST, Scope.PROVIDED):
        return parent
    if parent is Scope.RUNTIME and declared is Scope.COMPILE:
        return Scope.RUNTIME
    return declared


def wider_scope(a: Scope, b: Scope) -> Scope:
    return a if _SCOPE_RANK[a] <= _SCOPE_RANK[b] else b


class Resolver:
    """Resolve dependency specs against a metadata source.

    The ``resolved`` memo survives across ``resolve`` calls on the same
    instance; call ``clear`` (or use a fresh instance) to re-derive
    everything, e.g. after pinning newer versions.

    Args:
        source: Metadata source consulted for transitive dependencies.
        timeout: Seconds to wait for any single metadata lookup.
        max_workers: Maximum number of metadata lookups running at once.
        repository_url: Base URL used to derive each entry's ``source_url``.
        include_optional: Follow transitive dependencies marked optional.
    """

    def __init__(
        self,
        source: MetadataSource,
        *,
        timeout: float = 30.0,
        max_workers: int = 8,
        repository_url: str = MAVEN_CENTRAL,
        include_optional: bool = False,
    ) -> None:
        self.source = source
        self.timeout = timeout
        self.max_workers = max_workers
        self.repository_url = repository_url.rstrip("/")
        self.include_optional = include_optional

        self.resolved: Dict[str, ResolvedDependency] = {}
        self._expansions: Dict[str, List[Expansion]] = {}
        self._links: Dict[str, Links] = {}
        self.order_warnings: List[str] = []

    def resolve(self, specs: Sequence[DependencySpec]) -> List[ResolvedDependency]:
        """Resolve ``specs`` and everything they transitively require.

        Returns:
            List[ResolvedDependency]: Direct and transitive dependencies,
            one entry per coordinate key, in discovery order. Scopes and
            edges describe this call only, while ``resolved`` accumulates
            them over every call.

        Raises:
            CycleError: A coordinate requires itself through its dependencies.
            MetadataTimeoutError: A metadata lookup exceeded ``timeout``.
            MetadataLookupError: The metadata source raised.
            UnpinnedVersionError: No version given and none could be found.
        """
        logger.info("Resolving %d dependency spec(s) via %s", len(specs), self.source.NAME)
        run = _ResolveRun(self)
        try:
            keys = run.execute(specs)
        finally:
            run.close()

        self.resolved.update(run.staged)
        self._expansions.update(run.expansions)
        self._links.update(run.links)
        logger.info(
            "Resolved %d dependencies (%d metadata lookups)", len(keys), run.lookup_count
        )
        return [
            replace(
                self.resolved[key],
                scope=run.scopes[key],
                transitive_edges=frozenset(run.edges[key]),
            )
            for key in keys
        ]

    def resolution_order(self) -> List[str]:
        """Keys of all resolved entries, dependencies before dependents.

        Best effort: a cycle found here is logged and recorded in
        ``order_warnings`` and the offending edge is skipped.
        """
        order, warnings = topological_order(self.dependency_graph())
        self.order_warnings = warnings
        return order

    def detect_conflicts(self) -> List[VersionConflict]:
        """Report (group, artifact) pairs resolved at more than one version."""
        conflicts = find_version_conflicts(dep.coordinate for dep in self.resolved.values())
        for conflict in conflicts:
            logger.warning("Version conflict: %s", conflict)
        return conflicts

    def dependency_graph(self) -> nx.DiGraph:
        return build_graph({key: dep.transitive_edges for key, dep in self.resolved.items()})

    def source_url(self, coordinate: Coordinate) -> str:
        return f"{self.repository_url}/{coordinate.repository_path()}"

    def clear(self) -> None:
        self.resolved.clear()
        self._expansions.clear()
        self._links.clear()
        self.order_warnings = []


class _DaemonLookups:
    """Runs metadata lookups on daemon threads, at most ``max_workers`` at once.

    Unlike a ``ThreadPoolExecutor``, a lookup that never returns does not
    keep the interpreter alive after the resolver has given up on it.
    """

    _names = itertools.count(1)

    def __init__(self, max_workers: int) -> None:
        self._slots = threading.BoundedSemaphore(max(1, max_workers))
        self._futures: List[Future] = []

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        future: Future = Future()
        self._futures.append(future)
        threading.Thread(
            target=self._run,
            args=(future, fn, args),
            name=f"jxdeps-metadata-{next(self._names)}",
            daemon=True,
        ).start()
        return future

    def _run(self, future: Future, fn: Callable[..., Any], args: Tuple[Any, ...]) -> None:
        with self._slots:
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = fn(*args)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                future.set_exception(exc)
            else:
                future.set_result(result)

    def cancel_pending(self) -> None:
        """Cancel lookups still waiting for a free slot."""
        for future in self._futures:
            future.cancel()
        self._futures.clear()


class _ResolveRun:
    """State owned by a single ``Resolver.resolve`` call."""

    def __init__(self, resolver: Resolver) -> None:
        self.resolver = resolver
        self.source = resolver.source
        self.timeout = resolver.timeout

        self.staged: Dict[str, ResolvedDependency] = {}
        self.expansions: Dict[str, List[Expansion]] = {}
        self.links: Dict[str, Links] = {}
        self.in_progress: List[str] = []
        self.result: Dict[str, None] = {}
        # Scope and edges of each key as reached by this call alone.
        self.scopes: Dict[str, Scope] = {}
        self.edges: Dict[str, Set[str]] = {}

        self._lookups: Dict[str, Future] = {}
        self._pins: Dict[Tuple[str, str], Future] = {}
        self.lookup_count = 0
        self._threads = _DaemonLookups(resolver.max_workers)

    def close(self) -> None:
        self._threads.cancel_pending()

    # ------------------------------------------------------------------ state

    def _get(self, key: str) -> Optional[ResolvedDependency]:
        staged = self.staged.get(key)
        if staged is not None:
            return staged
        return self.resolver.resolved.get(key)

    def _prior_expansions(self, key: str) -> List[Expansion]:
        if key in self.expansions:
            return self.expansions[key]
        return list(self.resolver._expansions.get(key, []))

    def _prior_links(self, key: str) -> Links:
        if key in self.links:
            return self.links[key]
        return dict(self.resolver._links.get(key, {}))

    def _reach(self, key: str, scope: Scope) -> None:
        self.result.setdefault(key, None)
        self.edges.setdefault(key, set())
        seen = self.scopes.get(key)
        self.scopes[key] = scope if seen is None else wider_scope(seen, scope)

    # ---------------------------------------------------------------- lookups

    def _wait(self, future: Future, label: str, on_timeout: Callable[[], None]) -> Any:
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            on_timeout()
            logger.error("Metadata lookup for %s timed out after %ss", label, self.timeout)
            raise MetadataTimeoutError(label, self.timeout) from None
        except ResolveError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise MetadataLookupError(label, exc) from exc

    def _pin_future(self, group: str, artifact: str) -> Future:
        name = (group, artifact)
        if name not in self._pins:
            self._pins[name] = self._threads.submit(self.source.latest_version, group, artifact)
        return self._pins[name]

    def _pin(self, spec: DependencySpec) -> Coordinate:
        coordinate = spec.coordinate
        if coordinate.version is not None:
            return coordinate
        name = coordinate.name
        future = self._pin_future(*name)
        version = self._wait(
            future, f"{name[0]}:{name[1]}", lambda: self._pins.pop(name, None)
        )
        if not version:
            raise UnpinnedVersionError(*name)
        logger.info("Pinned %s:%s to latest release %s", name[0], name[1], version)
        return coordinate.with_version(version)

    def _lookup_future(self, coordinate: Coordinate) -> Future:
        key = coordinate.key
        if key not in self._lookups:
            self.lookup_count += 1
            self._lookups[key] = self._threads.submit(self.source.transitive_of, coordinate)
        return self._lookups[key]

    def _prefetch(self, specs: Iterable[DependencySpec]) -> None:
        for spec in specs:
            coordinate = spec.coordinate
            if coordinate.version is None:
                self._pin_future(*coordinate.name)
            elif self._get(coordinate.key) is None:
                self._lookup_future(coordinate)

    def _metadata(self, coordinate: Coordinate) -> List[DependencySpec]:
        key = coordinate.key
        future = self._lookup_future(coordinate)
        specs = self._wait(future, key, lambda: self._lookups.pop(key, None))
        return list(specs or [])

    # -------------------------------------------------------------- expansion

    def execute(self, specs: Sequence[DependencySpec]) -> List[str]:
        self._prefetch(specs)
        for spec in specs:
            self._visit(spec, frozenset(), None)
        return list(self.result)

    def _cycle(self, key: str, tail: Sequence[str] = ()) -> CycleError:
        start = self.in_progress.index(key)
        path = self.in_progress[start:] + list(tail) + [key]
        logger.error("Cycle detected while resolving: %s", " -> ".join(path))
        return CycleError(key, path)

    def _widen(self, key: str, scope: Scope) -> Optional[ResolvedDependency]:
        existing = self._get(key)
        if existing is not None and wider_scope(existing.scope, scope) is not existing.scope:
            existing = replace(existing, scope=scope)
            self.staged[key] = existing
        return existing

    def _walk_memo(self, key: str, active: FrozenSet[Exclusion], scope: Scope) -> None:
        """Re-walk the memoized children of ``key`` under the current path.

        Children excluded by ``active`` are skipped and not descended into,
        exactly as a fresh expansion would prune them.
        """
        stack = [(key, active, scope, (key,))]
        walked: Set[Tuple[str, FrozenSet[Exclusion], Scope]] = set()
        while stack:
            current, exclusions, current_scope, path = stack.pop()
            self._reach(current, current_scope)
            self._widen(current, current_scope)
            if (current, exclusions, current_scope) in walked:
                continue
            walked.add((current, exclusions, current_scope))

            pending = []
            for child, child_key in self._prior_links(current).items():
                if any(exclusion.matches(child.coordinate) for exclusion in exclusions):
                    logger.debug("Excluded %s from the expansion of %s", child.key, current)
                    continue
                if child_key in self.in_progress:
                    raise self._cycle(child_key, path)
                self.edges[current].add(child_key)
                pending.append(
                    (
                        child_key,
                        exclusions | child.exclusions,
                        effective_scope(current_scope, child.scope),
                        path + (child_key,),
                    )
                )
            stack.extend(reversed(pending))

    def _visit(
        self,
        spec: DependencySpec,
        inherited: FrozenSet[Exclusion],
        parent_scope: Optional[Scope],
    ) -> str:
        coordinate = self._pin(spec)
        key = coordinate.key

        if key in self.in_progress:
            raise self._cycle(key)

        active = inherited | spec.exclusions
        scope = effective_scope(parent_scope, spec.scope)
        self._reach(key, scope)
        existing = self._widen(key, scope)

        if existing is not None and any(
            _SCOPE_RANK[seen_scope] <= _SCOPE_RANK[scope] and seen_excl <= active
            for seen_scope, seen_excl in self._prior_expansions(key)
        ):
            # Nothing new is reachable from here: reuse the memoized children.
            self._walk_memo(key, active, scope)
            return key

        self.in_progress.append(key)
        try:
            children = []
            for child in self._metadata(coordinate):
                if child.optional and not self.resolver.include_optional:
                    logger.debug("Skipping optional %s required by %s", child.key, key)
                    continue
                if any(exclusion.matches(child.coordinate) for exclusion in active):
                    logger.debug("Excluded %s from the expansion of %s", child.key, key)
                    continue
                children.append(child)

            self._prefetch(children)
            links = self._prior_links(key)
            edges = set()
            for child in children:
                child_key = self._visit(child, active, scope)
                links[child] = child_key
                edges.add(child_key)
        finally:
            self.in_progress.pop()

        if existing is None:
            existing = ResolvedDependency(
                coordinate=coordinate,
                scope=scope,
                source_url=self.resolver.source_url(coordinate),
            )
        self.staged[key] = existing.with_edges(existing.transitive_edges | edges)
        self.expansions[key] = self._prior_expansions(key) + [(scope, active)]
        self.links[key] = links
        self.edges[key].update(edges)
        logger.debug("Resolved %s -> %s", key, sorted(edges))
        return key


__all__ = ["Resolver", "effective_scope", "wider_scope"]
