"""Graph helpers shared by the resolver and the lock store.

Both sides describe the dependency graph as a mapping from coordinate key to
the keys it requires. This module turns that into a ``networkx.DiGraph`` and
provides the two algorithms run over it: a deterministic, cycle-tolerant
topological order and version-conflict detection.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Mapping, Set, Tuple

import networkx as nx

from jxdeps.model import Coordinate, VersionConflict, sort_versions

logger = logging.getLogger("jxdeps.graph")


def build_graph(edges: Mapping[str, Iterable[str]]) -> nx.DiGraph:
    """Build a dependency graph, edge A -> B meaning "A requires B".

    Targets that are not keys of ``edges`` are still added, flagged with
    ``missing=True`` so callers can report them.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(edges.keys(), missing=False)
    for source, targets in edges.items():
        for target in targets:
            if target not in edges and not graph.has_node(target):
                graph.add_node(target, missing=True)
            graph.add_edge(source, target)
    return graph


def missing_nodes(graph: nx.DiGraph) -> List[str]:
    return sorted(n for n, attrs in graph.nodes(data=True) if attrs.get("missing"))


def _sorted_successors(graph: nx.DiGraph, node: str) -> Iterator[str]:
    return iter(sorted(graph.successors(node)))


def topological_order(graph: nx.DiGraph) -> Tuple[List[str], List[str]]:
    """Order nodes so that every dependency precedes its dependents.

    Depth-first post-order with a temporary mark per node on the current
    path. A back edge (a cycle) is skipped and reported instead of aborting,
    so the result is always a best-effort order. Roots and children are
    visited in lexicographic order, which makes the output deterministic.
    Missing nodes are left out.

    Returns:
        Tuple[List[str], List[str]]: (order, warnings).
    """
    order: List[str] = []
    warnings: List[str] = []
    visited: Set[str] = set()

    def usable(node: str) -> bool:
        return not graph.nodes[node].get("missing", False)

    for root in sorted(graph.nodes):
        if root in visited or not usable(root):
            continue

        on_path: Set[str] = {root}
        stack: List[Tuple[str, Iterator[str]]] = [(root, _sorted_successors(graph, root))]

        while stack:
            node, children = stack[-1]
            descended = False
            for child in children:
                if not usable(child) or child in visited:
                    continue
                if child in on_path:
                    message = f"Cycle between {node} and {child}; edge ignored for ordering"
                    logger.warning(message)
                    warnings.append(message)
                    continue
                on_path.add(child)
                stack.append((child, _sorted_successors(graph, child)))
                descended = True
                break

            if not descended:
                stack.pop()
                on_path.discard(node)
                visited.add(node)
                order.append(node)

    return order, warnings


def find_version_conflicts(coordinates: Iterable[Coordinate]) -> List[VersionConflict]:
    """Report every (group, artifact) present at more than one version."""
    versions: Dict[Tuple[str, str], Set[str]] = defaultdict(set)
    for coordinate in coordinates:
        if coordinate.version is not None:
            versions[coordinate.name].add(coordinate.version)

    conflicts = [
        VersionConflict(group=group, artifact=artifact, versions=tuple(sort_versions(found)))
        for (group, artifact), found in sorted(versions.items())
        if len(found) > 1
    ]
    for conflict in conflicts:
        logger.debug("Version conflict: %s", conflict)
    return conflicts


__all__ = ["build_graph", "find_version_conflicts", "missing_nodes", "topological_order"]
