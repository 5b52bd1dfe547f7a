"""Ordering and conflict detection over dependency graphs."""

from __future__ import annotations

from jxdeps.graph import build_graph, find_version_conflicts, missing_nodes, topological_order
from jxdeps.model import Coordinate


def test_dependencies_precede_dependents() -> None:
    graph = build_graph(
        {
            "app": ["web", "log"],
            "web": ["core"],
            "log": ["core"],
            "core": [],
        }
    )
    order, warnings = topological_order(graph)

    assert warnings == []
    assert sorted(order) == ["app", "core", "log", "web"]
    for src, dst in graph.edges:
        assert order.index(dst) < order.index(src)


def test_order_is_deterministic() -> None:
    edges = {"b": ["x"], "a": ["x"], "x": []}
    first, _ = topological_order(build_graph(edges))
    second, _ = topological_order(build_graph(dict(reversed(list(edges.items())))))
    assert first == second == ["x", "a", "b"]


def test_cycle_is_reported_not_raised() -> None:
    """A back edge is skipped with a warning; every node is still ordered."""
    graph = build_graph({"a": ["b"], "b": ["a"]})
    order, warnings = topological_order(graph)

    assert sorted(order) == ["a", "b"]
    assert len(warnings) == 1
    assert "b" in warnings[0] and "a" in warnings[0]


def test_missing_targets_are_flagged_and_skipped() -> None:
    graph = build_graph({"a": ["ghost"]})
    assert missing_nodes(graph) == ["ghost"]
    order, _ = topological_order(graph)
    assert order == ["a"]


def test_conflict_names_both_versions() -> None:
    conflicts = find_version_conflicts(
        [
            Coordinate("a", "b", "2.0"),
            Coordinate("a", "b", "1.0"),
            Coordinate("c", "d", "1.0"),
        ]
    )
    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert (conflict.group, conflict.artifact) == ("a", "b")
    assert conflict.versions == ("1.0", "2.0")
    assert "1.0" in str(conflict) and "2.0" in str(conflict)


def test_no_conflict_for_single_version() -> None:
    assert find_version_conflicts([Coordinate("a", "b", "1.0")] * 2) == []
