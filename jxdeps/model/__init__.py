"""Core value types: coordinates, specs and resolution results."""

from jxdeps.model.coordinate import (
    WILDCARD,
    Coordinate,
    DependencySpec,
    Exclusion,
    Scope,
    parse_coordinate,
)
from jxdeps.model.resolved import ResolvedDependency, TreeNode, VersionConflict
from jxdeps.model.versions import latest_release, sort_versions, version_sort_key

__all__ = [
    "WILDCARD",
    "Coordinate",
    "DependencySpec",
    "Exclusion",
    "ResolvedDependency",
    "Scope",
    "TreeNode",
    "VersionConflict",
    "latest_release",
    "parse_coordinate",
    "sort_versions",
    "version_sort_key",
]
