"""Helpers for reading Maven POM documents with ElementTree.

Shared by the ``pom.xml`` project adapter and the Maven repository metadata
source. Only the parts of the POM model that matter for dependency
resolution are handled: coordinates, ``<properties>``, ``<dependencies>``
and ``<dependencyManagement>``.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

from jxdeps.errors import JxDepsError
from jxdeps.model import Coordinate, DependencySpec, Exclusion, Scope

logger = logging.getLogger("jxdeps.pom")

_PROPERTY_RE = re.compile(r"\$\{([^}]+)\}")


def detect_namespace(root: ET.Element) -> str:
    if root.tag.startswith("{"):
        return root.tag.split("}")[0][1:]
    return ""


def qualify(tag: str, ns: str) -> str:
    """Qualify a slash separated child path with the document namespace."""
    if not ns:
        return tag
    return "/".join(f"{{{ns}}}{part}" for part in tag.split("/"))


def child(elem: ET.Element, tag: str, ns: str) -> Optional[ET.Element]:
    return elem.find(qualify(tag, ns))


def child_text(elem: ET.Element, tag: str, ns: str) -> Optional[str]:
    target = child(elem, tag, ns)
    if target is not None and target.text and target.text.strip():
        return target.text.strip()
    return None


def pom_properties(root: ET.Element, ns: str) -> Dict[str, str]:
    """Collect properties usable for ``${...}`` interpolation."""
    props: Dict[str, str] = {}
    parent = child(root, "parent", ns)
    if parent is not None:
        for field in ("groupId", "artifactId", "version"):
            value = child_text(parent, field, ns)
            if value:
                props[f"project.parent.{field}"] = value
                props[f"parent.{field}"] = value

    for field in ("groupId", "artifactId", "version"):
        value = child_text(root, field, ns)
        if value is None and field != "artifactId":
            value = props.get(f"project.parent.{field}")
        if value:
            props[f"project.{field}"] = value
            props[f"pom.{field}"] = value

    properties = child(root, "properties", ns)
    if properties is not None:
        for prop in list(properties):
            if not isinstance(prop.tag, str):
                continue
            name = prop.tag.split("}")[-1]
            props[name] = (prop.text or "").strip()
    return props


def interpolate(value: Optional[str], props: Dict[str, str]) -> Optional[str]:
    """Substitute ``${name}`` references, leaving unknown ones in place."""
    if value is None:
        return None
    for _ in range(10):  # nested properties
        replaced = _PROPERTY_RE.sub(lambda m: props.get(m.group(1), m.group(0)), value)
        if replaced == value:
            break
        value = replaced
    return value


def _is_unresolved(value: Optional[str]) -> bool:
    return value is not None and "${" in value


def managed_versions(root: ET.Element, ns: str, props: Dict[str, str]) -> Dict[Tuple[str, str], str]:
    """Versions declared in ``<dependencyManagement>``, keyed by (group, artifact)."""
    managed: Dict[Tuple[str, str], str] = {}
    section = child(root, "dependencyManagement/dependencies", ns)
    if section is None:
        return managed
    for dep in section.findall(qualify("dependency", ns)):
        group = interpolate(child_text(dep, "groupId", ns), props)
        artifact = interpolate(child_text(dep, "artifactId", ns), props)
        version = interpolate(child_text(dep, "version", ns), props)
        if group and artifact and version and not _is_unresolved(version):
            managed[(group, artifact)] = version
    return managed


def parse_dependency(
    dep: ET.Element,
    ns: str,
    props: Dict[str, str],
    managed: Optional[Dict[Tuple[str, str], str]] = None,
) -> Optional[DependencySpec]:
    """Turn one ``<dependency>`` element into a spec.

    Returns ``None`` (with a warning) when group or artifact are missing or
    cannot be interpolated. An uninterpolatable version is dropped, leaving
    the spec unpinned.
    """
    group = interpolate(child_text(dep, "groupId", ns), props)
    artifact = interpolate(child_text(dep, "artifactId", ns), props)
    if not group or not artifact or _is_unresolved(group) or _is_unresolved(artifact):
        logger.warning("Skipping dependency with incomplete coordinates: %s:%s", group, artifact)
        return None

    version = interpolate(child_text(dep, "version", ns), props)
    if version is None and managed:
        version = managed.get((group, artifact))
    if _is_unresolved(version):
        logger.warning("Cannot interpolate version %r of %s:%s", version, group, artifact)
        version = None

    classifier = interpolate(child_text(dep, "classifier", ns), props)
    if _is_unresolved(classifier):
        classifier = None

    raw_scope = interpolate(child_text(dep, "scope", ns), props)
    try:
        scope = Scope.parse(raw_scope)
    except JxDepsError:
        logger.warning("Unknown scope %r on %s:%s, using compile", raw_scope, group, artifact)
        scope = Scope.COMPILE

    exclusions = []
    excl_section = child(dep, "exclusions", ns)
    if excl_section is not None:
        for excl in excl_section.findall(qualify("exclusion", ns)):
            ex_group = interpolate(child_text(excl, "groupId", ns), props)
            ex_artifact = interpolate(child_text(excl, "artifactId", ns), props)
            if ex_group and ex_artifact:
                exclusions.append(Exclusion(ex_group, ex_artifact))

    optional = (child_text(dep, "optional", ns) or "false").lower() == "true"

    return DependencySpec(
        coordinate=Coordinate(group, artifact, version, classifier or None),
        scope=scope,
        exclusions=frozenset(exclusions),
        optional=optional,
    )


def read_dependencies(root: ET.Element) -> List[DependencySpec]:
    """Parse the project-level ``<dependencies>`` of a POM document."""
    ns = detect_namespace(root)
    props = pom_properties(root, ns)
    managed = managed_versions(root, ns, props)

    specs: List[DependencySpec] = []
    section = child(root, "dependencies", ns)
    if section is None:
        return specs
    for dep in section.findall(qualify("dependency", ns)):
        spec = parse_dependency(dep, ns, props, managed)
        if spec is not None:
            specs.append(spec)
    return specs


__all__ = [
    "child",
    "child_text",
    "detect_namespace",
    "interpolate",
    "managed_versions",
    "parse_dependency",
    "pom_properties",
    "qualify",
    "read_dependencies",
]
