"""Adapter for Maven ``pom.xml`` files.

Reading covers the project-level ``<dependencies>`` section with property
interpolation. Writing edits that section in place: entries that are still
wanted keep their element (and so their comments and any ``${...}``
version reference that still resolves to the requested version), dropped
entries are removed and new entries are appended.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from jxdeps import pom
from jxdeps.adapters.base import ConfigAdapter
from jxdeps.errors import ConfigurationError
from jxdeps.model import DependencySpec, Scope

logger = logging.getLogger("jxdeps.adapters.maven")

INDENT = "    "

SpecName = Tuple[str, str, Optional[str]]


def _spec_name(spec: DependencySpec) -> SpecName:
    coordinate = spec.coordinate
    return coordinate.group, coordinate.artifact, coordinate.classifier


def _parse_tree(path: Path) -> ET.ElementTree:
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    try:
        return ET.parse(path, parser=parser)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"{path} does not exist") from exc
    except ET.ParseError as exc:
        raise ConfigurationError(f"{path}: malformed XML: {exc}") from exc


def _set_child_text(elem: ET.Element, tag: str, ns: str, value: Optional[str]) -> None:
    """Set, create or (for ``None``) remove the direct child ``tag``."""
    existing = pom.child(elem, tag, ns)
    if value is None:
        if existing is not None:
            elem.remove(existing)
        return
    if existing is None:
        existing = ET.SubElement(elem, pom.qualify(tag, ns))
    existing.text = value


def _build_exclusions(dep: ET.Element, spec: DependencySpec, ns: str) -> None:
    existing = pom.child(dep, "exclusions", ns)
    if existing is not None:
        dep.remove(existing)
    if not spec.exclusions:
        return
    section = ET.SubElement(dep, pom.qualify("exclusions", ns))
    for exclusion in sorted(spec.exclusions, key=str):
        excl = ET.SubElement(section, pom.qualify("exclusion", ns))
        ET.SubElement(excl, pom.qualify("groupId", ns)).text = exclusion.group
        ET.SubElement(excl, pom.qualify("artifactId", ns)).text = exclusion.artifact


def _new_dependency(spec: DependencySpec, ns: str) -> ET.Element:
    coordinate = spec.coordinate
    dep = ET.Element(pom.qualify("dependency", ns))
    ET.SubElement(dep, pom.qualify("groupId", ns)).text = coordinate.group
    ET.SubElement(dep, pom.qualify("artifactId", ns)).text = coordinate.artifact
    if coordinate.version is not None:
        ET.SubElement(dep, pom.qualify("version", ns)).text = coordinate.version
    if coordinate.classifier is not None:
        ET.SubElement(dep, pom.qualify("classifier", ns)).text = coordinate.classifier
    if spec.scope is not Scope.COMPILE:
        ET.SubElement(dep, pom.qualify("scope", ns)).text = spec.scope.value
    if spec.optional:
        ET.SubElement(dep, pom.qualify("optional", ns)).text = "true"
    _build_exclusions(dep, spec, ns)
    return dep


def _update_dependency(
    dep: ET.Element, current: DependencySpec, spec: DependencySpec, ns: str
) -> None:
    if current.coordinate.version != spec.coordinate.version:
        _set_child_text(dep, "version", ns, spec.coordinate.version)
    if current.scope is not spec.scope:
        _set_child_text(
            dep, "scope", ns, None if spec.scope is Scope.COMPILE else spec.scope.value
        )
    if current.optional != spec.optional:
        _set_child_text(dep, "optional", ns, "true" if spec.optional else None)
    if current.exclusions != spec.exclusions:
        _build_exclusions(dep, spec, ns)


def _append_section(root: ET.Element, ns: str) -> ET.Element:
    """Append an empty <dependencies> as the last child of <project>."""
    previous = root[-1] if len(root) else None
    section = ET.SubElement(root, pom.qualify("dependencies", ns))
    if previous is None:
        root.text = "\n" + INDENT
        section.tail = "\n"
    else:
        section.tail = previous.tail
        previous.tail = "\n" + INDENT
    return section


class MavenPomAdapter(ConfigAdapter):
    NAME = "maven"
    FILENAME = "pom.xml"

    def read_specs(self, project_dir: Path) -> List[DependencySpec]:
        path = self.config_path(project_dir)
        tree = _parse_tree(path)
        specs = pom.read_dependencies(tree.getroot())
        logger.debug("Read %d dependencies from %s", len(specs), path)
        return specs

    def write_specs(self, project_dir: Path, specs: Sequence[DependencySpec]) -> None:
        path = self.config_path(project_dir)
        tree = _parse_tree(path)
        root = tree.getroot()
        ns = pom.detect_namespace(root)
        if ns:
            ET.register_namespace("", ns)
        props = pom.pom_properties(root, ns)
        managed = pom.managed_versions(root, ns, props)

        section = pom.child(root, "dependencies", ns)
        if section is None:
            section = _append_section(root, ns)

        existing: Dict[SpecName, Tuple[ET.Element, DependencySpec]] = {}
        for dep in section.findall(pom.qualify("dependency", ns)):
            current = pom.parse_dependency(dep, ns, props, managed)
            if current is not None:
                existing.setdefault(_spec_name(current), (dep, current))

        # Comments directly inside <dependencies> are kept ahead of the entries.
        kept = [node for node in section if node.tag is ET.Comment]
        for node in list(section):
            section.remove(node)
        section.extend(kept)

        for spec in specs:
            match = existing.pop(_spec_name(spec), None)
            if match is None:
                section.append(_new_dependency(spec, ns))
                continue
            dep, current = match
            _update_dependency(dep, current, spec, ns)
            section.append(dep)

        for name in existing:
            logger.debug("Dropping %s:%s from %s", name[0], name[1], path)

        if len(section):
            ET.indent(section, space=INDENT, level=1)
        else:
            section.text = "\n" + INDENT
        tree.write(path, encoding="utf-8", xml_declaration=True)
        logger.debug("Wrote %d dependencies to %s", len(specs), path)
