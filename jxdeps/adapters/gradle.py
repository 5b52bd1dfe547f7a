"""Adapter for Groovy ``build.gradle`` files.

Only the top-level ``dependencies { }`` block and the string notation are
understood::

    dependencies {
        implementation 'org.slf4j:slf4j-api:1.7.36'
        testImplementation("junit:junit:4.13.2")
    }

Anything else inside the block (map notation, closures, project
dependencies, platform() calls) is left untouched on write.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from jxdeps.adapters.base import ConfigAdapter
from jxdeps.errors import ConfigurationError, JxDepsError
from jxdeps.model import Coordinate, DependencySpec, Scope

logger = logging.getLogger("jxdeps.adapters.gradle")

CONFIGURATION_SCOPES: Dict[str, Scope] = {
    "implementation": Scope.COMPILE,
    "api": Scope.COMPILE,
    "compile": Scope.COMPILE,
    "runtimeOnly": Scope.RUNTIME,
    "runtime": Scope.RUNTIME,
    "compileOnly": Scope.PROVIDED,
    "testImplementation": Scope.TEST,
    "testRuntimeOnly": Scope.TEST,
    "testCompileOnly": Scope.TEST,
    "testCompile": Scope.TEST,
}

SCOPE_CONFIGURATIONS: Dict[Scope, str] = {
    Scope.COMPILE: "implementation",
    Scope.RUNTIME: "runtimeOnly",
    Scope.PROVIDED: "compileOnly",
    Scope.SYSTEM: "compileOnly",
    Scope.TEST: "testImplementation",
}

_BLOCK_START = re.compile(r"^\s*dependencies\s*\{\s*$")
_DEPENDENCY_LINE = re.compile(
    r"""^(?P<indent>\s*)(?P<config>\w+)\s*(?P<paren>\()?\s*
        (?P<quote>['"])(?P<notation>[^'"]+)(?P=quote)\s*(?(paren)\))
        (?P<comment>\s*//.*)?\s*$""",
    re.VERBOSE,
)


@dataclass
class GradleDependencyLine:
    index: int
    indent: str
    configuration: str
    quote: str
    parenthesized: bool
    spec: DependencySpec
    comment: str = ""


def _parse_notation(notation: str, scope: Scope) -> DependencySpec:
    parts = notation.split(":")
    if len(parts) not in (2, 3, 4) or not all(p.strip() for p in parts):
        raise ConfigurationError(f"Unsupported Gradle dependency notation {notation!r}")
    group, artifact = parts[0].strip(), parts[1].strip()
    version = parts[2].strip() if len(parts) >= 3 else None
    if version is not None and "+" in version:
        # Dynamic versions are left for the resolver to pin.
        version = None
    classifier = parts[3].strip() if len(parts) == 4 else None
    return DependencySpec(Coordinate(group, artifact, version, classifier), scope=scope)


def _notation(spec: DependencySpec) -> str:
    coordinate = spec.coordinate
    parts = [coordinate.group, coordinate.artifact]
    if coordinate.version is not None or coordinate.classifier is not None:
        parts.append(coordinate.version or "+")
    if coordinate.classifier is not None:
        parts.append(coordinate.classifier)
    return ":".join(parts)


def find_dependencies_block(lines: Sequence[str]) -> Optional[Tuple[int, int]]:
    """Return (opening line, closing line) of the top-level dependencies block."""
    depth = 0
    start: Optional[int] = None
    for index, line in enumerate(lines):
        if start is None and depth == 0 and _BLOCK_START.match(line):
            start = index
            depth = 1
            continue
        depth += line.count("{") - line.count("}")
        if start is not None and depth == 0:
            return start, index
    if start is not None:
        raise ConfigurationError("Unterminated dependencies { } block in build.gradle")
    return None


def parse_dependency_lines(lines: Sequence[str], start: int, end: int) -> List[GradleDependencyLine]:
    parsed = []
    for index in range(start + 1, end):
        match = _DEPENDENCY_LINE.match(lines[index])
        if match is None:
            continue
        config = match.group("config")
        scope = CONFIGURATION_SCOPES.get(config)
        if scope is None:
            logger.debug("Ignoring Gradle configuration %r on line %d", config, index + 1)
            continue
        notation = match.group("notation").split("@", 1)[0]
        try:
            spec = _parse_notation(notation, scope)
        except JxDepsError as exc:
            logger.warning("Skipping build.gradle line %d: %s", index + 1, exc)
            continue
        parsed.append(
            GradleDependencyLine(
                index=index,
                indent=match.group("indent"),
                configuration=config,
                quote=match.group("quote"),
                parenthesized=match.group("paren") is not None,
                spec=spec,
                comment=(match.group("comment") or "").rstrip(),
            )
        )
    return parsed


def _render(line: Optional[GradleDependencyLine], spec: DependencySpec, indent: str) -> str:
    if line is not None and CONFIGURATION_SCOPES[line.configuration] is spec.scope:
        configuration = line.configuration
    else:
        configuration = SCOPE_CONFIGURATIONS[spec.scope]
    quote = line.quote if line is not None else "'"
    notation = f"{quote}{_notation(spec)}{quote}"
    comment = line.comment if line is not None else ""
    if line is not None and line.parenthesized:
        return f"{indent}{configuration}({notation}){comment}"
    return f"{indent}{configuration} {notation}{comment}"


class GradleAdapter(ConfigAdapter):
    NAME = "gradle"
    FILENAME = "build.gradle"

    def _read_lines(self, project_dir: Path) -> List[str]:
        path = self.config_path(project_dir)
        try:
            return path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError as exc:
            raise ConfigurationError(f"{path} does not exist") from exc

    def read_specs(self, project_dir: Path) -> List[DependencySpec]:
        lines = self._read_lines(project_dir)
        block = find_dependencies_block(lines)
        if block is None:
            return []
        return [entry.spec for entry in parse_dependency_lines(lines, *block)]

    def write_specs(self, project_dir: Path, specs: Sequence[DependencySpec]) -> None:
        lines = self._read_lines(project_dir)
        block = find_dependencies_block(lines)
        if block is None:
            if lines and lines[-1].strip():
                lines.append("")
            lines.extend(["dependencies {", "}"])
            block = (len(lines) - 2, len(lines) - 1)
        start, end = block

        parsed = parse_dependency_lines(lines, start, end)
        by_name: Dict[Tuple[str, str, Optional[str]], GradleDependencyLine] = {}
        for entry in parsed:
            coordinate = entry.spec.coordinate
            by_name.setdefault((coordinate.group, coordinate.artifact, coordinate.classifier), entry)
        indent = parsed[0].indent if parsed else "    "

        replacements: Dict[int, str] = {}
        appended: List[str] = []
        for spec in specs:
            if spec.exclusions or spec.optional:
                logger.warning(
                    "build.gradle string notation cannot express exclusions/optional for %s",
                    spec.key,
                )
            coordinate = spec.coordinate
            entry = by_name.pop((coordinate.group, coordinate.artifact, coordinate.classifier), None)
            if entry is None:
                appended.append(_render(None, spec, indent))
            elif entry.spec != spec:
                replacements[entry.index] = _render(entry, spec, entry.indent)

        dropped = {entry.index for entry in by_name.values()}
        body = []
        for index in range(start + 1, end):
            if index in dropped:
                continue
            body.append(replacements.get(index, lines[index]))
        body.extend(appended)

        new_lines = lines[: start + 1] + body + lines[end:]
        self.config_path(project_dir).write_text("\n".join(new_lines) + "\n", encoding="utf-8")
        logger.debug("Wrote %d dependencies to build.gradle", len(specs))
