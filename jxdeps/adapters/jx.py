"""Adapter for the native ``jx.toml`` project file.

Dependencies live in a ``[dependencies]`` table keyed by
``"group:artifact"``. A value is either a version string (``"*"`` for
"any") or a table with ``version``, ``scope``, ``classifier``, ``optional``
and ``exclusions`` keys::

    [dependencies]
    "org.slf4j:slf4j-api" = "1.7.36"
    "junit:junit" = { version = "4.13.2", scope = "test" }
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Sequence

import tomli_w

from jxdeps.adapters.base import ConfigAdapter
from jxdeps.errors import ConfigurationError, JxDepsError
from jxdeps.model import WILDCARD, Coordinate, DependencySpec, Exclusion, Scope, parse_coordinate

logger = logging.getLogger("jxdeps.adapters.jx")

DEFAULT_PROJECT: Dict[str, Any] = {
    "project": {
        "name": "my-java-project",
        "version": "1.0.0",
        "java_version": "11",
    },
}


def _spec_from_entry(name: str, value: Any) -> DependencySpec:
    coordinate = parse_coordinate(name)
    if coordinate.version is not None:
        raise ConfigurationError(
            f"Dependency key {name!r} must be group:artifact; put the version in the value"
        )

    if isinstance(value, str):
        version = None if value.strip() in ("", WILDCARD) else value.strip()
        return DependencySpec(coordinate=coordinate.with_version(version))

    if not isinstance(value, dict):
        raise ConfigurationError(f"Unsupported value for dependency {name!r}: {value!r}")

    version = str(value.get("version", WILDCARD)).strip()
    exclusions = value.get("exclusions", [])
    if not isinstance(exclusions, list):
        raise ConfigurationError(f"'exclusions' of {name!r} must be a list")
    return DependencySpec(
        coordinate=Coordinate(
            coordinate.group,
            coordinate.artifact,
            None if version in ("", WILDCARD) else version,
            value.get("classifier") or None,
        ),
        scope=Scope.parse(value.get("scope")),
        exclusions=frozenset(Exclusion.parse(str(e)) for e in exclusions),
        optional=bool(value.get("optional", False)),
    )


def _entry_from_spec(spec: DependencySpec) -> Any:
    coordinate = spec.coordinate
    version = coordinate.version or WILDCARD
    simple = (
        spec.scope is Scope.COMPILE
        and coordinate.classifier is None
        and not spec.exclusions
        and not spec.optional
    )
    if simple:
        return version

    entry: Dict[str, Any] = {"version": version}
    if spec.scope is not Scope.COMPILE:
        entry["scope"] = spec.scope.value
    if coordinate.classifier is not None:
        entry["classifier"] = coordinate.classifier
    if spec.optional:
        entry["optional"] = True
    if spec.exclusions:
        entry["exclusions"] = sorted(str(e) for e in spec.exclusions)
    return entry


def _inline_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        # JSON string escapes are valid TOML basic-string escapes.
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, list):
        return "[" + ", ".join(_inline_value(item) for item in value) + "]"
    if isinstance(value, dict):
        fields = ", ".join(f"{key} = {_inline_value(item)}" for key, item in value.items())
        return "{ " + fields + " }"
    raise TypeError(f"Cannot write {type(value).__name__} to {JxTomlAdapter.FILENAME}")


def _render_dependencies(dependencies: Dict[str, Any]) -> str:
    lines = ["[dependencies]"]
    for name, entry in dependencies.items():
        lines.append(f"{_inline_value(name)} = {_inline_value(entry)}")
    return "\n".join(lines) + "\n"


class JxTomlAdapter(ConfigAdapter):
    NAME = "jx"
    FILENAME = "jx.toml"

    def load_document(self, project_dir: Path) -> Dict[str, Any]:
        path = self.config_path(project_dir)
        try:
            with path.open("rb") as handle:
                return tomllib.load(handle)
        except FileNotFoundError as exc:
            raise ConfigurationError(f"{path} does not exist") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"{path}: invalid TOML: {exc}") from exc

    def read_specs(self, project_dir: Path) -> List[DependencySpec]:
        document = self.load_document(project_dir)
        table = document.get("dependencies", {})
        if not isinstance(table, dict):
            raise ConfigurationError(f"{self.FILENAME}: [dependencies] must be a table")

        specs = []
        for name, value in table.items():
            try:
                specs.append(_spec_from_entry(name, value))
            except ConfigurationError:
                raise
            except JxDepsError as exc:
                raise ConfigurationError(f"{self.FILENAME}: dependency {name!r}: {exc}") from exc
        logger.debug("Read %d dependencies from %s", len(specs), self.FILENAME)
        return specs

    def write_specs(self, project_dir: Path, specs: Sequence[DependencySpec]) -> None:
        """Rewrite ``[dependencies]``; creates a minimal ``jx.toml`` if absent.

        Entries keep their declaration order and table entries stay inline.
        Every other table is re-serialized, so comments are not preserved.
        """
        path = self.config_path(project_dir)
        if path.exists():
            document = self.load_document(project_dir)
        else:
            logger.info("Creating %s", path)
            document = {key: dict(value) for key, value in DEFAULT_PROJECT.items()}

        dependencies: Dict[str, Any] = {}
        for spec in specs:
            name = f"{spec.coordinate.group}:{spec.coordinate.artifact}"
            if name in dependencies:
                logger.warning("Duplicate dependency %s in %s; keeping the last", name, self.FILENAME)
            dependencies[name] = _entry_from_spec(spec)

        # Tables after [dependencies] are written after it again.
        keys = list(document)
        split = keys.index("dependencies") if "dependencies" in keys else len(keys)
        before = {key: document[key] for key in keys[:split]}
        after = {key: document[key] for key in keys[split + 1:]}

        parts = []
        if before:
            parts.append(tomli_w.dumps(before))
        parts.append(_render_dependencies(dependencies))
        if after:
            parts.append(tomli_w.dumps(after))
        path.write_text("\n".join(parts), encoding="utf-8")
        logger.debug("Wrote %d dependencies to %s", len(dependencies), path)
