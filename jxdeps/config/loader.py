"""Helpers for loading ``JxSettings`` from TOML/JSON sources.

``load_settings`` accepts:

* None -> default JxSettings
* dict -> JxSettings.from_dict
* Path / path-like string -> load a .toml/.json file
* Inline JSON/TOML strings

``load_project_settings`` reads the ``[jxdeps]`` table of a project's
``jx.toml``, if there is one.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from jxdeps.config.schema import JxSettings
from jxdeps.errors import ConfigurationError

logger = logging.getLogger("jxdeps.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]

PROJECT_FILE = "jx.toml"
PROJECT_TABLE = "jxdeps"


def _validate(data: Dict[str, Any], origin: str) -> JxSettings:
    try:
        return JxSettings.from_dict(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {origin}: {exc}") from exc


def _parse(text: str, fmt: str, origin: str) -> Dict[str, Any]:
    try:
        data = json.loads(text) if fmt == "json" else tomllib.loads(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"Cannot parse {fmt.upper()} configuration in {origin}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Top-level configuration must be a mapping/dict")
    return data


def _guess_format(text: str) -> str:
    stripped = text.lstrip()
    if stripped.startswith("{"):
        return "json"
    if stripped.startswith("["):
        # Either a JSON array or a TOML table header.
        try:
            json.loads(stripped)
        except json.JSONDecodeError:
            return "toml"
        return "json"
    return "toml"


def load_settings(source: ConfigSource) -> JxSettings:
    """Load JxSettings from various configuration sources.

    Args:
        source: One of:
            * None: returns JxSettings.default()
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Raises:
        ConfigurationError: Unparseable or invalid configuration.
    """
    if source is None:
        logger.debug("No config source provided; using default settings")
        return JxSettings.default()

    if isinstance(source, dict):
        logger.debug("Loading settings from provided dict")
        return _validate(source, "<dict>")

    if isinstance(source, (str, Path)):
        path = Path(source)
        inline = isinstance(source, str) and ("\n" in source or source.lstrip().startswith("{"))
        if not inline and path.is_file():
            text = path.read_text(encoding="utf-8")
            suffix = path.suffix.lower()
            if suffix in {".toml", ".tml"}:
                fmt = "toml"
            elif suffix == ".json":
                fmt = "json"
            else:
                fmt = _guess_format(text)
            logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
            origin = str(path)
        elif isinstance(source, Path):
            raise ConfigurationError(f"Configuration file not found: {path}")
        else:
            text = source
            fmt = _guess_format(text)
            logger.info("Loading configuration from inline %s string", fmt)
            origin = f"inline {fmt}"

        data = _parse(text, fmt, origin)
        # A jx.toml passed as --config carries settings under [jxdeps].
        if fmt == "toml" and isinstance(data.get(PROJECT_TABLE), dict):
            data = data[PROJECT_TABLE]
        return _validate(data, origin)

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


def load_project_settings(project_dir: Path, override: Optional[ConfigSource] = None) -> JxSettings:
    """Settings for a project: ``override`` if given, else ``jx.toml [jxdeps]``."""
    if override is not None:
        return load_settings(override)

    path = Path(project_dir) / PROJECT_FILE
    if not path.is_file():
        return JxSettings.default()

    data = _parse(path.read_text(encoding="utf-8"), "toml", str(path))
    table = data.get(PROJECT_TABLE)
    if table is None:
        return JxSettings.default()
    if not isinstance(table, dict):
        raise ConfigurationError(f"{path}: [{PROJECT_TABLE}] must be a table")
    logger.debug("Using [%s] settings from %s", PROJECT_TABLE, path)
    return _validate(table, str(path))


__all__ = ["ConfigSource", "load_project_settings", "load_settings"]
