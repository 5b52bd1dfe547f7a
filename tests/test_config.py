"""Settings schema and loader tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from jxdeps.config import JxSettings, load_project_settings, load_settings
from jxdeps.errors import ConfigurationError
from jxdeps.resolve import MAVEN_CENTRAL


def test_defaults() -> None:
    settings = load_settings(None)
    assert settings == JxSettings.default()
    assert settings.resolver.metadata_timeout == 30.0
    assert settings.resolver.max_workers == 8
    assert settings.resolver.repository_url == MAVEN_CENTRAL.rstrip("/")
    assert settings.lock.filename == "jx.lock"
    assert settings.lock.require_complete is True
    assert settings.fetch.enabled is False
    assert settings.classpath.include_test_scope is False


def test_from_dict_and_back() -> None:
    settings = load_settings(
        {
            "resolver": {"max_workers": 2, "repository_url": "https://repo.example.com/maven2/"},
            "fetch": {"enabled": True, "lib_dir": "vendor"},
        }
    )
    assert settings.resolver.max_workers == 2
    assert settings.resolver.repository_url == "https://repo.example.com/maven2"
    assert settings.fetch.lib_dir == Path("vendor")

    dumped = settings.to_dict()
    assert dumped["fetch"]["lib_dir"] == "vendor"
    assert JxSettings.from_dict(dumped) == settings


def test_toml_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text("[resolver]\nmetadata_timeout = 5\noffline = true\n", encoding="utf-8")

    settings = load_settings(path)
    assert settings.resolver.metadata_timeout == 5
    assert settings.resolver.offline is True


def test_json_file_given_as_string(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"lock": {"filename": "deps.lock"}}), encoding="utf-8")
    assert load_settings(str(path)).lock.filename == "deps.lock"


def test_project_file_as_config_uses_jxdeps_table(tmp_path: Path) -> None:
    path = tmp_path / "jx.toml"
    path.write_text(
        '[project]\nname = "demo"\n\n[jxdeps.classpath]\ninclude_test_scope = true\n',
        encoding="utf-8",
    )
    assert load_settings(path).classpath.include_test_scope is True


def test_inline_strings() -> None:
    assert load_settings('{"resolver": {"max_workers": 3}}').resolver.max_workers == 3
    assert load_settings("[resolver]\nmax_workers = 4\n").resolver.max_workers == 4


def test_table_header_is_not_mistaken_for_json(tmp_path: Path) -> None:
    path = tmp_path / "settings.conf"
    path.write_text("[lock]\nfilename = \"deps.lock\"\n", encoding="utf-8")
    assert load_settings(path).lock.filename == "deps.lock"

    with pytest.raises(ConfigurationError, match="mapping"):
        load_settings("[1, 2]")


@pytest.mark.parametrize(
    "source",
    [
        {"resolver": {"max_workers": 0}},
        {"resolver": {"metadata_timeout": -1}},
        {"resolver": {"repository_url": "ftp://example.com"}},
        {"lock": {"filename": "  "}},
        {"unknown": {}},
        "[resolver\n",
        "[1, 2]",
    ],
)
def test_invalid_configuration(source) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(source)


def test_missing_path_object(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "absent.toml")


def test_project_settings_from_jx_toml(tmp_path: Path) -> None:
    assert load_project_settings(tmp_path) == JxSettings.default()

    (tmp_path / "jx.toml").write_text(
        '[dependencies]\n"g:a" = "1"\n\n[jxdeps.lock]\nrequire_complete = false\n',
        encoding="utf-8",
    )
    assert load_project_settings(tmp_path).lock.require_complete is False


def test_project_settings_override_wins(tmp_path: Path) -> None:
    (tmp_path / "jx.toml").write_text("[jxdeps.resolver]\nmax_workers = 2\n", encoding="utf-8")
    settings = load_project_settings(tmp_path, override={"resolver": {"max_workers": 5}})
    assert settings.resolver.max_workers == 5


def test_project_settings_without_table(tmp_path: Path) -> None:
    (tmp_path / "jx.toml").write_text('[dependencies]\n"g:a" = "1"\n', encoding="utf-8")
    assert load_project_settings(tmp_path) == JxSettings.default()
