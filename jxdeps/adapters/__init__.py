"""Project configuration adapters.

Importing this package registers the built-in adapters in precedence order:
``jx.toml``, ``pom.xml``, ``build.gradle``.
"""

from jxdeps.adapters.base import AdapterRegistry, ConfigAdapter
from jxdeps.adapters.edit import (
    add_dependency,
    detect_adapter,
    read_project_specs,
    remove_dependency,
    update_dependencies,
)
from jxdeps.adapters.gradle import GradleAdapter
from jxdeps.adapters.jx import JxTomlAdapter
from jxdeps.adapters.maven import MavenPomAdapter


def register_builtin_adapters(registry: AdapterRegistry) -> None:
    registry.register(JxTomlAdapter)
    registry.register(MavenPomAdapter)
    registry.register(GradleAdapter)


register_builtin_adapters(AdapterRegistry.get_instance())

__all__ = [
    "AdapterRegistry",
    "ConfigAdapter",
    "GradleAdapter",
    "JxTomlAdapter",
    "MavenPomAdapter",
    "add_dependency",
    "detect_adapter",
    "read_project_specs",
    "register_builtin_adapters",
    "remove_dependency",
    "update_dependencies",
]
