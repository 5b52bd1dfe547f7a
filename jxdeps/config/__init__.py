"""Configuration schema and loading for jxdeps."""

from .loader import load_project_settings, load_settings
from .schema import (
    ClasspathSettings,
    FetchSettings,
    JxSettings,
    LockSettings,
    ResolverSettings,
)

__all__ = [
    "ClasspathSettings",
    "FetchSettings",
    "JxSettings",
    "LockSettings",
    "ResolverSettings",
    "load_project_settings",
    "load_settings",
]
