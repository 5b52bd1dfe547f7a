"""Shared helpers for CLI commands."""

import logging
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from jxdeps.config import JxSettings, load_project_settings
from jxdeps.errors import JxDepsError, ParseError

logger = logging.getLogger("jxdeps.cli.common")

console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def project_dir(args) -> Path:
    return Path(getattr(args, "directory", None) or ".").expanduser().resolve()


def project_settings(args) -> JxSettings:
    """Load settings for the command's project, applying CLI overrides."""
    settings = load_project_settings(project_dir(args), getattr(args, "config", None))
    if getattr(args, "offline", False):
        settings.resolver.offline = True
    return settings


def report_error(exc: JxDepsError) -> int:
    """Log a command failure and map it to an exit code."""
    logger.error("%s", exc)
    console.print(f"[red]error:[/red] {escape(str(exc))}", highlight=False)
    if isinstance(exc, ParseError):
        return EXIT_USAGE
    return EXIT_ERROR
