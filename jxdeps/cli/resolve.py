"""Resolve command implementation."""

import logging

from rich.table import Table

from jxdeps.cli.common import EXIT_ERROR, EXIT_OK, console, project_dir, project_settings, report_error
from jxdeps.errors import JxDepsError
from jxdeps.pipeline import build_fetcher, sync_project

logger = logging.getLogger("jxdeps.cli.resolve")


def resolve_command(args) -> int:
    """Execute resolve command.

    Args:
        args: Parsed command-line arguments containing:
            - directory: Project directory
            - config: Optional settings source
            - offline: Use built-in static metadata
            - fetch: Download artifacts into the lib directory
            - fail_on_conflict: Exit non-zero on version conflicts

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        directory = project_dir(args)
        settings = project_settings(args)
        fetcher = None
        if getattr(args, "fetch", False) or settings.fetch.enabled:
            fetcher = build_fetcher(settings)

        report = sync_project(directory, settings, fetcher=fetcher)
    except JxDepsError as exc:
        return report_error(exc)

    table = Table(title=f"Resolved {len(report.dependencies)} dependencies")
    table.add_column("Dependency")
    table.add_column("Scope")
    table.add_column("Requires", justify="right")
    table.add_column("Checksum")
    for dep in report.dependencies:
        checksum = dep.checksum[:19] + "..." if len(dep.checksum) > 22 else dep.checksum
        table.add_row(dep.key, dep.scope.value, str(len(dep.transitive_edges)), checksum or "-")
    console.print(table)

    for key in report.removed:
        console.print(f"[dim]removed[/dim] {key}", highlight=False)
    for warning in report.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}", highlight=False)
    for conflict in report.conflicts:
        console.print(f"[yellow]conflict:[/yellow] {conflict}", highlight=False)

    console.print(f"Lock file written to {report.lock_path}", highlight=False)
    if report.conflicts and getattr(args, "fail_on_conflict", False):
        logger.error("%d version conflict(s) found", len(report.conflicts))
        return EXIT_ERROR
    return EXIT_OK
