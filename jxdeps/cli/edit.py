"""add, remove and update commands."""

import logging

from jxdeps.adapters import add_dependency, remove_dependency, update_dependencies
from jxdeps.cli.common import EXIT_ERROR, EXIT_OK, console, project_dir, project_settings, report_error
from jxdeps.errors import JxDepsError
from jxdeps.model import Scope
from jxdeps.pipeline import build_source

logger = logging.getLogger("jxdeps.cli.edit")


def add_command(args) -> int:
    try:
        spec = add_dependency(project_dir(args), args.coordinate, Scope.parse(args.scope))
    except JxDepsError as exc:
        return report_error(exc)
    console.print(f"Added {spec.key} ({spec.scope.value})", highlight=False)
    console.print("Run 'jxdeps resolve' to update the lock file.")
    return EXIT_OK


def remove_command(args) -> int:
    try:
        removed = remove_dependency(project_dir(args), args.coordinate)
    except JxDepsError as exc:
        return report_error(exc)
    if not removed:
        console.print(f"{args.coordinate} is not declared", highlight=False)
        return EXIT_ERROR
    console.print(f"Removed {args.coordinate}", highlight=False)
    return EXIT_OK


def update_command(args) -> int:
    try:
        settings = project_settings(args)
        changes = update_dependencies(
            project_dir(args),
            build_source(settings),
            only=getattr(args, "coordinate", None),
            latest=getattr(args, "latest", False),
        )
    except JxDepsError as exc:
        return report_error(exc)

    if not changes:
        console.print("All dependencies are up to date.")
        return EXIT_OK
    for old, new in changes:
        console.print(f"{old.key} -> {new.coordinate.version}", highlight=False)
    console.print("Run 'jxdeps resolve' to update the lock file.")
    return EXIT_OK
