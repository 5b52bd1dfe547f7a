"""Main CLI entry point for jxdeps.

Provides commands: resolve, tree, add, remove, update, classpath
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from jxdeps import __version__
from jxdeps.cli.classpath import classpath_command
from jxdeps.cli.edit import add_command, remove_command, update_command
from jxdeps.cli.resolve import resolve_command
from jxdeps.cli.tree import tree_command
from jxdeps.model import Scope

logger = logging.getLogger("jxdeps.cli")


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
    """
    level = logging.DEBUG if verbose else logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )

    logging.basicConfig(
        level=level,
        format="[%(name)s] %(message)s",
        handlers=[handler],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jxdeps",
        description="jxdeps - Java dependency resolver and lock file manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-c",
        "--config",
        help=(
            "Optional settings. Can be a path to a TOML/JSON file or an inline "
            "TOML/JSON string. When omitted, the [jxdeps] table of jx.toml is "
            "used, then built-in defaults."
        ),
    )
    parser.add_argument(
        "-C",
        "--directory",
        default=".",
        help="Project directory (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve declared dependencies and write the lock file",
    )
    resolve_parser.add_argument(
        "--offline",
        action="store_true",
        help="Use built-in sample metadata instead of the remote repository",
    )
    resolve_parser.add_argument(
        "--fetch",
        action="store_true",
        help="Download artifacts into the cache and the project's lib directory",
    )
    resolve_parser.add_argument(
        "--fail-on-conflict",
        action="store_true",
        help="Exit with non-zero status when version conflicts are found",
    )

    subparsers.add_parser("tree", help="Show the locked dependency tree")

    add_parser = subparsers.add_parser("add", help="Declare a dependency")
    add_parser.add_argument("coordinate", help="group:artifact[:version]")
    add_parser.add_argument(
        "-s",
        "--scope",
        default=Scope.COMPILE.value,
        choices=[scope.value for scope in Scope],
        help="Dependency scope (default: compile)",
    )

    remove_parser = subparsers.add_parser("remove", help="Remove a declared dependency")
    remove_parser.add_argument("coordinate", help="group:artifact[:version]")

    update_parser = subparsers.add_parser(
        "update",
        help="Pin unpinned dependencies, or move them to the latest release",
    )
    update_parser.add_argument(
        "coordinate",
        nargs="?",
        help="Only update this group:artifact (default: all)",
    )
    update_parser.add_argument(
        "--latest",
        action="store_true",
        help="Move pinned dependencies to the latest release as well",
    )
    update_parser.add_argument(
        "--offline",
        action="store_true",
        help="Use built-in sample metadata instead of the remote repository",
    )

    classpath_parser = subparsers.add_parser(
        "classpath",
        help="Print the classpath built from the lock file",
    )
    classpath_parser.add_argument(
        "--include-test",
        action="store_true",
        help="Include test-scoped dependencies",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    # Dispatch to subcommand
    if args.command == "resolve":
        return resolve_command(args)
    elif args.command == "tree":
        return tree_command(args)
    elif args.command == "add":
        return add_command(args)
    elif args.command == "remove":
        return remove_command(args)
    elif args.command == "update":
        return update_command(args)
    elif args.command == "classpath":
        return classpath_command(args)
    else:
        parser.print_help()
        return 2


if __name__ == "__main__":
    sys.exit(main())
