"""Classpath command: print the jar classpath built from the lock file."""

import os

from jxdeps.cli.common import EXIT_OK, project_dir, project_settings, report_error
from jxdeps.errors import JxDepsError
from jxdeps.pipeline import project_classpath


def classpath_command(args) -> int:
    try:
        settings = project_settings(args)
        include_test = True if getattr(args, "include_test", False) else None
        paths = project_classpath(project_dir(args), settings, include_test=include_test)
    except JxDepsError as exc:
        return report_error(exc)

    # Plain print: the output is meant to be consumed by java -cp.
    print(os.pathsep.join(str(path) for path in paths))
    return EXIT_OK
