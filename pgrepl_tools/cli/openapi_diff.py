#!/usr/bin/env python3
"""CLI entry point for comparing two OpenAPI specification files.

Usage:
    pgrepl openapi-diff specs/<file_name_1> specs/<file_name_2>
"""

from __future__ import annotations

import sys
from pathlib import Path

from pgrepl_tools.core.openapi_diff import build_diff_command, run_openapi_diff
from pgrepl_tools.helpers.helpers_logging import print_error
from pgrepl_tools.helpers.settings import load_settings

_EXPECTED_ARGS = 2

USAGE = """Usage: pgrepl openapi-diff specs/<file_name_1> specs/<file_name_2>
Compares two OpenAPI specification files using openapi-diff.
Both YAML OpenAPI spec files should be specified with paths relative to ./specs."""


def main(argv: list[str] | None = None) -> int:
    """Run openapi-diff from CLI arguments.

    Returns:
        Exit code (docker's exit code, or 1 on usage errors).
    """
    args = sys.argv[1:] if argv is None else argv
    if len(args) != _EXPECTED_ARGS or args[0] in ("-h", "--help"):
        print(USAGE)
        return 1

    old_spec, new_spec = Path(args[0]), Path(args[1])
    if not old_spec.is_file() or not new_spec.is_file():
        print_error("Error: One or both of the specified files do not exist.")
        return 1

    try:
        settings = load_settings()
    except (ValueError, FileNotFoundError) as e:
        print_error(str(e))
        return 1

    cmd = build_diff_command(
        old_spec,
        new_spec,
        specs_dir=Path.cwd() / settings.specs_dir,
        image=settings.openapi_diff_image,
    )
    return run_openapi_diff(cmd)


if __name__ == "__main__":
    sys.exit(main())
