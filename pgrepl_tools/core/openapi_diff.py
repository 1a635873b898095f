"""Containerized OpenAPI spec comparison via ``openapitools/openapi-diff``."""

from __future__ import annotations

import subprocess
from pathlib import Path

from pgrepl_tools.helpers.helpers_logging import print_error


def build_diff_command(
    old_spec: Path,
    new_spec: Path,
    *,
    specs_dir: Path,
    image: str,
) -> list[str]:
    """Build the ``docker run`` invocation comparing two spec files.

    The specs directory is mounted read-only at ``/specs``; both files are
    addressed by basename inside it.
    """
    return [
        "docker", "run", "--rm", "-t",
        "-v", f"{specs_dir.resolve()}:/specs:ro",
        image,
        f"/specs/{old_spec.name}",
        f"/specs/{new_spec.name}",
    ]


def run_openapi_diff(cmd: list[str]) -> int:
    """Run the diff container, streaming its output to the terminal."""
    try:
        result = subprocess.run(cmd, check=False)
    except FileNotFoundError:
        print_error("docker command not found. Please install Docker.")
        return 1
    return result.returncode
