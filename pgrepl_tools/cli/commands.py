#!/usr/bin/env python3
"""pgrepl - PostgreSQL table replication and OpenAPI diff tools.

Usage:
    pgrepl <command> [options]

Commands:
    setup-replication    Set up (or --cleanup true) logical replication for one table
    openapi-diff         Compare two OpenAPI spec files from ./specs with openapi-diff
    help                 Show this help message
"""

from __future__ import annotations

import importlib
import sys

import click

# Minimum number of CLI args (program name + command)
_MIN_ARGS = 2

COMMANDS: dict[str, dict[str, str]] = {
    "setup-replication": {
        "module": "pgrepl_tools.cli.setup_replication",
        "description": "Set up logical replication for one table between two databases",
        "usage": (
            "pgrepl setup-replication -h <host> -p <port> -u <username> "
            + "-s <source_db> -d <destination_db> -c <schema> -t <table> "
            + "[--cleanup true]"
        ),
    },
    "openapi-diff": {
        "module": "pgrepl_tools.cli.openapi_diff",
        "description": "Compare two OpenAPI spec files with openapi-diff (docker)",
        "usage": "pgrepl openapi-diff specs/<file_name_1> specs/<file_name_2>",
    },
}


def print_help() -> None:
    """Print help message with all available commands."""
    print(__doc__)
    print("📦 Commands:")
    for cmd, info in COMMANDS.items():
        print(f"  {cmd:20} - {info['description']}")
        print(f"  {' ' * 20}   Usage: {info['usage']}")


def execute_command(command: str, extra_args: list[str]) -> int:
    """Run a command's ``main(argv)`` in-process."""
    cmd_info = COMMANDS.get(command)
    if cmd_info is None:
        print(f"❌ Unknown command: {command}")
        print("\nRun 'pgrepl help' to see available commands.")
        return 1

    module = importlib.import_module(cmd_info["module"])
    return int(module.main(extra_args))


@click.group(invoke_without_command=True)
@click.pass_context
def _click_cli(ctx: click.Context) -> int:
    """Top-level command group with passthrough command registration."""
    if ctx.invoked_subcommand is None:
        print_help()
    return 0


def _register_passthrough_command(command_name: str, description: str) -> None:
    """Register a click command that hands all of its args to argparse."""

    @click.command(
        name=command_name,
        help=description,
        context_settings={
            "allow_extra_args": True,
            "ignore_unknown_options": True,
        },
        add_help_option=False,
    )
    @click.pass_context
    def _cmd(ctx: click.Context) -> int:
        return execute_command(command_name, list(ctx.args))

    _click_cli.add_command(_cmd)


def _register_commands() -> None:
    for cmd, info in COMMANDS.items():
        _register_passthrough_command(cmd, info["description"])

    @click.command(name="help", help="Show help message")
    def _help_cmd() -> int:
        print_help()
        return 0

    _click_cli.add_command(_help_cmd)


_register_commands()


def main() -> int:
    """Main CLI entry point."""
    if len(sys.argv) < _MIN_ARGS or sys.argv[1] in ["help", "--help", "-h"]:
        print_help()
        return 0

    try:
        result = _click_cli.main(
            args=sys.argv[1:],
            prog_name="pgrepl",
            standalone_mode=False,
        )
    except click.Abort:
        print("\n⚠️  Cancelled by user")
        return 130
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    return 0 if result is None else int(result)


if __name__ == "__main__":
    sys.exit(main())
