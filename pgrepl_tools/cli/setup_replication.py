#!/usr/bin/env python3
"""CLI entry point for single-table logical replication setup.

Sets up logical replication for one table between two databases in the
same PostgreSQL cluster. Foreign keys of the source table are excluded
when its dump is restored in the destination database.

Usage:
    pgrepl setup-replication -h db.local -p 5432 -u postgres \\
        -s shop -d shop_replica -c public -t orders
    pgrepl setup-replication ... --cleanup true

Exit codes: 0 after a complete setup (or --help), 1 on any failure and
after every cleanup run.
"""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

import click

from pgrepl_tools.core.errors import InvalidArgumentsError, ReplicationToolError
from pgrepl_tools.core.models import ConnectionTarget, ReplicationJobSpec
from pgrepl_tools.core.preflight import (
    check_client_binaries,
    check_host,
    verify_credentials,
)
from pgrepl_tools.core.replication_cleanup import ReplicationCleanup
from pgrepl_tools.core.replication_setup import ReplicationSetup
from pgrepl_tools.helpers.helpers_logging import print_error, print_info
from pgrepl_tools.helpers.helpers_postgres import PostgresAdminClient
from pgrepl_tools.helpers.settings import load_settings

_PROG = "pgrepl setup-replication"
_MAX_PORT = 65535

# flag -> (dest, help)
_REQUIRED_FLAGS: dict[str, tuple[str, str]] = {
    "-h": ("host", "Specify the host."),
    "-p": ("port", "Specify the port."),
    "-u": ("username", "Specify the superuser username."),
    "-s": ("source_db", "Specify the source database."),
    "-d": ("destination_db", "Specify the destination database."),
    "-c": ("schema", "Specify the schema name (used in both databases)."),
    "-t": ("table", "Specify the table name."),
}

USAGE = f"""
Usage: {_PROG} -h <host> -p <port> -u <username> -s <source_db> -d <destination_db> -c <schema> -t <table> [--cleanup true]

Sets up logical replication for a specific table between two databases in the same PostgreSQL cluster.
All foreign keys of the source table are excluded while its dump is restored in the destination database.

Options:
  -h <host>            Specify the host.
  -p <port>            Specify the port.
  -u <username>        Specify the superuser username.
  -s <source_db>       Specify the source database.
  -d <destination_db>  Specify the destination database.
  -c <schema>          Specify the schema name (used in both databases).
  -t <table>           Specify the table name.
  --cleanup true       (Optional) Drop the publication, replication slot and subscription
                       (not the destination table), then exit. Run again without
                       --cleanup to perform the main flow.
  --help               Show this help message.
"""


class _RaisingArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing and exiting with 2."""

    def error(self, message: str) -> NoReturn:
        raise InvalidArgumentsError(message)


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 1 <= port <= _MAX_PORT:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = _RaisingArgumentParser(prog=_PROG, add_help=False, allow_abbrev=False)
    for flag, (dest, help_text) in _REQUIRED_FLAGS.items():
        parser.add_argument(
            flag, dest=dest, type=_port if dest == "port" else str, help=help_text,
        )
    parser.add_argument("--cleanup", dest="cleanup", default=None)
    parser.add_argument("--help", dest="show_help", action="store_true")
    return parser


def parse_arguments(argv: list[str]) -> argparse.Namespace:
    """Parse and validate CLI arguments.

    Raises:
        InvalidArgumentsError: Unknown flag, bad value or missing flag.
    """
    args = build_parser().parse_args(argv)
    if args.show_help:
        return args

    if args.cleanup is not None and args.cleanup != "true":
        raise InvalidArgumentsError(
            f"--cleanup only accepts 'true', got {args.cleanup!r}",
        )

    missing = [
        flag for flag, (dest, _) in _REQUIRED_FLAGS.items()
        if getattr(args, dest) in (None, "")
    ]
    if missing:
        raise InvalidArgumentsError(
            f"Missing required argument(s): {' '.join(missing)}",
        )
    return args


def job_from_args(args: argparse.Namespace) -> ReplicationJobSpec:
    return ReplicationJobSpec(
        source_db=args.source_db,
        destination_db=args.destination_db,
        schema=args.schema,
        table=args.table,
        cleanup=args.cleanup == "true",
    )


def prompt_password() -> str:
    """Read the password once, without echo."""
    return str(
        click.prompt(
            "Enter the password", hide_input=True, default="", show_default=False,
        ),
    )


def _print_summary(target: ConnectionTarget, job: ReplicationJobSpec) -> None:
    print_info("Going to set up logical replication for provided environment:")
    print_info(f"Host: {target.host}")
    print_info(f"Port: {target.port}")
    print_info(f"Source DB: {job.source_db}")
    print_info(f"Destination DB: {job.destination_db}")
    print_info(f"Schema: {job.schema}")
    print_info(f"Table: {job.table}")


def main(argv: list[str] | None = None) -> int:
    """Run replication setup (or cleanup) from CLI arguments.

    Returns:
        Exit code.
    """
    try:
        args = parse_arguments(sys.argv[1:] if argv is None else argv)
    except InvalidArgumentsError as e:
        print_error(f"Error: {e}")
        print(USAGE)
        return 1

    if args.show_help:
        print(USAGE)
        return 0

    job = job_from_args(args)
    try:
        settings = load_settings()
        check_client_binaries(settings)
        check_host(args.host, args.port, settings)
        target = ConnectionTarget(
            host=args.host,
            port=args.port,
            username=args.username,
            password=prompt_password(),
        )
        client = PostgresAdminClient(target, settings)
        verify_credentials(client, job.source_db)
        _print_summary(target, job)

        if job.cleanup:
            return ReplicationCleanup(client, job).run().exit_code
        return ReplicationSetup(client, job, settings=settings).run().exit_code
    except click.Abort:
        print("\n⚠️  Cancelled by user")
        return 130
    except (ReplicationToolError, ValueError, OSError) as e:
        print_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
