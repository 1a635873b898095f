"""Checks that run before anything touches the databases."""

from __future__ import annotations

import shutil

from pgrepl_tools.core.errors import (
    AuthenticationFailedError,
    ExternalCommandFailedError,
    HostUnreachableError,
    MissingDependencyError,
)
from pgrepl_tools.helpers.helpers_postgres import PostgresAdminClient, pg_isready
from pgrepl_tools.helpers.settings import ToolSettings


def check_client_binaries(settings: ToolSettings) -> None:
    """Raise MissingDependencyError listing every client binary not on PATH."""
    missing = [b for b in settings.client_binaries if shutil.which(b) is None]
    if missing:
        names = ", ".join(f"'{b}'" for b in missing)
        raise MissingDependencyError(
            f"Command(s) {names} not found. Please make sure they are "
            + "installed (postgresql-client package or similar).",
        )


def check_host(host: str, port: int, settings: ToolSettings) -> None:
    if not pg_isready(host, port, binary=settings.pg_isready):
        raise HostUnreachableError(
            f"The specified host '{host}' is not accessible on port {port}.",
        )


def verify_credentials(client: PostgresAdminClient, dbname: str) -> None:
    """Run a trivial authenticated query against ``dbname``.

    Raises:
        AuthenticationFailedError: The query did not succeed.
    """
    try:
        client.check_connection(dbname)
    except ExternalCommandFailedError as e:
        raise AuthenticationFailedError(
            "The provided password is incorrect "
            + f"(could not run SELECT 1 on '{dbname}').\n{e.detail}",
        ) from e
