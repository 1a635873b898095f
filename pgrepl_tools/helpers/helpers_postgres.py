"""
PostgreSQL admin client

Every call that reaches the server goes through here:
- reachability probe (pg_isready)
- queries and DDL over psycopg2
- pg_dump / pg_restore subprocesses

The password travels inside ConnectionTarget. psycopg2 receives it as a
keyword argument. pg_dump and pg_restore read it from a short-lived 0600
pgpass file named by ``PGPASSFILE``; it is never put on a command line or
into any environment variable.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from psycopg2 import sql
from psycopg2.extensions import make_dsn

from pgrepl_tools.core.errors import (
    ExternalCommandFailedError,
    MissingDependencyError,
)
from pgrepl_tools.core.models import ConnectionTarget
from pgrepl_tools.helpers.settings import ToolSettings

Statement = str | sql.Composable

_INSTALL_HINT = "Please make sure it is installed (postgresql-client package or similar)."


def pg_isready(host: str, port: int, *, binary: str = "pg_isready") -> bool:
    """Return True when the server accepts connections on ``host:port``."""
    try:
        result = subprocess.run(
            [binary, "-q", "-h", host, "-p", str(port)],
            check=False,
        )
    except FileNotFoundError:
        raise MissingDependencyError(
            f"Command '{binary}' not found. {_INSTALL_HINT}",
        ) from None
    return result.returncode == 0


def pgpass_line(target: ConnectionTarget) -> str:
    """Render a ``.pgpass`` entry matching any database on ``target``."""
    def _escape(field: str) -> str:
        return field.replace("\\", "\\\\").replace(":", "\\:")
    return ":".join([
        _escape(target.host),
        str(target.port),
        "*",
        _escape(target.username),
        _escape(target.password),
    ])


def quote_table_pattern(schema: str, table: str) -> str:
    """Build an exact-match ``pg_dump -t`` pattern for ``schema.table``."""
    def _quote(name: str) -> str:
        return '"' + name.replace('"', '""') + '"'
    return f"{_quote(schema)}.{_quote(table)}"


class PostgresAdminClient:
    """Thin wrapper around psycopg2 and the PostgreSQL client binaries.

    One short-lived autocommit connection is opened per call, so statements
    that cannot run inside a transaction block (CREATE SUBSCRIPTION) work.
    """

    def __init__(self, target: ConnectionTarget, settings: ToolSettings) -> None:
        self.target = target
        self.settings = settings

    # ------------------------------------------------------------------
    # SQL
    # ------------------------------------------------------------------

    def connect(self, dbname: str) -> Any:  # noqa: ANN401 - psycopg2 connection
        conn = psycopg2.connect(
            host=self.target.host,
            port=self.target.port,
            dbname=dbname,
            user=self.target.username,
            password=self.target.password,
            connect_timeout=self.settings.connect_timeout,
        )
        conn.autocommit = True
        return conn

    def conninfo(self, dbname: str) -> str:
        """Return a libpq connection string for ``dbname`` (includes password)."""
        return make_dsn(
            host=self.target.host,
            port=str(self.target.port),
            dbname=dbname,
            user=self.target.username,
            password=self.target.password,
        )

    def fetch_one(
        self,
        dbname: str,
        query: Statement,
        params: tuple[object, ...] | None = None,
        *,
        label: str = "query",
    ) -> tuple[Any, ...] | None:
        """Run ``query`` and return its first row (or None)."""
        try:
            conn = self.connect(dbname)
        except psycopg2.Error as e:
            raise ExternalCommandFailedError(
                f"connect to database '{dbname}'", detail=str(e),
            ) from e
        try:
            with conn.cursor() as cursor:
                cursor.execute(query, params)
                if cursor.description is None:
                    return None
                return cursor.fetchone()
        except psycopg2.Error as e:
            raise ExternalCommandFailedError(
                f"{label} on database '{dbname}'", detail=str(e),
            ) from e
        finally:
            conn.close()

    def exists(
        self,
        dbname: str,
        query: Statement,
        params: tuple[object, ...],
        *,
        label: str = "existence check",
    ) -> bool:
        return self.fetch_one(dbname, query, params, label=label) is not None

    def execute(
        self,
        dbname: str,
        statement: Statement,
        params: tuple[object, ...] | None = None,
        *,
        label: str,
    ) -> None:
        """Execute a statement whose result is not needed.

        ``label`` is used in error messages instead of the statement text,
        which may embed the password (CREATE SUBSCRIPTION).
        """
        self.fetch_one(dbname, statement, params, label=label)

    def check_connection(self, dbname: str) -> None:
        """Run ``SELECT 1`` against ``dbname``."""
        self.fetch_one(dbname, "SELECT 1", label="SELECT 1")

    # ------------------------------------------------------------------
    # Dump / restore
    # ------------------------------------------------------------------

    @contextmanager
    def _passfile(self) -> Iterator[Path]:
        """Yield a pgpass file (mode 0600, from mkstemp) removed on exit."""
        fd, name = tempfile.mkstemp(prefix="pgrepl-", suffix=".pgpass")
        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(pgpass_line(self.target) + "\n")
            yield path
        finally:
            path.unlink(missing_ok=True)

    def _child_env(self, passfile: Path) -> dict[str, str]:
        env = {k: v for k, v in os.environ.items() if k != "PGPASSWORD"}
        env["PGPASSFILE"] = str(passfile)
        return env

    def _connection_args(self, dbname: str) -> list[str]:
        return [
            "-h", self.target.host,
            "-p", str(self.target.port),
            "-U", self.target.username,
            "-d", dbname,
        ]

    def _run(self, cmd: list[str], *, label: str) -> str:
        try:
            with self._passfile() as passfile:
                result = subprocess.run(
                    cmd,
                    env=self._child_env(passfile),
                    capture_output=True,
                    text=True,
                    check=False,
                )
        except FileNotFoundError:
            raise MissingDependencyError(
                f"Command '{cmd[0]}' not found. {_INSTALL_HINT}",
            ) from None
        if result.returncode != 0:
            raise ExternalCommandFailedError(
                label, returncode=result.returncode, detail=result.stderr,
            )
        return result.stdout

    def dump_table(self, dbname: str, schema: str, table: str, dump_path: Path) -> None:
        """Dump one table (schema + data) in custom format to ``dump_path``."""
        cmd = [
            self.settings.pg_dump,
            *self._connection_args(dbname),
            "-t", quote_table_pattern(schema, table),
            "-Fc",
            "-f", str(dump_path),
        ]
        self._run(cmd, label=f"pg_dump {schema}.{table} from '{dbname}'")

    def list_dump_catalog(self, dump_path: Path) -> str:
        """Return the ``pg_restore -l`` table of contents of a dump."""
        return self._run(
            [self.settings.pg_restore, "-l", str(dump_path)],
            label=f"pg_restore -l {dump_path}",
        )

    def restore_dump(self, dbname: str, dump_path: Path, list_path: Path) -> None:
        """Restore the entries named in ``list_path`` from ``dump_path``."""
        cmd = [
            self.settings.pg_restore,
            *self._connection_args(dbname),
            "-Fc",
            "-j", str(self.settings.restore_jobs),
            "-L", str(list_path),
            str(dump_path),
        ]
        self._run(cmd, label=f"pg_restore {dump_path} into '{dbname}'")
