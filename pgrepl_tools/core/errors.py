"""Exception types raised by the replication setup and cleanup flows.

Every error carries a human-readable message; none of them define machine
readable codes. CLI entry points print the message and return exit code 1.
"""

from __future__ import annotations


class ReplicationToolError(Exception):
    """Base class for all expected, user-facing failures."""


class InvalidArgumentsError(ReplicationToolError):
    """Raised when command-line input is missing, unknown or malformed."""


class MissingDependencyError(ReplicationToolError):
    """Raised when a required PostgreSQL client binary is not on PATH."""


class HostUnreachableError(ReplicationToolError):
    """Raised when the server does not accept connections on the given port."""


class AuthenticationFailedError(ReplicationToolError):
    """Raised when the test query against the source database fails."""


class ObjectAlreadyExistsError(ReplicationToolError):
    """Raised when a table, publication, slot or subscription already exists.

    Attributes:
        kind: Object kind (``table``, ``publication``, ...).
        name: Object name as it appears in the database.
        remediation: Exact commands that remove the stale object.
        hint: One-line lead-in printed before the remediation commands.
    """

    def __init__(
        self,
        kind: str,
        name: str,
        message: str,
        *,
        remediation: list[str] | None = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.name = name
        self.remediation = remediation or []
        self.hint = hint


class ExternalCommandFailedError(ReplicationToolError):
    """Raised when pg_dump/pg_restore or a SQL statement fails.

    Attributes:
        command: Short description of what was run (never contains secrets).
        returncode: Process exit code, or None for SQL errors.
        detail: stderr output or the database error text.
    """

    def __init__(
        self,
        command: str,
        *,
        returncode: int | None = None,
        detail: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.detail = detail.strip()
        message = f"Error occurred: {command}"
        if returncode is not None:
            message += f" (exit code: {returncode})"
        if self.detail:
            message += f"\n{self.detail}"
        super().__init__(message)
