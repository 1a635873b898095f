"""Follow-up command report written after a successful setup run."""

from __future__ import annotations

import re
from pathlib import Path

from pgrepl_tools.core.models import (
    ConnectionTarget,
    DerivedNames,
    ReplicationJobSpec,
)

_PLAIN_IDENT = re.compile(r"[a-z_][a-z0-9_$]*")

# Reserved words that cannot appear as bare table or object names.
_RESERVED = frozenset({
    "all", "analyse", "analyze", "and", "any", "array", "as", "asc",
    "asymmetric", "both", "case", "cast", "check", "collate", "column",
    "constraint", "create", "current_catalog", "current_date", "current_role",
    "current_time", "current_timestamp", "current_user", "default",
    "deferrable", "desc", "distinct", "do", "else", "end", "except", "false",
    "fetch", "for", "foreign", "from", "grant", "group", "having", "in",
    "initially", "intersect", "into", "lateral", "leading", "limit",
    "localtime", "localtimestamp", "not", "null", "offset", "on", "only",
    "or", "order", "placing", "primary", "references", "returning", "select",
    "session_user", "some", "symmetric", "table", "then", "to", "trailing",
    "true", "union", "unique", "user", "using", "variadic", "when", "where",
    "window", "with",
})


def quote_ident(name: str) -> str:
    """Quote ``name`` for SQL unless it already reads back unchanged bare.

    Lowercase names stay bare so printed commands look the way they are
    usually typed; anything that case folding or the parser would alter is
    double-quoted with embedded quotes doubled.
    """
    if _PLAIN_IDENT.fullmatch(name) and name not in _RESERVED:
        return name
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def qualified_name(schema: str, table: str) -> str:
    return f"{quote_ident(schema)}.{quote_ident(table)}"


def _shell_double_quote(text: str) -> str:
    # Characters still special inside "..." for POSIX shells.
    for char in ("\\", '"', "$", "`"):
        text = text.replace(char, "\\" + char)
    return f'"{text}"'


def psql_command(target: ConnectionTarget, dbname: str, statement: str) -> str:
    """Render a copy-pasteable psql invocation (the password is never included)."""
    return (
        f"psql -h {target.host} -p {target.port} -U {target.username} "
        + f"-d {dbname} -c {_shell_double_quote(statement)}"
    )


def drop_subscription_statements(subscription: str) -> list[str]:
    """Statements that detach a subscription from its slot and drop it."""
    sub = quote_ident(subscription)
    return [
        f"ALTER SUBSCRIPTION {sub} DISABLE;",
        f"ALTER SUBSCRIPTION {sub} SET (slot_name = NONE);",
        f"DROP SUBSCRIPTION {sub};",
    ]


def build_report(
    target: ConnectionTarget,
    job: ReplicationJobSpec,
    names: DerivedNames,
) -> str:
    """Build the "Useful commands" text with four numbered blocks."""
    blocks = [
        (
            "Check logical replication status on SOURCE database:",
            psql_command(target, job.source_db, "SELECT * FROM pg_stat_replication;"),
        ),
        (
            "Check logical replication status on DESTINATION database:",
            psql_command(
                target, job.destination_db, "SELECT * FROM pg_stat_subscription;",
            ),
        ),
        (
            "Delete the publication in SOURCE database:",
            psql_command(
                target,
                job.source_db,
                f"DROP PUBLICATION {quote_ident(names.publication)};",
            ),
        ),
        (
            "Delete the subscription in DESTINATION database:",
            psql_command(
                target,
                job.destination_db,
                " ".join(drop_subscription_statements(names.subscription)),
            ),
        ),
    ]

    lines = ["Useful commands:"]
    for number, (label, command) in enumerate(blocks, start=1):
        lines.append(f"{number}. {label}")
        lines.append(f"   {command}")
        lines.append("")
    return "\n".join(lines)


def write_report(path: Path, text: str) -> Path:
    """Write the report, replacing any previous content."""
    path.write_text(text, encoding="utf-8")
    return path
