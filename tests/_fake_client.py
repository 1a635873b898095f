"""In-memory stand-in for ``PostgresAdminClient`` used across the test suite.

``FakeAdminClient`` records every call in order, so tests can assert which
statements ran (and which never did) without a database.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pgrepl_tools.core.errors import ExternalCommandFailedError
from pgrepl_tools.core.models import ConnectionTarget
from pgrepl_tools.core.replication_setup import (
    PUBLICATION_EXISTS_SQL,
    SLOT_EXISTS_SQL,
    SUBSCRIPTION_EXISTS_SQL,
    TABLE_EXISTS_SQL,
)
from pgrepl_tools.helpers.settings import ToolSettings

# pg_restore -l output for public.orders with one FK constraint.
SAMPLE_CATALOG = (
    ";\n"
    "; Archive created at 2024-05-01 10:00:00 UTC\n"
    ";     dbname: shop\n"
    ";\n"
    "; Selected TOC Entries:\n"
    ";\n"
    "215; 1259 16386 TABLE public orders postgres\n"
    "214; 1259 16385 SEQUENCE public orders_id_seq postgres\n"
    "3320; 0 16386 TABLE DATA public orders postgres\n"
    "3170; 2606 16391 CONSTRAINT public orders orders_pkey postgres\n"
    "3175; 2606 16400 FK CONSTRAINT public orders orders_customer_id_fkey postgres\n"
)

_EXISTS_KIND = {
    TABLE_EXISTS_SQL: "table",
    PUBLICATION_EXISTS_SQL: "publication",
    SLOT_EXISTS_SQL: "slot",
    SUBSCRIPTION_EXISTS_SQL: "subscription",
}


class FakeAdminClient:
    """Records calls; behaves like a cluster where nothing exists yet.

    Attributes:
        existing: Object kinds reported as already present.
        fail_labels: Labels (or label prefixes) whose execution fails.
        calls: Ordered list of ``(operation, detail)`` tuples.
        restored_lists: Content of each ``-L`` list file passed to restore.
    """

    def __init__(
        self,
        target: ConnectionTarget,
        *,
        catalog: str = SAMPLE_CATALOG,
        existing: set[str] | None = None,
        fail_labels: set[str] | None = None,
        active_slot_pid: int | None = None,
    ) -> None:
        self.target = target
        self.settings = ToolSettings()
        self.catalog = catalog
        self.existing = existing or set()
        self.fail_labels = fail_labels or set()
        self.active_slot_pid = active_slot_pid
        self.calls: list[tuple[str, str]] = []
        self.restored_lists: list[str] = []

    def _maybe_fail(self, label: str) -> None:
        if any(label.startswith(f) for f in self.fail_labels):
            raise ExternalCommandFailedError(label, detail="simulated failure")

    def conninfo(self, dbname: str) -> str:
        return f"host={self.target.host} dbname={dbname} password={self.target.password}"

    def check_connection(self, dbname: str) -> None:
        self.calls.append(("check_connection", dbname))
        self._maybe_fail("SELECT 1")

    def exists(
        self,
        dbname: str,
        query: str,
        params: tuple[object, ...],
        *,
        label: str = "existence check",
    ) -> bool:
        kind = _EXISTS_KIND[query]
        self.calls.append(("exists", kind))
        return kind in self.existing

    def fetch_one(
        self,
        dbname: str,
        query: Any,
        params: tuple[object, ...] | None = None,
        *,
        label: str = "query",
    ) -> tuple[Any, ...] | None:
        self.calls.append(("fetch_one", label))
        self._maybe_fail(label)
        if self.active_slot_pid is not None:
            return (self.active_slot_pid,)
        return None

    def execute(
        self,
        dbname: str,
        statement: Any,
        params: tuple[object, ...] | None = None,
        *,
        label: str,
    ) -> None:
        self.calls.append(("execute", label))
        self._maybe_fail(label)

    def dump_table(self, dbname: str, schema: str, table: str, dump_path: Path) -> None:
        self.calls.append(("dump", f"{schema}.{table}"))
        self._maybe_fail("pg_dump")
        dump_path.write_bytes(b"PGDMP")

    def list_dump_catalog(self, dump_path: Path) -> str:
        self.calls.append(("list_catalog", dump_path.name))
        return self.catalog

    def restore_dump(self, dbname: str, dump_path: Path, list_path: Path) -> None:
        self.calls.append(("restore", dbname))
        self.restored_lists.append(list_path.read_text(encoding="utf-8"))
        self._maybe_fail("pg_restore")

    def operations(self, name: str) -> list[str]:
        return [detail for op, detail in self.calls if op == name]


