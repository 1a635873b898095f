"""Parsing and filtering of ``pg_restore -l`` table-of-contents listings.

A listing line looks like::

    215; 1259 16386 TABLE public orders postgres
    3015; 2606 16400 FK CONSTRAINT public orders orders_customer_id_fkey postgres

The text after the three numeric fields is the object description; its
leading words name the object type. Lines starting with ``;`` are comments.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

_ENTRY_RE = re.compile(r"^(?P<dump_id>\d+);\s+(?P<table_oid>\d+)\s+(?P<oid>\d+)\s+(?P<desc>.+)$")

FOREIGN_KEY_TYPE = "FK CONSTRAINT"


@dataclass(frozen=True)
class CatalogEntry:
    """One restorable object from a dump listing."""

    dump_id: int
    description: str
    line: str

    @property
    def is_foreign_key(self) -> bool:
        return self.description.startswith(FOREIGN_KEY_TYPE + " ")


def parse_catalog(listing: str) -> list[CatalogEntry]:
    """Parse ``pg_restore -l`` output into entries, in listing order.

    Comment lines, blank lines and anything that is not an entry are skipped.
    """
    entries: list[CatalogEntry] = []
    for raw in listing.splitlines():
        line = raw.strip()
        if not line or line.startswith(";"):
            continue
        match = _ENTRY_RE.match(line)
        if match is None:
            continue
        entries.append(
            CatalogEntry(
                dump_id=int(match.group("dump_id")),
                description=match.group("desc"),
                line=line,
            ),
        )
    return entries


def exclude_foreign_keys(entries: Iterable[CatalogEntry]) -> list[CatalogEntry]:
    """Drop foreign-key constraint entries, keeping the others in order."""
    return [e for e in entries if not e.is_foreign_key]


def render_catalog(entries: Iterable[CatalogEntry]) -> str:
    """Render entries as a list file for ``pg_restore -L``."""
    return "".join(f"{e.line}\n" for e in entries)
