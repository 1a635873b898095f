"""Unit tests for core/dump_catalog.py (pg_restore -l filtering)."""

from __future__ import annotations

from pgrepl_tools.core.dump_catalog import (
    exclude_foreign_keys,
    parse_catalog,
    render_catalog,
)
from tests._fake_client import SAMPLE_CATALOG


class TestParseCatalog:
    """Listing parsing."""

    def test_skips_comments_and_blank_lines(self) -> None:
        entries = parse_catalog(SAMPLE_CATALOG + "\n\n")
        assert [e.dump_id for e in entries] == [215, 214, 3320, 3170, 3175]

    def test_description_and_fk_flag(self) -> None:
        entries = parse_catalog(SAMPLE_CATALOG)
        assert entries[0].description == "TABLE public orders postgres"
        assert not entries[0].is_foreign_key
        assert entries[-1].is_foreign_key

    def test_plain_constraint_is_not_fk(self) -> None:
        entries = parse_catalog("3170; 2606 16391 CONSTRAINT public orders orders_pkey postgres\n")
        assert not entries[0].is_foreign_key

    def test_fk_text_in_object_name_is_not_fk(self) -> None:
        """Only the type marker counts, not names that happen to contain FK."""
        listing = "215; 1259 16386 TABLE public orders_ FK postgres\n"
        assert not parse_catalog(listing)[0].is_foreign_key

    def test_empty_listing(self) -> None:
        assert parse_catalog("") == []


class TestExcludeForeignKeys:
    """FK filtering keeps N non-FK entries in their original order."""

    def test_counts_and_order(self) -> None:
        listing = (
            "10; 2606 1 FK CONSTRAINT public a a_fk1 postgres\n"
            "11; 1259 2 TABLE public a postgres\n"
            "12; 2606 3 FK CONSTRAINT public a a_fk2 postgres\n"
            "13; 0 2 TABLE DATA public a postgres\n"
            "14; 1259 4 INDEX public a_idx postgres\n"
            "15; 2606 5 FK CONSTRAINT public a a_fk3 postgres\n"
        )
        entries = parse_catalog(listing)
        kept = exclude_foreign_keys(entries)
        assert len(kept) == 3
        assert [e.dump_id for e in kept] == [11, 13, 14]

    def test_no_fk_entries_is_identity(self) -> None:
        entries = parse_catalog(SAMPLE_CATALOG)[:4]
        assert exclude_foreign_keys(entries) == entries

    def test_only_fk_entries(self) -> None:
        entries = parse_catalog("1; 2606 1 FK CONSTRAINT public a a_fk postgres\n")
        assert exclude_foreign_keys(entries) == []


class TestRenderCatalog:
    def test_renders_one_line_per_entry(self) -> None:
        kept = exclude_foreign_keys(parse_catalog(SAMPLE_CATALOG))
        text = render_catalog(kept)
        assert text.splitlines() == [e.line for e in kept]
        assert "FK CONSTRAINT" not in text
        assert text.endswith("\n")
