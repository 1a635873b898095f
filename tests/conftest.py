"""Shared fixtures for the pgrepl-tools test suite."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from pgrepl_tools.core.models import ConnectionTarget, ReplicationJobSpec
from tests._fake_client import FakeAdminClient


@pytest.fixture()
def target() -> ConnectionTarget:
    return ConnectionTarget("db.local", 5432, "postgres", "s3cret")


@pytest.fixture()
def job() -> ReplicationJobSpec:
    return ReplicationJobSpec(
        source_db="shop",
        destination_db="shop_replica",
        schema="public",
        table="orders",
    )


@pytest.fixture()
def fake_client(target: ConnectionTarget) -> FakeAdminClient:
    return FakeAdminClient(target)


@pytest.fixture()
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Isolated working directory without settings files or PGREPL_* vars."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PGREPL_CONFIG", raising=False)
    monkeypatch.setenv("NO_COLOR", "1")
    yield tmp_path
