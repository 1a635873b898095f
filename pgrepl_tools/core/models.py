"""Data structures for a single replication setup or cleanup run.

Usage:
    >>> job = ReplicationJobSpec("shop-db", "shop_replica", "public", "orders")
    >>> derive_names(job).slot
    'shop_db_orders_slot'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConnectionTarget:
    """Server coordinates and credentials shared by every database call.

    The password is kept out of ``repr`` so it never ends up in tracebacks
    or printed diagnostics.
    """

    host: str
    port: int
    username: str
    password: str = field(default="", repr=False)


@dataclass(frozen=True)
class ReplicationJobSpec:
    """What to replicate: one table between two databases of one cluster."""

    source_db: str
    destination_db: str
    schema: str
    table: str
    cleanup: bool = False

    @property
    def qualified_table(self) -> str:
        """Return ``schema.table`` for display."""
        return f"{self.schema}.{self.table}"


@dataclass(frozen=True)
class DerivedNames:
    """Names of the replication objects created for a job."""

    publication: str
    subscription: str
    slot: str


def derive_names(job: ReplicationJobSpec) -> DerivedNames:
    """Compute publication, subscription and slot names for a job.

    Slot names may not contain hyphens, so they are replaced by underscores.
    """
    slot = f"{job.source_db}_{job.table}_slot".replace("-", "_")
    return DerivedNames(
        publication=f"{job.schema}_{job.table}_publication",
        subscription=f"{job.schema}_{job.table}_subscription",
        slot=slot,
    )


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class StageStatus(Enum):
    """Outcome kind of a pipeline stage or cleanup step."""

    SUCCESS = "success"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


@dataclass
class StageResult:
    """Result of one stage.

    Attributes:
        stage: Stage name (``dump``, ``restore``, ``publication``, ...).
        status: Outcome kind.
        message: Diagnostic for non-successful outcomes.
        hint: Lead-in line for the remediation commands.
        remediation: Commands the operator can run to fix a conflict.
    """

    stage: str
    status: StageStatus = StageStatus.SUCCESS
    message: str = ""
    hint: str = ""
    remediation: list[str] = field(default_factory=list[str])

    @property
    def ok(self) -> bool:
        return self.status is StageStatus.SUCCESS


@dataclass
class SetupResult:
    """Result of the main replication pipeline."""

    stages: list[StageResult] = field(default_factory=list[StageResult])
    report_path: Path | None = None

    @property
    def succeeded(self) -> bool:
        return bool(self.stages) and all(s.ok for s in self.stages)

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1


@dataclass
class CleanupResult:
    """Result of a cleanup run; one entry per attempted step."""

    steps: list[StageResult] = field(default_factory=list[StageResult])
    continue_on_error: bool = True

    @property
    def failures(self) -> list[StageResult]:
        return [s for s in self.steps if not s.ok]

    @property
    def exit_code(self) -> int:
        # A cleanup-only run never counts as the main flow.
        return 1
