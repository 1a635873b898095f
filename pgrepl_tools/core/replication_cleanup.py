"""Teardown of the publication, slot and subscription created by a setup run.

Steps run in a fixed order:

    1. DROP PUBLICATION             (source)
    2. pg_drop_replication_slot     (source)
    3. detach subscription          (destination: DISABLE, SET slot_name = NONE)
    4. DROP SUBSCRIPTION            (destination)

The destination table is left in place. With ``continue_on_error`` (the
default) every step is attempted even when an earlier one failed, and the
failures are listed together at the end.
"""

from __future__ import annotations

from dataclasses import dataclass

from psycopg2 import sql

from pgrepl_tools.core.errors import ExternalCommandFailedError
from pgrepl_tools.core.models import (
    CleanupResult,
    ReplicationJobSpec,
    StageResult,
    StageStatus,
    derive_names,
)
from pgrepl_tools.helpers.helpers_logging import (
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
)
from pgrepl_tools.helpers.helpers_postgres import PostgresAdminClient

ACTIVE_SLOT_SQL = (
    "SELECT active_pid FROM pg_replication_slots WHERE slot_name = %s AND active"
)
DROP_SLOT_SQL = "SELECT pg_drop_replication_slot(%s)"


@dataclass(frozen=True)
class CleanupStatement:
    """One SQL statement executed as part of a cleanup step."""

    dbname: str
    statement: str | sql.Composable
    params: tuple[object, ...] | None
    label: str


@dataclass(frozen=True)
class CleanupStep:
    name: str
    description: str
    statements: tuple[CleanupStatement, ...]


class ReplicationCleanup:
    """Drops the replication objects of a job, best effort."""

    def __init__(
        self,
        client: PostgresAdminClient,
        job: ReplicationJobSpec,
        *,
        continue_on_error: bool = True,
    ) -> None:
        self.client = client
        self.job = job
        self.names = derive_names(job)
        self.continue_on_error = continue_on_error

    def steps(self) -> list[CleanupStep]:
        src, dst = self.job.source_db, self.job.destination_db
        pub, slot, sub = self.names.publication, self.names.slot, self.names.subscription
        sub_ident = sql.Identifier(sub)
        return [
            CleanupStep(
                "publication",
                f"Dropping publication '{pub}' on source database...",
                (
                    CleanupStatement(
                        src,
                        sql.SQL("DROP PUBLICATION {}").format(sql.Identifier(pub)),
                        None,
                        f"DROP PUBLICATION {pub}",
                    ),
                ),
            ),
            CleanupStep(
                "slot",
                f"Dropping replication slot '{slot}' on source database...",
                (
                    CleanupStatement(
                        src, DROP_SLOT_SQL, (slot,), f"pg_drop_replication_slot('{slot}')",
                    ),
                ),
            ),
            CleanupStep(
                "detach",
                f"Detaching subscription '{sub}' from slot in destination database...",
                (
                    CleanupStatement(
                        dst,
                        sql.SQL("ALTER SUBSCRIPTION {} DISABLE").format(sub_ident),
                        None,
                        f"ALTER SUBSCRIPTION {sub} DISABLE",
                    ),
                    CleanupStatement(
                        dst,
                        sql.SQL("ALTER SUBSCRIPTION {} SET (slot_name = NONE)").format(
                            sub_ident,
                        ),
                        None,
                        f"ALTER SUBSCRIPTION {sub} SET (slot_name = NONE)",
                    ),
                ),
            ),
            CleanupStep(
                "subscription",
                f"Dropping subscription '{sub}' on destination database...",
                (
                    CleanupStatement(
                        dst,
                        sql.SQL("DROP SUBSCRIPTION {}").format(sub_ident),
                        None,
                        f"DROP SUBSCRIPTION {sub}",
                    ),
                ),
            ),
        ]

    def _warn_if_slot_active(self) -> None:
        try:
            row = self.client.fetch_one(
                self.job.source_db,
                ACTIVE_SLOT_SQL,
                (self.names.slot,),
                label="replication slot activity check",
            )
        except ExternalCommandFailedError as e:
            print_warning(f"Could not check whether the slot is in use: {e.detail}")
            return
        if row is not None:
            print_warning(
                f"Replication slot '{self.names.slot}' is still active "
                + f"(pid {row[0]}); dropping it is expected to fail until the "
                + "subscription is detached. Run the cleanup again afterwards.",
            )

    def _run_step(self, step: CleanupStep) -> StageResult:
        print_info(step.description)
        for stmt in step.statements:
            try:
                self.client.execute(
                    stmt.dbname, stmt.statement, stmt.params, label=stmt.label,
                )
            except ExternalCommandFailedError as e:
                print_error(str(e))
                return StageResult(step.name, StageStatus.FAILED, message=str(e))
        return StageResult(step.name)

    def run(self) -> CleanupResult:
        """Attempt every step and collect the outcomes."""
        result = CleanupResult(continue_on_error=self.continue_on_error)
        print_header("Performing cleanup actions...")

        for step in self.steps():
            if step.name == "slot":
                self._warn_if_slot_active()
            outcome = self._run_step(step)
            result.steps.append(outcome)
            if not outcome.ok and not self.continue_on_error:
                break

        failures = result.failures
        if failures:
            print_warning(
                f"Cleanup finished with {len(failures)} failed step(s): "
                + ", ".join(f.stage for f in failures),
            )
            if any(f.stage == "slot" for f in failures):
                print_warning(
                    f"Replication slot '{self.names.slot}' was not dropped. It stays "
                    + "in use until the subscription is detached; run the cleanup "
                    + "again once that is done.",
                )
        else:
            print_success("Cleanup actions completed.")
        print_info("Run again without --cleanup to perform the main flow.")
        return result
