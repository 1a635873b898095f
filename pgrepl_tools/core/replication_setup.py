"""Logical replication setup for one table between two databases.

Runs a fixed sequence of stages against a single PostgreSQL cluster:

    dump -> restore (without FKs) -> publication -> slot -> subscription -> report

Each stage returns a StageResult; ``run()`` stops at the first stage that
does not succeed. Completed stages are not rolled back, so a failed run can
be inspected and retried by hand (or torn down with ``--cleanup true``).

Every object is looked up by name before it is created. An existing object
is never replaced: the run stops and prints the command that removes it.

Usage:
    >>> setup = ReplicationSetup(client, job, settings=settings)
    >>> result = setup.run()
    >>> result.exit_code
    0

Running two setups for the same table concurrently is not safe (existence
checks race and both write ``{source_db}.dump``).
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from psycopg2 import sql

from pgrepl_tools.core.dump_catalog import (
    exclude_foreign_keys,
    parse_catalog,
    render_catalog,
)
from pgrepl_tools.core.errors import (
    ExternalCommandFailedError,
    ObjectAlreadyExistsError,
)
from pgrepl_tools.core.models import (
    ReplicationJobSpec,
    SetupResult,
    StageResult,
    StageStatus,
    derive_names,
)
from pgrepl_tools.core.report import (
    build_report,
    drop_subscription_statements,
    psql_command,
    qualified_name,
    quote_ident,
    quote_literal,
    write_report,
)
from pgrepl_tools.helpers.helpers_logging import (
    print_command,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
)
from pgrepl_tools.helpers.helpers_postgres import PostgresAdminClient
from pgrepl_tools.helpers.settings import ToolSettings

# ---------------------------------------------------------------------------
# Catalog queries
# ---------------------------------------------------------------------------

TABLE_EXISTS_SQL = "SELECT 1 FROM pg_tables WHERE schemaname = %s AND tablename = %s"
PUBLICATION_EXISTS_SQL = "SELECT 1 FROM pg_publication WHERE pubname = %s"
SLOT_EXISTS_SQL = "SELECT 1 FROM pg_replication_slots WHERE slot_name = %s"
SUBSCRIPTION_EXISTS_SQL = "SELECT 1 FROM pg_subscription WHERE subname = %s"

CREATE_SLOT_SQL = "SELECT pg_create_logical_replication_slot(%s, 'pgoutput')"

Stage = tuple[str, Callable[[], None]]


class ReplicationSetup:
    """Orchestrates the main replication pipeline for one job."""

    def __init__(
        self,
        client: PostgresAdminClient,
        job: ReplicationJobSpec,
        *,
        settings: ToolSettings,
        workdir: Path | None = None,
    ) -> None:
        self.client = client
        self.job = job
        self.names = derive_names(job)
        self.settings = settings
        self.workdir = workdir if workdir is not None else Path.cwd()

    @property
    def dump_path(self) -> Path:
        return self.workdir / f"{self.job.source_db}.dump"

    @property
    def report_path(self) -> Path:
        return self.workdir / self.settings.report_file

    # ------------------------------------------------------------------
    # Existence guard
    # ------------------------------------------------------------------

    def _ensure_absent(
        self,
        kind: str,
        name: str,
        *,
        dbname: str,
        query: str,
        params: tuple[object, ...],
        where: str,
        remediation: list[str],
        hint: str,
    ) -> None:
        if self.client.exists(dbname, query, params, label=f"{kind} existence check"):
            raise ObjectAlreadyExistsError(
                kind,
                name,
                f"{kind.capitalize()} '{name}' already exists in the {where} database.",
                remediation=[psql_command(self.client.target, dbname, s) for s in remediation],
                hint=hint,
            )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def dump_table(self) -> None:
        print_info(f"Dumping {self.job.table} from source database...")
        self.client.dump_table(
            self.job.source_db, self.job.schema, self.job.table, self.dump_path,
        )

    def restore_table(self) -> None:
        job = self.job
        self._ensure_absent(
            "table",
            job.qualified_table,
            dbname=job.destination_db,
            query=TABLE_EXISTS_SQL,
            params=(job.schema, job.table),
            where="destination",
            remediation=[f"DROP TABLE {qualified_name(job.schema, job.table)};"],
            hint="You might want to drop it with command (aborting restore):",
        )

        entries = parse_catalog(self.client.list_dump_catalog(self.dump_path))
        kept = exclude_foreign_keys(entries)
        skipped = len(entries) - len(kept)
        if skipped:
            print_info(f"Skipping {skipped} foreign key constraint(s) from the dump")

        print_info("Restoring dump in destination database...")
        fd, list_name = tempfile.mkstemp(prefix="pgrepl-", suffix=".list", dir=self.workdir)
        list_path = Path(list_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(render_catalog(kept))
            self.client.restore_dump(job.destination_db, self.dump_path, list_path)
        finally:
            list_path.unlink(missing_ok=True)

        # Only a successful restore removes the dump; failures keep it for retry.
        self.dump_path.unlink(missing_ok=True)

    def create_publication(self) -> None:
        pub = self.names.publication
        self._ensure_absent(
            "publication",
            pub,
            dbname=self.job.source_db,
            query=PUBLICATION_EXISTS_SQL,
            params=(pub,),
            where="source",
            remediation=[f"DROP PUBLICATION {quote_ident(pub)};"],
            hint="To delete the existing publication, use the following command:",
        )
        print_info(f"Creating '{pub}' for {self.job.table} in source database...")
        statement = sql.SQL("CREATE PUBLICATION {} FOR TABLE {}.{}").format(
            sql.Identifier(pub),
            sql.Identifier(self.job.schema),
            sql.Identifier(self.job.table),
        )
        self.client.execute(
            self.job.source_db, statement, label=f"CREATE PUBLICATION {pub}",
        )

    def create_slot(self) -> None:
        slot = self.names.slot
        self._ensure_absent(
            "replication slot",
            slot,
            dbname=self.job.source_db,
            query=SLOT_EXISTS_SQL,
            params=(slot,),
            where="source",
            remediation=[f"SELECT pg_drop_replication_slot({quote_literal(slot)});"],
            hint="To delete the existing replication slot, use the following command:",
        )
        print_info(f"Creating logical replication slot '{slot}' in source database...")
        self.client.execute(
            self.job.source_db,
            CREATE_SLOT_SQL,
            (slot,),
            label=f"pg_create_logical_replication_slot('{slot}')",
        )

    def create_subscription(self) -> None:
        sub = self.names.subscription
        self._ensure_absent(
            "subscription",
            sub,
            dbname=self.job.destination_db,
            query=SUBSCRIPTION_EXISTS_SQL,
            params=(sub,),
            where="destination",
            remediation=drop_subscription_statements(sub),
            hint="To delete the existing subscription, use the following commands:",
        )
        print_info(f"Creating '{sub}' in destination database...")
        statement = sql.SQL(
            "CREATE SUBSCRIPTION {sub} CONNECTION {conninfo} PUBLICATION {pub} "
            + "WITH (slot_name = {slot}, create_slot = false)",
        ).format(
            sub=sql.Identifier(sub),
            conninfo=sql.Literal(self.client.conninfo(self.job.source_db)),
            pub=sql.Identifier(self.names.publication),
            slot=sql.Literal(self.names.slot),
        )
        self.client.execute(
            self.job.destination_db, statement, label=f"CREATE SUBSCRIPTION {sub}",
        )

    def stages(self) -> list[Stage]:
        return [
            ("dump", self.dump_table),
            ("restore", self.restore_table),
            ("publication", self.create_publication),
            ("slot", self.create_slot),
            ("subscription", self.create_subscription),
        ]

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    @staticmethod
    def _run_stage(name: str, func: Callable[[], None]) -> StageResult:
        try:
            func()
        except ObjectAlreadyExistsError as e:
            return StageResult(
                name,
                StageStatus.ALREADY_EXISTS,
                message=str(e),
                hint=e.hint,
                remediation=e.remediation,
            )
        except ExternalCommandFailedError as e:
            return StageResult(name, StageStatus.FAILED, message=str(e))
        return StageResult(name)

    def run(self) -> SetupResult:
        """Run every stage in order, stopping at the first failure.

        Returns:
            SetupResult; ``report_path`` is set only when all stages succeeded.
        """
        result = SetupResult()
        print_header(
            f"Setting up logical replication for {self.job.qualified_table}: "
            + f"{self.job.source_db} -> {self.job.destination_db}",
        )

        for name, func in self.stages():
            stage = self._run_stage(name, func)
            result.stages.append(stage)
            if not stage.ok:
                _print_stage_failure(stage)
                return result

        report = build_report(self.client.target, self.job, self.names)
        result.report_path = write_report(self.report_path, report)
        print(report)
        print_success(f"These commands are saved in {self.report_path.name}")
        return result


def _print_stage_failure(stage: StageResult) -> None:
    print_error(stage.message)
    if stage.remediation:
        print_warning(stage.hint)
        for command in stage.remediation:
            print_command(command)
    if stage.status is StageStatus.FAILED:
        print_info(
            "Completed stages were not rolled back. Inspect the databases "
            + "or run again with --cleanup true.",
        )
