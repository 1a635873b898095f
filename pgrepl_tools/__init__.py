"""
pgrepl-tools

Command-line helpers for setting up PostgreSQL logical replication of a
single table between two databases of one cluster, plus a containerized
OpenAPI spec diff wrapper.
"""

__version__ = "0.1.0"

from pgrepl_tools.cli.commands import main
from pgrepl_tools.core.replication_cleanup import ReplicationCleanup
from pgrepl_tools.core.replication_setup import ReplicationSetup

__all__ = [
    "ReplicationCleanup",
    "ReplicationSetup",
    "main",
]
