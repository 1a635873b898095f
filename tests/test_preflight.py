"""Unit tests for core/preflight.py."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from pgrepl_tools.core.errors import (
    AuthenticationFailedError,
    HostUnreachableError,
    MissingDependencyError,
)
from pgrepl_tools.core.models import ConnectionTarget
from pgrepl_tools.core.preflight import (
    check_client_binaries,
    check_host,
    verify_credentials,
)
from pgrepl_tools.helpers.settings import ToolSettings
from tests._fake_client import FakeAdminClient


class TestCheckClientBinaries:
    @patch("pgrepl_tools.core.preflight.shutil.which", return_value="/usr/bin/x")
    def test_all_present(self, _mock_which: Mock) -> None:
        check_client_binaries(ToolSettings())

    @patch("pgrepl_tools.core.preflight.shutil.which")
    def test_lists_every_missing_binary(self, mock_which: Mock) -> None:
        mock_which.side_effect = lambda name: None if name != "pg_isready" else "/x"

        with pytest.raises(MissingDependencyError) as exc_info:
            check_client_binaries(ToolSettings())

        assert "'pg_dump', 'pg_restore'" in str(exc_info.value)
        assert "pg_isready" not in str(exc_info.value)


class TestCheckHost:
    @patch("pgrepl_tools.core.preflight.pg_isready", return_value=True)
    def test_reachable(self, mock_ready: Mock) -> None:
        check_host("db.local", 5432, ToolSettings(pg_isready="/opt/pg_isready"))
        mock_ready.assert_called_once_with("db.local", 5432, binary="/opt/pg_isready")

    @patch("pgrepl_tools.core.preflight.pg_isready", return_value=False)
    def test_unreachable(self, _mock_ready: Mock) -> None:
        with pytest.raises(HostUnreachableError, match="not accessible on port 5433"):
            check_host("db.local", 5433, ToolSettings())


class TestVerifyCredentials:
    def test_success(self, fake_client: FakeAdminClient) -> None:
        verify_credentials(fake_client, "shop")
        assert fake_client.calls == [("check_connection", "shop")]

    def test_failure(self, target: ConnectionTarget) -> None:
        client = FakeAdminClient(target, fail_labels={"SELECT 1"})

        with pytest.raises(AuthenticationFailedError, match="password is incorrect"):
            verify_credentials(client, "shop")
