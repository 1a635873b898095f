"""Tests for the top-level ``pgrepl`` dispatcher."""

from __future__ import annotations

from unittest.mock import Mock, patch

import click
import pytest

from pgrepl_tools.cli import commands


class TestCommandsMainAbortHandling:
    """Ctrl-C style aborts produce a friendly message without traceback."""

    def test_main_handles_click_abort_with_friendly_message(
        self,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        with patch(
            "sys.argv",
            ["pgrepl", "setup-replication", "-h", "db.local"],
        ), patch.object(
            commands._click_cli,
            "main",
            side_effect=click.Abort(),
        ):
            result = commands.main()

        assert result == 130
        assert "Cancelled by user" in capsys.readouterr().out

    def test_main_handles_click_exception(
        self,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exc = click.ClickException("boom")
        with patch(
            "sys.argv",
            ["pgrepl", "openapi-diff", "a.yaml", "b.yaml"],
        ), patch.object(
            commands._click_cli,
            "main",
            side_effect=exc,
        ):
            result = commands.main()

        assert result == exc.exit_code
        assert "Error: boom" in capsys.readouterr().err


class TestHelpAndUnknown:
    @pytest.mark.parametrize("argv", [["pgrepl"], ["pgrepl", "help"], ["pgrepl", "-h"]])
    def test_help_lists_commands(
        self,
        argv: list[str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        with patch("sys.argv", argv):
            assert commands.main() == 0

        out = capsys.readouterr().out
        assert "setup-replication" in out
        assert "openapi-diff" in out

    def test_unknown_command_via_execute(
        self,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert commands.execute_command("replicate-everything", []) == 1
        assert "Unknown command: replicate-everything" in capsys.readouterr().out

    def test_unknown_command_via_main_is_usage_error(self) -> None:
        with patch("sys.argv", ["pgrepl", "replicate-everything"]):
            assert commands.main() == 2


class TestPassthrough:
    """Subcommand args reach the command module untouched."""

    def test_setup_replication_receives_raw_args(self) -> None:
        argv = ["-h", "db.local", "-p", "5432", "--cleanup", "true"]
        with patch("sys.argv", ["pgrepl", "setup-replication", *argv]), patch(
            "pgrepl_tools.cli.setup_replication.main", return_value=1,
        ) as mock_main:
            result = commands.main()

        mock_main.assert_called_once_with(argv)
        assert result == 1

    def test_openapi_diff_exit_code_propagates(self) -> None:
        mock_main = Mock(return_value=3)
        with patch("sys.argv", ["pgrepl", "openapi-diff", "a.yaml", "b.yaml"]), patch(
            "pgrepl_tools.cli.openapi_diff.main", mock_main,
        ):
            result = commands.main()

        mock_main.assert_called_once_with(["a.yaml", "b.yaml"])
        assert result == 3

    def test_subcommand_help_is_not_swallowed_by_click(self) -> None:
        with patch("sys.argv", ["pgrepl", "setup-replication", "--help"]), patch(
            "pgrepl_tools.cli.setup_replication.main", return_value=0,
        ) as mock_main:
            assert commands.main() == 0

        mock_main.assert_called_once_with(["--help"])
