"""Tests for CLI entry point."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from goup import __main__ as cli
from goup.config import GoupConfig
from goup.errors import ProjectError, WatchRegistrationError
from goup.project import Project
from goup.supervisor import StdinRelay


class TestRun:
    """Tests for run()."""

    def test_invalid_signal_exits_before_anything_starts(self, monkeypatch):
        monkeypatch.setenv("GOUP_TERM_SIGNAL", "KILL")

        with patch.object(cli.StdinRelay, "capture") as capture, patch.object(
            cli, "main", new=MagicMock()
        ) as main:
            with pytest.raises(SystemExit) as exc_info:
                cli.run()

        assert exc_info.value.code == 1
        capture.assert_not_called()
        main.assert_not_called()

    def test_forwards_arguments_and_exit_code(self, monkeypatch):
        monkeypatch.delenv("GOUP_TERM_SIGNAL", raising=False)
        monkeypatch.setattr("sys.argv", ["goup", "-config", "dev.yaml", "--", "extra"])
        relay = StdinRelay(b"")
        main = AsyncMock(return_value=0)

        with patch.object(cli.StdinRelay, "capture", return_value=relay), patch.object(
            cli, "main", new=main
        ):
            with pytest.raises(SystemExit) as exc_info:
                cli.run()

        assert exc_info.value.code == 0
        args, config, stdin_relay = main.await_args.args
        assert args == ["-config", "dev.yaml", "--", "extra"]
        assert isinstance(config, GoupConfig)
        assert stdin_relay is relay

    def test_closed_stdin_exits_nonzero_with_logged_error(self, monkeypatch, caplog):
        """Test that a closed standard input is a logged startup failure."""
        monkeypatch.delenv("GOUP_TERM_SIGNAL", raising=False)
        monkeypatch.setattr("sys.stdin", None)

        with patch.object(cli, "main", new=MagicMock()) as main:
            with caplog.at_level(logging.ERROR):
                with pytest.raises(SystemExit) as exc_info:
                    cli.run()

        assert exc_info.value.code == 1
        assert "failed to read standard input: standard input is closed" in caplog.text
        main.assert_not_called()

    def test_stdin_failure_exits_nonzero(self, monkeypatch):
        monkeypatch.delenv("GOUP_TERM_SIGNAL", raising=False)

        with patch.object(cli.StdinRelay, "capture", side_effect=OSError("bad fd")):
            with pytest.raises(SystemExit) as exc_info:
                cli.run()

        assert exc_info.value.code == 1


class TestMain:
    """Tests for main()."""

    @pytest.mark.asyncio
    async def test_project_error_returns_1(self, caplog):
        with patch.object(
            cli.GoToolchain, "load_project", new=AsyncMock(side_effect=ProjectError("no go.mod"))
        ):
            with caplog.at_level(logging.ERROR):
                code = await cli.main([], GoupConfig(), StdinRelay(None))

        assert code == 1
        assert "failed import: no go.mod" in caplog.text

    @pytest.mark.asyncio
    async def test_registration_error_returns_1(self, tmp_path):
        project = Project(name="main", dir=str(tmp_path), target="/bin/app")
        with patch.object(
            cli.GoToolchain, "load_project", new=AsyncMock(return_value=project)
        ), patch.object(
            cli.Goup, "run", new=AsyncMock(side_effect=WatchRegistrationError("/x", "gone"))
        ):
            code = await cli.main([], GoupConfig(), StdinRelay(None))

        assert code == 1


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_uses_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        with patch("logging.basicConfig") as basic_config:
            cli.configure_logging()

        assert basic_config.call_args.kwargs["level"] == logging.DEBUG
