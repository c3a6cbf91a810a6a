"""Tests for the PulseGate CLI."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from pulsegate.cli import build_overrides, build_parser, main, run


def write_config(tmp_path: Path, heartbeat: dict) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "heartbeat": heartbeat,
                "session": {"store": str(tmp_path / "sessions.json")},
                "logging": {"directory": str(tmp_path / "logs")},
            }
        ),
        encoding="utf-8",
    )
    return config_path


class TestParser:
    """Tests for argument parsing and overrides."""

    def test_once_defaults(self):
        args = build_parser().parse_args(["once"])

        assert args.command == "once"
        assert args.reason == "manual"
        assert args.config == Path("config.yaml")

    def test_overrides_from_flags(self):
        args = build_parser().parse_args(["run", "--every", "5m", "--target", "telegram", "--to", "42"])

        assert build_overrides(args) == {"heartbeat": {"every": "5m", "target": "telegram", "to": "42"}}

    def test_no_overrides(self):
        assert build_overrides(build_parser().parse_args(["run"])) == {}

    def test_invalid_target_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["run", "--target", "sms"])


class TestMain:
    """Tests for the async main entry point."""

    @pytest.mark.asyncio
    async def test_once_without_interval_reports_skip(self, tmp_path, capsys):
        """A heartbeat without an interval is skipped, not failed."""
        config_path = write_config(tmp_path, {"every": None})

        with patch("pulsegate.cli.setup_logging"):
            exit_code = await main(["-c", str(config_path), "--env-file", str(tmp_path / ".env"), "once"])

        assert exit_code == 0
        assert "heartbeat skipped: disabled" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_every_override_applied(self, tmp_path, capsys):
        """--every enables a heartbeat the file leaves without an interval."""
        config_path = write_config(tmp_path, {"every": None, "target": "none"})

        with (
            patch("pulsegate.cli.setup_logging"),
            patch("pulsegate.agent.reply.ChatModelReplyGenerator.__call__", return_value=None),
        ):
            exit_code = await main(["-c", str(config_path), "once", "--every", "5m"])

        assert exit_code == 0
        assert "heartbeat ran" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_missing_config_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await main(["-c", str(tmp_path / "missing.yaml"), "once"])


class TestRunErrorHandling:
    """Tests for clean error reporting in the run() entry point."""

    def test_keyboard_interrupt_exits_cleanly(self):
        """KeyboardInterrupt exits without traceback."""
        with patch("pulsegate.cli.asyncio.run", side_effect=KeyboardInterrupt):
            run()

    def test_exit_code_propagated(self):
        with patch("pulsegate.cli.asyncio.run", return_value=1):
            with pytest.raises(SystemExit) as exc_info:
                run()
        assert exc_info.value.code == 1

    def test_file_not_found_prints_error(self, capsys):
        """FileNotFoundError prints clean message and exits 1."""
        with patch("pulsegate.cli.asyncio.run", side_effect=FileNotFoundError("Config file not found: config.yaml")):
            with pytest.raises(SystemExit) as exc_info:
                run()
            assert exc_info.value.code == 1
        assert "Config file not found" in capsys.readouterr().err

    def test_yaml_error_prints_message(self, capsys):
        """yaml.YAMLError prints clean message and exits 1."""
        with patch("pulsegate.cli.asyncio.run", side_effect=yaml.YAMLError("bad yaml")):
            with pytest.raises(SystemExit) as exc_info:
                run()
            assert exc_info.value.code == 1
        assert "Invalid YAML" in capsys.readouterr().err

    def test_value_error_prints_config_error(self, capsys):
        """ValueError (e.g., from env var validation) prints config error and exits 1."""
        with patch(
            "pulsegate.cli.asyncio.run",
            side_effect=ValueError("Unresolved environment variable(s) in config.yaml: ${MISSING_KEY}"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                run()
            assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "Configuration error" in captured.err
        assert "MISSING_KEY" in captured.err

    def test_generic_exception_prints_startup_failed(self, capsys):
        """Unknown exceptions print generic message with -v hint."""
        with patch("pulsegate.cli.asyncio.run", side_effect=RuntimeError("something broke")):
            with pytest.raises(SystemExit) as exc_info:
                run()
            assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "Startup failed" in captured.err
        assert "-v" in captured.err
