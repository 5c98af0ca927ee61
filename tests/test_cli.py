"""Tests for the nettime command line."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from cli import main as cli
from nettime.errors import MissingDateHeaderError
from nettime.models import SyncResult

SERVER_TIME = datetime(2025, 1, 12, 17, 44, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_parse_command_prints_iso(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["parse", "Sun, 12 Jan 2025 17:44:00 GMT"]) == 0
    assert capsys.readouterr().out.strip() == "2025-01-12T17:44:00+00:00"


def test_parse_command_rejects_garbage(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["parse", "Invalid Date String"]) == 2
    assert "Failed to parse date" in capsys.readouterr().out


def test_sync_command_reports_offset(capsys: pytest.CaptureFixture[str]) -> None:
    def fake_sync(self, endpoint, timeout):
        offset = self.store.commit(SERVER_TIME)
        return SyncResult.success(endpoint, SERVER_TIME, offset)

    with patch("nettime.sync_client.SyncClient.sync", fake_sync):
        code = cli.main(["sync", "--endpoint", "https://time.example", "--timeout", "3"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Endpoint:     https://time.example" in out
    assert "2025-01-12T17:44:00+00:00" in out
    assert "applied" in out


def test_sync_command_failure_exit_code() -> None:
    def fake_sync(self, endpoint, timeout):
        return SyncResult.failure(endpoint, MissingDateHeaderError())

    with patch("nettime.sync_client.SyncClient.sync", fake_sync):
        assert cli.main(["sync", "--endpoint", "https://time.example"]) == 2


def test_sync_command_invalid_endpoint() -> None:
    assert cli.main(["sync", "--endpoint", "invalid_url"]) == 2


def test_sync_command_unencodable_host_exits_cleanly() -> None:
    assert cli.main(["sync", "--endpoint", "http://a..b/"]) == 2


def test_sync_command_unexpected_worker_error_exits_cleanly() -> None:
    with patch("nettime.sync_client.urlopen", side_effect=RuntimeError("boom")):
        assert cli.main(["sync", "--endpoint", "https://time.example"]) == 2


def test_config_file_is_loaded_and_overridden(tmp_path: Path) -> None:
    config_path = tmp_path / "nettime.yaml"
    config_path.write_text(
        "endpoint: https://from-config.example\ntimeout: 4\nignorable_network_delay: 1\n",
        encoding="utf-8",
    )
    parser = cli.build_parser()
    args = parser.parse_args(
        ["sync", "--config", str(config_path), "--timeout", "7"]
    )

    settings = cli.resolve_settings(args)

    assert settings.endpoint == "https://from-config.example"
    assert settings.timeout == 7.0
    assert settings.ignorable_network_delay == 1.0


def test_invalid_config_file_exit_code(tmp_path: Path) -> None:
    config_path = tmp_path / "nettime.json"
    config_path.write_text(json.dumps({"timeout": -1}), encoding="utf-8")

    assert cli.main(["sync", "--config", str(config_path)]) == 2


def test_load_config_rejects_unknown_suffix(tmp_path: Path) -> None:
    config_path = tmp_path / "nettime.ini"
    config_path.write_text("[nettime]\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported config format"):
        cli.load_config(config_path)


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        cli.load_config(tmp_path / "missing.json")
