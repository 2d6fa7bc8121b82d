"""
Tests for the command line host
"""

import json

import pytest

from lockedin import main as cli


@pytest.fixture(autouse=True)
def environment(tmp_path, monkeypatch):
    monkeypatch.setenv("LOCKEDIN_HOME", str(tmp_path))
    monkeypatch.setenv("LOCKEDIN_LOG_TO_FILE", "false")
    monkeypatch.setenv("LOCKEDIN_ENV", "testing")
    monkeypatch.setattr(cli, "setup_logging", lambda config: None)
    return tmp_path


def test_block_add_list_remove(capsys):
    assert cli.main(["block", "add", "Spotify"]) == 0
    assert cli.main(["block", "add", "steam"]) == 0
    capsys.readouterr()

    assert cli.main(["block", "list"]) == 0
    assert capsys.readouterr().out.split() == ["spotify", "steam"]

    assert cli.main(["block", "remove", "SPOTIFY"]) == 0
    capsys.readouterr()
    cli.main(["block", "list"])
    assert capsys.readouterr().out.split() == ["steam"]


def test_blank_block_name_rejected(capsys):
    assert cli.main(["block", "add", "  "]) == 2


def test_status_without_sessions(capsys):
    assert cli.main(["status"]) == 0
    assert "No sessions yet" in capsys.readouterr().out


def test_status_json(capsys, environment):
    history = [{
        "id": "1", "allowed_apps": ["notepad"], "duration_minutes": 25,
        "start_time": 1_700_000_000_000, "end_time": 1_700_001_500_000,
        "total_duration": 1_500_000, "blocked_attempts": 2, "distractions": 0,
    }]
    data_dir = environment / "data"
    data_dir.mkdir(exist_ok=True)
    (data_dir / "sessions.json").write_text(json.dumps(history), encoding="utf-8")

    assert cli.main(["status", "--json"]) == 0
    status = json.loads(capsys.readouterr().out)

    assert status["current"] is None
    assert status["history"][0]["blocked_attempts"] == 2


def test_status_table(capsys, environment):
    data_dir = environment / "data"
    data_dir.mkdir(exist_ok=True)
    (data_dir / "sessions.json").write_text(json.dumps([{
        "id": "1", "allowed_apps": ["notepad"], "duration_minutes": 25,
        "start_time": 1_700_000_000_000, "total_duration": 1_500_000,
        "end_reason": "expired",
    }]), encoding="utf-8")

    cli.main(["status"])
    out = capsys.readouterr().out
    assert "2023-11-14 22:13:20" in out
    assert "25m 00s" in out
    assert "[expired] notepad" in out


def test_invalid_minutes_rejected_before_locking(capsys, environment):
    assert cli.main(["start", "--minutes", "0"]) == 2
    assert not (environment / "data" / "engine.lock").exists()


def test_bad_configuration_exits_with_error(capsys, monkeypatch):
    monkeypatch.setenv("LOCKEDIN_TERMINATE_GRACE", "often")
    assert cli.main(["status"]) == 2
    assert "LOCKEDIN_TERMINATE_GRACE" in capsys.readouterr().err


def test_capabilities_reports_health(capsys):
    assert cli.main(["capabilities"]) == 0
    health = json.loads(capsys.readouterr().out)
    assert health["state"] == "idle"
    assert health["monitor_running"] is False
