"""Tests for the non-interactive CLI commands."""

import pytest
from typer.testing import CliRunner

from pomocycle.app import PomodoroApp
from pomocycle.cli.main import app
from pomocycle.core.config import Config, get_config

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("POMOCYCLE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("POMOCYCLE_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("COLUMNS", "200")
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def invoke(*args, **kwargs):
    return runner.invoke(app, list(args), **kwargs)


def test_version():
    result = invoke("version")
    assert result.exit_code == 0
    assert "pomocycle v" in result.stdout


def test_task_lifecycle():
    assert invoke("task-add", "write report").exit_code == 0
    assert invoke("task-add", "review").exit_code == 0

    listing = invoke("tasks")
    assert listing.exit_code == 0
    assert listing.stdout.index("review") < listing.stdout.index("write report")

    assert invoke("task-select", "2").exit_code == 0
    assert "(active)" in invoke("tasks").stdout

    done = invoke("task-done", "1")
    assert "Marked done" in done.stdout

    deleted = invoke("task-delete", "2")
    assert "write report" in deleted.stdout
    assert "write report" not in invoke("tasks").stdout


def test_task_add_rejects_empty_text():
    result = invoke("task-add", "   ")
    assert result.exit_code == 1
    assert "Error" in result.stdout


def test_unknown_task_position():
    result = invoke("task-done", "3")
    assert result.exit_code == 1
    assert "No task at position 3" in result.stdout


def test_durations_set_and_reset():
    result = invoke("durations-set", "--work", "30")
    assert result.exit_code == 0
    assert "30/5/15" in result.stdout

    assert "30" in invoke("durations").stdout

    invoke("durations-reset")
    assert "25" in invoke("durations").stdout


@pytest.mark.parametrize("value", ["0", "61", "abc", "25.5"])
def test_durations_set_rejects_invalid(value):
    result = invoke("durations-set", "--work", value)
    assert result.exit_code == 1
    assert "Invalid durations" in result.stdout


def test_stats_on_empty_history():
    result = invoke("stats")
    assert result.exit_code == 0
    assert "Total sessions" in result.stdout


def test_history_empty():
    assert "No sessions recorded yet" in invoke("history").stdout


def test_history_clear_asks_for_confirmation():
    result = invoke("history-clear", input="n\n")
    assert "Cancelled" in result.stdout

    result = invoke("history-clear", "--yes")
    assert result.exit_code == 0
    assert "History cleared" in result.stdout


def test_prefs_update():
    result = invoke("prefs", "--theme", "light", "--no-sound")
    assert result.exit_code == 0
    assert "light" in result.stdout

    assert "light" in invoke("prefs").stdout


def test_prefs_rejects_unknown_theme():
    result = invoke("prefs", "--theme", "neon")
    assert result.exit_code == 1


def test_config_show():
    result = invoke("config-show")
    assert result.exit_code == 0
    assert "sqlite" in result.stdout


def test_task_text_with_brackets_is_shown_literally():
    text = "fix [/] parser [bold]now[/bold]"
    added = invoke("task-add", text)
    assert added.exit_code == 0
    assert text in added.stdout

    listing = invoke("tasks")
    assert listing.exit_code == 0
    assert text in listing.stdout

    assert text in invoke("task-select", "1").stdout
    assert text in invoke("task-done", "1").stdout

    deleted = invoke("task-delete", "1")
    assert deleted.exit_code == 0
    assert text in deleted.stdout
    assert invoke("tasks").exit_code == 0


def test_history_shows_bracketed_task_names():
    pomo = PomodoroApp.from_config(Config.load())
    task = pomo.add_task("[red]draft[/red]")
    pomo.select_task(task.id)
    pomo.controller.complete()
    pomo.close()

    result = invoke("history")
    assert result.exit_code == 0
    assert "[red]draft[/red]" in result.stdout


def test_backup_writes_a_copy(tmp_path):
    invoke("task-add", "keep me")

    result = invoke("backup", "--dir", str(tmp_path / "bk"))

    assert result.exit_code == 0
    copies = list((tmp_path / "bk").glob("pomocycle_*.db"))
    assert len(copies) == 1
    assert copies[0].stat().st_size > 0


def test_backup_needs_a_database(monkeypatch):
    monkeypatch.setenv("POMOCYCLE_STORAGE__BACKEND", "memory")
    get_config.cache_clear()

    result = invoke("backup")

    assert result.exit_code == 1
    assert "Nothing to back up" in result.stdout


def test_run_rejects_non_positive_minutes_scale():
    result = invoke("run", "--minutes-scale", "0")
    assert result.exit_code != 0
