import pytest
from typer.testing import CliRunner

from conftest import count_rows
from timefor import tracker
from timefor.cli import app
from timefor.db import database_connection

runner = CliRunner()


@pytest.fixture
def invoke(db_path):
    def _invoke(*args):
        return runner.invoke(app, ["--db", str(db_path), *args])

    return _invoke


def _rows(db_path):
    with database_connection(db_path) as conn:
        return count_rows(conn)


def test_start_and_show(invoke):
    result = invoke("start", "code")
    assert result.exit_code == 0
    assert 'New activity "code" started' in result.output

    result = invoke("show")
    assert result.exit_code == 0
    assert result.output.strip() == "☭ 00:00 code"

    result = invoke("show", "--style", "text", "-t", "{state}:{name}")
    assert result.output.strip() == "ON:code"


def test_starting_same_activity_is_not_an_error(invoke, db_path):
    invoke("start", "code")
    result = invoke("start", "code")

    assert result.exit_code == 0
    assert "Keep tracking existing activity" in result.output
    assert _rows(db_path) == 1


def test_start_with_shift(invoke, db_path):
    result = invoke("start", "reading", "--shift", "10m")
    assert result.exit_code == 0
    with database_connection(db_path) as conn:
        assert tracker.latest(conn).duration == 600


@pytest.mark.parametrize("shift", ["-5m", "soon"])
def test_start_with_invalid_shift_fails(invoke, db_path, shift):
    result = invoke("start", "reading", f"--shift={shift}")
    assert result.exit_code == 1
    assert _rows(db_path) == 0


def test_finish_and_update_without_activity_fail(invoke):
    result = invoke("finish")
    assert result.exit_code == 1
    assert "no current activity" in result.output

    assert invoke("update").exit_code == 1


def test_update_renames_and_finish_closes(invoke, db_path):
    invoke("start", "draft")
    assert invoke("update", "--name", "review").exit_code == 0
    assert invoke("finish").exit_code == 0

    with database_connection(db_path) as conn:
        latest = tracker.latest(conn)
    assert latest.name == "review"
    assert not latest.current
    assert invoke("show").output.strip() == "☯ 00:00 OFF"


def test_reject(invoke, db_path):
    invoke("start", "oops")
    result = invoke("reject")
    assert result.exit_code == 0
    assert "rejected" in result.output
    assert _rows(db_path) == 0

    assert invoke("reject").exit_code == 0


def test_show_with_malformed_template_fails(invoke):
    result = invoke("show", "-t", "{nope}")
    assert result.exit_code == 1
    assert "unknown template field" in result.output


def test_report(invoke):
    invoke("start", "code", "--shift", "2m")
    result = invoke("report")
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == "Active for 00:02"
    assert lines[2].startswith("code ")


def test_report_notification(invoke, monkeypatch):
    sent = []

    class Backend:
        def notify(self, **kwargs):
            sent.append(kwargs)

    monkeypatch.setattr("timefor.notifier.plyer_notification", Backend())
    result = invoke("report", "--notify")

    assert result.exit_code == 0
    assert sent[0]["title"] == "Inactive for 00:00"
    assert sent[0]["timeout"] == 0


def test_select_starts_chosen_activity(invoke, db_path, monkeypatch):
    monkeypatch.setattr("timefor.selector.select_name", lambda conn: "picked")
    result = invoke("select")
    assert result.exit_code == 0
    with database_connection(db_path) as conn:
        assert tracker.latest(conn).name == "picked"


def test_db_update_views(invoke):
    assert invoke("db", "--update-views").exit_code == 0


def test_db_location_from_environment(tmp_path):
    db_file = tmp_path / "env.db"
    result = runner.invoke(app, ["start", "code"], env={"TIMEFOR_DB": str(db_file)})
    assert result.exit_code == 0
    assert _rows(db_file) == 1


def test_unusable_database_location_is_reported(tmp_path):
    result = runner.invoke(app, ["--db", str(tmp_path / "missing" / "timefor.db"), "start", "a"])
    assert result.exit_code == 1
    assert "Error: cannot open database" in result.output
