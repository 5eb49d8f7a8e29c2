import json

import pytest
from typer.testing import CliRunner

from wt_log.cli import app


@pytest.fixture
def run(tmp_path):
    runner = CliRunner()

    def _run(*args, input=None):
        return runner.invoke(app, ["--data-dir", str(tmp_path), *args], input=input)

    return _run


def test_cli_settings(run, tmp_path):
    """Test settings show/set, including uppercasing and merging."""
    result = run("settings", "show")
    assert result.exit_code == 0
    assert "Argentina" in result.output

    result = run("settings", "set", "--callsign", "lu1abc", "--grid", "ff78", "--theme", "dark")
    assert result.exit_code == 0

    data = json.loads((tmp_path / "settings.json").read_text(encoding="utf-8"))
    assert data["callsign"] == "LU1ABC"
    assert data["gridSquare"] == "FF78"
    assert data["theme"] == "dark"
    assert data["country"] == "Argentina"

    assert run("settings", "set", "--theme", "neon").exit_code != 0


def test_cli_log_lifecycle(run, tmp_path):
    """Test new, list, qso add/remove, show, export and delete."""
    result = run("logs", "new", "Sprint")
    assert result.exit_code == 0
    assert (tmp_path / "logs" / "Sprint.json").is_file()

    result = run("logs", "new", "SPRINT")
    assert result.exit_code == 1
    assert "already exists" in result.output

    assert "yes" in run("logs", "exists", "sprint").output

    result = run("logs", "list")
    assert result.exit_code == 0
    assert "Sprint" in result.output

    result = run("qso", "add", "Sprint", "--call", "k1abc", "--when", "2024-07-04 12:00", "--band", "40m")
    assert result.exit_code == 0
    assert "K1ABC" in result.output

    data = json.loads((tmp_path / "logs" / "Sprint.json").read_text(encoding="utf-8"))
    qso = data["qsos"][0]
    assert qso["callSign"] == "K1ABC"
    assert qso["date"] == "2024-07-04"
    assert qso["time"] == "12:00"
    assert qso["band"] == "40m"

    result = run("logs", "show", "Sprint")
    assert result.exit_code == 0
    assert "K1ABC" in result.output

    output = tmp_path / "sprint.adi"
    result = run("export", "Sprint", "--output", str(output))
    assert result.exit_code == 0
    assert "<CALL:5>K1ABC" in output.read_text(encoding="utf-8")

    result = run("qso", "remove", "Sprint", str(qso["id"]))
    assert result.exit_code == 0
    data = json.loads((tmp_path / "logs" / "Sprint.json").read_text(encoding="utf-8"))
    assert data["qsos"] == []

    result = run("logs", "delete", "Sprint", "--yes")
    assert result.exit_code == 0
    assert not (tmp_path / "logs" / "Sprint.json").exists()

    result = run("logs", "show", "Sprint")
    assert result.exit_code == 1


def test_cli_import_adif(run, tmp_path):
    """Test importing an ADIF file into a log given by path."""
    run("logs", "new", "Imported")
    src = tmp_path / "in.adi"
    src.write_text(
        "<EOH><CALL:4>W1AW<QSO_DATE:8>20240705<TIME_ON:4>1300<EOR>"
        "<CALL:5>EA1XY<QSO_DATE:8>20240705<TIME_ON:4>1301<EOR>",
        encoding="utf-8",
    )
    log_path = tmp_path / "logs" / "Imported.json"
    result = run("import-adif", str(log_path), str(src))
    assert result.exit_code == 0
    assert "Imported 2 QSOs" in result.output

    data = json.loads(log_path.read_text(encoding="utf-8"))
    assert [q["callSign"] for q in data["qsos"]] == ["W1AW", "EA1XY"]


def test_cli_serve(run):
    """Test the JSON line server through the CLI."""
    requests = "\n".join(
        [
            json.dumps({"id": 1, "operation": "create-log", "payload": {"name": "Served"}}),
            json.dumps({"id": 2, "operation": "log-exists", "payload": {"name": "served"}}),
        ]
    )
    result = run("serve", input=requests + "\n")
    assert result.exit_code == 0
    responses = [json.loads(line) for line in result.stdout.splitlines() if line.strip()]
    assert responses[0]["ok"] is True
    assert responses[1] == {"id": 2, "ok": True, "result": True}


def test_cli_reports_unusable_logs_directory(run, tmp_path):
    """Test that a logs path blocked by a regular file fails cleanly."""
    (tmp_path / "logs").write_text("not a directory", encoding="utf-8")

    result = run("logs", "exists", "Sprint")
    assert result.exit_code == 1
    assert "Error checking log name" in result.output

    result = run("logs", "show", "Sprint")
    assert result.exit_code == 1
    assert "Error loading log" in result.output
